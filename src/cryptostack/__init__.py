"""CryptoStack — crypto holdings as falling, stacking blocks on a grid."""

__version__ = "0.1.0"
