"""CryptoStack — command line entry point."""

import argparse
import sys
import threading
from pathlib import Path

from cryptostack.catalog import display_name
from cryptostack.clock import TickThread
from cryptostack.config import AppConfig, load_config
from cryptostack.engine import PlacementEngine, Snapshot
from cryptostack.errors import BlockNotFoundError, ConfigError, InvalidHoldingError
from cryptostack.prices import PriceBook, PriceThread, read_quotes_file
from cryptostack.renderer import render_frame
from cryptostack.store import PortfolioStore, records_from_blocks, restore


def build_engine(config: AppConfig, book: PriceBook, on_change=None) -> PlacementEngine:
    width, height = config.grid.dimensions()
    return PlacementEngine(
        width=width,
        height=height,
        prices=book,
        stagger_ticks=config.clock.stagger_ticks,
        jitter=config.spawn.jitter,
        seed=config.spawn.seed,
        on_change=on_change,
    )


def make_price_thread(config: AppConfig, book: PriceBook,
                      engine: PlacementEngine) -> PriceThread | None:
    """Poll the configured quotes file, or None when no feed is set."""
    path = config.feed.path
    if not path:
        return None
    return PriceThread(
        book,
        fetch=lambda: read_quotes_file(path),
        interval=config.feed.interval,
        on_change=engine.set_prices,
    )


def format_metrics(snapshot: Snapshot) -> list[str]:
    m = snapshot.metrics
    lines = [
        f"Total value:     ${m.total_value:,.2f}",
        f"Assets:          {m.asset_count}",
        f"Diversification: {m.diversification_pct:.0f}%",
        f"Risk:            {m.risk_level} ({m.risk_score:.2f})",
    ]
    for h in m.holdings:
        lines.append(f"  {display_name(h.asset_id):<14} {h.quantity:.6f} ({h.blocks} blocks)")
    return lines


def format_blocks(snapshot: Snapshot) -> list[str]:
    lines = []
    for b in snapshot.blocks:
        state = "overflow" if b.overflow else ("settled" if b.settled else "falling")
        lines.append(f"#{b.id:<4} {b.asset_id:<12} qty={b.quantity:.6f} at ({b.x},{b.y}) {state}")
    return lines


def run_command(args, config: AppConfig) -> int:
    book = PriceBook(config.prices)
    store = PortfolioStore(config.store.path)
    engine = build_engine(config, book)

    restored = restore(engine, store.load())
    engine.run_until_settled()
    if args.verbose:
        print(f"Restored {restored} record(s) from {store.path}")

    if args.command == "run":
        return run_live(args, config, engine, store)

    try:
        if args.command == "add":
            ids = engine.add(args.asset, args.quantity)
            engine.run_until_settled()
            if args.verbose:
                print(f"Added {args.asset} x{args.quantity} as blocks {ids}")
        elif args.command == "remove":
            engine.remove(args.block_id)
            if args.verbose:
                print(f"Removed block {args.block_id}")
        elif args.command == "reorganize":
            engine.reorganize()
        elif args.command == "clear":
            engine.clear()
    except InvalidHoldingError as e:
        print(f"Invalid holding: {e}")
        return 2
    except BlockNotFoundError as e:
        print(f"No such block: {e}")
        return 2

    snapshot = engine.snapshot()
    if args.command == "clear":
        store.delete()
    elif args.command != "show":
        store.save(records_from_blocks(snapshot.blocks))

    for line in format_metrics(snapshot):
        print(line)
    if args.verbose or args.command == "show":
        for line in format_blocks(snapshot):
            print(line)
    if getattr(args, "png", None):
        frame = render_frame(snapshot, config.grid.cell_size,
                             font_path=config.render.font_path)
        frame.save(args.png)
        if args.verbose:
            print(f"Wrote {args.png}")
    return 0


def run_live(args, config: AppConfig, engine: PlacementEngine, store: PortfolioStore) -> int:
    """Tick forever, re-rendering to --png on every change."""
    lock = threading.Lock()

    def on_change(snapshot: Snapshot):
        if not args.png:
            return
        with lock:
            frame = render_frame(snapshot, config.grid.cell_size,
                                 font_path=config.render.font_path)
            frame.save(args.png)

    engine.on_change = on_change
    clock = TickThread(engine.tick, config.clock.tick_interval)
    feed = make_price_thread(config, engine.prices, engine)
    on_change(engine.snapshot())
    clock.start()
    if feed is not None:
        feed.start()
        if args.verbose:
            print(f"Polling quotes from {config.feed.path} every {config.feed.interval}s")
    if args.verbose:
        print(f"Ticking every {config.clock.tick_interval}s on a {engine.width}x{engine.height} grid")

    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        print("\nShutting down...")
    finally:
        clock.stop()
        if feed is not None:
            feed.stop()
        store.save(records_from_blocks(engine.snapshot().blocks))
        print("Done.")
    return 0


def make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Crypto holdings as stacking blocks")
    parser.add_argument("--config", default="config.yaml", help="Config file path")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("add", help="Add a holding")
    p.add_argument("asset")
    p.add_argument("quantity", type=float)
    p.add_argument("--png", help="Render the result to this PNG")

    p = sub.add_parser("remove", help="Remove one block and compact")
    p.add_argument("block_id", type=int)
    p.add_argument("--png", help="Render the result to this PNG")

    for name, help_text in [("reorganize", "Recompute all block positions"),
                            ("clear", "Remove everything"),
                            ("show", "Print blocks and metrics"),
                            ("run", "Tick continuously until Ctrl-C")]:
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--png", help="Render to this PNG")
    return parser


def main(argv=None):
    args = make_parser().parse_args(argv)

    config_path = Path(args.config)
    if config_path.exists():
        try:
            config = load_config(config_path)
        except ConfigError as e:
            print(f"Bad config: {e}")
            sys.exit(1)
    else:
        if args.verbose:
            print(f"Config not found: {config_path}, using defaults")
        config = AppConfig()

    sys.exit(run_command(args, config))


if __name__ == "__main__":
    main()
