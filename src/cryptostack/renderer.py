"""PIL-based renderer for engine snapshots.

Stateless: takes a Snapshot (or Metrics) and returns an image. The engine
never draws.
"""

import os

from PIL import Image, ImageDraw, ImageFont

RISK_COLORS = {
    "Low": "#22c55e",
    "Medium": "#eab308",
    "High": "#ef4444",
}

BACKGROUND = "#050816"
GRID_LINE = "#0f172a"
FALLING_OUTLINE = "#ffffff"
OVERFLOW_OUTLINE = "#ef4444"

FONT_PATH = os.environ.get("CRYPTOSTACK_FONT", "DejaVuSans.ttf")


def _font(size: int, path: str | None = None) -> ImageFont.FreeTypeFont:
    try:
        return ImageFont.truetype(path or FONT_PATH, size)
    except OSError:
        return ImageFont.load_default()


def risk_to_color(level: str) -> str:
    """Map a risk level to a hex color."""
    return RISK_COLORS.get(level, "#6b7280")


def render_snapshot(snapshot, cell_size: int = 24, grid_lines: bool = True,
                    font_path: str | None = None) -> Image.Image:
    """Draw the grid and every block at its current position.

    Falling blocks above the grid are clipped. Overflow (pinned) blocks get
    a red outline on top of whatever they overlap.
    """
    size = (snapshot.width * cell_size, snapshot.height * cell_size)
    img = Image.new("RGB", size, BACKGROUND)
    draw = ImageDraw.Draw(img)

    if grid_lines:
        for x in range(1, snapshot.width):
            draw.line([(x * cell_size, 0), (x * cell_size, size[1])], fill=GRID_LINE)
        for y in range(1, snapshot.height):
            draw.line([(0, y * cell_size), (size[0], y * cell_size)], fill=GRID_LINE)

    # Overflow blocks last so they stay visible
    ordered = sorted(snapshot.blocks, key=lambda b: b.overflow)
    for block in ordered:
        if block.overflow:
            outline = OVERFLOW_OUTLINE
        elif block.settled:
            outline = block.visual.outline
        else:
            outline = FALLING_OUTLINE
        for r, row in enumerate(block.mask):
            for c, filled in enumerate(row):
                if not filled:
                    continue
                cx, cy = block.x + c, block.y + r
                if cy < 0 or cx < 0 or cx >= snapshot.width or cy >= snapshot.height:
                    continue
                box = [
                    cx * cell_size + 1, cy * cell_size + 1,
                    (cx + 1) * cell_size - 2, (cy + 1) * cell_size - 2,
                ]
                draw.rectangle(box, fill=block.visual.color, outline=outline, width=2)

        # Symbol in the middle of the block's bounding box
        w = len(block.mask[0]) * cell_size
        h = len(block.mask) * cell_size
        mx, my = block.x * cell_size + w // 2, block.y * cell_size + h // 2
        if 0 <= my < size[1] and cell_size >= 12:
            font = _font(max(10, cell_size // 2), font_path)
            draw.text((mx, my), block.visual.symbol, font=font,
                      fill="white", anchor="mm")

    return img


def render_metrics(metrics, size: tuple[int, int] = (240, 120),
                   font_path: str | None = None) -> Image.Image:
    """Render the metrics panel beside the grid."""
    img = Image.new("RGB", size, BACKGROUND)
    draw = ImageDraw.Draw(img)
    lines = [
        (f"${metrics.total_value:,.2f}", _font(18, font_path), "#ffffff"),
        (f"Assets: {metrics.asset_count}", _font(13, font_path), "#dddddd"),
        (f"Diversification: {metrics.diversification_pct:.0f}%", _font(13, font_path), "#dddddd"),
        (f"Risk: {metrics.risk_level}", _font(13, font_path), risk_to_color(metrics.risk_level)),
    ]
    y = 10
    for text, font, color in lines:
        draw.text((10, y), text, font=font, fill=color)
        y += font.getbbox("Ag")[3] - font.getbbox("Ag")[1] + 8
    return img


def render_frame(snapshot, cell_size: int = 24, font_path: str | None = None) -> Image.Image:
    """Grid on the left, metrics panel on the right."""
    board = render_snapshot(snapshot, cell_size, font_path=font_path)
    panel = render_metrics(snapshot.metrics, size=(240, board.size[1]), font_path=font_path)
    frame = Image.new("RGB", (board.size[0] + panel.size[0], board.size[1]), BACKGROUND)
    frame.paste(board, (0, 0))
    frame.paste(panel, (board.size[0], 0))
    return frame
