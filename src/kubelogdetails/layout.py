"""
Grid geometry and panel factory for the log grid.

This module provides:
- compute_layout(): Header plus 2-column tiled regions for N panes
- make_panel(): Helper for creating styled pane panels

Layout structure for 5 panes:
+----------------------------------------------+
|  Header (10% of height)                      |
+----------------------+-----------------------+
|  pane 0              |  pane 1               |
+----------------------+-----------------------+
|  pane 2              |  pane 3               |
+----------------------+-----------------------+
|  pane 4              |                       |
+----------------------+-----------------------+

The layout is recomputed from scratch at startup and on every resize.
"""

import math
from dataclasses import dataclass

from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

HEADER_RATIO = 0.1
DEFAULT_COLUMNS = 2


@dataclass(frozen=True)
class Region:
    """Rectangular screen region in character cells."""

    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class GridLayout:
    """
    Computed grid.

    Attributes:
        header: Header region spanning the full width
        rows: Pane regions row by row; the last row may hold fewer panes
    """

    header: Region
    rows: tuple[tuple[Region, ...], ...]

    @property
    def panes(self) -> list[Region]:
        """Pane regions in fill order (left-to-right, top-to-bottom)."""
        return [region for row in self.rows for region in row]


def _split_evenly(total: int, parts: int) -> list[int]:
    """Split total into parts differing by at most one, larger parts first."""
    base, extra = divmod(total, parts)
    return [base + (1 if i < extra else 0) for i in range(parts)]


def compute_layout(
    pane_count: int,
    width: int,
    height: int,
    columns: int = DEFAULT_COLUMNS,
    header_ratio: float = HEADER_RATIO,
) -> GridLayout:
    """
    Compute header and pane regions for a terminal size.

    The header takes the top 10% of the height. The rest is split into
    ceil(pane_count / columns) equal rows of equal-width columns, filled
    left to right. Columns past pane_count in the last row are omitted.

    Args:
        pane_count: Number of panes (at least 1)
        width: Terminal width in columns
        height: Terminal height in rows
        columns: Panes per row (default 2)
        header_ratio: Fraction of height for the header (default 0.1)

    Returns:
        GridLayout with one region per pane

    Raises:
        ValueError: If pane_count or columns is less than 1
    """
    if pane_count < 1:
        raise ValueError("pane_count must be at least 1")
    if columns < 1:
        raise ValueError("columns must be at least 1")
    width = max(width, 0)
    height = max(height, 0)

    header_height = int(height * header_ratio)
    header = Region(x=0, y=0, width=width, height=header_height)

    row_count = math.ceil(pane_count / columns)
    row_heights = _split_evenly(height - header_height, row_count)

    # Last column absorbs odd width
    col_widths = [width // columns] * columns
    col_widths[-1] += width - sum(col_widths)

    rows: list[tuple[Region, ...]] = []
    y = header_height
    for r, row_height in enumerate(row_heights):
        cells: list[Region] = []
        x = 0
        for c in range(columns):
            if r * columns + c >= pane_count:
                break
            cells.append(Region(x=x, y=y, width=col_widths[c], height=row_height))
            x += col_widths[c]
        rows.append(tuple(cells))
        y += row_height

    return GridLayout(header=header, rows=tuple(rows))


def make_panel(content: Text, title: str, style: str = "blue") -> Panel:
    """
    Create a styled panel with content.

    Args:
        content: Text renderable (log text is never parsed as markup)
        title: Panel title (will be bolded)
        style: Border style color (default "blue")

    Returns:
        Panel with formatted title and border style
    """
    return Panel(
        content,
        title=f"[bold]{escape(title)}[/bold]",
        border_style=style,
        padding=(0, 1),
    )
