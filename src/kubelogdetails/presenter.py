"""
GridPresenter for drawing pod log buffers as a tiled grid.

The presenter owns a rich Layout tree built from compute_layout():
- layout(): Recompute regions for a terminal size and rebuild the tree
- render_all(): Push a snapshot of every buffer into its pane

Panes are derived on every layout pass and never mutated in between.
Only the session's render loop calls into the presenter; tailers never
draw directly.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from rich.layout import Layout
from rich.text import Text

from kubelogdetails.buffer import StreamBuffer
from kubelogdetails.layout import (
    DEFAULT_COLUMNS,
    GridLayout,
    Region,
    compute_layout,
    make_panel,
)

# Panel border (top + bottom) consumes two rows
PANEL_CHROME_ROWS = 2


@dataclass(frozen=True)
class Pane:
    """A buffer paired with the screen region it is drawn in."""

    buffer: StreamBuffer
    region: Region

    @property
    def visible_lines(self) -> int:
        """Number of log lines that fit inside the pane's border."""
        return max(self.region.height - PANEL_CHROME_ROWS, 0)


class GridPresenter:
    """
    Renders N stream buffers plus a header into a rich Layout.

    Example:
        presenter = GridPresenter(buffers, "Found controller: web (StatefulSet)")
        presenter.layout(*console.size)
        with Live(presenter.root, console=console, auto_refresh=False) as live:
            presenter.render_all()
            live.refresh()
    """

    def __init__(
        self,
        buffers: Sequence[StreamBuffer],
        header_text: str,
        columns: int = DEFAULT_COLUMNS,
    ) -> None:
        """
        Initialize presenter.

        Args:
            buffers: One buffer per pane, in display order
            header_text: Text for the header row
            columns: Panes per row (default 2)

        Raises:
            ValueError: If buffers is empty
        """
        if not buffers:
            raise ValueError("no pods to display")
        self._buffers = list(buffers)
        self.header_text = header_text
        self._columns = columns
        self._root = Layout(name="root")
        self._header = Layout(name="header")
        self._pane_layouts: list[Layout] = []
        self._panes: list[Pane] = []
        self._grid: GridLayout | None = None
        self._size = (0, 0)

    @property
    def root(self) -> Layout:
        """Root renderable; identity is stable across relayouts."""
        return self._root

    @property
    def panes(self) -> list[Pane]:
        return list(self._panes)

    @property
    def grid(self) -> GridLayout | None:
        return self._grid

    @property
    def size(self) -> tuple[int, int]:
        """Terminal (width, height) of the last layout pass."""
        return self._size

    def layout(self, width: int, height: int) -> GridLayout:
        """
        Recompute the grid for a terminal size and rebuild the Layout tree.

        Args:
            width: Terminal width
            height: Terminal height

        Returns:
            The computed GridLayout
        """
        grid = compute_layout(len(self._buffers), width, height, columns=self._columns)

        self._panes = [
            Pane(buffer=buffer, region=region)
            for buffer, region in zip(self._buffers, grid.panes)
        ]

        self._header = Layout(name="header", size=grid.header.height)
        self._pane_layouts = []
        rows: list[Layout] = []
        for r, row in enumerate(grid.rows):
            cells = []
            for region in row:
                cell = Layout(name=f"pane-{len(self._pane_layouts)}", size=region.width)
                self._pane_layouts.append(cell)
                cells.append(cell)
            # Leave the unfilled part of a short row empty
            used = sum(region.width for region in row)
            if used < width:
                cells.append(Layout(Text(""), name=f"row-{r}-spare"))
            row_layout = Layout(name=f"row-{r}", size=row[0].height)
            row_layout.split_row(*cells)
            rows.append(row_layout)

        self._root.split_column(self._header, *rows)
        self._grid = grid
        self._size = (width, height)
        return grid

    def render_all(self) -> Layout:
        """
        Snapshot every buffer into its pane.

        Returns:
            Root Layout, ready for Live.refresh()

        Raises:
            RuntimeError: If layout() has not been called yet
        """
        if self._grid is None:
            raise RuntimeError("layout() must be called before render_all()")

        self._header.update(Text(self.header_text, style="bold cyan", overflow="ellipsis"))
        for pane, cell in zip(self._panes, self._pane_layouts):
            cell.update(self._make_pane_panel(pane))
        return self._root

    def _make_pane_panel(self, pane: Pane):
        buffer = pane.buffer
        lines = buffer.get_lines(pane.visible_lines)
        failed = buffer.failed
        if failed:
            content = Text("\n".join(lines), style="red")
        elif lines:
            content = Text("\n".join(lines), no_wrap=True, overflow="ellipsis")
        else:
            content = Text(f"Loading logs for {buffer.title}...", style="dim")
        return make_panel(content, buffer.title, "red" if failed else "blue")
