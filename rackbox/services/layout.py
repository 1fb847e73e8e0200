"""Layout engine: cell geometry generation, repositioning and edit sessions."""

import enum
import logging
from collections.abc import Awaitable, Callable, Iterable

from rackbox.exceptions import InvalidDimension, InvalidLayout, LayoutStateError
from rackbox.models.rack import CellGeometry
from rackbox.services.access_gate import EditAuthorization

logger = logging.getLogger(__name__)

# Floating point slack when checking normalized bounds
EPSILON = 1e-9

# Original grid suggested when a rack image is imported
DEFAULT_ROWS = 3
DEFAULT_COLS = 4


def initialize_grid(rows: int, cols: int) -> list[CellGeometry]:
    """Partition the unit square into a rows x cols grid.

    Cells are returned in row-major order with ``id = row * cols + col``.

    Raises:
        InvalidDimension: If rows or cols is below 1.
    """
    if rows < 1 or cols < 1:
        raise InvalidDimension(details={"rows": rows, "cols": cols})

    width = 1.0 / cols
    height = 1.0 / rows
    return [
        CellGeometry(
            id=cell_id,
            x=(cell_id % cols) * width,
            y=(cell_id // cols) * height,
            width=width,
            height=height,
        )
        for cell_id in range(rows * cols)
    ]


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def move_cell(cell: CellGeometry, dx: float, dy: float) -> bool:
    """Translate a cell in place, clamped so it stays inside the image.

    Returns:
        True if the cell position changed.
    """
    old_position = (cell.x, cell.y)
    cell.x = _clamp(cell.x + dx, 0.0, max(0.0, 1.0 - cell.width))
    cell.y = _clamp(cell.y + dy, 0.0, max(0.0, 1.0 - cell.height))
    return (cell.x, cell.y) != old_position


def cell_at(cells: Iterable[CellGeometry], x: float, y: float) -> int | None:
    """Return the id of the cell containing a normalized point.

    Cells later in the layout are drawn on top, so the last match wins.
    """
    hit = None
    for cell in cells:
        if cell.x <= x <= cell.x + cell.width and cell.y <= y <= cell.y + cell.height:
            hit = cell.id
    return hit


def validate_layout(cells: list[CellGeometry], expected_ids: set[int] | None = None) -> None:
    """Check that a layout is savable.

    Args:
        cells: The complete layout.
        expected_ids: Cell ids that must be present, and no others.

    Raises:
        InvalidLayout: On duplicate ids, out-of-bounds or empty cells, or an id set mismatch.
    """
    ids = [cell.id for cell in cells]
    if len(ids) != len(set(ids)):
        raise InvalidLayout("Cell ids must be unique")

    for cell in cells:
        if cell.width <= 0 or cell.height <= 0:
            raise InvalidLayout(f"Cell {cell.id} has an empty area", details={"cell": cell.id})
        if (
            cell.x < -EPSILON
            or cell.y < -EPSILON
            or cell.x + cell.width > 1.0 + EPSILON
            or cell.y + cell.height > 1.0 + EPSILON
        ):
            raise InvalidLayout(f"Cell {cell.id} lies outside the image", details={"cell": cell.id})

    if expected_ids is not None and set(ids) != expected_ids:
        raise InvalidLayout(
            "Layout cell ids must match the rack's existing cells",
            details={
                "missing": sorted(expected_ids - set(ids)),
                "unexpected": sorted(set(ids) - expected_ids),
            },
        )


class EditState(str, enum.Enum):
    """Layout edit mode."""

    VIEWING = "VIEWING"
    EDITING = "EDITING"


LayoutLoader = Callable[[], Awaitable[list[CellGeometry]]]
LayoutSaver = Callable[[list[CellGeometry], EditAuthorization], Awaitable[None]]


class LayoutEditor:
    """Single-editor layout session for one rack.

    In VIEWING, taps select cells for inventory work. In EDITING, drags move
    cells in a working copy that is only persisted by ``save``.
    """

    def __init__(self, rack_id: str, load: LayoutLoader, save: LayoutSaver) -> None:
        self.rack_id = rack_id
        self._load = load
        self._save = save
        self.state = EditState.VIEWING
        self.cells: list[CellGeometry] = []
        self._authorization: EditAuthorization | None = None

    async def open(self) -> list[CellGeometry]:
        """Load the persisted layout for viewing."""
        self.cells = await self._load()
        return self.cells

    def _require(self, state: EditState) -> None:
        if self.state is not state:
            raise LayoutStateError(
                f"Rack '{self.rack_id}' layout is {self.state.value}, expected {state.value}"
            )

    def _find(self, cell_id: int) -> CellGeometry:
        for cell in self.cells:
            if cell.id == cell_id:
                return cell
        raise InvalidLayout(f"Cell {cell_id} is not part of rack '{self.rack_id}'")

    def select(self, x: float, y: float) -> int | None:
        """Route a tap to the cell under it. Disabled while editing."""
        self._require(EditState.VIEWING)
        return cell_at(self.cells, x, y)

    async def begin(self, authorization: EditAuthorization) -> None:
        """Enter edit mode with a working copy of the persisted layout."""
        self._require(EditState.VIEWING)
        authorization.check(self.rack_id)
        self.cells = await self._load()
        self._authorization = authorization
        self.state = EditState.EDITING
        logger.info("Layout edit started: rack_id=%s", self.rack_id)

    def move(self, cell_id: int, dx: float, dy: float) -> CellGeometry:
        """Drag a cell in the working copy."""
        self._require(EditState.EDITING)
        cell = self._find(cell_id)
        move_cell(cell, dx, dy)
        return cell

    async def save(self) -> list[CellGeometry]:
        """Persist the working copy and return to viewing."""
        self._require(EditState.EDITING)
        if self._authorization is None:
            raise LayoutStateError(f"Rack '{self.rack_id}' has no edit authorization")
        await self._save(self.cells, self._authorization)
        self._authorization = None
        self.state = EditState.VIEWING
        logger.info("Layout saved: rack_id=%s, cells=%d", self.rack_id, len(self.cells))
        return self.cells

    async def cancel(self) -> list[CellGeometry]:
        """Discard the working copy and reload the persisted layout."""
        self._require(EditState.EDITING)
        self._authorization = None
        self.state = EditState.VIEWING
        self.cells = await self._load()
        logger.info("Layout edit cancelled: rack_id=%s", self.rack_id)
        return self.cells
