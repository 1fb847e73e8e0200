"""Tests for the layout engine and edit sessions."""

import itertools
import random
from datetime import datetime, timedelta, timezone

import pytest

from rackbox.exceptions import InvalidDimension, InvalidLayout, LayoutStateError, UnauthorizedLayoutEdit
from rackbox.models.rack import CellGeometry
from rackbox.services.access_gate import EditAuthorization
from rackbox.services.layout import (
    EditState,
    LayoutEditor,
    cell_at,
    initialize_grid,
    move_cell,
    validate_layout,
)


def _authorization(rack_id: str = "rack.jpg", minutes: int = 5) -> EditAuthorization:
    return EditAuthorization(
        rack_id=rack_id,
        expires_at=datetime.now(timezone.utc) + timedelta(minutes=minutes),
    )


class TestInitializeGrid:
    """Grid generation."""

    def test_default_grid_shape(self):
        cells = initialize_grid(3, 4)
        assert len(cells) == 12
        assert [c.id for c in cells] == list(range(12))

    def test_row_major_positions(self):
        cells = initialize_grid(3, 4)
        # id 5 is row 1, column 1
        assert cells[5].x == pytest.approx(0.25)
        assert cells[5].y == pytest.approx(1 / 3)
        assert cells[5].width == pytest.approx(0.25)
        assert cells[5].height == pytest.approx(1 / 3)

    @pytest.mark.parametrize("rows,cols", [(1, 1), (2, 5), (7, 3), (10, 10)])
    def test_cells_tile_the_unit_square(self, rows, cols):
        cells = initialize_grid(rows, cols)
        assert sum(c.width * c.height for c in cells) == pytest.approx(1.0)
        for cell in cells:
            assert cell.x >= 0 and cell.y >= 0
            assert cell.x + cell.width <= 1.0 + 1e-9
            assert cell.y + cell.height <= 1.0 + 1e-9
        validate_layout(cells)

    def test_two_by_two_grid(self):
        cells = initialize_grid(2, 2)
        assert [(c.id, c.x, c.y, c.width, c.height) for c in cells] == [
            (0, 0.0, 0.0, 0.5, 0.5),
            (1, 0.5, 0.0, 0.5, 0.5),
            (2, 0.0, 0.5, 0.5, 0.5),
            (3, 0.5, 0.5, 0.5, 0.5),
        ]

    @pytest.mark.parametrize("rows,cols", [(1, 1), (2, 5), (7, 3), (10, 10)])
    def test_cells_do_not_overlap(self, rows, cols):
        cells = initialize_grid(rows, cols)
        for a, b in itertools.combinations(cells, 2):
            overlap_w = min(a.x + a.width, b.x + b.width) - max(a.x, b.x)
            overlap_h = min(a.y + a.height, b.y + b.height) - max(a.y, b.y)
            assert overlap_w <= 1e-9 or overlap_h <= 1e-9, (a.id, b.id)

    @pytest.mark.parametrize("rows,cols", [(0, 4), (3, 0), (-1, 2)])
    def test_invalid_dimension(self, rows, cols):
        with pytest.raises(InvalidDimension):
            initialize_grid(rows, cols)


class TestMoveCell:
    """Clamped translation."""

    def test_move_within_bounds(self):
        cell = CellGeometry(id=0, x=0.1, y=0.1, width=0.2, height=0.2)
        assert move_cell(cell, 0.3, 0.2) is True
        assert cell.x == pytest.approx(0.4)
        assert cell.y == pytest.approx(0.3)

    def test_move_clamps_to_far_edge(self):
        cell = CellGeometry(id=0, x=0.5, y=0.5, width=0.3, height=0.25)
        move_cell(cell, 2.0, 2.0)
        assert cell.x == pytest.approx(0.7)
        assert cell.y == pytest.approx(0.75)

    def test_move_clamps_to_origin(self):
        cell = CellGeometry(id=0, x=0.2, y=0.2, width=0.3, height=0.3)
        move_cell(cell, -1.0, -5.0)
        assert (cell.x, cell.y) == (0.0, 0.0)

    def test_move_keeps_size(self):
        cell = CellGeometry(id=3, x=0.2, y=0.2, width=0.3, height=0.4)
        move_cell(cell, 0.9, -0.9)
        assert (cell.width, cell.height) == (0.3, 0.4)

    def test_overshoot_clamps_to_far_edge(self):
        cell = CellGeometry(id=0, x=0.8, y=0.0, width=0.5, height=0.5)
        assert move_cell(cell, 0.5, 0.0) is True
        assert cell.x == pytest.approx(0.5)
        assert cell.y == 0.0

    def test_any_sequence_of_moves_stays_inside(self):
        rng = random.Random(1729)
        for cell in initialize_grid(3, 4):
            size = (cell.width, cell.height)
            for _ in range(200):
                move_cell(cell, rng.uniform(-1.5, 1.5), rng.uniform(-1.5, 1.5))
                assert 0.0 <= cell.x <= 1.0 - cell.width + 1e-9
                assert 0.0 <= cell.y <= 1.0 - cell.height + 1e-9
            assert (cell.width, cell.height) == size

    def test_no_change_at_edge(self):
        cell = CellGeometry(id=0, x=0.0, y=0.0, width=0.5, height=0.5)
        assert move_cell(cell, -0.1, -0.1) is False


class TestCellAt:
    """Hit-testing."""

    def test_hit_in_grid(self):
        cells = initialize_grid(3, 4)
        assert cell_at(cells, 0.1, 0.1) == 0
        assert cell_at(cells, 0.9, 0.9) == 11
        assert cell_at(cells, 0.3, 0.5) == 5

    def test_last_overlapping_cell_wins(self):
        cells = [
            CellGeometry(id=0, x=0.0, y=0.0, width=0.6, height=0.6),
            CellGeometry(id=1, x=0.4, y=0.4, width=0.6, height=0.6),
        ]
        assert cell_at(cells, 0.5, 0.5) == 1
        assert cell_at(cells, 0.1, 0.1) == 0

    def test_miss_returns_none(self):
        cells = [CellGeometry(id=0, x=0.0, y=0.0, width=0.2, height=0.2)]
        assert cell_at(cells, 0.8, 0.8) is None


class TestValidateLayout:
    """Layout checks on save."""

    def test_duplicate_ids(self):
        cells = [
            CellGeometry(id=1, x=0.0, y=0.0, width=0.2, height=0.2),
            CellGeometry(id=1, x=0.5, y=0.5, width=0.2, height=0.2),
        ]
        with pytest.raises(InvalidLayout):
            validate_layout(cells)

    def test_out_of_bounds(self):
        cells = [CellGeometry(id=0, x=0.9, y=0.0, width=0.2, height=0.2)]
        with pytest.raises(InvalidLayout):
            validate_layout(cells)

    def test_expected_ids_mismatch(self):
        cells = initialize_grid(2, 2)
        with pytest.raises(InvalidLayout) as exc_info:
            validate_layout(cells[:3], expected_ids={0, 1, 2, 3})
        assert exc_info.value.details["missing"] == [3]

    def test_overlap_is_allowed(self):
        cells = [
            CellGeometry(id=0, x=0.0, y=0.0, width=0.6, height=0.6),
            CellGeometry(id=1, x=0.4, y=0.4, width=0.6, height=0.6),
        ]
        validate_layout(cells, expected_ids={0, 1})


class FakeStore:
    """In-memory persistence for a LayoutEditor."""

    def __init__(self, cells: list[CellGeometry]) -> None:
        self.cells = cells
        self.saves = 0

    async def load(self) -> list[CellGeometry]:
        return [cell.model_copy() for cell in self.cells]

    async def save(self, cells: list[CellGeometry], authorization: EditAuthorization) -> None:
        self.cells = [cell.model_copy() for cell in cells]
        self.saves += 1


class TestLayoutEditor:
    """Edit session state machine."""

    @pytest.fixture
    def store(self) -> FakeStore:
        return FakeStore(initialize_grid(2, 2))

    @pytest.fixture
    def editor(self, store: FakeStore) -> LayoutEditor:
        return LayoutEditor("rack.jpg", load=store.load, save=store.save)

    @pytest.mark.asyncio
    async def test_select_while_viewing(self, editor):
        await editor.open()
        assert editor.state is EditState.VIEWING
        assert editor.select(0.75, 0.75) == 3

    @pytest.mark.asyncio
    async def test_move_requires_editing(self, editor):
        await editor.open()
        with pytest.raises(LayoutStateError):
            editor.move(0, 0.1, 0.1)

    @pytest.mark.asyncio
    async def test_select_disabled_while_editing(self, editor):
        await editor.open()
        await editor.begin(_authorization())
        with pytest.raises(LayoutStateError):
            editor.select(0.1, 0.1)

    @pytest.mark.asyncio
    async def test_save_persists_working_copy(self, editor, store):
        await editor.open()
        await editor.begin(_authorization())
        editor.move(0, 0.1, 0.2)
        await editor.save()

        assert editor.state is EditState.VIEWING
        assert store.saves == 1
        assert store.cells[0].x == pytest.approx(0.1)
        assert store.cells[0].y == pytest.approx(0.2)

    @pytest.mark.asyncio
    async def test_cancel_discards_working_copy(self, editor, store):
        await editor.open()
        await editor.begin(_authorization())
        editor.move(0, 0.3, 0.3)
        cells = await editor.cancel()

        assert editor.state is EditState.VIEWING
        assert store.saves == 0
        assert (cells[0].x, cells[0].y) == (0.0, 0.0)

    @pytest.mark.asyncio
    async def test_begin_rejects_authorization_for_other_rack(self, editor):
        await editor.open()
        with pytest.raises(UnauthorizedLayoutEdit):
            await editor.begin(_authorization(rack_id="other.jpg"))
        assert editor.state is EditState.VIEWING

    @pytest.mark.asyncio
    async def test_begin_rejects_expired_authorization(self, editor):
        await editor.open()
        with pytest.raises(UnauthorizedLayoutEdit):
            await editor.begin(_authorization(minutes=-1))

    @pytest.mark.asyncio
    async def test_save_requires_editing(self, editor):
        await editor.open()
        with pytest.raises(LayoutStateError):
            await editor.save()

    @pytest.mark.asyncio
    async def test_save_without_authorization_is_a_state_error(self, editor, store):
        await editor.open()
        editor.state = EditState.EDITING
        with pytest.raises(LayoutStateError):
            await editor.save()
        assert store.saves == 0
