"""Rack registry: the aggregate root binding an image to its cell layout."""

import logging
from pathlib import Path

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rackbox.config import settings
from rackbox.exceptions import DuplicateRack, ImageNotFound, RackNotFound, ValidationError
from rackbox.models import CellGeometry, Rack
from rackbox.services.access_gate import EditAuthorization
from rackbox.services.layout import LayoutEditor, initialize_grid, validate_layout

logger = logging.getLogger(__name__)


def rack_id_from_filename(filename: str) -> str:
    """Racks are identified by the base name of their source image.

    Raises:
        ValidationError: If the filename has no usable base name.
    """
    name = Path(filename).name
    if name in ("", ".", ".."):
        raise ValidationError("Rack image upload needs a filename", details={"filename": filename})
    return name


async def create_rack(
    session: AsyncSession,
    rack_id: str,
    image_path: str,
    initial_layout: list[CellGeometry],
    replace: bool = False,
) -> Rack:
    """Register a new rack.

    Args:
        session: Database session.
        rack_id: Unique rack identifier.
        image_path: Reference to the rack photograph.
        initial_layout: Cells of the new rack.
        replace: Overwrite an existing rack with the same id. Its items are
            dropped and its transactions stay in the log under the previous
            generation, so the new rack starts from zero.

    Raises:
        DuplicateRack: If the rack exists and ``replace`` is false.
        InvalidLayout: If the layout is not valid.
    """
    validate_layout(initial_layout)

    try:
        generation = 1
        existing = await session.get(Rack, rack_id)
        if existing is not None:
            if not replace:
                raise DuplicateRack(f"Rack '{rack_id}' already exists", details={"rack_id": rack_id})
            generation = existing.generation + 1
            await session.delete(existing)
            await session.flush()
            logger.warning("Replacing existing rack: rack_id=%s, generation=%d", rack_id, generation)

        rack = Rack(rack_id=rack_id, image_path=image_path, generation=generation)
        rack.cells = initial_layout
        session.add(rack)
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info("Rack created: rack_id=%s, cells=%d", rack_id, len(initial_layout))
    return rack


async def create_rack_with_grid(
    session: AsyncSession,
    rack_id: str,
    image_path: str,
    rows: int,
    cols: int,
    replace: bool = False,
) -> Rack:
    """Register a rack with an initial rows x cols grid.

    Raises:
        InvalidDimension: Before anything is persisted, if rows or cols is below 1.
    """
    cells = initialize_grid(rows, cols)
    return await create_rack(session, rack_id, image_path, cells, replace=replace)


async def list_racks(session: AsyncSession) -> list[Rack]:
    """All racks, ordered by rack id."""
    result = await session.execute(select(Rack).order_by(Rack.rack_id))
    return list(result.scalars().all())


async def get_rack(session: AsyncSession, rack_id: str, for_update: bool = False) -> Rack:
    """Fetch a rack.

    Args:
        session: Database session.
        rack_id: Rack identifier.
        for_update: Lock the rack row for the rest of the transaction.

    Raises:
        RackNotFound: If the rack does not exist.
    """
    stmt = select(Rack).where(Rack.rack_id == rack_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    rack = (await session.execute(stmt)).scalar_one_or_none()
    if rack is None:
        raise RackNotFound(f"Rack '{rack_id}' not found", details={"rack_id": rack_id})
    return rack


async def save_layout(
    session: AsyncSession,
    rack_id: str,
    cells: list[CellGeometry],
    authorization: EditAuthorization,
) -> Rack:
    """Replace a rack's layout as a whole.

    Raises:
        UnauthorizedLayoutEdit: If the authorization does not cover this rack.
        RackNotFound: If the rack does not exist.
        InvalidLayout: If the cells are invalid or their ids differ from the stored ones.
    """
    authorization.check(rack_id)

    try:
        rack = await get_rack(session, rack_id, for_update=True)
        validate_layout(cells, expected_ids=rack.cell_ids)
        rack.cells = cells
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info("Layout saved: rack_id=%s, cells=%d", rack_id, len(cells))
    return rack


def resolve_image(rack: Rack, images_dir: Path | None = None) -> Path:
    """Locate the rack photograph on disk.

    Relative image paths are resolved against the image storage directory.

    Raises:
        ImageNotFound: If the file does not exist.
    """
    path = Path(rack.image_path)
    if not path.is_absolute():
        path = (images_dir or settings.image_storage_path) / path
    if not path.is_file():
        raise ImageNotFound(
            f"Image for rack '{rack.rack_id}' not found at {path}",
            details={"rack_id": rack.rack_id, "image_path": str(path)},
        )
    return path


def open_editor(session: AsyncSession, rack_id: str) -> LayoutEditor:
    """Build a layout edit session backed by the registry."""

    async def load() -> list[CellGeometry]:
        rack = await get_rack(session, rack_id)
        await session.refresh(rack)
        cells = rack.cells
        # End the read transaction so the editor holds no lock while idle
        await session.commit()
        return cells

    async def save(cells: list[CellGeometry], authorization: EditAuthorization) -> None:
        await save_layout(session, rack_id, cells, authorization)

    return LayoutEditor(rack_id, load=load, save=save)
