"""Rack registry endpoints."""

import logging

from fastapi import APIRouter, File, Form, Query, UploadFile, status
from fastapi.responses import FileResponse

from rackbox.routers.deps import DbSession
from rackbox.schemas.rack import HitTestResponse, RackCreate, RackResponse, RackSummary
from rackbox.services import registry
from rackbox.services.image_storage import ImageStorageService
from rackbox.services.layout import DEFAULT_COLS, DEFAULT_ROWS, cell_at

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[RackSummary])
async def list_racks(db: DbSession) -> list[RackSummary]:
    """List all registered racks."""
    racks = await registry.list_racks(db)
    return [
        RackSummary(
            rack_id=rack.rack_id,
            image_path=rack.image_path,
            cell_count=len(rack.cells),
            updated_at=rack.updated_at,
        )
        for rack in racks
    ]


@router.post("", response_model=RackResponse, status_code=status.HTTP_201_CREATED)
async def upload_rack(
    db: DbSession,
    image: UploadFile = File(..., description="Rack photograph"),
    rows: int = Form(DEFAULT_ROWS),
    cols: int = Form(DEFAULT_COLS),
    replace: bool = Form(False),
) -> RackResponse:
    """Register a rack from an uploaded photograph.

    The rack id is the base name of the uploaded file.
    """
    rack_id = registry.rack_id_from_filename(image.filename or "")

    image_storage = ImageStorageService()
    stored_name = await image_storage.save_image(image)

    try:
        rack = await registry.create_rack_with_grid(
            db, rack_id, stored_name, rows, cols, replace=replace
        )
    except Exception:
        await image_storage.delete_image(stored_name)
        raise

    return RackResponse.model_validate(rack)


@router.post("/register", response_model=RackResponse, status_code=status.HTTP_201_CREATED)
async def register_rack(rack_data: RackCreate, db: DbSession) -> RackResponse:
    """Register a rack against an image that is already stored."""
    rack = await registry.create_rack_with_grid(
        db,
        rack_data.rack_id,
        rack_data.image_path,
        rack_data.rows,
        rack_data.cols,
        replace=rack_data.replace,
    )
    return RackResponse.model_validate(rack)


@router.get("/{rack_id}", response_model=RackResponse)
async def get_rack(rack_id: str, db: DbSession) -> RackResponse:
    rack = await registry.get_rack(db, rack_id)
    return RackResponse.model_validate(rack)


@router.get("/{rack_id}/image")
async def get_rack_image(rack_id: str, db: DbSession) -> FileResponse:
    """Serve the rack photograph."""
    rack = await registry.get_rack(db, rack_id)
    path = registry.resolve_image(rack)
    return FileResponse(path)


@router.get("/{rack_id}/cells/at", response_model=HitTestResponse)
async def hit_test(
    rack_id: str,
    db: DbSession,
    x: float = Query(..., ge=0.0, le=1.0),
    y: float = Query(..., ge=0.0, le=1.0),
) -> HitTestResponse:
    """Find the cell under a normalized point, topmost first."""
    rack = await registry.get_rack(db, rack_id)
    return HitTestResponse(cell_id=cell_at(rack.cells, x, y))
