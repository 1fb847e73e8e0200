"""Master parts catalog endpoints."""

import logging

from fastapi import APIRouter, File, HTTPException, UploadFile, status

from rackbox.models import MasterPart
from rackbox.routers.deps import DbSession
from rackbox.schemas.catalog import CatalogImportResponse, MasterPartResponse
from rackbox.services import catalog

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MB


@router.post("/import", response_model=CatalogImportResponse)
async def import_catalog(
    db: DbSession,
    file: UploadFile = File(..., description="CSV or XLSX with part number and description columns"),
) -> CatalogImportResponse:
    """Bulk-load the catalog. The first row is treated as a header."""
    # Read in chunks to avoid unbounded memory for oversized files
    chunks: list[bytes] = []
    total_size = 0
    while True:
        chunk = await file.read(64 * 1024)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > MAX_FILE_SIZE:
            raise HTTPException(
                status_code=status.HTTP_413_CONTENT_TOO_LARGE,
                detail="File exceeds maximum size of 10 MB",
            )
        chunks.append(chunk)
    content = b"".join(chunks)

    try:
        rows = catalog.read_catalog_file(content, file.filename)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.warning("Failed to parse catalog file %s: %s", file.filename, e)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Could not read the catalog file",
        )

    imported = await catalog.bulk_import(db, rows)
    return CatalogImportResponse(filename=file.filename or "", imported=imported)


@router.get("/{part_number}", response_model=MasterPartResponse)
async def get_part(part_number: str, db: DbSession) -> MasterPartResponse:
    part = await db.get(MasterPart, part_number)
    if part is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Part '{part_number}' is not in the catalog",
        )
    return MasterPartResponse.model_validate(part)
