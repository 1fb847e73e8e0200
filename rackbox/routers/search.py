"""Part search across all racks."""

from fastapi import APIRouter, Query

from rackbox.routers.deps import DbSession
from rackbox.schemas.inventory import PartLocation
from rackbox.services import ledger

router = APIRouter()


@router.get("", response_model=list[PartLocation])
async def search_parts(
    db: DbSession,
    q: str = Query(..., description="Part number fragment, case-insensitive"),
) -> list[PartLocation]:
    """Every cell currently holding a matching part."""
    return await ledger.search_part_number_global(db, q)
