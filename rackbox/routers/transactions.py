"""Transaction history endpoints."""

from fastapi import APIRouter, Query

from rackbox.routers.deps import DbSession
from rackbox.schemas.inventory import TransactionResponse
from rackbox.services import ledger

router = APIRouter()


@router.get("", response_model=list[TransactionResponse])
async def list_transactions(
    db: DbSession,
    rack_id: str | None = None,
    cell_index: int | None = None,
    part_number: str | None = None,
    employee_id: str | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
) -> list[TransactionResponse]:
    """List transactions, newest first, with optional filtering."""
    transactions = await ledger.list_transactions(
        db,
        rack_id=rack_id,
        cell_index=cell_index,
        part_number=part_number,
        employee_id=employee_id,
        skip=skip,
        limit=limit,
    )
    return [TransactionResponse.model_validate(t) for t in transactions]
