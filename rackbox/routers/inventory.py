"""Cell inventory endpoints: current items and quantity changes."""

from fastapi import APIRouter, status

from rackbox.routers.deps import DbSession
from rackbox.schemas.inventory import InventoryItemView, TransactionCreate, TransactionResult
from rackbox.services import ledger
from rackbox.services.employees import EmployeeSession

router = APIRouter()


@router.get("/{rack_id}/items", response_model=dict[int, list[InventoryItemView]])
async def get_rack_items(rack_id: str, db: DbSession) -> dict[int, list[InventoryItemView]]:
    """Current items of a rack, grouped by cell id."""
    return await ledger.get_items_for_rack(db, rack_id)


@router.get("/{rack_id}/cells/{cell_index}/items", response_model=list[InventoryItemView])
async def get_cell_items(rack_id: str, cell_index: int, db: DbSession) -> list[InventoryItemView]:
    items = await ledger.get_items_for_rack(db, rack_id)
    return items.get(cell_index, [])


@router.post(
    "/{rack_id}/cells/{cell_index}/transactions",
    response_model=TransactionResult,
    status_code=status.HTTP_201_CREATED,
)
async def record_transaction(
    rack_id: str,
    cell_index: int,
    transaction: TransactionCreate,
    db: DbSession,
) -> TransactionResult:
    """Add (positive change) or take (negative change) parts in a cell."""
    quantity = await ledger.record_transaction(
        db,
        rack_id,
        cell_index,
        transaction.part_number,
        transaction.quantity_change,
        EmployeeSession(employee_id=transaction.employee_id),
    )
    return TransactionResult(
        rack_id=rack_id,
        cell_index=cell_index,
        part_number=transaction.part_number,
        quantity=quantity,
    )
