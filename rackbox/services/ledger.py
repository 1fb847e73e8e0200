"""Inventory ledger: append-only transactions with a materialized projection.

Every quantity change is written to ``transactions``. In the same database
transaction the ``items`` row for the (rack, cell, part) key is set to the
sum of all changes recorded for that key under the rack's current
generation, or deleted when the sum is not positive. Replacing a rack starts
a new generation; earlier rows stay in the log.
"""

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rackbox.config import settings
from rackbox.database import upsert_statement
from rackbox.exceptions import EmployeeNotFound, InvalidCell, InvalidQuantity, ValidationError
from rackbox.models import Employee, InventoryItem, MasterPart, Transaction
from rackbox.schemas.inventory import InventoryItemView, PartLocation
from rackbox.services.employees import EmployeeSession
from rackbox.services.registry import get_rack

logger = logging.getLogger(__name__)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def _check_employee(session: AsyncSession, employee_id: str, require_known: bool) -> None:
    if await session.get(Employee, employee_id) is not None:
        return
    if require_known:
        raise EmployeeNotFound(f"Employee '{employee_id}' not found", details={"employee_id": employee_id})
    logger.warning("Recording transaction for unknown employee: employee_id=%s", employee_id)


async def record_transaction(
    session: AsyncSession,
    rack_id: str,
    cell_index: int,
    part_number: str,
    quantity_change: int,
    employee: EmployeeSession,
    require_known_employee: bool | None = None,
) -> int:
    """Append a transaction and reconcile the current quantity.

    Args:
        session: Database session with no transaction in progress.
        rack_id: Rack holding the cell.
        cell_index: Cell id within the rack layout.
        part_number: Part being moved.
        quantity_change: Signed, non-zero change.
        employee: Acting employee.
        require_known_employee: Override the configured employee policy.

    Returns:
        The new materialized quantity, 0 when no item row remains.

    Raises:
        InvalidQuantity: If quantity_change is zero.
        RackNotFound: If the rack does not exist.
        InvalidCell: If the cell is not part of the rack layout.
        EmployeeNotFound: If the employee is unknown and the policy requires one.
    """
    if quantity_change == 0:
        raise InvalidQuantity()
    part_number = part_number.strip()
    if not part_number:
        raise ValidationError("Part number is required")
    if require_known_employee is None:
        require_known_employee = settings.require_known_employee

    key = (
        InventoryItem.rack_id == rack_id,
        InventoryItem.cell_index == cell_index,
        InventoryItem.part_number == part_number,
    )

    try:
        # The locked rack row serializes writers on the same rack
        rack = await get_rack(session, rack_id, for_update=True)
        if cell_index not in rack.cell_ids:
            raise InvalidCell(
                f"Cell {cell_index} does not exist in rack '{rack_id}'",
                details={"rack_id": rack_id, "cell_index": cell_index},
            )
        await _check_employee(session, employee.employee_id, require_known_employee)

        session.add(
            Transaction(
                rack_id=rack_id,
                generation=rack.generation,
                cell_index=cell_index,
                part_number=part_number,
                quantity_change=quantity_change,
                employee_id=employee.employee_id,
            )
        )
        await session.flush()

        total = await session.scalar(
            select(func.coalesce(func.sum(Transaction.quantity_change), 0)).where(
                Transaction.rack_id == rack_id,
                Transaction.generation == rack.generation,
                Transaction.cell_index == cell_index,
                Transaction.part_number == part_number,
            )
        )

        if total > 0:
            await session.execute(
                upsert_statement(
                    session,
                    InventoryItem,
                    [
                        {
                            "rack_id": rack_id,
                            "cell_index": cell_index,
                            "part_number": part_number,
                            "quantity": total,
                        }
                    ],
                    index_elements=["rack_id", "cell_index", "part_number"],
                    update_columns=["quantity"],
                )
            )
        else:
            await session.execute(delete(InventoryItem).where(*key))

        await session.commit()
    except Exception:
        await session.rollback()
        raise

    quantity = max(total, 0)
    logger.info(
        "Transaction recorded: rack_id=%s, cell=%d, part=%s, change=%+d, quantity=%d, employee_id=%s",
        rack_id,
        cell_index,
        part_number,
        quantity_change,
        quantity,
        employee.employee_id,
    )
    return quantity


async def get_items_for_rack(session: AsyncSession, rack_id: str) -> dict[int, list[InventoryItemView]]:
    """Current items of a rack grouped by cell, with catalog descriptions.

    Raises:
        RackNotFound: If the rack does not exist.
    """
    await get_rack(session, rack_id)

    result = await session.execute(
        select(InventoryItem, MasterPart.description)
        .outerjoin(MasterPart, MasterPart.part_number == InventoryItem.part_number)
        .where(InventoryItem.rack_id == rack_id)
        .order_by(InventoryItem.cell_index, InventoryItem.part_number)
    )

    items_by_cell: dict[int, list[InventoryItemView]] = {}
    for item, description in result.all():
        view = InventoryItemView(
            id=item.id,
            rack_id=item.rack_id,
            cell_index=item.cell_index,
            part_number=item.part_number,
            quantity=item.quantity,
            description=description,
        )
        items_by_cell.setdefault(item.cell_index, []).append(view)
    return items_by_cell


async def get_quantity(session: AsyncSession, rack_id: str, cell_index: int, part_number: str) -> int:
    """Current quantity for one key, 0 when absent."""
    quantity = await session.scalar(
        select(InventoryItem.quantity).where(
            InventoryItem.rack_id == rack_id,
            InventoryItem.cell_index == cell_index,
            InventoryItem.part_number == part_number,
        )
    )
    return quantity or 0


async def search_part_number_global(session: AsyncSession, partial: str) -> list[PartLocation]:
    """Find every rack cell currently holding a part whose number contains ``partial``."""
    partial = partial.strip()
    if not partial:
        return []

    pattern = f"%{_escape_like(partial)}%"
    result = await session.execute(
        select(InventoryItem)
        .where(InventoryItem.part_number.ilike(pattern, escape="\\"))
        .order_by(InventoryItem.rack_id, InventoryItem.cell_index, InventoryItem.part_number)
    )
    return [
        PartLocation(
            rack_id=item.rack_id,
            cell_index=item.cell_index,
            part_number=item.part_number,
            quantity=item.quantity,
        )
        for item in result.scalars().all()
    ]


async def list_transactions(
    session: AsyncSession,
    rack_id: str | None = None,
    cell_index: int | None = None,
    part_number: str | None = None,
    employee_id: str | None = None,
    skip: int = 0,
    limit: int = 100,
) -> list[Transaction]:
    """Transaction history, newest first, with optional filters."""
    query = select(Transaction)
    if rack_id is not None:
        query = query.where(Transaction.rack_id == rack_id)
    if cell_index is not None:
        query = query.where(Transaction.cell_index == cell_index)
    if part_number is not None:
        query = query.where(Transaction.part_number == part_number)
    if employee_id is not None:
        query = query.where(Transaction.employee_id == employee_id)

    query = query.order_by(Transaction.timestamp.desc(), Transaction.id.desc()).offset(skip).limit(limit)
    result = await session.execute(query)
    return list(result.scalars().all())
