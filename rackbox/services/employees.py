"""Employee registry and the actor context used by the ledger."""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rackbox.exceptions import DuplicateEmployee, EmployeeNotFound
from rackbox.models import Employee

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmployeeSession:
    """The employee on whose behalf inventory is moved."""

    employee_id: str


async def add_employee(session: AsyncSession, employee_id: str, name: str) -> Employee:
    """Register a new employee.

    Raises:
        DuplicateEmployee: If the employee id is taken.
    """
    if await session.get(Employee, employee_id) is not None:
        raise DuplicateEmployee(f"Employee '{employee_id}' already exists")

    employee = Employee(employee_id=employee_id, name=name)
    session.add(employee)
    await session.commit()
    logger.info("Employee added: employee_id=%s", employee_id)
    return employee


async def get_employee(session: AsyncSession, employee_id: str) -> Employee:
    """Fetch an employee.

    Raises:
        EmployeeNotFound: If no such employee exists.
    """
    employee = await session.get(Employee, employee_id)
    if employee is None:
        raise EmployeeNotFound(f"Employee '{employee_id}' not found")
    return employee


async def list_employees(session: AsyncSession) -> list[Employee]:
    result = await session.execute(select(Employee).order_by(Employee.employee_id))
    return list(result.scalars().all())
