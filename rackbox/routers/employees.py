"""Employee endpoints."""

from fastapi import APIRouter, status

from rackbox.routers.deps import DbSession
from rackbox.schemas.employee import EmployeeCreate, EmployeeResponse
from rackbox.services import employees

router = APIRouter()


@router.get("", response_model=list[EmployeeResponse])
async def list_employees(db: DbSession) -> list[EmployeeResponse]:
    return [EmployeeResponse.model_validate(e) for e in await employees.list_employees(db)]


@router.post("", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
async def add_employee(employee_data: EmployeeCreate, db: DbSession) -> EmployeeResponse:
    employee = await employees.add_employee(db, employee_data.employee_id, employee_data.name)
    return EmployeeResponse.model_validate(employee)


@router.get("/{employee_id}", response_model=EmployeeResponse)
async def get_employee(employee_id: str, db: DbSession) -> EmployeeResponse:
    employee = await employees.get_employee(db, employee_id)
    return EmployeeResponse.model_validate(employee)
