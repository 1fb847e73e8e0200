"""Pydantic schemas for employees."""

from pydantic import BaseModel, ConfigDict, Field


class EmployeeCreate(BaseModel):
    employee_id: str = Field(..., min_length=1, max_length=255)
    name: str = Field(..., min_length=1, max_length=255)


class EmployeeResponse(BaseModel):
    employee_id: str
    name: str

    model_config = ConfigDict(from_attributes=True)
