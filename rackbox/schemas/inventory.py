"""Pydantic schemas for the inventory ledger."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TransactionCreate(BaseModel):
    """Schema for recording a quantity change in a cell."""

    part_number: str = Field(..., min_length=1, max_length=255)
    quantity_change: int
    employee_id: str = Field(..., min_length=1, max_length=255)

    @field_validator("part_number", "employee_id")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("quantity_change")
    @classmethod
    def non_zero(cls, v: int) -> int:
        if v == 0:
            raise ValueError("quantity_change must be non-zero")
        return v


class TransactionResult(BaseModel):
    """Materialized quantity after a transaction."""

    rack_id: str
    cell_index: int
    part_number: str
    quantity: int


class TransactionResponse(BaseModel):
    """Schema for transaction response."""

    id: int
    rack_id: str
    generation: int
    cell_index: int
    part_number: str
    quantity_change: int
    employee_id: str
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


class InventoryItemView(BaseModel):
    """Current quantity of a part in a cell, with its catalog description."""

    id: int
    rack_id: str
    cell_index: int
    part_number: str
    quantity: int
    description: str | None = None

    model_config = ConfigDict(from_attributes=True)


class PartLocation(BaseModel):
    """Where a part currently sits."""

    rack_id: str
    cell_index: int
    part_number: str
    quantity: int
