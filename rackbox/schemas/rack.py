"""Pydantic schemas for racks and layouts."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from rackbox.models.rack import CellGeometry


class RackCreate(BaseModel):
    """Schema for registering a rack against an existing image reference."""

    rack_id: str = Field(..., min_length=1, max_length=255)
    image_path: str = Field(..., min_length=1)
    rows: int = Field(3, ge=1, le=100)
    cols: int = Field(4, ge=1, le=100)
    replace: bool = False


class RackSummary(BaseModel):
    """Rack list entry."""

    rack_id: str
    image_path: str
    cell_count: int
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RackResponse(BaseModel):
    """Rack with its full layout."""

    rack_id: str
    image_path: str
    generation: int
    cells: list[CellGeometry]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LayoutUpdate(BaseModel):
    """Whole-layout replacement."""

    cells: list[CellGeometry]


class EditRequest(BaseModel):
    """Request to enter layout edit mode."""

    secret: str = Field(..., min_length=1)


class EditTokenResponse(BaseModel):
    """Edit authorization handed back to the editor."""

    edit_token: str
    token_type: str = "bearer"
    rack_id: str
    expires_at: datetime


class CellMove(BaseModel):
    """Drag of one cell, in normalized units."""

    cell_id: int
    dx: float
    dy: float


class HitTestResponse(BaseModel):
    cell_id: int | None
