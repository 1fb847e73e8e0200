"""Pydantic schemas for the master parts catalog."""

from pydantic import BaseModel, ConfigDict


class MasterPartResponse(BaseModel):
    part_number: str
    description: str

    model_config = ConfigDict(from_attributes=True)


class CatalogImportResponse(BaseModel):
    """Result of a bulk catalog import."""

    filename: str
    imported: int
