"""Rack model and the embedded cell geometry it owns."""

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, TypeAdapter
from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rackbox.database import Base

if TYPE_CHECKING:
    from rackbox.models.item import InventoryItem


class CellGeometry(BaseModel):
    """Normalized rectangle of one addressable cell on the rack image.

    All coordinates are fractions of the image width/height.
    """

    id: int = Field(..., ge=0)
    x: float = Field(..., ge=0.0, le=1.0)
    y: float = Field(..., ge=0.0, le=1.0)
    width: float = Field(..., gt=0.0, le=1.0)
    height: float = Field(..., gt=0.0, le=1.0)


_LAYOUT_ADAPTER = TypeAdapter(list[CellGeometry])


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Rack(Base):
    """A photographed storage rack and its cell layout."""

    __tablename__ = "racks"

    rack_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    image_path: Mapped[str] = mapped_column(Text, nullable=False)
    # Serialized list of CellGeometry; always read and written as a whole
    layout: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    # Bumped on every replace; the ledger only sums the current generation
    generation: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )

    # Relationships
    items: Mapped[list["InventoryItem"]] = relationship(
        "InventoryItem",
        back_populates="rack",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def cells(self) -> list[CellGeometry]:
        """Deserialize the stored layout."""
        return _LAYOUT_ADAPTER.validate_json(self.layout)

    @cells.setter
    def cells(self, cells: list[CellGeometry]) -> None:
        self.layout = _LAYOUT_ADAPTER.dump_json(cells).decode()

    @property
    def cell_ids(self) -> set[int]:
        return {cell.id for cell in self.cells}

    def __repr__(self) -> str:
        return f"<Rack(rack_id={self.rack_id}, image_path={self.image_path})>"
