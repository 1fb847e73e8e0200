"""Materialized current quantity per rack cell and part."""

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rackbox.database import Base

if TYPE_CHECKING:
    from rackbox.models.rack import Rack


class InventoryItem(Base):
    """Current quantity of a part in a rack cell.

    Rows are a projection of the transaction log and only exist while the
    quantity is positive.
    """

    __tablename__ = "items"
    __table_args__ = (
        UniqueConstraint("rack_id", "cell_index", "part_number", name="uq_items_rack_cell_part"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    rack_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("racks.rack_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    cell_index: Mapped[int] = mapped_column(Integer, nullable=False)
    part_number: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    rack: Mapped["Rack"] = relationship("Rack", back_populates="items")

    def __repr__(self) -> str:
        return (
            f"<InventoryItem(rack_id={self.rack_id}, cell_index={self.cell_index}, "
            f"part_number={self.part_number}, quantity={self.quantity})>"
        )
