"""Transaction model: the append-only inventory movement log."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from rackbox.database import Base


class Transaction(Base):
    """One signed quantity change recorded by an employee.

    Rows are never updated or deleted. Each row is stamped with the generation
    of its rack; replacing a rack starts a new generation and leaves older rows
    in place as history.
    """

    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_key", "rack_id", "generation", "cell_index", "part_number"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    rack_id: Mapped[str] = mapped_column(String(255), nullable=False)
    generation: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    cell_index: Mapped[int] = mapped_column(Integer, nullable=False)
    part_number: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity_change: Mapped[int] = mapped_column(Integer, nullable=False)
    employee_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return (
            f"<Transaction(id={self.id}, rack_id={self.rack_id}, cell_index={self.cell_index}, "
            f"part_number={self.part_number}, quantity_change={self.quantity_change})>"
        )
