"""Master parts catalog model."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rackbox.database import Base


class MasterPart(Base):
    """Part number to description reference entry."""

    __tablename__ = "master_parts"

    part_number: Mapped[str] = mapped_column(String(255), primary_key=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<MasterPart(part_number={self.part_number})>"
