"""Employee model."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from rackbox.database import Base


class Employee(Base):
    """Actor referenced by every inventory transaction."""

    __tablename__ = "employees"

    employee_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Employee(employee_id={self.employee_id}, name={self.name})>"
