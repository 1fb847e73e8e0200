"""Exception hierarchy for RackBox domain errors."""

from typing import Any


class RackBoxError(Exception):
    """Base exception for RackBox errors."""

    default_message = "An error occurred in RackBox"

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.code = code
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a dictionary."""
        error_dict: dict[str, Any] = {
            "error": self.__class__.__name__,
            "message": self.message,
        }
        if self.code:
            error_dict["code"] = self.code
        if self.details:
            error_dict["details"] = self.details
        return error_dict


class NotFoundError(RackBoxError):
    """A requested resource does not exist."""

    default_message = "Resource not found"


class RackNotFound(NotFoundError):
    default_message = "Rack not found"


class EmployeeNotFound(NotFoundError):
    default_message = "Employee not found"


class ImageNotFound(NotFoundError):
    default_message = "Rack image not found"


class ValidationError(RackBoxError):
    """Input rejected before anything is persisted."""

    default_message = "Validation error"


class InvalidDimension(ValidationError):
    default_message = "Rack rows and columns must be at least 1"


class InvalidLayout(ValidationError):
    default_message = "Invalid cell layout"


class InvalidCell(ValidationError):
    default_message = "Cell does not exist in the rack layout"


class InvalidQuantity(ValidationError):
    default_message = "Quantity change must be non-zero"


class DuplicateRack(RackBoxError):
    default_message = "Rack already exists"


class DuplicateEmployee(RackBoxError):
    default_message = "Employee already exists"


class UnauthorizedLayoutEdit(RackBoxError):
    """The access gate refused a layout edit."""

    default_message = "Layout editing is not authorized"


class LayoutStateError(RackBoxError):
    """An edit-session operation was called in the wrong state."""

    default_message = "Operation not allowed in the current layout edit state"
