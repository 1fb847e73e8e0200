"""Services for RackBox application."""

from rackbox.services.access_gate import AccessGate
from rackbox.services.image_storage import ImageStorageService

__all__ = ["AccessGate", "ImageStorageService"]
