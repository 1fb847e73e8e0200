"""Relational models for RackBox."""

from rackbox.models.employee import Employee
from rackbox.models.item import InventoryItem
from rackbox.models.master_part import MasterPart
from rackbox.models.rack import CellGeometry, Rack
from rackbox.models.transaction import Transaction

__all__ = [
    # Tables
    "Rack",
    "InventoryItem",
    "Transaction",
    "MasterPart",
    "Employee",
    # Embedded layout entries
    "CellGeometry",
]
