"""
Common test infrastructure for gridreport.

Modules:
- grid_builders: building template workbooks from row lists and reading them back
- models: sample data classes used as report items
"""

from .grid_builders import CountingCache, cell_values, make_workbook, name_refs
from .models import Customer, Item, Order

__all__ = [
    "CountingCache",
    "cell_values",
    "make_workbook",
    "name_refs",
    "Customer",
    "Item",
    "Order",
]
