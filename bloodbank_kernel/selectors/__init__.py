"""Read-only selectors over inventory state."""

from bloodbank_kernel.selectors.alert_selector import AlertSelector
from bloodbank_kernel.selectors.base import BaseSelector
from bloodbank_kernel.selectors.inventory_selector import InventorySelector

__all__ = [
    "AlertSelector",
    "BaseSelector",
    "InventorySelector",
]
