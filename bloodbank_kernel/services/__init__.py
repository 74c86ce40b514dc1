"""Kernel services - the imperative shell that writes inventory state."""

from bloodbank_kernel.services.donation_ledger import DonationLedger
from bloodbank_kernel.services.donor_service import DonorService
from bloodbank_kernel.services.inventory_service import InventoryService
from bloodbank_kernel.services.stock_ledger import StockLedger

__all__ = [
    "DonationLedger",
    "DonorService",
    "InventoryService",
    "StockLedger",
]
