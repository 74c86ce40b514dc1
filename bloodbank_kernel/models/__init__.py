"""ORM models for the blood bank kernel."""

from bloodbank_kernel.models.donation import Donation
from bloodbank_kernel.models.donor import Donor
from bloodbank_kernel.models.stock import StockLevel

__all__ = [
    "Donation",
    "Donor",
    "StockLevel",
]
