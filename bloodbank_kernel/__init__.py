"""
Blood Bank Kernel

A transactional inventory kernel for a blood bank with:
- Donation ledger with expiry tracking
- One authoritative stock counter per blood type
- Atomic donate / dispatch / dispose operations
- Role-gated mutations
- Read-only scarcity and expiry alerting
"""

__version__ = "0.1.0"
