"""
Invoicing Kernel

Shared foundation for the document totals and payment reconciliation core:
- Money and 3-place half-up rounding with one comparison tolerance
- Typed exceptions with machine-readable codes
- Structured JSON logging
- Injectable clock
- SQLAlchemy plumbing and the payment ledger models
"""

__version__ = "0.1.0"
