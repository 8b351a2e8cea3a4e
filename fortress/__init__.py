"""Fortress Transaction Ledger Service.

This service lets wallet-bound principals:
- Submit transfer requests screened by inline fraud detection
- Have pending transfers approved or rejected by reviewers
- Settle approved transfers through an external executor
- Audit every state change through a hash-chained, tamper-evident ledger
"""

__version__ = "0.1.0"
