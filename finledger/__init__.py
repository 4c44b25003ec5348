"""
Finledger - Source Package

The hierarchical transaction ledger behind a personal finance tracker.
It stores records as a parent/sub-item tree and derives every view
(totals, monthly series, category breakdowns, CSV export) from them.

DESIGN PRINCIPLES:
1. A parent's amount is always the sum of its sub-items
2. Every edit returns a new record set; nothing is mutated in place
3. Derived values are recomputed from the records, never stored
4. Invalid input is reported, never silently corrected
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finledger Team"
