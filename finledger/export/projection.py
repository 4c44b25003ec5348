"""
Export Projection

Flattens the ledger into rows for CSV export, in display order: parents
newest first, each followed directly by its sub-items (newest first).
Amounts carry the sign implied by the transaction type, the same
convention the dashboard uses (expenses negative).
"""

import csv
from collections.abc import Iterable, Sequence
from datetime import date
from typing import Optional, TextIO

from finledger.ledger.tree import build_tree
from finledger.models.ledger import ExportRow, Transaction


CSV_COLUMNS = [
    "date",
    "description",
    "category",
    "type",
    "amount",
    "sub_item",
]


def _to_row(record: Transaction, is_sub_item: bool) -> ExportRow:
    return ExportRow(
        date=record.date.date(),
        description=record.description,
        category=record.category,
        type=record.type,
        amount=record.signed_amount,
        is_sub_item=is_sub_item,
    )


def project_rows(records: Sequence[Transaction]) -> list[ExportRow]:
    """One ExportRow per transaction, roots and sub-items alike."""
    rows = []
    for root in build_tree(records):
        rows.append(_to_row(root, is_sub_item=False))
        rows.extend(_to_row(child, is_sub_item=True) for child in root.sub_items)
    return rows


def write_csv(rows: Iterable[ExportRow], stream: TextIO) -> int:
    """
    Write rows as CSV (header included).

    Returns:
        Number of data rows written
    """
    writer = csv.writer(stream)
    writer.writerow(CSV_COLUMNS)

    count = 0
    for row in rows:
        writer.writerow([
            row.date.isoformat(),
            row.description,
            row.category,
            row.type.value,
            f"{row.amount:.2f}",
            "yes" if row.is_sub_item else "",
        ])
        count += 1
    return count


def export_filename(prefix: str = "transactions", on: Optional[date] = None) -> str:
    """File name for an export made on `on` (default: today)."""
    on = on or date.today()
    return f"{prefix}_{on.isoformat()}.csv"
