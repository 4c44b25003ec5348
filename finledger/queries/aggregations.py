"""
Aggregation Engine

DESIGN DECISION: Every derived view is a pure function of the record set.
Nothing is cached; callers recompute per render.

Period totals, monthly series and the category breakdown count top-level
records only. A parent already carries the sum of its sub-items, so adding
the sub-items again would count the same money twice.

The available-month index is the exception: it spans every record,
sub-items included, since any of them can be the target of a month filter.
"""

import calendar
from collections.abc import Iterable, Sequence
from decimal import Decimal

from finledger.models.ledger import (
    BalanceTone,
    CategorySlice,
    DashboardSummary,
    MonthlyBalance,
    MonthlyTotals,
    PeriodTotals,
    ReportSummary,
    Transaction,
    TransactionType,
)


ALL_MONTHS = "all"

_ZERO = Decimal("0")


def _top_level(records: Iterable[Transaction]) -> list[Transaction]:
    return [t for t in records if t.parent_id is None]


def _every_record(records: Iterable[Transaction]) -> Iterable[Transaction]:
    for record in records:
        yield record
        yield from record.sub_items


def filter_by_month(records: Sequence[Transaction], month: str) -> list[Transaction]:
    """
    Restrict records to one month.

    `"all"` returns every record. Any other value is matched as a prefix
    of each record's ISO date, so `"2024-05"` (or even `"2024"`) works.
    """
    if month == ALL_MONTHS:
        return list(records)
    return [t for t in records if t.date_text.startswith(month)]


def period_totals(records: Iterable[Transaction]) -> PeriodTotals:
    """Income, expense and net balance over top-level records."""
    income = _ZERO
    expense = _ZERO
    for record in _top_level(records):
        if record.type == TransactionType.INCOME:
            income += record.amount
        else:
            expense += record.amount

    return PeriodTotals(
        total_income=income,
        total_expense=expense,
        net_balance=income - expense,
    )


def monthly_series(records: Iterable[Transaction]) -> list[MonthlyTotals]:
    """Income and expense per `YYYY-MM`, oldest month first."""
    groups: dict[str, dict[str, Decimal]] = {}

    for record in _top_level(records):
        bucket = groups.setdefault(record.month_key, {"income": _ZERO, "expense": _ZERO})
        if record.type == TransactionType.INCOME:
            bucket["income"] += record.amount
        else:
            bucket["expense"] += record.amount

    return [
        MonthlyTotals(month=month, income=totals["income"], expense=totals["expense"])
        for month, totals in sorted(groups.items())
    ]


def monthly_balance_series(records: Iterable[Transaction]) -> list[MonthlyBalance]:
    """Net balance per month, tagged for coloring (negative = danger)."""
    return [
        MonthlyBalance(
            month=entry.month,
            balance=entry.balance,
            tone=BalanceTone.SUCCESS if entry.balance >= 0 else BalanceTone.DANGER,
        )
        for entry in monthly_series(records)
    ]


def category_breakdown(records: Iterable[Transaction]) -> list[CategorySlice]:
    """
    Expense total per category.

    Slices keep the order in which each category first appears.
    Categories without expenses are absent.
    """
    totals: dict[str, Decimal] = {}
    for record in _top_level(records):
        if record.type != TransactionType.EXPENSE:
            continue
        totals[record.category] = totals.get(record.category, _ZERO) + record.amount

    return [CategorySlice(name=name, value=value) for name, value in totals.items()]


def available_months(records: Iterable[Transaction]) -> list[str]:
    """Distinct `YYYY-MM` values across all records, newest first."""
    return sorted({t.month_key for t in _every_record(records)}, reverse=True)


def format_month_label(month: str) -> str:
    """Human label for a month key: `"2024-05"` -> `"May 2024"`."""
    if month == ALL_MONTHS:
        return "All months"
    year, month_number = month.split("-")
    return f"{calendar.month_name[int(month_number)]} {year}"


def summarize_dashboard(
    records: Sequence[Transaction],
    month: str = ALL_MONTHS,
) -> DashboardSummary:
    """
    Values for the dashboard screen.

    Totals follow the month filter; the income vs. expense chart always
    shows the full history.
    """
    return DashboardSummary(
        month=month,
        totals=period_totals(filter_by_month(records, month)),
        income_vs_expense=monthly_series(records),
        available_months=available_months(records),
    )


def summarize_report(
    records: Sequence[Transaction],
    month: str = ALL_MONTHS,
) -> ReportSummary:
    """Values for the reports screen; everything follows the month filter."""
    filtered = filter_by_month(records, month)
    return ReportSummary(
        month=month,
        monthly_balance=monthly_balance_series(filtered),
        category_breakdown=category_breakdown(filtered),
        available_months=available_months(records),
    )
