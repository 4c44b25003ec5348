"""Derived views (aggregations) package."""

from finledger.queries.aggregations import (
    ALL_MONTHS,
    available_months,
    category_breakdown,
    filter_by_month,
    format_month_label,
    monthly_balance_series,
    monthly_series,
    period_totals,
    summarize_dashboard,
    summarize_report,
)

__all__ = [
    "ALL_MONTHS",
    "available_months",
    "category_breakdown",
    "filter_by_month",
    "format_month_label",
    "monthly_balance_series",
    "monthly_series",
    "period_totals",
    "summarize_dashboard",
    "summarize_report",
]
