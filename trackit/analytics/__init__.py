"""Dashboard analytics package."""

from trackit.analytics.aggregation import (
    activity_series,
    budget_percentage,
    budget_performance,
    budget_status,
    build_summary,
    expense_rows,
    recent_transactions,
    spending_by_category,
    spent_in_category,
    totals,
)

__all__ = [
    "activity_series",
    "budget_percentage",
    "budget_performance",
    "budget_status",
    "build_summary",
    "expense_rows",
    "recent_transactions",
    "spending_by_category",
    "spent_in_category",
    "totals",
]
