"""
Aggregation Engine

Pure functions that derive every chart and headline figure on the
dashboard from the raw expense and category lists.

DESIGN DECISION: Nothing here holds state. Callers re-run these after
every mutation (the dashboard controller does it on every read), so the
derived views can never go stale relative to the lists they came from.

Date matching is LEXICAL: an expense belongs to a day when its `date`
string equals that day's ISO string. No timezone normalization.
"""

from collections.abc import Iterable, Sequence
from datetime import date, timedelta
from typing import Optional

from trackit.models.finance import (
    UNKNOWN_CATEGORY_COLOR,
    UNKNOWN_CATEGORY_NAME,
    ActivityPoint,
    BudgetPerformance,
    BudgetStatus,
    Category,
    CategorySpend,
    DashboardSummary,
    Expense,
    ExpenseRow,
    Totals,
)


# Utilization thresholds for the budget health bar
WARNING_UTILIZATION = 85.0
OVER_UTILIZATION = 100.0

# Per-category "almost there" flag
NEAR_LIMIT_PERCENTAGE = 90.0


def _sum_amounts(expenses: Iterable[Expense]) -> float:
    return sum((e.amount for e in expenses), 0.0)


def spent_in_category(expenses: Iterable[Expense], category_id: str) -> float:
    """Total of the expenses assigned to one category."""
    return _sum_amounts(e for e in expenses if e.category_id == category_id)


def spending_by_category(
    expenses: Sequence[Expense],
    categories: Sequence[Category],
) -> list[CategorySpend]:
    """
    Spend per category, in category order.

    Categories with nothing spent are left out. Expenses pointing at an
    unknown category are not counted anywhere in this chart.
    """
    result = []
    for category in categories:
        value = spent_in_category(expenses, category.id)
        if value > 0:
            result.append(
                CategorySpend(
                    name=category.name,
                    value=value,
                    color=category.color,
                    budget=category.budget,
                )
            )
    return result


def budget_percentage(spent: float, budget: float) -> float:
    """
    Share of the budget used, clamped to [0, 100].

    A zero budget cannot be divided by: it reads as 100% used once
    anything is spent, and 0% otherwise.
    """
    if budget <= 0:
        return 100.0 if spent > 0 else 0.0
    return min(spent / budget * 100, 100.0)


def budget_performance(
    expenses: Sequence[Expense],
    categories: Sequence[Category],
) -> list[BudgetPerformance]:
    """
    Spend against budget for every category, highest usage first.

    The sort is stable: categories with equal percentages keep the
    order they have in `categories`.
    """
    rows = []
    for category in categories:
        spent = spent_in_category(expenses, category.id)
        percentage = budget_percentage(spent, category.budget)
        rows.append(
            BudgetPerformance(
                category_id=category.id,
                name=category.name,
                spent=spent,
                budget=category.budget,
                color=category.color,
                percentage=percentage,
                has_budget=category.budget > 0,
                near_limit=percentage > NEAR_LIMIT_PERCENTAGE,
            )
        )
    # sorted() is stable, so ties keep encounter order
    return sorted(rows, key=lambda row: row.percentage, reverse=True)


def activity_series(
    expenses: Sequence[Expense],
    today: Optional[date] = None,
    days: int = 7,
) -> list[ActivityPoint]:
    """
    Daily spend for the `days` calendar days ending `today` (inclusive).

    Points are chronological. Labels are abbreviated weekday names.
    """
    today = today or date.today()
    points = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        iso = day.isoformat()
        points.append(
            ActivityPoint(
                date=iso,
                label=day.strftime("%a"),
                amount=_sum_amounts(e for e in expenses if e.date == iso),
            )
        )
    return points


def recent_transactions(
    expenses: Sequence[Expense],
    limit: int = 5,
) -> list[Expense]:
    """Newest expenses first; equal dates keep their list order."""
    ordered = sorted(expenses, key=lambda e: e.date, reverse=True)
    return ordered[:limit]


def budget_status(utilization: float) -> BudgetStatus:
    if utilization > OVER_UTILIZATION:
        return BudgetStatus.OVER
    if utilization > WARNING_UTILIZATION:
        return BudgetStatus.WARNING
    return BudgetStatus.HEALTHY


def totals(
    expenses: Sequence[Expense],
    categories: Sequence[Category],
) -> Totals:
    """
    Headline totals.

    Utilization is total spent over total budget as a percentage, and
    0 when there is no budget at all.
    """
    total_spent = _sum_amounts(expenses)
    total_budget = sum((c.budget for c in categories), 0.0)
    utilization = total_spent / total_budget * 100 if total_budget > 0 else 0.0
    return Totals(
        total_spent=total_spent,
        total_budget=total_budget,
        utilization=utilization,
        remaining=max(total_budget - total_spent, 0.0),
        status=budget_status(utilization),
        transaction_count=len(expenses),
    )


def expense_rows(
    expenses: Sequence[Expense],
    categories: Sequence[Category],
) -> list[ExpenseRow]:
    """Join each expense with its category; dangling references show as "Unknown"."""
    by_id = {c.id: c for c in categories}
    rows = []
    for expense in expenses:
        category = by_id.get(expense.category_id)
        if category is None:
            rows.append(
                ExpenseRow(
                    expense=expense,
                    category_name=UNKNOWN_CATEGORY_NAME,
                    category_color=UNKNOWN_CATEGORY_COLOR,
                    is_orphaned=True,
                )
            )
        else:
            rows.append(
                ExpenseRow(
                    expense=expense,
                    category_name=category.name,
                    category_color=category.color,
                )
            )
    return rows


def build_summary(
    expenses: Sequence[Expense],
    categories: Sequence[Category],
    today: Optional[date] = None,
    activity_days: int = 7,
    recent_limit: int = 5,
) -> DashboardSummary:
    """Every overview figure in one pass over the current lists."""
    return DashboardSummary(
        totals=totals(expenses, categories),
        spending_by_category=spending_by_category(expenses, categories),
        budget_performance=budget_performance(expenses, categories),
        activity=activity_series(expenses, today=today, days=activity_days),
        recent_transactions=recent_transactions(expenses, limit=recent_limit),
    )
