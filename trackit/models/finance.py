"""
Core Data Models for TrackIt

These models define the schemas for everything a user records and
everything the dashboard derives from it.

DESIGN DECISION: Raw records (Category, Expense, Dataset) are validated
on the way in, so amounts and budgets can never be negative once they
reach the aggregation layer. Derived models (CategorySpend, Totals, ...)
are plain read models rebuilt from the raw lists on every read.

Storage keeps the camelCase field names of the persisted layout
(`categoryId`), so serialize with `model_dump(by_alias=True)`.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


ISO_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
HEX_COLOR_PATTERN = r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$"

UNKNOWN_CATEGORY_NAME = "Unknown"
UNKNOWN_CATEGORY_COLOR = "#cccccc"


# =============================================================================
# RAW RECORDS - what the user enters and what gets persisted
# =============================================================================

class Category(BaseModel):
    """
    A named budget bucket with a spending limit.

    The budget is editable in place; everything else is fixed once created.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Unique within one user's dataset"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name, e.g. 'Food & Dining'"
    )
    budget: float = Field(
        ...,
        ge=0,
        description="Spending limit for the category"
    )
    color: str = Field(
        ...,
        pattern=HEX_COLOR_PATTERN,
        description="Hex color used in charts"
    )


class Expense(BaseModel):
    """
    A single dated transaction assigned to one category.

    `category_id` is a foreign key into the owner's categories but is
    NOT validated against them. Dangling references render as "Unknown".
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
    )

    id: str = Field(
        ...,
        min_length=1,
        description="Unique expense ID"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    amount: float = Field(
        ...,
        ge=0,
        description="Amount spent"
    )
    date: str = Field(
        ...,
        pattern=ISO_DATE_PATTERN,
        description="ISO date string (YYYY-MM-DD), matched lexically"
    )
    category_id: str = Field(
        ...,
        alias="categoryId",
        description="ID of the category this expense belongs to"
    )


class Dataset(BaseModel):
    """One user's full set of expenses and categories. The unit of persistence."""

    expenses: list[Expense] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=list)

    def to_storage_dict(self) -> dict:
        """Convert to the persisted JSON layout."""
        return self.model_dump(by_alias=True)


DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(id="1", name="Food & Dining", budget=500, color="#FF6B6B"),
    Category(id="2", name="Transportation", budget=300, color="#4ECDC4"),
    Category(id="3", name="Utilities", budget=200, color="#45B7D1"),
    Category(id="4", name="Entertainment", budget=150, color="#96CEB4"),
    Category(id="5", name="Shopping", budget=400, color="#FFEEAD"),
)


def default_dataset() -> Dataset:
    """Fresh dataset for a new (or data-less) user: default categories, no expenses."""
    return Dataset(
        expenses=[],
        categories=[category.model_copy() for category in DEFAULT_CATEGORIES],
    )


# =============================================================================
# DERIVED READ MODELS - rebuilt by the aggregation engine
# =============================================================================

class BudgetStatus(str, Enum):
    """Overall budget health shown on the dashboard."""
    HEALTHY = "healthy"
    WARNING = "warning"   # more than 85% used
    OVER = "over"         # more than 100% used


class CategorySpend(BaseModel):
    """One slice of the spending-by-category chart."""

    name: str
    value: float
    color: str
    budget: float


class BudgetPerformance(BaseModel):
    """
    Spend against budget for one category.

    `percentage` is clamped to [0, 100]. A category without a budget
    (budget == 0) reports 100 once anything was spent and sets
    `has_budget` to False so the UI can say "no budget set".
    """

    category_id: str
    name: str
    spent: float
    budget: float
    color: str
    percentage: float = Field(ge=0.0, le=100.0)
    has_budget: bool = True
    near_limit: bool = False


class ActivityPoint(BaseModel):
    """Total spent on one calendar day."""

    date: str = Field(pattern=ISO_DATE_PATTERN)
    label: str = Field(description="Abbreviated weekday, e.g. 'Mon'")
    amount: float


class Totals(BaseModel):
    """Headline figures for the whole dataset."""

    total_spent: float
    total_budget: float
    utilization: float = Field(description="total_spent / total_budget * 100, or 0")
    remaining: float
    status: BudgetStatus
    transaction_count: int = Field(ge=0)


class ExpenseRow(BaseModel):
    """An expense joined with its category for display."""

    expense: Expense
    category_name: str
    category_color: str
    is_orphaned: bool = False


class DashboardSummary(BaseModel):
    """Everything the overview tab renders, derived in one pass."""

    totals: Totals
    spending_by_category: list[CategorySpend]
    budget_performance: list[BudgetPerformance]
    activity: list[ActivityPoint]
    recent_transactions: list[Expense]

    @property
    def top_budget_performance(self) -> list[BudgetPerformance]:
        """The four categories closest to (or over) their limit."""
        return self.budget_performance[:4]

    @property
    def has_spending(self) -> bool:
        return bool(self.spending_by_category)


def find_category(
    categories: list[Category],
    category_id: str,
) -> Optional[Category]:
    """Return the category with this ID, or None for a dangling reference."""
    for category in categories:
        if category.id == category_id:
            return category
    return None
