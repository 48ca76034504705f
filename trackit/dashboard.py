"""
Dashboard Controller

Orchestrates everything a signed-in user can do on the dashboard:

- add / delete expenses
- add categories, edit a category's budget
- switch between the overview, expenses and settings tabs
- request (or refresh) AI advice

FLOW for every edit:
1. Validate the input (nothing changes if it is invalid)
2. Write the whole dataset back through the repository
3. Replace the in-memory list (only after the write succeeded)
4. Audit the action

Derived figures are never cached: `summary()` recomputes them from the
current lists on every call.
"""

import math
import random
import time
from collections.abc import Sequence
from datetime import date
from enum import Enum
from typing import Optional, Union

from pydantic import ValidationError

from trackit.agents import (
    ADVICE_UNAVAILABLE_MESSAGE,
    EMPTY_ADVICE_MESSAGE,
    AdviceClient,
)
from trackit.analytics import aggregation
from trackit.audit import AuditLogger
from trackit.models.auth import User
from trackit.models.finance import (
    UNKNOWN_CATEGORY_NAME,
    Category,
    DashboardSummary,
    Dataset,
    Expense,
    ExpenseRow,
    find_category,
)
from trackit.services.storage import DatasetRepository


class DashboardTab(str, Enum):
    """Tabs of the dashboard view."""
    OVERVIEW = "overview"
    EXPENSES = "expenses"
    SETTINGS = "settings"


class InvalidInputError(ValueError):
    """A form submission was incomplete or out of range. State is unchanged."""
    pass


class AdviceInFlightError(RuntimeError):
    """Advice was requested while a previous request is still pending."""
    pass


def generate_id(existing: Sequence[str]) -> str:
    """
    Millisecond-timestamp ID, bumped until it is unique in `existing`.

    Two quick submissions in the same millisecond still get distinct IDs.
    """
    taken = set(existing)
    candidate = int(time.time() * 1000)
    while str(candidate) in taken:
        candidate += 1
    return str(candidate)


def random_color() -> str:
    """A random six-digit hex color for a new category."""
    return f"#{random.randint(0, 0xFFFFFF):06x}"


def _parse_amount(value, field: str) -> float:
    """Accept numbers or numeric strings from a form; reject blanks and negatives."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidInputError(f"Please enter a {field}")
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"{field.capitalize()} must be a number")
    if not math.isfinite(amount):
        raise InvalidInputError(f"{field.capitalize()} must be a number")
    if amount < 0:
        raise InvalidInputError(f"{field.capitalize()} cannot be negative")
    return amount


class DashboardController:
    """State and actions of one user's dashboard session."""

    def __init__(
        self,
        user: User,
        repository: DatasetRepository,
        advice_client: Optional[AdviceClient] = None,
        audit_logger: Optional[AuditLogger] = None,
        recent_limit: int = 5,
        activity_days: int = 7,
    ):
        self._user = user
        self._repository = repository
        self._advice_client = advice_client
        self._audit_logger = audit_logger
        self._recent_limit = recent_limit
        self._activity_days = activity_days

        self._expenses: list[Expense] = []
        self._categories: list[Category] = []
        self._loaded = False

        self.active_tab = DashboardTab.OVERVIEW
        self.advice: Optional[str] = None
        self._advice_pending = False

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def user(self) -> User:
        return self._user

    @property
    def expenses(self) -> list[Expense]:
        return list(self._expenses)

    @property
    def categories(self) -> list[Category]:
        return list(self._categories)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def advice_pending(self) -> bool:
        return self._advice_pending

    def load(self) -> Dataset:
        """Read the user's dataset from storage (session start)."""
        dataset = self._repository.load(self._user.email)
        self._expenses = list(dataset.expenses)
        self._categories = list(dataset.categories)
        self._loaded = True
        if self._audit_logger:
            self._audit_logger.log_dataset_loaded(
                email=self._user.email,
                expense_count=len(self._expenses),
                category_count=len(self._categories),
            )
        return dataset

    def _persist(
        self,
        expenses: Optional[list[Expense]] = None,
        categories: Optional[list[Category]] = None,
    ) -> None:
        """
        Write the dataset, then adopt the given lists.

        A failed save leaves the in-memory lists unchanged.
        """
        expenses = self._expenses if expenses is None else expenses
        categories = self._categories if categories is None else categories
        self._repository.save(
            self._user.email,
            Dataset(expenses=expenses, categories=categories),
        )
        self._expenses = expenses
        self._categories = categories

    # -------------------------------------------------------------------------
    # Derived views (recomputed on every call)
    # -------------------------------------------------------------------------

    def summary(self, today: Optional[date] = None) -> DashboardSummary:
        return aggregation.build_summary(
            self._expenses,
            self._categories,
            today=today,
            activity_days=self._activity_days,
            recent_limit=self._recent_limit,
        )

    def expense_rows(self) -> list[ExpenseRow]:
        return aggregation.expense_rows(self._expenses, self._categories)

    def category_name(self, category_id: str) -> str:
        category = find_category(self._categories, category_id)
        return category.name if category else UNKNOWN_CATEGORY_NAME

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def switch_tab(self, tab) -> DashboardTab:
        try:
            self.active_tab = DashboardTab(tab)
        except ValueError:
            raise InvalidInputError(f"Unknown tab: {tab}")
        return self.active_tab

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    def add_expense(
        self,
        description: str,
        amount,
        category_id: str,
        expense_date: Optional[Union[date, str]] = None,
    ) -> Expense:
        """
        Record a new expense (shown first in the list).

        Raises:
            InvalidInputError: Missing description/amount/category or bad date
        """
        if not (description or "").strip():
            raise InvalidInputError("Please enter a description")
        parsed_amount = _parse_amount(amount, "amount")
        if not category_id:
            raise InvalidInputError("Please choose a category")

        if expense_date is None:
            expense_date = date.today()
        if isinstance(expense_date, date):
            expense_date = expense_date.isoformat()

        try:
            expense = Expense(
                id=generate_id([e.id for e in self._expenses]),
                description=description,
                amount=parsed_amount,
                date=expense_date,
                category_id=category_id,
            )
        except ValidationError as e:
            raise InvalidInputError(f"Invalid expense: {e.errors()[0]['msg']}")

        self._persist(expenses=[expense, *self._expenses])

        if self._audit_logger:
            self._audit_logger.log_expense_added(
                email=self._user.email,
                expense_id=expense.id,
                amount=expense.amount,
                category_id=expense.category_id,
            )
        return expense

    def delete_expense(self, expense_id: str) -> bool:
        """Remove one expense by ID. Returns False if no such expense."""
        remaining = [e for e in self._expenses if e.id != expense_id]
        if len(remaining) == len(self._expenses):
            return False

        self._persist(expenses=remaining)

        if self._audit_logger:
            self._audit_logger.log_expense_deleted(self._user.email, expense_id)
        return True

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    def add_category(
        self,
        name: str,
        budget,
        color: Optional[str] = None,
    ) -> Category:
        """
        Create a budget category (appended to the list).

        Raises:
            InvalidInputError: Missing name/budget or bad color
        """
        if not (name or "").strip():
            raise InvalidInputError("Please enter a category name")
        parsed_budget = _parse_amount(budget, "budget")

        try:
            category = Category(
                id=generate_id([c.id for c in self._categories]),
                name=name,
                budget=parsed_budget,
                color=color or random_color(),
            )
        except ValidationError as e:
            raise InvalidInputError(f"Invalid category: {e.errors()[0]['msg']}")

        self._persist(categories=[*self._categories, category])

        if self._audit_logger:
            self._audit_logger.log_category_added(
                email=self._user.email,
                category_id=category.id,
                name=category.name,
                budget=category.budget,
            )
        return category

    def update_category_budget(self, category_id: str, budget) -> Category:
        """
        Change one category's budget in place.

        Raises:
            InvalidInputError: Unknown category or bad budget
        """
        existing = find_category(self._categories, category_id)
        if existing is None:
            raise InvalidInputError(f"Unknown category: {category_id}")
        parsed_budget = _parse_amount(budget, "budget")

        updated = existing.model_copy(update={"budget": parsed_budget})
        self._persist(categories=[
            updated if c.id == category_id else c for c in self._categories
        ])

        if self._audit_logger:
            self._audit_logger.log_category_budget_updated(
                email=self._user.email,
                category_id=category_id,
                old_budget=existing.budget,
                new_budget=parsed_budget,
            )
        return updated

    # -------------------------------------------------------------------------
    # Advice
    # -------------------------------------------------------------------------

    async def request_advice(self) -> str:
        """
        Ask the advice client about the current dataset.

        The snapshot is taken when the request starts. Only one request
        may be in flight.

        Raises:
            AdviceInFlightError: A previous request has not finished
        """
        if self._advice_pending:
            raise AdviceInFlightError("Advice is already being generated")
        if self._advice_client is None:
            self._advice_client = AdviceClient(audit_logger=self._audit_logger)

        expenses = list(self._expenses)
        categories = list(self._categories)

        self._advice_pending = True
        if self._audit_logger:
            self._audit_logger.log_advice_requested(self._user.email)
        try:
            result = await self._advice_client.get_advice(
                expenses,
                categories,
                self._user.name,
            )
        finally:
            self._advice_pending = False

        self.advice = result
        if self._audit_logger:
            if result in (ADVICE_UNAVAILABLE_MESSAGE, EMPTY_ADVICE_MESSAGE):
                self._audit_logger.log_advice_failed(self._user.email, result)
            else:
                self._audit_logger.log_advice_generated(self._user.email, len(result))
        return result
