"""
Data Models Package

This package contains all Pydantic models used in TrackIt.
All data flowing through the system must conform to these schemas.
"""

from trackit.models.finance import (
    DEFAULT_CATEGORIES,
    UNKNOWN_CATEGORY_COLOR,
    UNKNOWN_CATEGORY_NAME,
    ActivityPoint,
    BudgetPerformance,
    BudgetStatus,
    Category,
    CategorySpend,
    DashboardSummary,
    Dataset,
    Expense,
    ExpenseRow,
    Totals,
    default_dataset,
    find_category,
)
from trackit.models.auth import (
    AuthMode,
    AuthResult,
    CredentialRecord,
    ExternalAssertion,
    IdentityAssertion,
    PasswordAssertion,
    User,
    ViewState,
)
from trackit.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Finance models
    "DEFAULT_CATEGORIES",
    "UNKNOWN_CATEGORY_COLOR",
    "UNKNOWN_CATEGORY_NAME",
    "ActivityPoint",
    "BudgetPerformance",
    "BudgetStatus",
    "Category",
    "CategorySpend",
    "DashboardSummary",
    "Dataset",
    "Expense",
    "ExpenseRow",
    "Totals",
    "default_dataset",
    "find_category",
    # Identity models
    "AuthMode",
    "AuthResult",
    "CredentialRecord",
    "ExternalAssertion",
    "IdentityAssertion",
    "PasswordAssertion",
    "User",
    "ViewState",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
