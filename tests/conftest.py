"""
Shared fixtures for TrackIt tests.

No test talks to Gemini or Google Sheets: the model and the worksheet
are replaced by small fakes defined here.
"""

import asyncio

import pytest

from trackit.audit import AuditLogger
from trackit.models.auth import User
from trackit.models.finance import Category, Expense
from trackit.services.storage import (
    FinanceStore,
    GoogleSheetsKeyValueStore,
    InMemoryKeyValueStore,
    KeyValueAuditStorage,
)


class FakeResponse:
    def __init__(self, text):
        self._text = text

    @property
    def text(self):
        if isinstance(self._text, Exception):
            raise self._text
        return self._text


class FakeModel:
    """Stands in for genai.GenerativeModel."""

    def __init__(self, text="1. Spend less\n2. Save more\n3. Track it", delay=0.0, error=None):
        self.text = text
        self.delay = delay
        self.error = error
        self.prompts = []

    async def generate_content_async(self, prompt, **kwargs):
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return FakeResponse(self.text)


class FakeWorksheet:
    """In-memory stand-in for a gspread Worksheet."""

    def __init__(self, rows=None):
        self.rows = [list(r) for r in (rows or [["key", "value"]])]

    def get_all_values(self):
        return [list(r) for r in self.rows]

    def append_row(self, values, value_input_option=None):
        self.rows.append(list(values))

    def update_cell(self, row, col, value):
        self.rows[row - 1][col - 1] = value

    def delete_rows(self, index):
        del self.rows[index - 1]


class FakeSheetsClient:
    def __init__(self, sheet=None):
        self.sheet = sheet or FakeWorksheet()

    def get_store_sheet(self):
        return self.sheet


@pytest.fixture
def kv():
    return InMemoryKeyValueStore()


@pytest.fixture
def audit_storage(kv):
    return KeyValueAuditStorage(kv)


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def store(kv, audit_logger):
    return FinanceStore(kv, audit_logger=audit_logger)


@pytest.fixture
def alice():
    return User(name="Alice Smith", email="alice@example.com")


@pytest.fixture
def food():
    return Category(id="1", name="Food", budget=500, color="#f00")


@pytest.fixture
def food_expenses():
    return [
        Expense(id="a", description="Groceries", amount=120, categoryId="1", date="2024-01-01"),
        Expense(id="b", description="Dinner out", amount=450, categoryId="1", date="2024-01-02"),
    ]


@pytest.fixture
def sheet():
    return FakeWorksheet()


@pytest.fixture
def sheets_kv(sheet):
    return GoogleSheetsKeyValueStore(FakeSheetsClient(sheet))


@pytest.fixture
def make_model():
    """Build a fake Gemini model: make_model(text=..., delay=..., error=...)."""
    return FakeModel
