"""
Tests for the persistence layer

Covers the finance store over the in-memory backend, the JSON file
backend on a temp directory, and the Sheets backend over a fake worksheet.
"""

import json

import pytest

from trackit.models.audit import AuditEventBuilder, AuditEventType
from trackit.models.auth import ExternalAssertion, PasswordAssertion, User
from trackit.models.finance import Dataset
from trackit.services.storage import (
    AUDIT_KEY,
    USERS_KEY,
    DuplicateIdentityError,
    FinanceStore,
    GoogleSheetsKeyValueStore,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueAuditStorage,
    StorageError,
    data_key,
)
from trackit.services.storage.google_sheets import MAX_CELL_CHARS


class TestFinanceStoreUsers:
    """Credential registry behavior."""

    def test_no_users_initially(self, store):
        assert store.get_users() == []

    def test_create_user_seeds_default_dataset(self, store, alice):
        store.create_user(alice, "secret")
        dataset = store.get_user_data(alice.email)
        assert dataset.expenses == []
        assert len(dataset.categories) == 5

    def test_password_is_not_stored_in_plaintext(self, store, kv, alice):
        store.create_user(alice, "secret")
        raw = json.loads(kv.get(USERS_KEY))
        assert "password" not in raw[0]
        assert raw[0]["password_hash"] != "secret"

    def test_duplicate_email_rejected(self, store, alice):
        store.create_user(alice, "secret")
        with pytest.raises(DuplicateIdentityError) as exc_info:
            store.create_user(User(name="Other", email=alice.email), "x")
        assert str(exc_info.value) == "User with this email already exists"
        assert len(store.get_users()) == 1

    def test_verify_password(self, store, alice):
        store.create_user(alice, "secret")
        assert store.verify_credentials(PasswordAssertion(email=alice.email, password="secret")) == alice
        assert store.verify_credentials(PasswordAssertion(email=alice.email, password="wrong")) is None

    def test_verify_unknown_email(self, store):
        assertion = PasswordAssertion(email="nobody@example.com", password="x")
        assert store.verify_credentials(assertion) is None
        assert store.verify_credentials(ExternalAssertion(email="nobody@example.com")) is None

    def test_external_assertion_skips_password(self, store, alice):
        store.create_user(alice, "secret")
        assert store.verify_credentials(ExternalAssertion(email=alice.email)) == alice

    def test_legacy_plaintext_record_still_verifies(self, kv, store):
        kv.set(USERS_KEY, json.dumps([{"name": "Bob", "email": "bob@example.com", "password": "pw"}]))
        user = store.verify_credentials(PasswordAssertion(email="bob@example.com", password="pw"))
        assert user == User(name="Bob", email="bob@example.com")
        assert store.verify_credentials(PasswordAssertion(email="bob@example.com", password="no")) is None

    def test_unknown_hash_method_does_not_verify(self, kv, store):
        kv.set(USERS_KEY, json.dumps([
            {"name": "Bob", "email": "bob@example.com", "password_hash": "rot13$abc$xyz"},
        ]))
        assert store.verify_credentials(PasswordAssertion(email="bob@example.com", password="pw")) is None

    def test_corrupt_registry_reads_as_empty(self, kv, store, audit_storage):
        kv.set(USERS_KEY, "{not json")
        assert store.get_users() == []
        events = audit_storage.get_recent_events()
        assert events[0].event_type == AuditEventType.STORAGE_RECOVERED
        assert events[0].entity_id == USERS_KEY

    def test_malformed_records_are_skipped(self, kv, store):
        kv.set(USERS_KEY, json.dumps([
            {"name": "Bob", "email": "bob@example.com", "password": "pw"},
            {"email": "missing-name@example.com"},
            "garbage",
        ]))
        assert [r.email for r in store.get_users()] == ["bob@example.com"]

    @pytest.mark.parametrize("name", ["", "x" * 101])
    def test_record_with_invalid_name_does_not_break_login(self, kv, store, name):
        """A stored record that cannot become a User is skipped, not raised."""
        kv.set(USERS_KEY, json.dumps([
            {"name": name, "email": "bob@example.com", "password": "pw"},
            {"name": "Carol", "email": "carol@example.com", "password": "pw"},
        ]))
        assert store.verify_credentials(PasswordAssertion(email="bob@example.com", password="pw")) is None
        assert store.verify_credentials(ExternalAssertion(email="bob@example.com")) is None
        assert [r.email for r in store.get_users()] == ["carol@example.com"]

    def test_corrupt_registry_can_be_overwritten_by_signup(self, kv, store, alice):
        kv.set(USERS_KEY, "[[[")
        store.create_user(alice, "secret")
        assert [r.email for r in store.get_users()] == [alice.email]


class TestFinanceStoreData:
    """Per-user dataset behavior."""

    def test_missing_dataset_returns_defaults(self, store):
        dataset = store.get_user_data("nobody@example.com")
        assert dataset.expenses == []
        assert len(dataset.categories) == 5

    def test_save_then_load(self, store, food, food_expenses):
        store.save_user_data("alice@example.com", food_expenses, [food])
        dataset = store.get_user_data("alice@example.com")
        assert dataset.expenses == food_expenses
        assert dataset.categories == [food]

    def test_save_is_an_overwrite(self, store, food, food_expenses):
        store.save_user_data("alice@example.com", food_expenses, [food])
        store.save_user_data("alice@example.com", [], [food])
        assert store.get_user_data("alice@example.com").expenses == []

    def test_datasets_are_per_user(self, store, food, food_expenses):
        store.save_user_data("alice@example.com", food_expenses, [food])
        assert store.get_user_data("bob@example.com").expenses == []

    def test_persisted_layout(self, kv, store, food, food_expenses):
        store.save_user_data("alice@example.com", food_expenses, [food])
        raw = json.loads(kv.get("trackit_data_alice@example.com"))
        assert set(raw) == {"expenses", "categories"}
        assert raw["expenses"][0]["categoryId"] == "1"

    def test_repository_interface(self, store, food):
        store.save("alice@example.com", Dataset(expenses=[], categories=[food]))
        assert store.load("alice@example.com").categories == [food]

    def test_corrupt_dataset_returns_defaults(self, kv, store):
        kv.set(data_key("alice@example.com"), "not json at all")
        assert len(store.get_user_data("alice@example.com").categories) == 5

    def test_non_object_dataset_returns_defaults(self, kv, store):
        kv.set(data_key("alice@example.com"), json.dumps([1, 2, 3]))
        assert len(store.get_user_data("alice@example.com").categories) == 5

    def test_malformed_records_are_skipped(self, kv, store):
        kv.set(data_key("alice@example.com"), json.dumps({
            "expenses": [
                {"id": "a", "description": "Taxi", "amount": 5, "date": "2024-01-01", "categoryId": "1"},
                {"id": "b", "description": "Bad", "amount": -5, "date": "2024-01-01", "categoryId": "1"},
            ],
            "categories": [
                {"id": "1", "name": "Food", "budget": 100, "color": "#fff"},
                {"id": "2"},
            ],
        }))
        dataset = store.get_user_data("alice@example.com")
        assert [e.id for e in dataset.expenses] == ["a"]
        assert [c.id for c in dataset.categories] == ["1"]

    def test_missing_lists_read_as_empty(self, kv, store):
        kv.set(data_key("alice@example.com"), json.dumps({}))
        dataset = store.get_user_data("alice@example.com")
        assert dataset.expenses == []
        assert dataset.categories == []


class TestInMemoryKeyValueStore:
    def test_get_set_delete(self):
        kv = InMemoryKeyValueStore({"a": "1"})
        assert kv.get("a") == "1"
        kv.set("b", "2")
        assert kv.keys() == ["a", "b"]
        assert kv.delete("a") is True
        assert kv.delete("a") is False
        assert kv.get("a") is None

    def test_keys_by_prefix(self):
        kv = InMemoryKeyValueStore({"trackit_data_a": "1", "trackit_users": "[]"})
        assert kv.keys("trackit_data_") == ["trackit_data_a"]


class TestJsonFileKeyValueStore:
    def test_missing_file_is_empty(self, tmp_path):
        kv = JsonFileKeyValueStore(tmp_path / "store.json")
        assert kv.get("anything") is None
        assert kv.keys() == []

    def test_writes_are_visible_to_a_second_instance(self, tmp_path):
        path = tmp_path / "nested" / "store.json"
        JsonFileKeyValueStore(path).set("k", "v")
        assert JsonFileKeyValueStore(path).get("k") == "v"

    def test_corrupt_file_is_empty_and_replaced_on_write(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("{{{", encoding="utf-8")
        kv = JsonFileKeyValueStore(path)
        assert kv.get("k") is None
        kv.set("k", "v")
        assert json.loads(path.read_text(encoding="utf-8")) == {"k": "v"}

    def test_non_string_values_are_ignored(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text(json.dumps({"good": "x", "bad": 5}), encoding="utf-8")
        assert JsonFileKeyValueStore(path).keys() == ["good"]

    def test_delete(self, tmp_path):
        kv = JsonFileKeyValueStore(tmp_path / "store.json")
        kv.set("k", "v")
        assert kv.delete("k") is True
        assert kv.delete("k") is False

    def test_no_temp_files_left_behind(self, tmp_path):
        kv = JsonFileKeyValueStore(tmp_path / "store.json")
        kv.set("a", "1")
        kv.set("b", "2")
        assert [p.name for p in tmp_path.iterdir()] == ["store.json"]

    def test_finance_store_on_disk(self, tmp_path, alice, food):
        path = tmp_path / "trackit.json"
        FinanceStore(JsonFileKeyValueStore(path)).create_user(alice, "secret")

        reopened = FinanceStore(JsonFileKeyValueStore(path))
        assert reopened.find_user(alice.email) is not None
        assert len(reopened.get_user_data(alice.email).categories) == 5


class TestGoogleSheetsKeyValueStore:
    def test_set_appends_then_updates(self, sheet, sheets_kv):
        sheets_kv.set("trackit_users", "[]")
        sheets_kv.set("trackit_users", "[1]")
        assert sheet.rows == [["key", "value"], ["trackit_users", "[1]"]]
        assert sheets_kv.get("trackit_users") == "[1]"

    def test_get_missing(self, sheets_kv):
        assert sheets_kv.get("nope") is None

    def test_short_row_reads_as_empty_string(self, sheet, sheets_kv):
        sheet.rows.append(["k"])
        assert sheets_kv.get("k") == ""

    def test_delete_and_keys(self, sheet, sheets_kv):
        sheet.rows.extend([["a", "1"], ["b", "2"]])
        assert sheets_kv.delete("a") is True
        assert sheets_kv.delete("a") is False
        assert sheets_kv.keys() == ["b"]

    def test_oversized_value_is_rejected(self, sheet, sheets_kv):
        with pytest.raises(StorageError):
            sheets_kv.set("big", "x" * (MAX_CELL_CHARS + 1))
        assert sheet.rows == [["key", "value"]]

    def test_finance_store_over_sheets(self, sheets_kv, alice):
        store = FinanceStore(sheets_kv)
        store.create_user(alice, "secret")
        assert store.verify_credentials(PasswordAssertion(email=alice.email, password="secret")) == alice


class TestKeyValueAuditStorage:
    def test_append_and_read_back(self, audit_storage):
        audit_storage.append_event(AuditEventBuilder.user_signed_up("alice@example.com"))
        events = audit_storage.get_events_for_user("alice@example.com")
        assert len(events) == 1
        assert events[0].event_type == AuditEventType.USER_SIGNED_UP

    def test_keeps_only_most_recent_events(self, kv):
        storage = KeyValueAuditStorage(kv, max_events=3)
        for i in range(5):
            storage.append_event(AuditEventBuilder.expense_deleted("alice@example.com", str(i)))
        ids = sorted(e.entity_id for e in storage.get_recent_events())
        assert ids == ["2", "3", "4"]

    def test_filters_by_user(self, audit_storage):
        audit_storage.append_event(AuditEventBuilder.user_signed_up("alice@example.com"))
        audit_storage.append_event(AuditEventBuilder.user_signed_up("bob@example.com"))
        assert len(audit_storage.get_events_for_user("bob@example.com")) == 1

    def test_clear_one_user(self, audit_storage):
        audit_storage.append_event(AuditEventBuilder.user_signed_up("alice@example.com"))
        audit_storage.append_event(AuditEventBuilder.user_logged_out("alice@example.com"))
        audit_storage.append_event(AuditEventBuilder.user_signed_up("bob@example.com"))
        assert audit_storage.clear("alice@example.com") == 2
        assert audit_storage.get_events_for_user("alice@example.com") == []
        assert len(audit_storage.get_recent_events()) == 1

    def test_clear_all(self, audit_storage):
        audit_storage.append_event(AuditEventBuilder.user_signed_up("alice@example.com"))
        assert audit_storage.clear() == 1
        assert audit_storage.get_recent_events() == []

    def test_corrupt_log_reads_as_empty(self, kv, audit_storage):
        kv.set(AUDIT_KEY, "nope")
        assert audit_storage.get_recent_events() == []
        assert audit_storage.append_event(AuditEventBuilder.user_signed_up("a@example.com")) is True

    def test_write_failure_returns_false(self):
        class BrokenStore(InMemoryKeyValueStore):
            def set(self, key, value):
                raise StorageError("disk full")

        storage = KeyValueAuditStorage(BrokenStore())
        assert storage.append_event(AuditEventBuilder.user_signed_up("a@example.com")) is False
