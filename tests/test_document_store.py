import sqlite3

import pytest

from document_store import DocumentStore, StoreError


class TestCrud:
    def test_create_assigns_time_ordered_ids(self, store):
        first = store.create_document("strategies", {"product": "A"})
        second = store.create_document("strategies", {"product": "B"})
        assert len(first) == 13 and first.isdigit()
        assert second > first
        assert [d["product"] for d in store.list_documents("strategies")] == ["A", "B"]

    def test_caller_id_is_ignored(self, store):
        doc_id = store.create_document("strategies", {"id": "mine", "product": "A"})
        assert doc_id != "mine"
        assert store.get_document("strategies", doc_id) == {"id": doc_id, "product": "A"}

    def test_update_merges_top_level_fields(self, store):
        doc_id = store.create_document("variants", {"name": "V", "status": "In Progress", "editDate": ""})
        store.update_document("variants", doc_id, {"status": "Ready to edit", "reviewDate": "10/05/2024"})
        doc = store.get_document("variants", doc_id)
        assert doc["name"] == "V"
        assert doc["status"] == "Ready to edit"
        assert doc["reviewDate"] == "10/05/2024"

    def test_update_of_missing_document_raises(self, store):
        with pytest.raises(StoreError):
            store.update_document("variants", "404", {"status": "Live"})

    def test_delete_and_delete_of_missing_document(self, store):
        doc_id = store.create_document("variants", {"name": "V"})
        store.delete_document("variants", doc_id)
        assert store.get_document("variants", doc_id) is None
        with pytest.raises(StoreError):
            store.delete_document("variants", doc_id)

    def test_delete_where_matches_json_field(self, store):
        store.create_document("variants", {"strategyId": "1", "name": "a"})
        store.create_document("variants", {"strategyId": "1", "name": "b"})
        store.create_document("variants", {"strategyId": "2", "name": "c"})
        assert store.delete_where("variants", "strategyId", "1") == 2
        assert [d["name"] for d in store.list_documents("variants")] == ["c"]
        assert store.delete_where("variants", "strategyId", "1") == 0

    def test_delete_cascade_removes_parent_and_children(self, store):
        parent = store.create_document("strategies", {"product": "A"})
        other = store.create_document("strategies", {"product": "B"})
        store.create_document("variants", {"strategyId": parent, "name": "a"})
        store.create_document("variants", {"strategyId": parent, "name": "b"})
        store.create_document("variants", {"strategyId": other, "name": "c"})
        assert store.delete_cascade("strategies", parent, "variants", "strategyId") == 2
        assert [d["id"] for d in store.list_documents("strategies")] == [other]
        assert [d["name"] for d in store.list_documents("variants")] == ["c"]

    def test_delete_cascade_with_missing_parent_keeps_children(self, store):
        store.create_document("variants", {"strategyId": "404", "name": "a"})
        store.create_document("variants", {"strategyId": "404", "name": "b"})
        with pytest.raises(StoreError):
            store.delete_cascade("strategies", "404", "variants", "strategyId")
        assert [d["name"] for d in store.list_documents("variants")] == ["a", "b"]

    def test_unknown_collection_is_rejected(self, store):
        with pytest.raises(ValueError):
            store.list_documents("users")

    def test_nested_values_round_trip(self, store):
        history = [{"source": "Editor", "message": "why", "destination": "Strategist"}]
        doc_id = store.create_document("variants", {"rejectionHistory": history})
        assert store.get_document("variants", doc_id)["rejectionHistory"] == history


class TestChangeLog:
    def test_every_write_is_recorded(self, store):
        doc_id = store.create_document("variants", {"name": "V"})
        store.update_document("variants", doc_id, {"name": "W"})
        store.delete_document("variants", doc_id)
        log = store.get_change_log()
        assert [row["action"] for row in log] == ["DELETE", "UPDATE", "CREATE"]
        assert all(row["doc_id"] == doc_id for row in log)

    def test_failed_update_leaves_no_log_row(self, store):
        with pytest.raises(StoreError):
            store.update_document("variants", "404", {"name": "W"})
        assert store.get_change_log() == []

    def test_cascade_is_logged_as_one_unit(self, store):
        parent = store.create_document("strategies", {"product": "A"})
        child = store.create_document("variants", {"strategyId": parent, "name": "a"})
        store.delete_cascade("strategies", parent, "variants", "strategyId")
        deletes = [(r["collection"], r["doc_id"]) for r in store.get_change_log() if r["action"] == "DELETE"]
        assert deletes == [("strategies", parent), ("variants", child)]

    def test_failed_cascade_leaves_no_log_row(self, store):
        store.create_document("variants", {"strategyId": "404", "name": "a"})
        with pytest.raises(StoreError):
            store.delete_cascade("strategies", "404", "variants", "strategyId")
        assert [r["action"] for r in store.get_change_log()] == ["CREATE"]


class TestSubscriptions:
    def test_current_snapshot_is_delivered_immediately(self, store):
        store.create_document("strategies", {"product": "A"})
        received = []
        store.subscribe("strategies", received.append)
        assert len(received) == 1
        assert received[0][0]["product"] == "A"

    def test_writes_notify_with_full_snapshot(self, store):
        received = []
        store.subscribe("variants", received.append)
        first = store.create_document("variants", {"name": "a"})
        store.create_document("variants", {"name": "b"})
        store.update_document("variants", first, {"name": "a2"})
        assert [len(s) for s in received] == [0, 1, 2, 2]
        assert received[-1][0]["name"] == "a2"

    def test_other_collections_are_not_notified(self, store):
        received = []
        store.subscribe("strategies", received.append)
        store.create_document("variants", {"name": "a"})
        assert len(received) == 1

    def test_unsubscribe_stops_delivery(self, store):
        received = []
        unsubscribe = store.subscribe("variants", received.append)
        unsubscribe()
        store.create_document("variants", {"name": "a"})
        assert len(received) == 1

    def test_cascade_notifies_both_collections_once(self, store):
        parent = store.create_document("strategies", {"product": "A"})
        store.create_document("variants", {"strategyId": parent, "name": "a"})
        strategies, variants = [], []
        store.subscribe("strategies", strategies.append)
        store.subscribe("variants", variants.append)
        store.delete_cascade("strategies", parent, "variants", "strategyId")
        assert [len(s) for s in strategies] == [1, 0]
        assert [len(s) for s in variants] == [1, 0]

    def test_read_failures_reach_the_error_listener(self, store, monkeypatch):
        errors = []

        def broken_connect(*args, **kwargs):
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr(sqlite3, "connect", broken_connect)
        store.subscribe("variants", lambda docs: None, errors.append)
        assert len(errors) == 1
        assert isinstance(errors[0], StoreError)


class TestErrors:
    def test_sql_errors_are_wrapped(self, store, monkeypatch):
        def broken_connect(*args, **kwargs):
            raise sqlite3.OperationalError("unable to open database file")

        monkeypatch.setattr(sqlite3, "connect", broken_connect)
        with pytest.raises(StoreError):
            store.list_documents("variants")
        assert store.ping() is False

    def test_ping(self, store):
        assert store.ping() is True

    def test_reopening_an_existing_file_keeps_data(self, tmp_path):
        path = str(tmp_path / "reopen.db")
        doc_id = DocumentStore(path).create_document("strategies", {"product": "A"})
        assert DocumentStore(path).get_document("strategies", doc_id)["product"] == "A"
