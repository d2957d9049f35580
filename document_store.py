"""
Visionary Document Store (`document_store.py`)

===============================================================================
PURPOSE:
===============================================================================
The persistence collaborator. A tiny document database over SQLite:
collections of JSON documents, partial updates, delete-by-query, and live
subscriptions that hand every listener the FULL current document set of a
collection after each committed write.

NO OTHER FILE IN THE APPLICATION SHOULD IMPORT `sqlite3` (apart from the
schema script). The UI talks to `workflow_service`, which talks to this.

===============================================================================
RULES:
===============================================================================
1.  Last write wins. There are no version numbers and no conflict checks.
2.  Every write is one transaction that also appends a row to `change_log`.
3.  Failures are raised as `StoreError` and never retried here.
4.  Ids are time-ordered strings (milliseconds since the epoch, bumped so they
    stay unique), so sorting ids sorts by creation time.

===============================================================================
QUICK NAVIGATION:
===============================================================================
[H-DB]   _get_db_conn(), _run()
[F-R]    list_documents(), get_document(), get_change_log(), ping()
[F-W]    create_document(), update_document(), delete_document(), delete_where(),
         delete_cascade()
[F-SUB]  subscribe(), _notify()
"""

import json
import logging
import sqlite3
import threading
import time
from typing import Callable, Dict, List, Optional

from store_schema import COLLECTIONS, initialize_database

logger = logging.getLogger(__name__)

Listener = Callable[[List[dict]], None]
ErrorListener = Callable[[Exception], None]


class StoreError(RuntimeError):
    """A store operation failed (connection, SQL, or missing document)."""


class DocumentStore:
    def __init__(self, db_file: str):
        self.db_file = db_file
        self._listeners: Dict[str, List[tuple]] = {c: [] for c in COLLECTIONS}
        # Guards _listeners; subscribe/notify run on many session threads.
        self._listeners_lock = threading.Lock()
        conn = self._get_db_conn()
        try:
            initialize_database(conn)
        except sqlite3.Error as e:
            raise StoreError(f"Could not initialise the document store at {db_file}: {e}") from e
        finally:
            conn.close()

    # --- [H-DB] Helpers ---

    def _get_db_conn(self) -> sqlite3.Connection:
        """[PRIVATE] Returns a new, configured connection to the SQLite file."""
        try:
            conn = sqlite3.connect(self.db_file)
            conn.row_factory = sqlite3.Row
            return conn
        except sqlite3.Error as e:
            logger.error("Failed to connect to document store at %s: %s", self.db_file, e)
            raise StoreError(f"Failed to connect to document store: {e}") from e

    @staticmethod
    def _check_collection(collection: str) -> None:
        if collection not in COLLECTIONS:
            raise ValueError(f"Invalid collection: {collection}")

    @staticmethod
    def _log_change(conn, collection: str, doc_id: str, action: str, fields: Optional[dict]) -> None:
        """[PRIVATE] Must be called inside the write's transaction."""
        conn.execute(
            "INSERT INTO change_log (collection, doc_id, action, fields) VALUES (?, ?, ?, ?)",
            (collection, doc_id, action, json.dumps(fields) if fields is not None else None),
        )

    @staticmethod
    def _next_doc_id(conn, collection: str) -> str:
        now_ms = int(time.time() * 1000)
        row = conn.execute(f"SELECT MAX(doc_id) FROM {collection}").fetchone()
        if row[0] is not None:
            try:
                now_ms = max(now_ms, int(row[0]) + 1)
            except ValueError:
                pass  # non-numeric legacy ids do not take part in ordering
        return str(now_ms)

    @staticmethod
    def _row_to_doc(row) -> dict:
        doc = json.loads(row["data"])
        doc["id"] = row["doc_id"]
        return doc

    def _run(self, action: str, collection: str, fn):
        """[PRIVATE] Opens a connection, runs `fn(conn)`, wraps SQL errors as StoreError."""
        self._check_collection(collection)
        conn = self._get_db_conn()
        try:
            return fn(conn)
        except sqlite3.Error as e:
            logger.error("Store %s on '%s' failed: %s", action, collection, e)
            raise StoreError(f"{action} on '{collection}' failed: {e}") from e
        except StoreError as e:
            logger.error("Store %s on '%s' failed: %s", action, collection, e)
            raise
        finally:
            conn.close()

    # --- [F-R] Reads ---

    def list_documents(self, collection: str) -> List[dict]:
        """Every document in the collection, oldest first, each with its `id`."""
        def read(conn):
            rows = conn.execute(f"SELECT doc_id, data FROM {collection} ORDER BY doc_id ASC").fetchall()
            return [self._row_to_doc(r) for r in rows]
        return self._run("list", collection, read)

    def get_document(self, collection: str, doc_id: str) -> Optional[dict]:
        def read(conn):
            row = conn.execute(f"SELECT doc_id, data FROM {collection} WHERE doc_id = ?",
                               (str(doc_id),)).fetchone()
            return self._row_to_doc(row) if row else None
        return self._run("get", collection, read)

    def get_change_log(self, limit: int = 100) -> List[dict]:
        """(For the Admin page) The latest N writes, newest first."""
        conn = self._get_db_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM change_log ORDER BY log_id DESC LIMIT ?", (limit,)
            ).fetchall()
            return [dict(r) for r in rows]
        except sqlite3.Error as e:
            logger.error("Reading the change log failed: %s", e)
            raise StoreError(f"Reading the change log failed: {e}") from e
        finally:
            conn.close()

    def ping(self) -> bool:
        """Connection check for the Admin page."""
        try:
            conn = self._get_db_conn()
        except StoreError:
            return False
        try:
            conn.execute("SELECT 1").fetchone()
            return True
        except sqlite3.Error:
            return False
        finally:
            conn.close()

    # --- [F-W] Writes ---

    def create_document(self, collection: str, data: dict) -> str:
        """Stores a new document and returns its store-assigned id."""
        fields = {k: v for k, v in data.items() if k != "id"}

        def write(conn):
            with conn:
                doc_id = self._next_doc_id(conn, collection)
                conn.execute(f"INSERT INTO {collection} (doc_id, data) VALUES (?, ?)",
                             (doc_id, json.dumps(fields)))
                self._log_change(conn, collection, doc_id, "CREATE", fields)
            return doc_id

        doc_id = self._run("create", collection, write)
        logger.debug("Created %s/%s", collection, doc_id)
        self._notify(collection)
        return doc_id

    def update_document(self, collection: str, doc_id: str, fields: dict) -> None:
        """Merges `fields` into the stored document (top-level keys replace)."""
        fields = {k: v for k, v in fields.items() if k != "id"}
        doc_id = str(doc_id)

        def write(conn):
            with conn:
                row = conn.execute(f"SELECT data FROM {collection} WHERE doc_id = ?", (doc_id,)).fetchone()
                if row is None:
                    raise StoreError(f"No document '{doc_id}' in '{collection}'.")
                merged = json.loads(row["data"])
                merged.update(fields)
                conn.execute(
                    f"UPDATE {collection} SET data = ?, updated_at = CURRENT_TIMESTAMP WHERE doc_id = ?",
                    (json.dumps(merged), doc_id),
                )
                self._log_change(conn, collection, doc_id, "UPDATE", fields)

        self._run("update", collection, write)
        logger.debug("Updated %s/%s: %s", collection, doc_id, sorted(fields))
        self._notify(collection)

    def delete_document(self, collection: str, doc_id: str) -> None:
        doc_id = str(doc_id)

        def write(conn):
            with conn:
                cursor = conn.execute(f"DELETE FROM {collection} WHERE doc_id = ?", (doc_id,))
                if cursor.rowcount == 0:
                    raise StoreError(f"No document '{doc_id}' in '{collection}'.")
                self._log_change(conn, collection, doc_id, "DELETE", None)

        self._run("delete", collection, write)
        logger.debug("Deleted %s/%s", collection, doc_id)
        self._notify(collection)

    def delete_where(self, collection: str, field: str, value) -> int:
        """Deletes every document whose top-level `field` equals `value`. Returns the count."""
        path = "$." + field

        def write(conn):
            with conn:
                rows = conn.execute(
                    f"SELECT doc_id FROM {collection} WHERE json_extract(data, ?) = ?",
                    (path, value),
                ).fetchall()
                for row in rows:
                    conn.execute(f"DELETE FROM {collection} WHERE doc_id = ?", (row["doc_id"],))
                    self._log_change(conn, collection, row["doc_id"], "DELETE", {field: value})
            return len(rows)

        count = self._run("delete_where", collection, write)
        logger.debug("Deleted %d document(s) from %s where %s = %r", count, collection, field, value)
        if count:
            self._notify(collection)
        return count

    def delete_cascade(self, collection: str, doc_id: str, child_collection: str, foreign_key: str) -> int:
        """
        Deletes a document and every document in `child_collection` whose
        `foreign_key` points at it, in ONE transaction. If the parent is
        missing nothing is deleted. Returns the number of children removed.
        """
        self._check_collection(child_collection)
        doc_id = str(doc_id)
        path = "$." + foreign_key

        def write(conn):
            with conn:
                rows = conn.execute(
                    f"SELECT doc_id FROM {child_collection} WHERE json_extract(data, ?) = ?",
                    (path, doc_id),
                ).fetchall()
                for row in rows:
                    conn.execute(f"DELETE FROM {child_collection} WHERE doc_id = ?", (row["doc_id"],))
                    self._log_change(conn, child_collection, row["doc_id"], "DELETE", {foreign_key: doc_id})
                cursor = conn.execute(f"DELETE FROM {collection} WHERE doc_id = ?", (doc_id,))
                if cursor.rowcount == 0:
                    raise StoreError(f"No document '{doc_id}' in '{collection}'.")
                self._log_change(conn, collection, doc_id, "DELETE", None)
            return len(rows)

        count = self._run("delete_cascade", collection, write)
        logger.debug("Deleted %s/%s with %d document(s) from %s", collection, doc_id, count, child_collection)
        if count:
            self._notify(child_collection)
        self._notify(collection)
        return count

    # --- [F-SUB] Live subscriptions ---

    def subscribe(self, collection: str, on_change: Listener,
                  on_error: Optional[ErrorListener] = None) -> Callable[[], None]:
        """
        Registers a listener and immediately delivers the current snapshot.
        Returns an `unsubscribe()` callable.
        """
        self._check_collection(collection)
        entry = (on_change, on_error)
        with self._listeners_lock:
            self._listeners[collection].append(entry)
        self._deliver(collection, [entry])

        def unsubscribe():
            with self._listeners_lock:
                if entry in self._listeners[collection]:
                    self._listeners[collection].remove(entry)

        return unsubscribe

    def listener_count(self, collection: str) -> int:
        with self._listeners_lock:
            return len(self._listeners[collection])

    def _notify(self, collection: str) -> None:
        with self._listeners_lock:
            entries = list(self._listeners[collection])
        if entries:
            self._deliver(collection, entries)

    def _deliver(self, collection: str, entries: List[tuple]) -> None:
        try:
            snapshot = self.list_documents(collection)
        except StoreError as e:
            for _, on_error in entries:
                if on_error:
                    on_error(e)
            return
        for on_change, _ in entries:
            on_change(list(snapshot))
