"""
Visionary Document Store Schema

===============================================================================
PURPOSE:
===============================================================================
The blueprint for the SQLite file behind the document store
(`visionary_store.db` by default, see `config.DB_FILE`).

Each "collection" is a table of JSON documents keyed by a store-assigned id.
The application never queries columns inside a document directly; all reads
and writes go through `document_store.DocumentStore`.

It is safe to re-run; it only creates what does not exist yet. The store also
calls `initialize_database()` itself when it opens a file, so running this
by hand is only needed to create an empty file up-front:

$ python store_schema.py

===============================================================================
TABLES:
===============================================================================
[T1] strategies   - creative headers (product / format / description)
[T2] variants     - ad variants; `strategyId` inside the JSON is the foreign key
[T3] change_log   - append-only record of every create / update / delete
[I1] variants by strategyId (used by the cascade delete)
-------------------------------------------------------------------------------
"""

import sqlite3
import sys

import config

COLLECTIONS = ("strategies", "variants")

# --- [T1] / [T2] One table per collection --------------------------------
CREATE_COLLECTION = """
CREATE TABLE IF NOT EXISTS {0} (
    doc_id TEXT PRIMARY KEY,
    data TEXT NOT NULL,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
);
"""

# --- [T3] change_log (The "Receipt Book") ---------------------------------
# Never updated or deleted from. `fields` holds the JSON of what was written.
CREATE_CHANGE_LOG = """
CREATE TABLE IF NOT EXISTS change_log (
    log_id INTEGER PRIMARY KEY AUTOINCREMENT,
    collection TEXT NOT NULL,
    doc_id TEXT NOT NULL,
    action TEXT NOT NULL,
    fields TEXT,
    logged_at DATETIME DEFAULT CURRENT_TIMESTAMP
);
"""

# --- [I1] -----------------------------------------------------------------
CREATE_IDX_VARIANTS_BY_STRATEGY = """
CREATE INDEX IF NOT EXISTS idx_variants_by_strategy
ON variants (json_extract(data, '$.strategyId'));
"""


def initialize_database(conn: sqlite3.Connection) -> None:
    """Creates every table and index that does not exist yet, in one transaction."""
    with conn:
        for collection in COLLECTIONS:
            conn.execute(CREATE_COLLECTION.format(collection))
        conn.execute(CREATE_CHANGE_LOG)
        conn.execute(CREATE_IDX_VARIANTS_BY_STRATEGY)


if __name__ == "__main__":
    print(f"Initializing document store at '{config.DB_FILE}'...")
    conn = None
    try:
        conn = sqlite3.connect(config.DB_FILE)
        initialize_database(conn)
        print(f"SUCCESS: {len(COLLECTIONS)} collections and the change log are ready.")
    except sqlite3.Error as e:
        print("\n!!! --- SQL ERROR --- !!!")
        print(f"An error occurred: {e}")
        sys.exit(1)
    finally:
        if conn:
            conn.close()
