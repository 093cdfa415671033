#!/usr/bin/env python3
"""
Workflow Engine Database Schema

SQLite backing store for workflow definitions. One row per workflow; the step
graph is stored as a JSON document in the `steps` column because the engine
always loads and saves whole workflows.

Schema version is stored in PRAGMA user_version. The migrate() function
applies schema changes incrementally and is idempotent.

Connection rules:
- All write transactions use BEGIN IMMEDIATE
- PRAGMA busy_timeout=5000 is set on connection open
- WAL mode enables concurrent reads during write transactions
"""

import json
import logging
import sqlite3
from pathlib import Path

from .errors import WorkflowSaveError
from .models import Workflow
from .persistence import parse_workflow_documents

logger = logging.getLogger(__name__)

# Current schema version; increment when adding tables or columns
SCHEMA_VERSION = 1

# ---------------------------------------------------------------------------
# Connection helper
# ---------------------------------------------------------------------------


def open_db(db_path: str | Path) -> sqlite3.Connection:
    """
    Open (or create) the workflow database with required PRAGMAs.

    Sets:
    - journal_mode=WAL: concurrent reads while single writer holds lock
    - busy_timeout=5000: retry on locked DB for up to 5 seconds

    isolation_level=None puts the connection in autocommit mode so that
    writers control transactions explicitly with BEGIN IMMEDIATE.
    """
    conn = sqlite3.connect(str(db_path), check_same_thread=False, isolation_level=None)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA busy_timeout = 5000")
    conn.execute("PRAGMA journal_mode = WAL")
    return conn


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_WORKFLOWS = """
CREATE TABLE IF NOT EXISTS workflows (
    id          TEXT PRIMARY KEY,               -- e.g. "default_standard_workflow"
    position    INTEGER NOT NULL,               -- store order (0-based)
    name        TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    steps       TEXT NOT NULL,                  -- JSON array of step documents
    updated_at  TEXT NOT NULL DEFAULT (datetime('now'))
)
"""

_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_workflows_position ON workflows(position)",
]

SCHEMA_STATEMENTS: list[str] = [
    _CREATE_WORKFLOWS,
    *_INDEXES,
]


# ---------------------------------------------------------------------------
# Migration runner
# ---------------------------------------------------------------------------


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Read the current schema version from PRAGMA user_version."""
    return conn.execute("PRAGMA user_version").fetchone()[0]


def set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    """Write schema version to PRAGMA user_version (no param binding — use f-string)."""
    conn.execute(f"PRAGMA user_version = {int(version)}")


def migrate(conn: sqlite3.Connection) -> None:
    """
    Apply schema migrations incrementally.

    Idempotent — safe to call on an existing database.

    Version history:
    0 → 1: workflows table and position index
    """
    current = get_schema_version(conn)

    if current < 1:
        conn.execute("BEGIN IMMEDIATE")
        try:
            for stmt in SCHEMA_STATEMENTS:
                conn.execute(stmt)
            set_schema_version(conn, 1)
            conn.execute("COMMIT")
        except sqlite3.Error:
            conn.execute("ROLLBACK")
            raise


def create_db(db_path: str | Path) -> sqlite3.Connection:
    """
    Create or open a workflow database, applying all migrations.

    The caller is responsible for closing the returned connection.
    """
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = open_db(path)
    migrate(conn)
    return conn


# ---------------------------------------------------------------------------
# Persistence adapter
# ---------------------------------------------------------------------------


class SqlitePersistence:
    """WorkflowPersistence backed by the workflows table."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self.conn = create_db(self.db_path)

    def close(self) -> None:
        self.conn.close()

    def read(self) -> list[Workflow]:
        try:
            rows = self.conn.execute(
                "SELECT id, name, description, steps FROM workflows ORDER BY position, id"
            ).fetchall()
        except sqlite3.Error as exc:
            logger.error("Error reading workflows from %s; treating store as empty: %s",
                         self.db_path, exc)
            return []

        docs = []
        for row in rows:
            try:
                steps = json.loads(row["steps"])
            except (json.JSONDecodeError, TypeError) as exc:
                logger.warning("Skipping workflow '%s' with unreadable steps: %s", row["id"], exc)
                continue
            docs.append({
                "id": row["id"],
                "name": row["name"],
                "description": row["description"],
                "steps": steps,
            })
        return parse_workflow_documents(docs, str(self.db_path))

    def write(self, workflows: list[Workflow]) -> None:
        """Replace the table contents in one BEGIN IMMEDIATE transaction."""
        try:
            self.conn.execute("BEGIN IMMEDIATE")
            try:
                self.conn.execute("DELETE FROM workflows")
                self.conn.executemany(
                    """
                    INSERT INTO workflows (id, position, name, description, steps)
                    VALUES (:id, :position, :name, :description, :steps)
                    """,
                    [
                        {
                            "id": wf.id,
                            "position": position,
                            "name": wf.name,
                            "description": wf.description,
                            "steps": json.dumps([s.to_dict() for s in wf.steps], ensure_ascii=False),
                        }
                        for position, wf in enumerate(workflows)
                    ],
                )
                self.conn.execute("COMMIT")
            except sqlite3.Error:
                self.conn.execute("ROLLBACK")
                raise
        except sqlite3.Error as exc:
            logger.error("Error writing workflows to %s: %s", self.db_path, exc)
            raise WorkflowSaveError() from exc
