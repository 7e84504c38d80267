"""Tests for submissions schema reconciliation."""
from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import sessionmaker

_TEST_TMPDIR = tempfile.TemporaryDirectory()
_TEST_DB_PATH = Path(_TEST_TMPDIR.name) / "waitlist.db"

_ENV = {
    "DATABASE_URL": f"sqlite:///{_TEST_DB_PATH}",
    "GOOGLE_CLIENT_ID": "client-id.apps.example",
    "GOOGLE_CLIENT_SECRET": "client-secret",
    "SESSION_SECRET": "test-session-secret-with-at-least-32-chars",
    "ALLOWED_EMAILS": "a@x.com, admin@example.org",
}
for key, value in _ENV.items():
    os.environ.setdefault(key, value)

from waitlist import migrations as migrations_module  # noqa: E402
from waitlist.schemas import WaitlistSubmission  # noqa: E402
from waitlist.store import SubmissionStore  # noqa: E402

_LEGACY_TABLE = """
CREATE TABLE submissions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    pain TEXT NOT NULL,
    pay TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
)
"""


class SchemaReconciliationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.engine = create_engine(f"sqlite:///{Path(self.tmpdir.name) / 'legacy.db'}")
        self.Session = sessionmaker(bind=self.engine)

    def tearDown(self) -> None:
        self.engine.dispose()
        self.tmpdir.cleanup()

    def _columns(self) -> set:
        return {column["name"] for column in inspect(self.engine).get_columns("submissions")}

    def _create_legacy_table(self, *extra_columns: str) -> None:
        with self.engine.begin() as connection:
            connection.execute(text(_LEGACY_TABLE))
            for ddl in extra_columns:
                connection.execute(text(f"ALTER TABLE submissions ADD COLUMN {ddl}"))
            connection.execute(
                text("INSERT INTO submissions (pain, pay, created_at) VALUES ('slow builds', '$10', '2024-05-01 10:00:00')")
            )

    def test_pending_upgrades_for_base_schema(self):
        pending = migrations_module.pending_upgrades(["id", "pain", "pay", "created_at"])
        self.assertEqual([upgrade.version for upgrade, _ in pending], [2, 3, 4])

    def test_pending_upgrades_only_lists_missing_columns(self):
        existing = ["id", "pain", "pay", "created_at", "email", "target_platforms"]
        pending = migrations_module.pending_upgrades(existing)
        self.assertEqual([upgrade.version for upgrade, _ in pending], [3, 4])
        self.assertEqual([column.name for column in pending[0][1]], ["dev_os"])

    def test_pending_upgrades_empty_for_current_schema(self):
        existing = ["id", "pain", "pay", "created_at", "email", "target_platforms", "dev_os", "max_agents"]
        self.assertEqual(migrations_module.pending_upgrades(existing), [])

    def test_creates_table_when_missing(self):
        version = migrations_module.reconcile_schema(self.engine)
        self.assertEqual(version, migrations_module.LATEST_VERSION)
        self.assertIn("max_agents", self._columns())

    def test_upgrades_legacy_table_and_keeps_rows(self):
        self._create_legacy_table()

        migrations_module.reconcile_schema(self.engine)

        self.assertTrue({"email", "target_platforms", "dev_os", "max_agents"} <= self._columns())
        session = self.Session()
        try:
            rows = SubmissionStore(session).list()
        finally:
            session.close()
        self.assertEqual(len(rows), 1)
        row = rows[0]
        self.assertEqual(row.pain, "slow builds")
        self.assertEqual(row.email, "")
        self.assertEqual(row.max_agents, 0)
        self.assertEqual(row.target_platforms, [])
        self.assertEqual(row.dev_os, [])

    def test_upgrades_partial_schema(self):
        self._create_legacy_table("email TEXT NOT NULL DEFAULT ''", "target_platforms TEXT NOT NULL DEFAULT ''",
                                  "dev_os TEXT NOT NULL DEFAULT ''")

        migrations_module.reconcile_schema(self.engine)

        session = self.Session()
        try:
            rows = SubmissionStore(session).list()
        finally:
            session.close()
        self.assertEqual(rows[0].max_agents, 0)

    def test_reconcile_is_idempotent(self):
        self._create_legacy_table()
        migrations_module.reconcile_schema(self.engine)
        columns = self._columns()

        migrations_module.reconcile_schema(self.engine)

        self.assertEqual(self._columns(), columns)

    def test_upgraded_table_accepts_new_submissions(self):
        self._create_legacy_table()
        migrations_module.reconcile_schema(self.engine)

        session = self.Session()
        try:
            store = SubmissionStore(session)
            store.submit(WaitlistSubmission(email="b@x.com", pain="p", pay="q", max_agents=3,
                                            target_platforms=["linux"]))
            rows = store.list()
        finally:
            session.close()
        self.assertEqual([row.email for row in rows], ["b@x.com", ""])
        self.assertEqual(rows[0].max_agents, 3)
        self.assertEqual(rows[0].target_platforms, ["linux"])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
