"""Versioned schema upgrades for the submissions table.

Databases created by earlier releases lack columns that were added later.
Each upgrade below names the columns it introduces together with the DDL used
to add them, so an old table can be brought forward in place without losing
rows. Reconciliation inspects the live table and only adds what is missing,
which makes it safe to run on every start-up.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

from .database import Base
from .models import Submission

logger = logging.getLogger(__name__)

TABLE_NAME = Submission.__tablename__


@dataclass(frozen=True)
class ColumnAddition:
    name: str
    ddl: str


@dataclass(frozen=True)
class SchemaUpgrade:
    version: int
    description: str
    columns: Tuple[ColumnAddition, ...]


# Version 1 is the original table: id, pain, pay, created_at.
UPGRADES: Tuple[SchemaUpgrade, ...] = (
    SchemaUpgrade(
        version=2,
        description="submitter email",
        columns=(ColumnAddition("email", "TEXT NOT NULL DEFAULT ''"),),
    ),
    SchemaUpgrade(
        version=3,
        description="target platforms and development OS",
        columns=(
            ColumnAddition("target_platforms", "TEXT NOT NULL DEFAULT ''"),
            ColumnAddition("dev_os", "TEXT NOT NULL DEFAULT ''"),
        ),
    ),
    SchemaUpgrade(
        version=4,
        description="maximum agent count",
        columns=(ColumnAddition("max_agents", "INTEGER NOT NULL DEFAULT 0"),),
    ),
)

LATEST_VERSION = UPGRADES[-1].version


def pending_upgrades(existing_columns: Iterable[str]) -> List[Tuple[SchemaUpgrade, List[ColumnAddition]]]:
    """Return the upgrades that still have columns missing, in version order."""

    present = set(existing_columns)
    pending = []
    for upgrade in UPGRADES:
        missing = [column for column in upgrade.columns if column.name not in present]
        if missing:
            pending.append((upgrade, missing))
    return pending


def reconcile_schema(engine: Engine) -> int:
    """Create or upgrade the submissions table and return its schema version."""

    inspector = inspect(engine)
    if not inspector.has_table(TABLE_NAME):
        logger.info("Creating submissions table", extra={"version": LATEST_VERSION})
        Base.metadata.create_all(bind=engine)
        return LATEST_VERSION

    existing = [column["name"] for column in inspector.get_columns(TABLE_NAME)]
    pending = pending_upgrades(existing)
    if not pending:
        return LATEST_VERSION

    with engine.begin() as connection:
        for upgrade, missing in pending:
            for column in missing:
                connection.execute(text(f"ALTER TABLE {TABLE_NAME} ADD COLUMN {column.name} {column.ddl}"))
            logger.info(
                "Applied schema upgrade",
                extra={
                    "version": upgrade.version,
                    "description": upgrade.description,
                    "columns": [column.name for column in missing],
                },
            )

    return LATEST_VERSION
