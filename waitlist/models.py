"""Database models for waitlist submissions."""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, Text

from .database import Base
from .encoded_type import EncodedStringList


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Submission(Base):
    """One waitlist sign-up.

    Rows are append-only: they are created by the public form and removed by
    an administrator, never updated in place.
    """

    __tablename__ = "submissions"
    # AUTOINCREMENT keeps SQLite from handing out the id of a deleted last row again.
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)

    email = Column(Text, nullable=False, server_default="")
    pain = Column(Text, nullable=False)
    pay = Column(Text, nullable=False)

    target_platforms = Column(EncodedStringList, nullable=False, server_default="")
    dev_os = Column(EncodedStringList, nullable=False, server_default="")
    max_agents = Column(Integer, nullable=False, default=0, server_default="0")

    created_at = Column(DateTime, default=_utcnow, nullable=False)
