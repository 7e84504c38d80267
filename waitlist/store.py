"""Submission store backing the waitlist."""
from __future__ import annotations

import logging
from typing import List

from fastapi import Depends
from sqlalchemy.orm import Session

from .database import get_db
from .models import Submission
from .schemas import MAX_INTEGER, WaitlistSubmission

logger = logging.getLogger(__name__)


class SubmissionStore:
    """Append-only record store with delete-by-id.

    Required fields are validated before a record reaches the store.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def submit(self, record: WaitlistSubmission) -> Submission:
        submission = Submission(
            email=record.email,
            pain=record.pain,
            pay=record.pay,
            target_platforms=list(record.target_platforms),
            dev_os=list(record.dev_os),
            max_agents=record.max_agents,
        )
        self._session.add(submission)
        self._session.commit()
        self._session.refresh(submission)
        logger.info("Stored waitlist submission", extra={"submission_id": submission.id})
        return submission

    def delete(self, submission_id: int) -> None:
        # Ids beyond the column range cannot exist.
        if submission_id > MAX_INTEGER:
            return
        deleted = (
            self._session.query(Submission)
            .filter(Submission.id == submission_id)
            .delete(synchronize_session=False)
        )
        self._session.commit()
        if deleted:
            logger.info("Deleted waitlist submission", extra={"submission_id": submission_id})

    def list(self) -> List[Submission]:
        return self._session.query(Submission).order_by(Submission.id.desc()).all()


def get_store(db: Session = Depends(get_db)) -> SubmissionStore:
    return SubmissionStore(db)
