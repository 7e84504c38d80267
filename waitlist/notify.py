"""Best-effort webhook notification for new submissions."""
from __future__ import annotations

import logging
from typing import Any, Dict

import httpx

logger = logging.getLogger(__name__)


async def notify_new_submission(url: str, submission: Dict[str, Any], timeout: float = 10.0) -> None:
    """POST a summary of ``submission`` to ``url``. Failures are logged, never raised."""

    payload = {
        'event': 'waitlist.submission',
        'text': f"new waitlist signup: {submission.get('email', '')}",
        'submission': submission,
    }
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(url, json=payload)
            response.raise_for_status()
    except httpx.HTTPError as error:
        logger.warning(
            "Waitlist webhook failed",
            extra={"submission_id": submission.get('id'), "error": type(error).__name__},
        )
