from __future__ import annotations

from typing import Any, List

from pydantic import BaseModel, Field, field_validator

# Largest value a SQLite INTEGER column can hold.
MAX_INTEGER = 2**63 - 1


class WaitlistSubmission(BaseModel):
    email: str
    pain: str
    pay: str
    target_platforms: List[str] = Field(default_factory=list)
    dev_os: List[str] = Field(default_factory=list)
    max_agents: int = Field(default=0, ge=0, le=MAX_INTEGER)

    @field_validator('email', 'pain', 'pay')
    @classmethod
    def _require_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError('must not be empty')
        return value

    @field_validator('target_platforms', 'dev_os', mode='before')
    @classmethod
    def _null_as_empty_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator('max_agents', mode='before')
    @classmethod
    def _null_as_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    def to_notification(self, submission_id: int) -> dict:
        return {
            'id': submission_id,
            'email': self.email,
            'pain': self.pain,
            'pay': self.pay,
            'target_platforms': list(self.target_platforms),
            'dev_os': list(self.dev_os),
            'max_agents': self.max_agents,
        }
