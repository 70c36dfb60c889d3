"""Pydantic response models."""
from pydantic import BaseModel


class RuleUsageResponse(BaseModel):
    window_seconds: int
    limit: int
    used: int
    remaining: int


class RecordResponse(BaseModel):
    key: str
    now: int
    entries: dict[int, int]
    rules: list[RuleUsageResponse]
    allowed: bool
