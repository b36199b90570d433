"""Pydantic schemas for the friend feed API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from pintdiary.domain.pints.schemas import PintSchema


class FeedPageSchema(BaseModel):
	items: list[PintSchema]
	cursor: Optional[str] = None
	has_more: bool = False
