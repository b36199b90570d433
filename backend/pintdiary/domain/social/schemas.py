"""Pydantic schemas for the friends API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class FriendConnectedSchema(BaseModel):
	friend_ids: list[str]
	new_badges: list[str] = Field(default_factory=list)


class FriendLinkSchema(BaseModel):
	url: str
