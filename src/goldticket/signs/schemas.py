"""Sign request/response schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import Field

from goldticket.schemas import CamelModel

SignType = Literal["announcement", "vote", "poll"]


class SignCreateRequest(CamelModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    type: SignType
    message: str | None = Field(None, max_length=500)
    title: str | None = Field(None, max_length=200)
    description: str | None = Field(None, max_length=1000)
    options: list[str] | None = Field(None, max_length=10)


class CommentRequest(CamelModel):
    text: str = Field(..., min_length=1, max_length=500)


class VoteRequest(CamelModel):
    option_index: int


class AddOptionRequest(CamelModel):
    text: str = Field(..., min_length=1, max_length=120)


class SignOptionResponse(CamelModel):
    index: int
    text: str
    votes: int = 0


class SignCommentResponse(CamelModel):
    username: str
    text: str
    created_at: datetime


class SignResponse(CamelModel):
    id: uuid.UUID
    owner_id: int
    lat: float
    lng: float
    type: SignType
    message: str | None = None
    title: str | None = None
    description: str | None = None
    options: list[SignOptionResponse] = []
    total_votes: int = 0
    created_at: datetime
    expires_at: datetime


class SignDetailResponse(SignResponse):
    comments: list[SignCommentResponse] = []
    my_vote: int | None = None


class VoteResponse(CamelModel):
    action: Literal["added", "moved", "removed"]
    sign: SignResponse
