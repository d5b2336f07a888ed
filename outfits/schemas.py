"""
Pydantic schemas for the outfits FastAPI backend.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from outfits.db import PostType


class _FromRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Posts


class CreatePostRequest(BaseModel):
    type: PostType


class IdRequest(BaseModel):
    id: str = Field(..., min_length=1, max_length=255)


class PostResponse(_FromRecord):
    id: str
    user_id: str
    type: PostType
    image: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CreatePostResponse(BaseModel):
    post: PostResponse
    upload_url: str


class PostSummary(_FromRecord):
    id: str
    type: PostType
    image: str
    created_at: Optional[datetime] = None


# Users


class MeResponse(_FromRecord):
    id: str
    username: str
    name: Optional[str] = None
    image: Optional[str] = None
    onboarded: bool


class ProfileResponse(_FromRecord):
    id: str
    username: str
    name: Optional[str] = None
    image: Optional[str] = None
    outfit_post_count: int = 0
    hoodie_post_count: int = 0
    shirt_post_count: int = 0
    pants_post_count: int = 0
    shoes_post_count: int = 0
    watch_post_count: int = 0
    image_count: int = 0
    like_count: int = 0


class EditProfileRequest(BaseModel):
    name: Optional[str] = Field(default=None, max_length=255)
    username: Optional[str] = Field(default=None, max_length=255)


class EditProfileResponse(BaseModel):
    username: Optional[str] = None


class UploadUrlResponse(BaseModel):
    upload_url: str


# Auth adapter


class AdapterUserCreate(BaseModel):
    username: str
    email: str
    name: Optional[str] = None
    email_verified: Optional[datetime] = None
    image: Optional[str] = None


class AdapterUserUpdate(BaseModel):
    id: str
    username: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    email_verified: Optional[datetime] = None
    image: Optional[str] = None
    onboarded: Optional[bool] = None


class AdapterUserResponse(_FromRecord):
    id: str
    username: str
    email: str
    name: Optional[str] = None
    email_verified: Optional[datetime] = None
    image: Optional[str] = None
    onboarded: bool = False


class UserIdRequest(BaseModel):
    id: str


class EmailRequest(BaseModel):
    email: str


class SessionPayload(BaseModel):
    session_token: str
    user_id: str
    expires: datetime


class SessionUpdate(BaseModel):
    session_token: str
    user_id: Optional[str] = None
    expires: Optional[datetime] = None


class SessionTokenRequest(BaseModel):
    session_token: str


class SessionResponse(_FromRecord):
    session_token: str
    user_id: str
    expires: datetime


class SessionAndUserResponse(BaseModel):
    session: SessionResponse
    user: AdapterUserResponse


class AccountPayload(BaseModel):
    user_id: str
    type: str
    provider: str
    provider_account_id: str
    refresh_token: Optional[str] = None
    access_token: Optional[str] = None
    expires_at: Optional[int] = None
    token_type: Optional[str] = None
    scope: Optional[str] = None
    id_token: Optional[str] = None
    session_state: Optional[str] = None


class AccountKey(BaseModel):
    provider: str
    provider_account_id: str


class VerificationTokenPayload(BaseModel):
    identifier: str
    token: str
    expires: datetime


class VerificationTokenKey(BaseModel):
    identifier: str
    token: str


class VerificationTokenResponse(_FromRecord):
    identifier: str
    token: str
    expires: datetime


class StatusResponse(BaseModel):
    status: str = "ok"
