"""
Plain records returned by the adapter and services.

Rows never leave a session; callers get these dataclasses instead.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Optional

from outfits.db import (
    AccountRow,
    PostRow,
    PostType,
    SessionRow,
    UserRow,
    VerificationTokenRow,
    as_utc,
)


@dataclass
class UserRecord:
    id: str
    username: str
    email: str
    name: Optional[str] = None
    email_verified: Optional[datetime] = None
    image: Optional[str] = None
    onboarded: bool = False
    outfit_post_count: int = 0
    hoodie_post_count: int = 0
    shirt_post_count: int = 0
    pants_post_count: int = 0
    shoes_post_count: int = 0
    watch_post_count: int = 0
    image_count: int = 0
    like_count: int = 0

    def as_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_row(cls, row: UserRow) -> "UserRecord":
        return cls(
            id=row.id,
            username=row.username,
            email=row.email,
            name=row.name,
            email_verified=as_utc(row.email_verified),
            image=row.image,
            onboarded=bool(row.onboarded),
            outfit_post_count=row.outfit_post_count or 0,
            hoodie_post_count=row.hoodie_post_count or 0,
            shirt_post_count=row.shirt_post_count or 0,
            pants_post_count=row.pants_post_count or 0,
            shoes_post_count=row.shoes_post_count or 0,
            watch_post_count=row.watch_post_count or 0,
            image_count=row.image_count or 0,
            like_count=row.like_count or 0,
        )


@dataclass
class AccountRecord:
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

    def as_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_row(cls, row: AccountRow) -> "AccountRecord":
        return cls(
            user_id=row.user_id,
            type=row.type,
            provider=row.provider,
            provider_account_id=row.provider_account_id,
            refresh_token=row.refresh_token,
            access_token=row.access_token,
            expires_at=row.expires_at,
            token_type=row.token_type,
            scope=row.scope,
            id_token=row.id_token,
            session_state=row.session_state,
        )


@dataclass
class SessionRecord:
    session_token: str
    user_id: str
    expires: datetime

    def as_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_row(cls, row: SessionRow) -> "SessionRecord":
        return cls(
            session_token=row.session_token,
            user_id=row.user_id,
            expires=as_utc(row.expires),
        )


@dataclass
class VerificationTokenRecord:
    identifier: str
    token: str
    expires: datetime

    def as_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_row(cls, row: VerificationTokenRow) -> "VerificationTokenRecord":
        return cls(
            identifier=row.identifier,
            token=row.token,
            expires=as_utc(row.expires),
        )


@dataclass
class PostRecord:
    id: str
    user_id: str
    type: PostType
    image: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def as_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_row(cls, row: PostRow) -> "PostRecord":
        return cls(
            id=row.id,
            user_id=row.user_id,
            type=PostType(row.type),
            image=row.image,
            created_at=as_utc(row.created_at),
            updated_at=as_utc(row.updated_at),
        )
