"""
Relational schema and the database handle shared by the services.

Attribute names are snake_case; column names keep the camel-case names the
authentication library writes (``emailVerified``, ``sessionToken``, ...).
"""

from __future__ import annotations

import enum
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Integer,
    PrimaryKeyConstraint,
    String,
    Text,
    create_engine,
)
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def to_utc(value: datetime | None) -> datetime | None:
    """Convert to UTC before writing; SQLite drops the offset on storage."""
    value = as_utc(value)
    return value.astimezone(timezone.utc) if value is not None else None


class PostType(str, enum.Enum):
    OUTFIT = "OUTFIT"
    HOODIE = "HOODIE"
    SHIRT = "SHIRT"
    PANTS = "PANTS"
    SHOES = "SHOES"
    WATCH = "WATCH"


class Database:
    """
    Engine and session factory for one SQLAlchemy URL.

    Constructed once at application start and disposed at shutdown. Accepts
    any SQLAlchemy URL (e.g., MySQL, Postgres, or SQLite for tests).
    """

    def __init__(self, database_url: str, *, create_tables: bool = True):
        if not database_url:
            raise ValueError("DATABASE_URL is required for Database")
        if database_url.startswith("sqlite") and ":memory:" in database_url:
            # One shared connection so every thread sees the same in-memory DB.
            self.engine = create_engine(
                database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_engine(
                database_url,
                pool_pre_ping=True,
                pool_recycle=1800,
            )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False
        )
        if create_tables:
            self.create_all()

    def create_all(self) -> None:
        Base.metadata.create_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Yield a session whose work commits on exit or rolls back on error."""
        with self.Session.begin() as session:
            yield session


Base = declarative_base()


class UserRow(Base):
    __tablename__ = "users"

    id = Column(String(255), primary_key=True)
    name = Column(String(255), nullable=True)
    username = Column(String(255), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    email_verified = Column("emailVerified", DateTime(timezone=True), nullable=True)
    image = Column(String(255), nullable=True)
    onboarded = Column(Boolean, nullable=False, default=False)

    outfit_post_count = Column("outfitPostCount", Integer, nullable=False, default=0)
    hoodie_post_count = Column("hoodiePostCount", Integer, nullable=False, default=0)
    shirt_post_count = Column("shirtPostCount", Integer, nullable=False, default=0)
    pants_post_count = Column("pantsPostCount", Integer, nullable=False, default=0)
    shoes_post_count = Column("shoesPostCount", Integer, nullable=False, default=0)
    watch_post_count = Column("watchPostCount", Integer, nullable=False, default=0)
    image_count = Column("imageCount", Integer, nullable=False, default=0)
    like_count = Column("likeCount", Integer, nullable=False, default=0)


class AccountRow(Base):
    __tablename__ = "accounts"
    __table_args__ = (PrimaryKeyConstraint("provider", "providerAccountId"),)

    user_id = Column("userId", String(255), nullable=False, index=True)
    type = Column(String(255), nullable=False)
    provider = Column(String(255), nullable=False)
    provider_account_id = Column("providerAccountId", String(255), nullable=False)
    refresh_token = Column(Text, nullable=True)
    access_token = Column(Text, nullable=True)
    expires_at = Column(Integer, nullable=True)
    token_type = Column(String(255), nullable=True)
    scope = Column(String(255), nullable=True)
    id_token = Column(Text, nullable=True)
    session_state = Column(String(255), nullable=True)


class SessionRow(Base):
    __tablename__ = "sessions"

    session_token = Column("sessionToken", String(255), primary_key=True)
    user_id = Column("userId", String(255), nullable=False, index=True)
    expires = Column(DateTime(timezone=True), nullable=False)


class VerificationTokenRow(Base):
    __tablename__ = "verificationToken"
    __table_args__ = (PrimaryKeyConstraint("identifier", "token"),)

    identifier = Column(String(255), nullable=False)
    token = Column(String(255), nullable=False)
    expires = Column(DateTime(timezone=True), nullable=False)


class PostRow(Base):
    __tablename__ = "posts"

    id = Column(String(255), primary_key=True)
    created_at = Column("createdAt", DateTime(timezone=True), default=utcnow)
    updated_at = Column(
        "updatedAt", DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )
    user_id = Column("userId", String(255), nullable=False, index=True)
    type = Column(
        Enum(PostType, name="post_type", native_enum=False, length=16),
        nullable=False,
    )
    image = Column(String(255), nullable=False)
