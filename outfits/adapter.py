"""
Persistence adapter for the external authentication library.

Every operation the library needs (users, sessions, linked accounts and
verification tokens) is mapped onto the relational schema. No authentication
logic lives here.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Mapping, Optional

from sqlalchemy import and_, delete, select, update
from sqlalchemy.exc import IntegrityError

from outfits.db import (
    AccountRow,
    Database,
    SessionRow,
    UserRow,
    VerificationTokenRow,
    to_utc,
)
from outfits.errors import ConflictError, NotFoundError, ValidationError
from outfits.records import (
    AccountRecord,
    SessionRecord,
    UserRecord,
    VerificationTokenRecord,
)

logger = logging.getLogger(__name__)

USER_FIELDS = (
    "name",
    "username",
    "email",
    "email_verified",
    "image",
    "onboarded",
)
REQUIRED_USER_FIELDS = ("username", "email")
ACCOUNT_FIELDS = (
    "user_id",
    "type",
    "provider",
    "provider_account_id",
    "refresh_token",
    "access_token",
    "expires_at",
    "token_type",
    "scope",
    "id_token",
    "session_state",
)


def _pick(data: Mapping[str, Any], fields: tuple[str, ...]) -> dict:
    return {key: data[key] for key in fields if key in data}


def _user_values(data: Mapping[str, Any]) -> dict:
    values = _pick(data, USER_FIELDS)
    if "email_verified" in values:
        values["email_verified"] = to_utc(values["email_verified"])
    return values


class SqlAuthAdapter:
    def __init__(self, db: Database):
        self.db = db

    def create_user(self, data: Mapping[str, Any]) -> UserRecord:
        missing = [key for key in REQUIRED_USER_FIELDS if not data.get(key)]
        if missing:
            raise ValidationError(
                f"Missing required user fields: {', '.join(missing)}"
            )
        user_id = str(uuid.uuid4())
        try:
            with self.db.transaction() as session:
                session.add(UserRow(id=user_id, **_user_values(data)))
        except IntegrityError:
            raise ConflictError("Email or username already exists")
        logger.info("Created user %s", user_id)
        return self.get_user(user_id)

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        with self.db.Session() as session:
            row = session.get(UserRow, user_id)
            return UserRecord.from_row(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        with self.db.Session() as session:
            row = session.execute(
                select(UserRow).where(UserRow.email == email)
            ).scalar_one_or_none()
            return UserRecord.from_row(row) if row else None

    def update_user(self, data: Mapping[str, Any]) -> UserRecord:
        user_id = data.get("id")
        if not user_id:
            raise ValidationError("No user id.")
        values = _user_values(data)
        if values:
            try:
                with self.db.transaction() as session:
                    session.execute(
                        update(UserRow).where(UserRow.id == user_id).values(**values)
                    )
            except IntegrityError:
                raise ConflictError("Email or username already exists")
        user = self.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def delete_user(self, user_id: str) -> None:
        # Posts and stored images are intentionally left in place.
        with self.db.transaction() as session:
            session.execute(delete(SessionRow).where(SessionRow.user_id == user_id))
            session.execute(delete(AccountRow).where(AccountRow.user_id == user_id))
            session.execute(delete(UserRow).where(UserRow.id == user_id))
        logger.info("Deleted user %s with its sessions and accounts", user_id)

    def create_session(self, data: Mapping[str, Any]) -> SessionRecord:
        with self.db.transaction() as session:
            session.add(
                SessionRow(
                    session_token=data["session_token"],
                    user_id=data["user_id"],
                    expires=to_utc(data["expires"]),
                )
            )
        return self._get_session(data["session_token"])

    def get_session_and_user(
        self, session_token: str
    ) -> Optional[tuple[SessionRecord, UserRecord]]:
        with self.db.Session() as session:
            result = session.execute(
                select(SessionRow, UserRow)
                .join(UserRow, UserRow.id == SessionRow.user_id)
                .where(SessionRow.session_token == session_token)
            ).first()
            if result is None:
                return None
            session_row, user_row = result
            return SessionRecord.from_row(session_row), UserRecord.from_row(user_row)

    def update_session(self, data: Mapping[str, Any]) -> Optional[SessionRecord]:
        session_token = data["session_token"]
        values = _pick(data, ("user_id", "expires"))
        if "expires" in values:
            values["expires"] = to_utc(values["expires"])
        if values:
            with self.db.transaction() as session:
                session.execute(
                    update(SessionRow)
                    .where(SessionRow.session_token == session_token)
                    .values(**values)
                )
        return self._get_session(session_token)

    def delete_session(self, session_token: str) -> None:
        with self.db.transaction() as session:
            session.execute(
                delete(SessionRow).where(SessionRow.session_token == session_token)
            )

    def _get_session(self, session_token: str) -> Optional[SessionRecord]:
        with self.db.Session() as session:
            row = session.get(SessionRow, session_token)
            return SessionRecord.from_row(row) if row else None

    def link_account(self, data: Mapping[str, Any]) -> AccountRecord:
        with self.db.transaction() as session:
            row = AccountRow(**_pick(data, ACCOUNT_FIELDS))
            session.add(row)
        return AccountRecord.from_row(row)

    def unlink_account(self, provider: str, provider_account_id: str) -> None:
        with self.db.transaction() as session:
            session.execute(
                delete(AccountRow).where(
                    _account_key(provider, provider_account_id)
                )
            )

    def get_user_by_account(
        self, provider: str, provider_account_id: str
    ) -> Optional[UserRecord]:
        with self.db.Session() as session:
            result = session.execute(
                select(AccountRow, UserRow)
                .outerjoin(UserRow, AccountRow.user_id == UserRow.id)
                .where(_account_key(provider, provider_account_id))
            ).first()
            if result is None or result[1] is None:
                return None
            return UserRecord.from_row(result[1])

    def create_verification_token(
        self, data: Mapping[str, Any]
    ) -> VerificationTokenRecord:
        with self.db.transaction() as session:
            session.add(
                VerificationTokenRow(
                    identifier=data["identifier"],
                    token=data["token"],
                    expires=to_utc(data["expires"]),
                )
            )
        with self.db.Session() as session:
            row = session.get(
                VerificationTokenRow, (data["identifier"], data["token"])
            )
            return VerificationTokenRecord.from_row(row)

    def use_verification_token(
        self, identifier: str, token: str
    ) -> VerificationTokenRecord:
        """
        Consume a verification token.

        The row is read and deleted in one transaction and the delete is
        conditional on the same key, so only one caller can observe a
        successful consumption.
        """
        key = and_(
            VerificationTokenRow.identifier == identifier,
            VerificationTokenRow.token == token,
        )
        with self.db.transaction() as session:
            row = session.execute(
                select(VerificationTokenRow).where(key)
            ).scalar_one_or_none()
            if row is None:
                raise NotFoundError("No verification token found.")
            record = VerificationTokenRecord.from_row(row)
            deleted = session.execute(delete(VerificationTokenRow).where(key))
            if deleted.rowcount != 1:
                raise NotFoundError("No verification token found.")
        return record


def _account_key(provider: str, provider_account_id: str):
    return and_(
        AccountRow.provider == provider,
        AccountRow.provider_account_id == provider_account_id,
    )
