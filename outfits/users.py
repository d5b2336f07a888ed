"""
Public profiles and the signed-in user's own profile.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from outfits.db import Database, UserRow
from outfits.errors import ConflictError, InternalError, NotFoundError, ValidationError
from outfits.queue import CleanupQueue, schedule_cleanup
from outfits.records import UserRecord
from outfits.storage import StorageClient, image_key, new_image_id

logger = logging.getLogger(__name__)

RESERVED_USERNAMES = frozenset({"login", "settings", "onboarding"})
RESERVED_USERNAME_PREFIX = "api/"
MIN_USERNAME_LENGTH = 3


def is_valid_username(username: str) -> bool:
    return not (
        username in RESERVED_USERNAMES
        or username.startswith(RESERVED_USERNAME_PREFIX)
        or len(username) < MIN_USERNAME_LENGTH
    )


class UserService:
    def __init__(
        self,
        db: Database,
        storage: StorageClient,
        cleanup: CleanupQueue,
        upload_url_expires_in: int = 30,
    ):
        self.db = db
        self.storage = storage
        self.cleanup = cleanup
        self.upload_url_expires_in = upload_url_expires_in

    def profile_exists(self, username: str) -> bool:
        with self.db.Session() as session:
            found = session.execute(
                select(UserRow.id).where(UserRow.username == username)
            ).first()
            return found is not None

    def get_me(self, user_id: str) -> UserRecord:
        """
        Return the caller's profile as stored, then mark them onboarded.

        The first call still reports ``onboarded=False`` so the client can
        route the user through onboarding once.
        """
        with self.db.transaction() as session:
            row = session.get(UserRow, user_id)
            if row is None:
                raise NotFoundError("User not found")
            record = UserRecord.from_row(row)
            if not row.onboarded:
                row.onboarded = True
        return record

    def get_profile(self, username: str) -> UserRecord:
        with self.db.Session() as session:
            row = session.execute(
                select(UserRow).where(UserRow.username == username)
            ).scalar_one_or_none()
            if row is None:
                raise NotFoundError("User not found")
            return UserRecord.from_row(row)

    def edit_profile(
        self,
        user_id: str,
        name: Optional[str] = None,
        username: Optional[str] = None,
    ) -> dict:
        if username and not is_valid_username(username):
            raise ValidationError("Invalid username")

        values = {}
        if name:
            values["name"] = name
        if username:
            values["username"] = username
        if not values:
            return {"username": username}

        try:
            with self.db.transaction() as session:
                session.execute(
                    update(UserRow).where(UserRow.id == user_id).values(**values)
                )
        except IntegrityError:
            raise ConflictError("Email or username already exists")
        except SQLAlchemyError:
            logger.exception("Failed to edit profile for user %s", user_id)
            raise InternalError("Something went wrong")
        return {"username": username}

    def set_image(self, user_id: str) -> str:
        """Point the user at a new image id and return its upload URL."""
        image_id = new_image_id(user_id)
        try:
            upload_url = self.storage.presign_put(
                image_key(user_id, image_id), expires_in=self.upload_url_expires_in
            )
        except Exception:
            logger.exception("Failed to sign profile image upload for user %s", user_id)
            raise ValidationError("Invalid image!")

        previous = self._swap_image(user_id, image_id)
        if previous:
            schedule_cleanup(self.cleanup, image_key(user_id, previous))
        return upload_url

    def delete_image(self, user_id: str) -> bool:
        previous = self._swap_image(user_id, None)
        if previous:
            schedule_cleanup(self.cleanup, image_key(user_id, previous))
        return True

    def _swap_image(self, user_id: str, image_id: Optional[str]) -> Optional[str]:
        with self.db.transaction() as session:
            row = session.get(UserRow, user_id)
            if row is None:
                raise NotFoundError("User not found")
            previous = row.image
            row.image = image_id
        return previous
