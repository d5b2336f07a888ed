"""
Post creation, deletion and listing.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import and_, delete, select
from sqlalchemy.exc import SQLAlchemyError

from outfits.counters import adjust_post_counters
from outfits.db import Database, PostRow, PostType
from outfits.errors import InternalError, NotFoundError, ValidationError
from outfits.queue import CleanupQueue, schedule_cleanup
from outfits.records import PostRecord
from outfits.storage import StorageClient, image_key, new_image_id

logger = logging.getLogger(__name__)

RECENT_POSTS_LIMIT = 20


class _PostNotCreated(Exception):
    pass


@dataclass
class CreatedPost:
    post: PostRecord
    upload_url: str


class PostService:
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

    def create_post(self, user_id: str, post_type: PostType) -> CreatedPost:
        """
        Create a post and return it with a short-lived upload URL.

        The post row and the owner's counters are written in one transaction.
        If that transaction fails the signed URL is simply left to expire.
        """
        post_type = PostType(post_type)
        image_id = new_image_id(user_id)
        try:
            upload_url = self.storage.presign_put(
                image_key(user_id, image_id), expires_in=self.upload_url_expires_in
            )
        except Exception:
            logger.exception("Failed to sign upload for user %s", user_id)
            raise ValidationError("Invalid image!")

        row = PostRow(
            id=str(uuid.uuid4()),
            user_id=user_id,
            type=post_type,
            image=image_id,
        )
        try:
            with self.db.transaction() as session:
                session.add(row)
                session.flush()
                if not adjust_post_counters(session, user_id, post_type, 1):
                    raise _PostNotCreated(f"no user row for {user_id}")
        except (SQLAlchemyError, _PostNotCreated):
            logger.exception("Failed to create %s post for user %s", post_type.value, user_id)
            raise InternalError("Failed to create post!")

        logger.info("User %s created %s post %s", user_id, post_type.value, row.id)
        return CreatedPost(post=PostRecord.from_row(row), upload_url=upload_url)

    def delete_post(self, user_id: str, post_id: str) -> bool:
        owned = and_(PostRow.id == post_id, PostRow.user_id == user_id)
        with self.db.transaction() as session:
            row = session.execute(select(PostRow).where(owned)).scalar_one_or_none()
            # Someone else's post looks the same as a missing one.
            if row is None:
                raise NotFoundError("Invalid post!")
            image_id = row.image
            adjust_post_counters(session, user_id, PostType(row.type), -1)
            session.execute(
                delete(PostRow)
                .where(owned)
                .execution_options(synchronize_session=False)
            )

        schedule_cleanup(self.cleanup, image_key(user_id, image_id))
        logger.info("User %s deleted post %s", user_id, post_id)
        return True

    def get_posts_all_types(self, user_id: str) -> list[PostRecord]:
        with self.db.Session() as session:
            rows = session.execute(
                select(PostRow)
                .where(PostRow.user_id == user_id)
                .order_by(PostRow.created_at.desc(), PostRow.id.desc())
                .limit(RECENT_POSTS_LIMIT)
            ).scalars()
            return [PostRecord.from_row(row) for row in rows]
