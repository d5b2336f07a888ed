"""
Per-category post counters kept on the user row.

Counters are adjusted in the same transaction as the post insert/delete and
can be recomputed from the posts table with ``reconcile_counters``.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import case, func, select, update
from sqlalchemy.orm import Session

from outfits.db import PostRow, PostType, UserRow

logger = logging.getLogger(__name__)

COUNTER_COLUMNS = {
    PostType.OUTFIT: UserRow.outfit_post_count,
    PostType.HOODIE: UserRow.hoodie_post_count,
    PostType.SHIRT: UserRow.shirt_post_count,
    PostType.PANTS: UserRow.pants_post_count,
    PostType.SHOES: UserRow.shoes_post_count,
    PostType.WATCH: UserRow.watch_post_count,
}


def _shifted(column, delta: int):
    # Never below zero, even if the counter already drifted.
    return case((column + delta < 0, 0), else_=column + delta)


def adjust_post_counters(
    session: Session, user_id: str, post_type: PostType, delta: int
) -> int:
    """Shift the category counter and the image counter by ``delta``."""
    column = COUNTER_COLUMNS[PostType(post_type)]
    result = session.execute(
        update(UserRow)
        .where(UserRow.id == user_id)
        .values(
            {
                column: _shifted(column, delta),
                UserRow.image_count: _shifted(UserRow.image_count, delta),
            }
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


def count_posts_by_type(session: Session, user_id: str) -> dict[PostType, int]:
    rows = session.execute(
        select(PostRow.type, func.count(PostRow.id))
        .where(PostRow.user_id == user_id)
        .group_by(PostRow.type)
    ).all()
    counts = {post_type: 0 for post_type in PostType}
    for post_type, count in rows:
        counts[PostType(post_type)] = count
    return counts


def reconcile_counters(session: Session, user_id: Optional[str] = None) -> int:
    """
    Recompute counters from the posts table.

    Returns the number of users whose stored counters were wrong.
    """
    stmt = select(UserRow)
    if user_id is not None:
        stmt = stmt.where(UserRow.id == user_id)

    corrected = 0
    for user in session.execute(stmt).scalars().all():
        counts = count_posts_by_type(session, user.id)
        expected = {
            column.key: counts[post_type]
            for post_type, column in COUNTER_COLUMNS.items()
        }
        expected[UserRow.image_count.key] = sum(counts.values())

        stale = {
            key: value
            for key, value in expected.items()
            if getattr(user, key) != value
        }
        if not stale:
            continue
        logger.warning("Correcting counters for user %s: %s", user.id, stale)
        for key, value in stale.items():
            setattr(user, key, value)
        corrected += 1
    return corrected
