"""
Cascade service: ownership-checked removal of posts and comment subtrees.

Design notes
------------
- A delete first loads its target.  An absent target returns ``False``
  ("not found / nothing to do"), which the router reports as 404.  A
  caller that fails ``authorize`` gets ``UnauthorizedError`` instead, so
  the two outcomes never look alike.  A store error while loading the
  target is a ``StoreFailureError`` like any later one.
- The removal set is collected before anything is deleted: for a post,
  every comment carrying its ``post_id`` plus anything reachable from those
  via ``parent_comment_id``; for a comment, the comment and all of its
  descendants.  Traversal keeps a visited set and so terminates even if
  the stored parent links form a cycle.
- The bulk DELETEs and the commit form one unit of work.  Any
  ``SQLAlchemyError`` rolls the whole session transaction back and is
  re-raised as ``StoreFailureError``; nothing is ever half-deleted.
- Concurrent deletes of overlapping trees may race.  The loser sees
  either an absent target or a zero row count and returns ``False``.
"""
import logging
from collections import deque
from collections.abc import Iterable

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from postapi.cache import cache
from postapi.exceptions import StoreFailureError, UnauthorizedError
from postapi.models import Comment, Post
from postapi.security import IdentityClaim, authorize

logger = logging.getLogger(__name__)


async def collect_comment_subtree(db: AsyncSession, root_ids: Iterable[int]) -> set[int]:
    """
    Return *root_ids* together with the ids of every reply nested under them.

    Breadth-first, one ``SELECT ... WHERE parent_comment_id IN (...)`` per
    level.  Ids already seen are never queued again.
    """
    visited: set[int] = set(root_ids)
    frontier = deque([list(visited)]) if visited else deque()

    while frontier:
        level = frontier.popleft()
        result = await db.execute(
            select(Comment.id).where(Comment.parent_comment_id.in_(level))
        )
        discovered = [cid for cid in result.scalars().all() if cid not in visited]
        if discovered:
            visited.update(discovered)
            frontier.append(discovered)

    return visited


async def _post_removal_set(db: AsyncSession, post_id: int) -> set[int]:
    result = await db.execute(select(Comment.id).where(Comment.post_id == post_id))
    return await collect_comment_subtree(db, result.scalars().all())


def _check_permission(claim: IdentityClaim, owner_id: int | None, what: str) -> None:
    if not authorize(claim, owner_id):
        logger.warning(
            "Denied delete of %s for user_id=%s role=%s (owner_id=%s)",
            what, claim.subject_id, claim.role, owner_id,
        )
        raise UnauthorizedError()


async def _load_target(db: AsyncSession, model, target_id: int, what: str):
    try:
        return await db.get(model, target_id)
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Loading %s failed: %s", what, exc)
        raise StoreFailureError() from exc


async def _commit_or_fail(db: AsyncSession, what: str) -> None:
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Commit failed while deleting %s: %s", what, exc)
        raise StoreFailureError() from exc


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def delete_post(db: AsyncSession, post_id: int, claim: IdentityClaim) -> bool:
    """
    Delete post *post_id* and every comment under it, atomically.

    Returns True when rows were removed, False when the post does not exist
    (or vanished concurrently).  Raises ``UnauthorizedError`` when *claim*
    neither owns the post nor is an admin, and ``StoreFailureError`` when the
    store fails mid-way (after rolling back).
    """
    what = f"post {post_id}"
    post = await _load_target(db, Post, post_id, what)
    if post is None:
        return False

    _check_permission(claim, post.user_id, what)

    try:
        comment_ids = await _post_removal_set(db, post_id)
        removed = 0
        if comment_ids:
            result = await db.execute(delete(Comment).where(Comment.id.in_(sorted(comment_ids))))
            removed += result.rowcount
        result = await db.execute(delete(Post).where(Post.id == post_id))
        removed += result.rowcount
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Cascade delete of %s rolled back: %s", what, exc)
        raise StoreFailureError() from exc

    await _commit_or_fail(db, what)
    if removed == 0:
        return False

    logger.info("Deleted %s with %d comment(s)", what, len(comment_ids))
    await cache.invalidate_posts()
    return True


async def delete_comment(db: AsyncSession, comment_id: int, claim: IdentityClaim) -> bool:
    """
    Delete comment *comment_id* and all of its replies, atomically.

    The parent post and sibling comments are untouched.  Return values
    and errors follow ``delete_post``.
    """
    what = f"comment {comment_id}"
    comment = await _load_target(db, Comment, comment_id, what)
    if comment is None:
        return False

    _check_permission(claim, comment.user_id, what)

    try:
        comment_ids = await collect_comment_subtree(db, [comment_id])
        result = await db.execute(delete(Comment).where(Comment.id.in_(sorted(comment_ids))))
        removed = result.rowcount
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Cascade delete of %s rolled back: %s", what, exc)
        raise StoreFailureError() from exc

    await _commit_or_fail(db, what)
    if removed == 0:
        return False

    logger.info("Deleted %s with %d descendant(s)", what, len(comment_ids) - 1)
    return True
