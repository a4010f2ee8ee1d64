"""
Comment service: creating and editing comments inside a post's tree.

A comment may only be attached to an existing post and, when it is a
reply, to an existing comment of that same post.  Removal is handled by
``cascade_service``.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from postapi.exceptions import NotFoundError, UnauthorizedError
from postapi.models import Comment, Post
from postapi.schemas import CommentCreate, CommentUpdate, CommentView
from postapi.security import IdentityClaim, authorize
from postapi.services import feed_service

logger = logging.getLogger(__name__)


async def create_comment(
    db: AsyncSession,
    claim: IdentityClaim,
    post_id: int,
    data: CommentCreate,
) -> CommentView:
    if await db.get(Post, post_id) is None:
        raise NotFoundError("Post not found")

    if data.parent_comment_id is not None:
        parent = await db.get(Comment, data.parent_comment_id)
        if parent is None or parent.post_id != post_id:
            raise NotFoundError("Parent comment not found on this post")

    comment = Comment(
        content=data.content,
        user_id=claim.subject_id,
        post_id=post_id,
        parent_comment_id=data.parent_comment_id,
    )
    db.add(comment)
    await db.flush()
    return await feed_service.get_comment_view(db, comment.id)


async def update_comment(
    db: AsyncSession, comment_id: int, claim: IdentityClaim, data: CommentUpdate
) -> CommentView | None:
    """Owner or admin only; None when the comment does not exist."""
    comment = await db.get(Comment, comment_id)
    if comment is None:
        return None

    if not authorize(claim, comment.user_id):
        logger.warning(
            "Denied update of comment %s for user_id=%s", comment_id, claim.subject_id
        )
        raise UnauthorizedError()

    comment.content = data.content
    comment.modified_at = datetime.now(timezone.utc)
    await db.flush()
    return await feed_service.get_comment_view(db, comment_id)
