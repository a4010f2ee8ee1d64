"""
Post service: creation and owner-checked edits of posts.

Deletion lives in ``cascade_service`` because it must take the post's
comment tree with it; reads live in ``feed_service``.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from postapi.cache import cache
from postapi.exceptions import UnauthorizedError
from postapi.models import Post
from postapi.schemas import PostCreate, PostUpdate, PostView
from postapi.security import IdentityClaim, authorize
from postapi.services import feed_service

logger = logging.getLogger(__name__)


async def create_post(db: AsyncSession, claim: IdentityClaim, data: PostCreate) -> PostView:
    """Create a post owned by the caller and return its enriched view."""
    post = Post(user_id=claim.subject_id, content=data.content)
    db.add(post)
    await db.flush()

    await cache.invalidate_posts(db)
    return await feed_service.get_post_view(db, post.id)


async def update_post(
    db: AsyncSession, post_id: int, claim: IdentityClaim, data: PostUpdate
) -> PostView | None:
    """
    Replace the content of *post_id*.

    Returns None when the post does not exist; raises ``UnauthorizedError``
    when the caller is neither the owner nor an admin.
    """
    post = await db.get(Post, post_id)
    if post is None:
        return None

    if not authorize(claim, post.user_id):
        logger.warning("Denied update of post %s for user_id=%s", post_id, claim.subject_id)
        raise UnauthorizedError()

    post.content = data.content
    post.modified_at = datetime.now(timezone.utc)
    await db.flush()

    await cache.invalidate_posts(db)
    return await feed_service.get_post_view(db, post_id)
