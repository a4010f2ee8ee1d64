"""
Feed service: read-only, author-enriched views of posts and comments.

Design notes
------------
- Every view is built from a LEFT OUTER JOIN of the post/comment row onto
  ``users`` by owner id.  A missing author row (deleted user, orphaned
  data) never drops the item; the view carries
  ``settings.MISSING_PROFILE_PICTURE`` in place of the profile picture.
- Ordering is always ``created_at DESC, id DESC`` and is applied in SQL
  before OFFSET/LIMIT, so consecutive pages are disjoint.
- Username filters are applied to the joined ``users.username`` column,
  i.e. after the join.
- Only the global post feed is cached (see ``postapi.cache``).
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from postapi.cache import cache, post_list_key
from postapi.config import settings
from postapi.models import Comment, Post, User
from postapi.schemas import CommentView, PostView


# ---------------------------------------------------------------------------
# Row -> view mapping
# ---------------------------------------------------------------------------

def _profile_picture(author: User | None) -> str | None:
    if author is None:
        return settings.MISSING_PROFILE_PICTURE
    return author.profile_picture


def _post_view(post: Post, author: User | None) -> PostView:
    return PostView(
        id=post.id,
        user_id=post.user_id,
        author=author.username if author else None,
        first_name=author.first_name if author else None,
        last_name=author.last_name if author else None,
        profile_picture=_profile_picture(author),
        content=post.content,
        created_at=post.created_at,
        modified_at=post.modified_at,
    )


def _comment_view(comment: Comment, author: User | None) -> CommentView:
    return CommentView(
        id=comment.id,
        post_id=comment.post_id,
        parent_comment_id=comment.parent_comment_id,
        user_id=comment.user_id,
        author=author.username if author else None,
        first_name=author.first_name if author else None,
        last_name=author.last_name if author else None,
        profile_picture=_profile_picture(author),
        content=comment.content,
        created_at=comment.created_at,
        modified_at=comment.modified_at,
    )


def _post_join_query():
    return (
        select(Post, User)
        .outerjoin(User, User.id == Post.user_id)
        .order_by(Post.created_at.desc(), Post.id.desc())
    )


def _comment_join_query():
    return (
        select(Comment, User)
        .outerjoin(User, User.id == Comment.user_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    )


def _offset(page: int, page_size: int) -> int:
    return (page - 1) * page_size


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------

async def list_posts(db: AsyncSession, page: int = 1, page_size: int = 20) -> list[PostView]:
    """
    Return one page of the global post feed, newest first.

    *page* is 1-based; ``(page - 1) * page_size`` rows are skipped.
    Pages are cached in Redis for ``settings.CACHE_TTL_LIST`` seconds.
    """
    cache_key = post_list_key(page, page_size)
    cached = await cache.get(cache_key)
    if cached:
        return [PostView(**item) for item in cached]

    q = _post_join_query().offset(_offset(page, page_size)).limit(page_size)
    result = await db.execute(q)
    views = [_post_view(post, author) for post, author in result.all()]

    await cache.set(
        cache_key,
        [v.model_dump(mode="json") for v in views],
        ttl=settings.CACHE_TTL_LIST,
    )
    return views


async def list_posts_by_username(db: AsyncSession, username: str) -> list[PostView]:
    """All posts whose joined author is *username*, newest first."""
    q = _post_join_query().where(User.username == username)
    result = await db.execute(q)
    return [_post_view(post, author) for post, author in result.all()]


async def get_post_view(db: AsyncSession, post_id: int) -> PostView | None:
    q = _post_join_query().where(Post.id == post_id)
    row = (await db.execute(q)).first()
    if row is None:
        return None
    post, author = row
    return _post_view(post, author)


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------

async def list_comments_by_username(
    db: AsyncSession, page: int, page_size: int, username: str
) -> list[CommentView]:
    q = (
        _comment_join_query()
        .where(User.username == username)
        .offset(_offset(page, page_size))
        .limit(page_size)
    )
    result = await db.execute(q)
    return [_comment_view(comment, author) for comment, author in result.all()]


async def list_comments_for_post(db: AsyncSession, post_id: int) -> list[CommentView]:
    """Every comment of *post_id* at any nesting depth, newest first (flat)."""
    q = _comment_join_query().where(Comment.post_id == post_id)
    result = await db.execute(q)
    return [_comment_view(comment, author) for comment, author in result.all()]


async def get_comment_view(db: AsyncSession, comment_id: int) -> CommentView | None:
    q = _comment_join_query().where(Comment.id == comment_id)
    row = (await db.execute(q)).first()
    if row is None:
        return None
    comment, author = row
    return _comment_view(comment, author)
