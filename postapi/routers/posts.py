from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from postapi.database import get_db
from postapi.dependencies import PaginationParams, get_identity
from postapi.schemas import CommentCreate, CommentView, PostCreate, PostUpdate, PostView
from postapi.security import IdentityClaim
from postapi.services import cascade_service, comment_service, feed_service, post_service

router = APIRouter(prefix="/api/v1/posts", tags=["posts"])

@router.get("", response_model=list[PostView])
async def list_posts(
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    return await feed_service.list_posts(db, pagination.page, pagination.page_size)

@router.post("", status_code=201, response_model=PostView)
async def create_post(
    data: PostCreate,
    claim: IdentityClaim = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.create_post(db, claim, data)

@router.get("/{post_id}", response_model=PostView)
async def get_post(post_id: int, db: AsyncSession = Depends(get_db)):
    post = await feed_service.get_post_view(db, post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return post

@router.put("/{post_id}", response_model=PostView)
async def update_post(
    post_id: int,
    data: PostUpdate,
    claim: IdentityClaim = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    post = await post_service.update_post(db, post_id, claim, data)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return post

@router.delete("/{post_id}", status_code=204)
async def delete_post(
    post_id: int,
    claim: IdentityClaim = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    deleted = await cascade_service.delete_post(db, post_id, claim)
    if not deleted:
        raise HTTPException(status_code=404, detail="Post not found")

@router.get("/{post_id}/comments", response_model=list[CommentView])
async def list_comments(post_id: int, db: AsyncSession = Depends(get_db)):
    if not await feed_service.get_post_view(db, post_id):
        raise HTTPException(status_code=404, detail="Post not found")
    return await feed_service.list_comments_for_post(db, post_id)

@router.post("/{post_id}/comments", status_code=201, response_model=CommentView)
async def add_comment(
    post_id: int,
    data: CommentCreate,
    claim: IdentityClaim = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.create_comment(db, claim, post_id, data)
