from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from postapi.database import get_db
from postapi.dependencies import get_identity
from postapi.schemas import CommentUpdate, CommentView
from postapi.security import IdentityClaim
from postapi.services import cascade_service, comment_service, feed_service

router = APIRouter(prefix="/api/v1/comments", tags=["comments"])

@router.get("/{comment_id}", response_model=CommentView)
async def get_comment(comment_id: int, db: AsyncSession = Depends(get_db)):
    comment = await feed_service.get_comment_view(db, comment_id)
    if not comment:
        raise HTTPException(status_code=404, detail="Comment not found")
    return comment

@router.put("/{comment_id}", response_model=CommentView)
async def update_comment(
    comment_id: int,
    data: CommentUpdate,
    claim: IdentityClaim = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    comment = await comment_service.update_comment(db, comment_id, claim, data)
    if not comment:
        raise HTTPException(status_code=404, detail="Comment not found")
    return comment

@router.delete("/{comment_id}", status_code=204)
async def delete_comment(
    comment_id: int,
    claim: IdentityClaim = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    deleted = await cascade_service.delete_comment(db, comment_id, claim)
    if not deleted:
        raise HTTPException(status_code=404, detail="Comment not found")
