from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from postapi.database import get_db
from postapi.dependencies import PaginationParams, get_identity
from postapi.schemas import (
    CommentView,
    ExistsResponse,
    PostView,
    TokenResponse,
    UserLogin,
    UserResponse,
    UserSignup,
    UserUpdate,
)
from postapi.security import IdentityClaim
from postapi.services import feed_service, user_service

router = APIRouter(prefix="/api/v1/users", tags=["users"])

@router.get("", response_model=list[UserResponse])
async def list_users(db: AsyncSession = Depends(get_db)):
    return await user_service.get_users(db)

@router.post("/signup", status_code=201, response_model=TokenResponse)
async def signup(data: UserSignup, db: AsyncSession = Depends(get_db)):
    try:
        token, user = await user_service.signup(db, data)
    except IntegrityError:
        raise HTTPException(
            status_code=409,
            detail="A user with this username or email already exists",
        )
    return TokenResponse(token=token, user=user)

@router.post("/login", response_model=TokenResponse)
async def login(data: UserLogin, db: AsyncSession = Depends(get_db)):
    result = await user_service.login(db, data)
    if result is None:
        raise HTTPException(status_code=400, detail="Wrong username or password")
    token, user = result
    return TokenResponse(token=token, user=user)

@router.get("/validate/username/{username}", response_model=ExistsResponse)
async def validate_username(username: str, db: AsyncSession = Depends(get_db)):
    return ExistsResponse(exists=await user_service.username_exists(db, username))

@router.get("/validate/email/{email}", response_model=ExistsResponse)
async def validate_email(email: str, db: AsyncSession = Depends(get_db)):
    return ExistsResponse(exists=await user_service.email_exists(db, email))

@router.get("/id/{user_id}", response_model=UserResponse)
async def get_user_by_id(
    user_id: int,
    claim: IdentityClaim = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.get_user_by_id(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user

@router.get("/{username}", response_model=UserResponse)
async def get_user_by_username(username: str, db: AsyncSession = Depends(get_db)):
    user = await user_service.get_user_by_username(db, username)
    if not user:
        raise HTTPException(status_code=404, detail=f"The user {username} does not exist")
    return user

@router.get("/{username}/posts", response_model=list[PostView])
async def list_user_posts(username: str, db: AsyncSession = Depends(get_db)):
    if not await user_service.username_exists(db, username):
        raise HTTPException(status_code=404, detail=f"The user {username} does not exist")
    return await feed_service.list_posts_by_username(db, username.lower())

@router.get("/{username}/comments", response_model=list[CommentView])
async def list_user_comments(
    username: str,
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    if not await user_service.username_exists(db, username):
        raise HTTPException(status_code=404, detail=f"The user {username} does not exist")
    return await feed_service.list_comments_by_username(
        db, pagination.page, pagination.page_size, username.lower()
    )

@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    data: UserUpdate,
    claim: IdentityClaim = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    try:
        user = await user_service.update_user(db, user_id, claim, data)
    except IntegrityError:
        raise HTTPException(status_code=409, detail="This email is already in use")
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user

@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: int,
    claim: IdentityClaim = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    deleted = await user_service.delete_user(db, user_id, claim)
    if not deleted:
        raise HTTPException(status_code=404, detail="User not found")
