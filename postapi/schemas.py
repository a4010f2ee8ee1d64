from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


# --- User ---

class UserSignup(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: str = Field(max_length=255)
    password: str = Field(min_length=8, max_length=128)
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    bio: str | None = None
    status: str | None = Field(None, max_length=150)
    profile_picture: str | None = Field(None, max_length=500)


class UserLogin(BaseModel):
    username: str
    password: str


class UserUpdate(BaseModel):
    email: str | None = Field(None, max_length=255)
    password: str | None = Field(None, min_length=8, max_length=128)
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    bio: str | None = None
    status: str | None = Field(None, max_length=150)
    profile_picture: str | None = Field(None, max_length=500)


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    role: str
    first_name: str | None = None
    last_name: str | None = None
    bio: str | None = None
    status: str | None = None
    profile_picture: str | None = None
    created_at: datetime
    last_login: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class UserLimited(BaseModel):
    """The slice of a user returned alongside a fresh token."""

    id: int
    username: str
    profile_picture: str | None = None
    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    token: str
    user: UserLimited


class ExistsResponse(BaseModel):
    exists: bool


# --- Post ---

class PostCreate(BaseModel):
    content: str = Field(min_length=1)


class PostUpdate(BaseModel):
    content: str = Field(min_length=1)


class PostView(BaseModel):
    """A post joined with whatever is left of its author."""

    id: int
    user_id: int | None
    author: str | None
    first_name: str | None
    last_name: str | None
    profile_picture: str | None
    content: str
    created_at: datetime
    modified_at: datetime | None


# --- Comment ---

class CommentCreate(BaseModel):
    content: str = Field(min_length=1)
    parent_comment_id: int | None = None


class CommentUpdate(BaseModel):
    content: str = Field(min_length=1)


class CommentView(BaseModel):
    id: int
    post_id: int
    parent_comment_id: int | None
    user_id: int | None
    author: str | None
    first_name: str | None
    last_name: str | None
    profile_picture: str | None
    content: str
    created_at: datetime
    modified_at: datetime | None
