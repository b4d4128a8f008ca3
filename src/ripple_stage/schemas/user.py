"""User-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RegisterRequest(BaseModel):
    """Schema for account registration."""

    username: str = Field(..., description="Lowercase letters, digits and underscores, at most 24 characters")
    email: EmailStr
    password: str = Field(..., description="At least 8 characters with a letter and a digit")


class LoginRequest(BaseModel):
    """Schema for login submissions."""

    login: str = Field(..., description="Username or email")
    password: str


class TokenResponse(BaseModel):
    """Response returned after successful login."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field("bearer", description="Token type")
    user: UserOut


class UserOut(BaseModel):
    """Account details visible to the account owner."""

    id: int
    username: str
    email: str
    avatar: str | None = None
    bio: str | None = None
    location: str | None = None
    website: str | None = None

    model_config = ConfigDict(from_attributes=True)


class UserSummary(BaseModel):
    """Row in user lists and search results."""

    id: int
    username: str
    avatar: str | None = None
    bio: str = ""
    is_following: bool = False


class ProfileResponse(BaseModel):
    """Public profile with follow counts."""

    id: int
    username: str
    avatar: str | None = None
    bio: str | None = None
    location: str | None = None
    website: str | None = None
    followers: int
    following: int
    is_following: bool
    created_at: datetime


class PasswordChangeRequest(BaseModel):
    """Current and new password for a password change."""

    current_password: str
    new_password: str


class ProfileUpdateRequest(BaseModel):
    """Partial update of profile fields."""

    bio: str | None = Field(None, max_length=500)
    location: str | None = Field(None, max_length=100)
    website: str | None = Field(None, max_length=200)
    avatar: str | None = Field(None, description="URL or storage key of an uploaded avatar")


class AvatarUploadRequest(BaseModel):
    """MIME type of the image about to be uploaded as an avatar."""

    content_type: str = Field(..., description="image/jpeg, image/png or image/webp")


class AvatarUploadResponse(BaseModel):
    upload_url: str
    public_url: str
    storage_key: str


class AvatarUpdateRequest(BaseModel):
    """Storage key of an uploaded avatar."""

    key: str


class AvatarUpdateResponse(BaseModel):
    success: bool = True
    avatar: str


class UserList(BaseModel):
    """Envelope for following/followers lists."""

    users: list[UserSummary]


class TargetStats(BaseModel):
    followers: int
    following: int
    is_following: bool


class CurrentStats(BaseModel):
    followers: int
    following: int


class FollowStats(BaseModel):
    target: TargetStats
    current: CurrentStats


class FollowResponse(BaseModel):
    """Result of toggling a follow."""

    success: bool = True
    is_following: bool
    stats: FollowStats


class MentionValidationRequest(BaseModel):
    """Usernames to check before creating a post or comment."""

    usernames: list[str]


TokenResponse.model_rebuild()
