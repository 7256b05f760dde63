"""Pydantic schemas for `User` domain objects."""

import re
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.models.post import MediaType
from app.schemas.common import CamelModel, Pagination


USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]{3,30}$")
PHONE_PATTERN = re.compile(r"^\+?\d{8,15}$")
URL_PATTERN = re.compile(r"^https?://[^\s/$.?#].[^\s]*$", re.IGNORECASE)


class UserCreate(CamelModel):
	username: str
	email: EmailStr
	password: str = Field(..., min_length=6, max_length=128)
	first_name: Optional[str] = Field(None, max_length=50)
	last_name: Optional[str] = Field(None, max_length=50)

	@field_validator("username")
	@classmethod
	def validate_username(cls, v: str) -> str:
		if not USERNAME_PATTERN.match(v):
			raise ValueError("Username must be 3-30 letters, digits or underscores")
		return v

	@field_validator("email")
	@classmethod
	def normalize_email(cls, v: str) -> str:
		return v.lower()

	model_config = ConfigDict(json_schema_extra={
		"example": {
			"username": "jane_doe",
			"email": "jane@example.com",
			"password": "StrongPass!234",
			"firstName": "Jane",
			"lastName": "Doe",
		}
	})


class UserUpdate(CamelModel):
	first_name: Optional[str] = Field(None, max_length=50)
	last_name: Optional[str] = Field(None, max_length=50)
	bio: Optional[str] = Field(None, max_length=500)
	website: Optional[str] = None
	phone: Optional[str] = None
	is_private: Optional[bool] = None

	@field_validator("website")
	@classmethod
	def validate_website(cls, v: Optional[str]) -> Optional[str]:
		if v is None:
			return v
		if not URL_PATTERN.match(v):
			raise ValueError("Please provide a valid website URL")
		return v

	@field_validator("phone")
	@classmethod
	def validate_phone(cls, v: Optional[str]) -> Optional[str]:
		if v is None:
			return v
		if not PHONE_PATTERN.match(v):
			raise ValueError("Phone must be 8-15 digits, optional leading '+'")
		return v


class UserSummary(CamelModel):
	"""Public card embedded in posts, comments, messages and listings."""
	id: int
	username: str
	first_name: Optional[str] = None
	last_name: Optional[str] = None
	profile_picture: Optional[str] = None
	is_verified: bool = False


class UserResponse(UserSummary):
	email: str
	bio: Optional[str] = None
	website: Optional[str] = None
	phone: Optional[str] = None
	is_private: bool
	is_active: bool
	created_at: Optional[datetime] = None


class ProfilePost(CamelModel):
	id: int
	caption: Optional[str] = None
	media_url: Optional[str] = None
	media_type: Optional[MediaType] = None
	likes_count: int
	comments_count: int
	created_at: Optional[datetime] = None


class UserProfileResponse(UserSummary):
	bio: Optional[str] = None
	website: Optional[str] = None
	is_private: bool
	created_at: Optional[datetime] = None
	followers_count: int
	following_count: int
	posts_count: int
	is_following: bool
	follow_status: Optional[str] = None
	can_view_posts: bool
	posts: List[ProfilePost] = []


class UserListResponse(CamelModel):
	users: List[UserSummary]
	pagination: Pagination


class SuggestedUsersResponse(CamelModel):
	users: List[UserSummary]


class OnlineUsersResponse(CamelModel):
	user_ids: List[int]


class ProfileUpdateResponse(CamelModel):
	message: str
	user: UserResponse


class TokenResponse(BaseModel):
	"""OAuth2-compatible token body (kept snake_case for OAuth2 clients)."""
	access_token: str
	token_type: str = "bearer"
	user: UserResponse
