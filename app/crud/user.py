"""CRUD operations for `User` model."""

from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictException
from app.core.security import get_password_hash, verify_password
from app.crud.base import CRUDBase
from app.models.follow import Follow
from app.models.user import User
from app.schemas.user import UserCreate, UserUpdate


class CRUDUser(CRUDBase[User, UserCreate, UserUpdate]):
	def get_by_username(self, db: Session, username: str) -> Optional[User]:
		stmt = select(User).where(User.username == username).limit(1)
		return db.scalars(stmt).first()

	def get_by_email(self, db: Session, email: Optional[str]) -> Optional[User]:
		if not email:
			return None
		stmt = select(User).where(User.email == email.strip().lower()).limit(1)
		return db.scalars(stmt).first()

	def get_active(self, db: Session, user_id: int) -> Optional[User]:
		"""Get a user only if the account is active."""
		user = self.get(db, user_id)
		if user is None or not user.is_active:
			return None
		return user

	def create_user(self, db: Session, *, user_in: UserCreate) -> User:
		user_data = user_in.model_dump(exclude_unset=True)
		raw_password = user_data.pop("password")
		user_data["password_hash"] = get_password_hash(raw_password)

		db_obj = User(**user_data)
		try:
			db.add(db_obj)
			db.commit()
		except IntegrityError as e:
			# Lost a race with a concurrent registration of the same name/email
			db.rollback()
			raise ConflictException("Username or email already taken") from e
		except Exception:
			db.rollback()
			raise
		db.refresh(db_obj)
		return db_obj

	def authenticate(self, db: Session, *, login: str, password: str) -> Optional[User]:
		"""Authenticate by username or email."""
		user = self.get_by_username(db, login) or self.get_by_email(db, login)
		if not user:
			return None
		if not verify_password(password, user.password_hash):
			return None
		return user

	def search(
		self,
		db: Session,
		*,
		query: str,
		exclude_user_id: int,
		page: int = 1,
		limit: int = 20,
	) -> Tuple[List[User], int]:
		"""Case-insensitive substring search over username and names.

		`%` and `_` in the query match literally.
		"""
		escaped = query.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
		pattern = f"%{escaped}%"
		stmt = (
			select(User)
			.where(
				or_(
					User.username.ilike(pattern, escape="\\"),
					User.first_name.ilike(pattern, escape="\\"),
					User.last_name.ilike(pattern, escape="\\"),
				),
				User.is_active == True,
				User.id != exclude_user_id,
			)
			.order_by(User.username.asc())
		)
		return self.paginate(db, stmt, page=page, limit=limit)

	def get_suggested(self, db: Session, *, user_id: int, limit: int = 5) -> List[User]:
		"""Active users the given user has no follow edge to, newest first."""
		followed = select(Follow.following_id).where(Follow.follower_id == user_id)
		stmt = (
			select(User)
			.where(
				User.id.not_in(followed),
				User.id != user_id,
				User.is_active == True,
			)
			.order_by(User.created_at.desc(), User.id.desc())
			.limit(limit)
		)
		return list(db.scalars(stmt).all())


# Singleton instance
crud_user = CRUDUser(User)
