"""Generic CRUD base class for SQLAlchemy models."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, Tuple, Type, TypeVar, Union

from pydantic import BaseModel
from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from app.database import Base


ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)


class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
	"""Reusable CRUD helper for SQLAlchemy models.

	All methods operate on model instances and return database objects, not schemas.
	"""

	def __init__(self, model: Type[ModelType]):
		self.model = model

	# ----- Read -----
	def get(self, db: Session, id: Any) -> Optional[ModelType]:
		"""Get one record by primary key."""
		return db.get(self.model, id)

	def paginate(self, db: Session, stmt: Select, *, page: int = 1, limit: int = 20) -> Tuple[List[Any], int]:
		"""Run an ordered select for one 1-based page.

		Returns:
			(rows on the page, total rows matching the statement)
		"""
		count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
		total = db.scalar(count_stmt) or 0
		rows = db.scalars(stmt.offset((page - 1) * limit).limit(limit)).all()
		return list(rows), total

	# ----- Update -----
	def update(
		self,
		db: Session,
		*,
		db_obj: ModelType,
		obj_in: Union[UpdateSchemaType, Dict[str, Any]],
	) -> ModelType:
		"""Update a record with fields from a Pydantic schema or dict."""
		update_data = obj_in.model_dump(exclude_unset=True) if isinstance(obj_in, BaseModel) else dict(obj_in)

		for field, value in update_data.items():
			if hasattr(db_obj, field):
				setattr(db_obj, field, value)

		try:
			db.add(db_obj)
			db.commit()
			db.refresh(db_obj)
		except Exception:
			db.rollback()
			raise
		return db_obj

	# ----- Delete -----
	def delete(self, db: Session, *, id: Any) -> Optional[ModelType]:
		"""Delete a record.

		Soft-deletes when the model has an `is_deleted` flag; otherwise hard delete.
		Returns the affected object (or None if not found).
		"""
		db_obj = self.get(db, id)
		if not db_obj:
			return None

		soft = hasattr(db_obj, "is_deleted")
		try:
			if soft:
				db_obj.is_deleted = True
				if hasattr(db_obj, "deleted_at"):
					db_obj.deleted_at = datetime.utcnow()
				db.add(db_obj)
			else:
				db.delete(db_obj)
			db.commit()
			if soft:
				db.refresh(db_obj)
		except Exception:
			db.rollback()
			raise
		return db_obj
