"""Shared pydantic building blocks: camelCase base model and pagination."""

import math

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema exposing camelCase keys while accepting snake_case names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Pagination(CamelModel):
    """Pagination block returned by every list endpoint."""
    total: int
    page: int
    pages: int
    has_more: bool

    @classmethod
    def build(cls, *, total: int, page: int, limit: int, returned: int) -> "Pagination":
        offset = (page - 1) * limit
        return cls(
            total=total,
            page=page,
            pages=math.ceil(total / limit) if limit else 0,
            has_more=total > offset + returned,
        )


class MessageOnlyResponse(CamelModel):
    """Plain acknowledgement body."""
    message: str