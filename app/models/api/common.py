"""
Shared response building blocks.
Field names are snake_case in Python and camelCase on the wire.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.utils.validated_params import PaginationParams, total_pages


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict with wire (camelCase) keys."""
        return self.model_dump(mode="json", by_alias=True)


class PaginationInfo(CamelModel):
    """Pagination metadata attached to list responses."""

    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=0)

    @classmethod
    def build(cls, pagination: PaginationParams, total: int) -> "PaginationInfo":
        total = max(0, total)
        return cls(
            page=pagination.page,
            limit=pagination.limit,
            total=total,
            total_pages=total_pages(total, pagination.limit),
        )
