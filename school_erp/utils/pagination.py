# school_erp/utils/pagination.py
"""Pagination utilities for consistent API responses."""
from typing import Any, Dict, List
from pydantic import BaseModel, Field
from fastapi import Query
from math import ceil


class PaginationParams(BaseModel):
    page: int = Field(1, ge=1, description="Page number (starts from 1)")
    size: int = Field(20, ge=1, le=100, description="Items per page")


class PaginationMeta(BaseModel):
    page: int
    size: int
    total: int
    total_pages: int
    has_next: bool
    has_previous: bool


class Paginator:

    @staticmethod
    def get_pagination_params(
        page: int = Query(1, ge=1, description="Page number"),
        size: int = Query(20, ge=1, le=100, description="Items per page")
    ) -> PaginationParams:
        """FastAPI dependency for pagination parameters."""
        return PaginationParams(page=page, size=size)

    @staticmethod
    def calculate_offset(page: int, size: int) -> int:
        return (page - 1) * size

    @staticmethod
    def create_meta(page: int, size: int, total: int) -> PaginationMeta:
        total_pages = ceil(total / size) if size > 0 else 0
        return PaginationMeta(
            page=page,
            size=size,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_previous=page > 1,
        )

    @staticmethod
    def create_response(items: List[Any], page: int, size: int, total: int) -> Dict[str, Any]:
        """Page of serialised items plus a ``meta`` block."""
        return {
            "items": items,
            "meta": Paginator.create_meta(page, size, total).model_dump(),
            "total": total,
            "page": page,
            "size": size,
        }
