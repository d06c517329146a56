from enum import Enum
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict

from app.repositories.base import Page

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class PageData(BaseModel, Generic[T]):
    items: List[T]
    total: int
    page: int
    limit: int


class RequestModel(BaseModel):
    model_config = ConfigDict(use_enum_values=True, extra="forbid", validate_default=True)


def ok(data: Any = None, message: Optional[str] = None) -> dict:
    return {"success": True, "message": message, "data": data}


def paged(page: Page) -> dict:
    return {
        "items": page.items,
        "total": page.total,
        "page": page.page,
        "limit": page.limit,
    }


def enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class MobilePageData(PageData[T], Generic[T]):
    has_more: bool
