from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class PaginationOpts(BaseModel):
    num_items: int = Field(default=20, ge=1)
    cursor: Optional[str] = None


class Page(BaseModel, Generic[T]):
    page: List[T]
    is_done: bool
    continue_cursor: Optional[str] = None
