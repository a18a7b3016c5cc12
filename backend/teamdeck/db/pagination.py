"""Keyset pagination over descending primary keys.

A cursor is the id of the last row handed out, encoded as a string. The next
page continues strictly below it, so rows inserted after the first request
never shift later pages.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, List, Optional, TypeVar

from sqlalchemy import Select
from sqlmodel.ext.asyncio.session import AsyncSession

from teamdeck.core.messages import PaginationMessages
from teamdeck.schemas.pagination import PaginationOpts

T = TypeVar("T")


class InvalidCursor(ValueError):
    """Raised when a continuation cursor cannot be decoded."""


@dataclass
class PageResult(Generic[T]):
    items: List[T]
    is_done: bool
    continue_cursor: Optional[str]


def encode_cursor(last_id: int) -> str:
    return str(last_id)


def decode_cursor(cursor: Optional[str]) -> Optional[int]:
    if cursor is None or cursor == "":
        return None
    try:
        value = int(cursor)
    except (TypeError, ValueError) as exc:
        raise InvalidCursor(PaginationMessages.INVALID_CURSOR) from exc
    if value <= 0:
        raise InvalidCursor(PaginationMessages.INVALID_CURSOR)
    return value


async def paginate(
    session: AsyncSession,
    statement: Select,
    id_column: Any,
    opts: PaginationOpts,
) -> PageResult[Any]:
    """Read one page of ``statement`` ordered by ``id_column`` descending.

    One extra row is fetched to decide ``is_done`` without a count query.
    """
    after_id = decode_cursor(opts.cursor)
    stmt = statement
    if after_id is not None:
        stmt = stmt.where(id_column < after_id)
    stmt = stmt.order_by(id_column.desc()).limit(opts.num_items + 1)

    result = await session.exec(stmt)
    rows = list(result.all())
    is_done = len(rows) <= opts.num_items
    rows = rows[: opts.num_items]

    continue_cursor: Optional[str] = None
    if rows and not is_done:
        continue_cursor = encode_cursor(_row_id(rows[-1]))
    return PageResult(items=rows, is_done=is_done, continue_cursor=continue_cursor)


def empty_page() -> PageResult[Any]:
    return PageResult(items=[], is_done=True, continue_cursor=None)


def _row_id(row: Any) -> int:
    # Joined selects return tuples whose first entity carries the key.
    if isinstance(row, tuple) or hasattr(row, "_fields"):
        return row[0].id
    return row.id
