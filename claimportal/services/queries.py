"""
Query helpers shared by the entity services.
"""

from collections.abc import Sequence
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from claimportal.schemas.common import PageParams
from claimportal.utils.errors import NotFoundError

T = TypeVar("T")


async def paginate(
    session: AsyncSession,
    query: Select[Any],
    params: PageParams,
    *order_by: Any,
) -> tuple[list[Any], int]:
    """
    Count the filtered query, then fetch one page of it.

    Returns:
        Tuple of (rows on the page, total count)
    """
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await session.execute(count_query)).scalar_one()

    page_query = query.order_by(*order_by).offset(params.skip).limit(params.limit)
    result = await session.execute(page_query)
    return list(result.scalars().unique().all()), total


async def get_or_404(
    session: AsyncSession,
    model: type[T],
    object_id: UUID,
    detail: str,
    options: Sequence[Any] = (),
    refresh: bool = False,
) -> T:
    """
    Load one row by primary key with eager-load options.

    Args:
        refresh: Overwrite attributes of an instance already in the session

    Raises:
        NotFoundError: When no row has that id
    """
    query = select(model).where(model.id == object_id)  # type: ignore[attr-defined]
    if options:
        query = query.options(*options)
    if refresh:
        query = query.execution_options(populate_existing=True)

    result = await session.execute(query)
    instance = result.scalar_one_or_none()
    if instance is None:
        raise NotFoundError(detail)
    return instance
