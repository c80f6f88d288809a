"""Paginated ledger responses shared by the alerts and submissions routers."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)


class PageMeta(BaseModel):
    next_cursor: str | None
    has_more: bool
    total: int | None = None


class PaginatedResponse(BaseModel, Generic[T]):
    """One page of a ledger, newest rows first."""

    data: list[T]
    meta: PageMeta


def ledger_page(item_model: type[T], page: Mapping[str, Any]) -> PaginatedResponse[T]:
    """Build a response from a service ``list()`` result of ORM rows."""
    return PaginatedResponse[item_model](
        data=[item_model.model_validate(row) for row in page["data"]],
        meta=PageMeta(
            next_cursor=page["next_cursor"],
            has_more=page["has_more"],
            total=page.get("total"),
        ),
    )
