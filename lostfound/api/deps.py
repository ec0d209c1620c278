"""
Lost & Found API — Shared request dependencies
"""
from collections.abc import Callable
from typing import Annotated

from fastapi import Path, Query, Request

from lostfound.core.config import Settings
from lostfound.core.security import PasswordHasher, TokenCodec
from lostfound.db.listing import MAX_ID, ListQuery

PAGINATION_PARAMS = ("page", "limit")

# Path id that fits the INTEGER primary keys.
EntityId = Annotated[int, Path(ge=1, le=MAX_ID)]


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def list_query(default_page_size: int) -> Callable[..., ListQuery]:
    """
    Build a ListQuery from ?page=&limit= plus every other query parameter as
    a candidate filter. Each Listing keeps only the filters it declares.
    """

    def dependency(
        request: Request,
        page: int = Query(1, description="1-based page number"),
        limit: int | None = Query(None, description="Page size (clamped to the configured maximum)"),
    ) -> ListQuery:
        settings: Settings = request.app.state.settings
        filters = {
            key: value for key, value in request.query_params.items() if key not in PAGINATION_PARAMS
        }
        return ListQuery.build(
            filters,
            page=page,
            page_size=limit,
            default_page_size=default_page_size,
            max_page_size=settings.LIST_MAX_PAGE_SIZE,
        )

    return dependency
