"""
Lost & Found API — Filtered, paginated listings

Every list/search endpoint declares a Listing: the statement rows are read
from, the filters it accepts and its ordering. A ListQuery carries what the
client asked for (filters, page, page size). Listing.fetch runs the page
query and a count query built from the same predicates and returns a Page.

Values always travel as SQLAlchemy bind parameters. Filters a listing does
not declare, the "all" sentinel, empty values and values that do not coerce
to the column type are ignored.
"""
import math
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from sqlalchemy import ColumnElement, Select, and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")

ALL = "all"
LIKE_ESCAPE = "\\"

# Upper bounds of the INTEGER id columns and of a BIGINT OFFSET.
MAX_ID = 2**31 - 1
MAX_OFFSET = 2**63 - 1


def _escape_like(value: str) -> str:
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


@dataclass(frozen=True)
class FilterField:
    """A query parameter mapped onto one or more columns."""
    name: str
    columns: tuple[Any, ...]
    contains: bool = False
    coerce: Callable[[str], Any] | None = None

    def predicate(self, raw: Any) -> ColumnElement[bool] | None:
        if raw is None:
            return None
        value = str(raw).strip()
        if not value:
            return None

        if self.contains:
            pattern = f"%{_escape_like(value)}%"
            return or_(*(column.ilike(pattern, escape=LIKE_ESCAPE) for column in self.columns))

        if value.lower() == ALL:
            return None
        if self.coerce is not None:
            try:
                value = self.coerce(value)
            except (TypeError, ValueError):
                return None
        return or_(*(column == value for column in self.columns))


def entity_id(value: str) -> int:
    """Coerce a filter value to an id the INTEGER columns can hold."""
    number = int(value)
    if not 1 <= number <= MAX_ID:
        raise ValueError(f"id out of range: {value}")
    return number


def exact(name: str, column: Any, coerce: Callable[[str], Any] | None = None) -> FilterField:
    return FilterField(name=name, columns=(column,), coerce=coerce)


def contains(name: str, *columns: Any) -> FilterField:
    """Case-insensitive substring match across any of `columns`."""
    return FilterField(name=name, columns=tuple(columns), contains=True)


@dataclass(frozen=True)
class ListQuery:
    filters: Mapping[str, Any] = field(default_factory=dict)
    page: int = 1
    page_size: int = 10

    @classmethod
    def build(
        cls,
        filters: Mapping[str, Any],
        page: int | None = None,
        page_size: int | None = None,
        default_page_size: int = 10,
        max_page_size: int = 100,
    ) -> "ListQuery":
        """
        Normalise client input: 1 <= page_size <= max_page_size, and
        page >= 1 with the resulting offset no larger than MAX_OFFSET.
        """
        if page_size is None or page_size < 1:
            page_size = default_page_size
        page_size = min(page_size, max_page_size)
        if page is None or page < 1:
            page = 1
        page = min(page, MAX_OFFSET // page_size + 1)
        return cls(filters=dict(filters), page=page, page_size=page_size)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass
class Page(Generic[T]):
    items: list[T]
    total: int
    page: int
    page_size: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.page_size)

    def meta(self) -> dict[str, int]:
        return {"total": self.total, "page": self.page, "limit": self.page_size, "pages": self.pages}


@dataclass(frozen=True)
class Listing:
    """
    base:       SELECT the rows come from (an entity, or an entity plus joined columns)
    count_from: FROM clause for the total; must expose every filtered column
    fields:     the filters this listing accepts
    order_by:   newest first, with a unique tie-break
    """
    base: Select
    count_from: Any
    fields: tuple[FilterField, ...]
    order_by: tuple[Any, ...]

    def predicates(self, query: ListQuery, scope: Sequence[ColumnElement[bool]] = ()) -> list[ColumnElement[bool]]:
        clauses = list(scope)
        for filter_field in self.fields:
            clause = filter_field.predicate(query.filters.get(filter_field.name))
            if clause is not None:
                clauses.append(clause)
        return clauses

    def rows_statement(self, query: ListQuery, scope: Sequence[ColumnElement[bool]] = ()) -> Select:
        return (
            self.base.where(and_(True, *self.predicates(query, scope)))
            .order_by(*self.order_by)
            .limit(query.page_size)
            .offset(query.offset)
        )

    def count_statement(self, query: ListQuery, scope: Sequence[ColumnElement[bool]] = ()) -> Select:
        return (
            select(func.count())
            .select_from(self.count_from)
            .where(and_(True, *self.predicates(query, scope)))
        )

    async def fetch(
        self,
        db: AsyncSession,
        query: ListQuery,
        scope: Sequence[ColumnElement[bool]] = (),
    ) -> Page:
        result = await db.execute(self.rows_statement(query, scope))
        if len(self.base.column_descriptions) == 1:
            rows = list(result.scalars().all())
        else:
            rows = list(result.all())
        total = (await db.execute(self.count_statement(query, scope))).scalar_one()
        return Page(items=rows, total=total, page=query.page, page_size=query.page_size)
