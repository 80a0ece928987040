"""Query-parameter filtering and pagination for task and category listings.

Every builder takes the owning user's ID as its first argument and always
emits the ownership clause; callers never pass it through from the request.
"""

from dataclasses import dataclass
from datetime import datetime
from math import ceil

from sqlalchemy import Boolean, String, func, literal, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.expression import ColumnElement

from taskmanager.models.category import Category
from taskmanager.models.task import Task


def parse_positive_int(value, default: int) -> int:
    """Coerce a raw query value to an integer >= 1, else ``default``."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = int(str(value).strip())
    except ValueError:
        return default
    return number if number >= 1 else default


def parse_flag(value: str | None) -> bool | None:
    """``"true"`` -> True, any other value -> False, absent -> None."""
    if value is None:
        return None
    return value.strip().lower() == "true"


@dataclass(frozen=True)
class Page:
    page: int = 1
    page_size: int = 10

    @classmethod
    def from_query(cls, page_number, page_size, default_size: int = 10, max_size: int | None = None) -> "Page":
        size = parse_positive_int(page_size, default_size)
        if max_size is not None:
            size = min(size, max_size)
        return cls(page=parse_positive_int(page_number, 1), page_size=size)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def pages_for(self, total: int) -> int:
        return ceil(total / self.page_size)

    def has_more(self, total: int) -> bool:
        return self.page < self.pages_for(total)

    def meta(self, total: int) -> dict:
        return {
            "page": self.page,
            "pages": self.pages_for(total),
            "total": total,
            "has_more": self.has_more(total),
        }


@dataclass
class TaskFilterParams:
    keyword: str | None = None
    status: str | None = None
    priority: str | None = None
    category_id: int | None = None
    include_archived: bool = False
    due_before: datetime | None = None
    due_after: datetime | None = None


@dataclass
class CategoryFilterParams:
    keyword: str | None = None
    is_active: bool | None = None
    is_default: bool | None = None


LIKE_ESCAPE = "/"


def _like_pattern(keyword: str) -> str:
    escaped = (
        keyword.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )
    return f"%{escaped}%"


class any_element_contains(ColumnElement):
    """True when some string element of a JSON array column contains ``keyword``.

    Elements are compared one by one, case-insensitively, so JSON punctuation
    and escaping never take part in the match.
    """

    type = Boolean()
    inherit_cache = False

    def __init__(self, column, keyword: str):
        self.column = column
        self.pattern = literal(_like_pattern(keyword), String)


@compiles(any_element_contains)
def _compile_json_each(element, compiler, **kw):
    column = compiler.process(element.column, **kw)
    pattern = compiler.process(element.pattern, **kw)
    return (
        f"EXISTS (SELECT 1 FROM json_each({column}) "
        f"WHERE lower(json_each.value) LIKE {pattern} ESCAPE '{LIKE_ESCAPE}')"
    )


@compiles(any_element_contains, "postgresql")
def _compile_json_array_elements(element, compiler, **kw):
    column = compiler.process(element.column, **kw)
    pattern = compiler.process(element.pattern, **kw)
    return (
        f"EXISTS (SELECT 1 FROM json_array_elements_text({column}) AS tag(value) "
        f"WHERE lower(tag.value) LIKE {pattern} ESCAPE '{LIKE_ESCAPE}')"
    )


def build_task_filters(user_id: int, params: TaskFilterParams) -> list:
    """Return the WHERE clauses for a task listing."""
    clauses = [Task.user_id == user_id]

    if not params.include_archived:
        clauses.append(Task.is_archived.is_(False))

    keyword = (params.keyword or "").strip()
    if keyword:
        clauses.append(
            or_(
                Task.title.icontains(keyword, autoescape=True),
                Task.description.icontains(keyword, autoescape=True),
                any_element_contains(Task.tags, keyword.lower()),
            )
        )

    if params.status:
        clauses.append(Task.status == params.status)
    if params.priority:
        clauses.append(Task.priority == params.priority)
    if params.category_id is not None:
        clauses.append(Task.category_id == params.category_id)

    if params.due_before is not None:
        clauses.append(Task.deadline <= params.due_before)
    if params.due_after is not None:
        clauses.append(Task.deadline >= params.due_after)

    return clauses


def build_category_filters(user_id: int, params: CategoryFilterParams) -> list:
    """Return the WHERE clauses for a category listing."""
    clauses = [Category.user_id == user_id]

    keyword = (params.keyword or "").strip()
    if keyword:
        clauses.append(
            or_(
                Category.name.icontains(keyword, autoescape=True),
                Category.description.icontains(keyword, autoescape=True),
            )
        )

    if params.is_active is not None:
        clauses.append(Category.is_active.is_(params.is_active))
    if params.is_default is not None:
        clauses.append(Category.is_default.is_(params.is_default))

    return clauses


async def paginate(
    db: AsyncSession,
    query,
    page: Page,
    *,
    order_by: tuple = (),
    options: tuple = (),
) -> tuple[list, int]:
    """Count the full result of ``query`` and fetch one ordered page of it.

    ``query`` is a plain ``select(Model).where(...)``; ordering and loader
    options are only applied to the page fetch.
    """
    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar_one()

    page_query = query.order_by(*order_by).options(*options).offset(page.offset).limit(page.page_size)
    result = await db.execute(page_query)
    return list(result.scalars().unique().all()), total
