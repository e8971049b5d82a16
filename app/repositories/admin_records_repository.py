"""后台通用记录 Repository.

职责:
- 仅负责 Query 组装与数据库读取/写入暂存
- 不做序列化、不返回 Response、不 commit
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import func, or_, select
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.sql.elements import ColumnElement

from app import db
from app.core.types import RecordPage

if TYPE_CHECKING:
    from sqlalchemy import Column

_LIKE_ESCAPE = "\\"
_STREAM_BATCH_SIZE = 200


def like_pattern(text: str) -> str:
    """构造大小写不敏感子串匹配的 LIKE 模式,转义通配符."""
    escaped = text.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2).replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class AdminRecordsRepository:
    """面向任意后台模型的查询 Repository."""

    @staticmethod
    def count(model: type) -> int:
        return int(db.session.scalar(select(func.count()).select_from(model)) or 0)

    @staticmethod
    def get(model: type, key: Sequence[object]) -> object | None:
        """按主键加载记录,复合主键按映射器主键顺序传入."""
        identity = tuple(key)
        return db.session.get(model, identity if len(identity) > 1 else identity[0])

    @staticmethod
    def primary_key_ordering(model: type) -> list[ColumnElement[Any]]:
        return [cast(ColumnElement[Any], column).asc() for column in sa_inspect(model).primary_key]

    def list_page(
        self,
        model: type,
        *,
        page: int,
        limit: int,
        search: str | None = None,
        search_columns: Sequence[Column] = (),
    ) -> RecordPage:
        query = db.session.query(model)
        normalized_search = (search or "").strip()
        if normalized_search and search_columns:
            pattern = like_pattern(normalized_search)
            query = query.filter(
                or_(*(cast(ColumnElement[str], column).ilike(pattern, escape=_LIKE_ESCAPE) for column in search_columns)),
            )
        query = query.order_by(*self.primary_key_ordering(model))

        pagination = cast(Any, query).paginate(page=page, per_page=limit, error_out=False)
        return RecordPage(
            items=list(pagination.items),
            total=pagination.total or 0,
            page=pagination.page,
            pages=pagination.pages,
            limit=pagination.per_page,
        )

    def first_records(self, model: type, *, limit: int) -> list[object]:
        """按主键顺序读取前 limit 条记录,用于预加载选择框."""
        stmt = select(model).order_by(*self.primary_key_ordering(model)).limit(limit)
        return list(db.session.scalars(stmt))

    def iter_label_matches_or_blank(self, model: type, column: Column, text: str) -> Iterator[object]:
        """流式读取展示列命中或为空的记录; 空展示列的记录需由调用方按回退展示名再筛选."""
        label = cast(ColumnElement[str], column)
        stmt = (
            select(model)
            .where(or_(label.ilike(like_pattern(text), escape=_LIKE_ESCAPE), label.is_(None), func.trim(label) == ""))
            .order_by(*self.primary_key_ordering(model))
            .execution_options(yield_per=_STREAM_BATCH_SIZE)
        )
        yield from db.session.scalars(stmt)

    def iter_records(self, model: type) -> Iterator[object]:
        """按主键顺序分批流式读取全部记录."""
        stmt = select(model).order_by(*self.primary_key_ordering(model)).execution_options(yield_per=_STREAM_BATCH_SIZE)
        yield from db.session.scalars(stmt)

    @staticmethod
    def add(instance: object) -> None:
        db.session.add(instance)

    @staticmethod
    def delete(instance: object) -> None:
        db.session.delete(instance)

    @staticmethod
    def flush() -> None:
        db.session.flush()
