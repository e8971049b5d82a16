"""后台读写接口共享的结构化类型."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TypedDict


class CandidateItem(TypedDict):
    """关联候选项(下拉/自动补全)."""

    id: str
    label: str


@dataclass(slots=True)
class RecordPage:
    """记录列表分页结果.

    Attributes:
        items: 当前页的模型实例.
        total: 满足条件的总数.
        page: 当前页码.
        pages: 总页数.
        limit: 每页数量.

    """

    items: list[object] = field(default_factory=list)
    total: int = 0
    page: int = 1
    pages: int = 0
    limit: int = 20


@dataclass(frozen=True, slots=True)
class AssociationLink:
    """展示页中指向关联记录的链接.

    Attributes:
        model: 目标模型名,目标未纳入后台管理时为 None(仅展示文本).
        key: 目标记录主键的编码形式.
        label: 目标记录展示名.

    """

    model: str | None
    key: str
    label: str


@dataclass(slots=True)
class DisplayValue:
    """单个字段的展示结果."""

    name: str
    label: str
    text: str = ""
    links: list[AssociationLink] = field(default_factory=list)
    is_association: bool = False


@dataclass(slots=True)
class RecordRow:
    """列表页中的一行."""

    key: str
    label: str
    cells: list[DisplayValue] = field(default_factory=list)


__all__ = ["AssociationLink", "CandidateItem", "DisplayValue", "RecordPage", "RecordRow"]
