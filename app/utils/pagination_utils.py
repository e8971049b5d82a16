"""列表页分页参数解析.

页码读取 ``page``; 每页条数读取 ``limit``,兼容 ``per_page``/``page_size`` 两个别名.
非法值回退到缺省值,越界值裁剪到允许范围.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from app.utils.structlog_config import log_debug

PAGE_SIZE_KEYS: tuple[str, ...] = ("limit", "per_page", "page_size")


@dataclass(frozen=True, slots=True)
class PageParams:
    """已校验的分页参数."""

    page: int
    limit: int


def _to_int(value: str | None) -> int | None:
    if value is None or not str(value).strip():
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def resolve_page(args: Mapping[str, str | None], *, default: int = 1) -> int:
    """解析页码,小于 1 时按第 1 页处理."""
    page = _to_int(args.get("page"))
    if page is None:
        return default
    return max(page, 1)


def resolve_page_size(
    args: Mapping[str, str | None],
    *,
    default: int,
    maximum: int,
    module: str | None = None,
    action: str | None = None,
) -> int:
    """解析每页条数.

    Args:
        args: 查询参数.
        default: 未提供或无法解析时的条数.
        maximum: 上限,通常取 ``AdminConfig.max_page_size``.
        module: 日志模块名.
        action: 日志动作名.

    Returns:
        落在 ``[1, maximum]`` 内的条数.

    """
    for key in PAGE_SIZE_KEYS:
        requested = _to_int(args.get(key))
        if requested is not None:
            break
    else:
        return min(default, maximum)

    size = min(max(requested, 1), maximum)
    if size != requested and module and action:
        log_debug("分页条数超出范围,已裁剪", module=module, action=action, requested=requested, page_size=size)
    return size


def resolve_pagination(
    args: Mapping[str, str | None],
    *,
    default_size: int,
    max_size: int,
    module: str | None = None,
    action: str | None = None,
) -> PageParams:
    """一次性解析页码与每页条数."""
    return PageParams(
        page=resolve_page(args),
        limit=resolve_page_size(args, default=default_size, maximum=max_size, module=module, action=action),
    )
