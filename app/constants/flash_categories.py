"""Flask Flash消息类别常量.

定义后台页面 Flash 消息的标准类别,避免魔法字符串.
"""

from __future__ import annotations

from typing import ClassVar


class FlashCategory:
    """Flask Flash消息类别常量.

    这些类别对应模板中的 alert 样式类.
    """

    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    CSS_CLASSES: ClassVar[dict[str, str]] = {
        SUCCESS: "alert-success",
        ERROR: "alert-danger",
        WARNING: "alert-warning",
        INFO: "alert-info",
    }

    @classmethod
    def get_css_class(cls, category: str) -> str:
        """获取消息类别对应的 CSS 类名.

        Args:
            category: 消息类别字符串

        Returns:
            str: CSS 类名,未知类别回退为 alert-info

        """
        return cls.CSS_CLASSES.get(category, "alert-info")
