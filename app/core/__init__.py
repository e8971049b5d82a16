"""珊瑚后台 - 共享内核(异常与类型)."""
