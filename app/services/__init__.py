"""服务层模块.

主要模块:
- admin: 后台记录的读取、写入(含关联解析)与表单状态构建
"""
