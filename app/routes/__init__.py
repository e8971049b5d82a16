"""路由模块.

- admin: 后台 CRUD 页面(列表、表单、展示、删除)
"""
