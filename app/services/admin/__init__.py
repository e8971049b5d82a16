"""后台通用 CRUD 服务."""

from app.services.admin.record_form_service import FieldState, RecordFormService
from app.services.admin.record_read_service import RecordReadService
from app.services.admin.record_write_service import RecordWriteService

__all__ = ["FieldState", "RecordFormService", "RecordReadService", "RecordWriteService"]
