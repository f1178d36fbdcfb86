from datetime import datetime
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, PlainSerializer

from taskflow.utils.timezone import format_iso

# DB는 naive UTC로 저장하므로 응답에서 'Z'를 붙여 내보냄
UtcDatetime = Annotated[datetime, PlainSerializer(format_iso, return_type=Optional[str])]


class ResponseEnvelope(BaseModel):
    success: bool
    code: Optional[str] = None
    message: Optional[str] = None
    data: Any = None
    errors: Optional[List[Any]] = None


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        total_pages = (total + limit - 1) // limit if limit else 0
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_items=total,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )
