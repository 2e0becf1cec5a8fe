from datetime import datetime
from typing import Annotated
from pydantic import AfterValidator, BaseModel

from app.utils.time import to_naive_utc

# Datetimes are stored as naive UTC; normalise anything timezone-aware on the way in
UTCDateTime = Annotated[datetime, AfterValidator(to_naive_utc)]

class ResponseBase(BaseModel):
    """Base response schema."""
    success: bool
    message: str = None

class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "Pagination":
        return cls(total=total, page=page, limit=limit, total_pages=-(-total // limit))
