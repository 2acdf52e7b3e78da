from pydantic import BaseModel, Field
from typing import List


class ApplicationCreate(BaseModel):
    """Student application to a course"""
    courseId: str = Field(..., min_length=1)
    documents: List[str] = Field(default_factory=list)


def split_list(value: str) -> List[str]:
    """Comma-separated form field to a clean list"""
    return [item.strip() for item in (value or "").split(",") if item.strip()]
