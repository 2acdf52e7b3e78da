from pydantic import BaseModel, Field
from typing import List, Optional

from careerguide.schemas.enums import JobStatus


class JobCreate(BaseModel):
    """Create a job posting"""
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="")
    skills: List[str] = Field(default_factory=list)
    location: Optional[str] = None
    status: JobStatus = JobStatus.OPEN


class JobUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    skills: Optional[List[str]] = None
    location: Optional[str] = None


class JobStatusUpdate(BaseModel):
    status: JobStatus
