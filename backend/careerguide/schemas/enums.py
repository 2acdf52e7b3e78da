from enum import Enum
from typing import Optional, Type, TypeVar

E = TypeVar("E", bound=Enum)


class Role(str, Enum):
    STUDENT = "student"
    INSTITUTION = "institution"
    COMPANY = "company"


class StatusEnum(str, Enum):
    """Upper-case status values; lookups accept any case"""

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            for member in cls:
                if member.value == value.strip().upper():
                    return member
        return None


class CourseStatus(StatusEnum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"

    def toggled(self) -> "CourseStatus":
        return CourseStatus.INACTIVE if self is CourseStatus.ACTIVE else CourseStatus.ACTIVE


class ApplicationStatus(StatusEnum):
    PENDING = "PENDING"
    UNDER_REVIEW = "UNDER_REVIEW"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    WAITLISTED = "WAITLISTED"


class AdmissionStatus(StatusEnum):
    ADMITTED = "ADMITTED"
    ENROLLED = "ENROLLED"
    DEFERRED = "DEFERRED"
    WITHDRAWN = "WITHDRAWN"


class JobStatus(StatusEnum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


def parse_enum(enum_cls: Type[E], value: Optional[str]) -> Optional[E]:
    """Case-insensitive lookup; None for empty input or unknown values"""
    if not value:
        return None
    try:
        return enum_cls(value.strip().upper() if enum_cls is not Role else value.strip().lower())
    except ValueError:
        return None
