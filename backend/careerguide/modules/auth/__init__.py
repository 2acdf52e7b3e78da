# Authentication module

from careerguide.modules.auth.dependencies import (
    authenticate,
    require_roles,
    get_current_student,
    get_current_institution,
    get_current_company,
)

__all__ = [
    "authenticate",
    "require_roles",
    "get_current_student",
    "get_current_institution",
    "get_current_company",
]
