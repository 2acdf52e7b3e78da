"""
Recommendation scoring

matchScore is the share of an item's keywords (0-100) that appear among
the student's skills and interests. Matching is case-insensitive on
whole keywords and on individual words of multi-word keywords.
"""

import re
from typing import Any, Dict, Iterable, List, Set

_WORD = re.compile(r"[a-z0-9+#.]+")


def _terms(values: Iterable[Any]) -> Set[str]:
    terms: Set[str] = set()
    for value in values:
        if not value:
            continue
        text = str(value).strip().lower()
        terms.add(text)
        terms.update(_WORD.findall(text))
    return terms


def student_terms(profile: Dict[str, Any]) -> Set[str]:
    return _terms(list(profile.get("skills") or []) + list(profile.get("interests") or []))


def course_keywords(course: Dict[str, Any]) -> List[str]:
    return [k for k in [course.get("name"), course.get("faculty"), *(course.get("requirements") or [])] if k]


def job_keywords(job: Dict[str, Any]) -> List[str]:
    return [k for k in [job.get("title"), *(job.get("skills") or [])] if k]


def match_score(terms: Set[str], keywords: Iterable[Any]) -> int:
    keywords = [str(k).strip().lower() for k in keywords if k]
    if not keywords or not terms:
        return 0
    hits = sum(
        1 for keyword in keywords
        if keyword in terms or any(word in terms for word in _WORD.findall(keyword))
    )
    return round(hits * 100 / len(keywords))


def rank(items: List[Dict[str, Any]], profile: Dict[str, Any], keywords_of, limit: int = 10) -> List[Dict[str, Any]]:
    """Attach matchScore to every item and return the best first"""
    terms = student_terms(profile)
    scored = [{**item, "matchScore": match_score(terms, keywords_of(item))} for item in items]
    scored.sort(key=lambda item: item["matchScore"], reverse=True)
    return scored[:limit]
