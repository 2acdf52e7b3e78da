"""
CSV / JSON exports for institution data
"""

import csv
import io
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from fastapi.responses import StreamingResponse

from careerguide.utils.dates import iso

# (header, extractor) pairs
Column = Tuple[str, Any]

APPLICATION_COLUMNS: Sequence[Column] = (
    ("Application ID", lambda r: r.get("id", "")),
    ("Student", lambda r: r.get("student", {}).get("name", "")),
    ("Email", lambda r: r.get("student", {}).get("email", "")),
    ("Course", lambda r: r.get("course", {}).get("name", "")),
    ("Status", lambda r: r.get("status", "")),
    ("Applied Date", lambda r: iso(r.get("appliedDate"))),
    ("Reviewed At", lambda r: iso(r.get("reviewedAt"))),
    ("Review Notes", lambda r: r.get("reviewNotes", "")),
)

ADMISSION_COLUMNS: Sequence[Column] = (
    ("Admission ID", lambda r: r.get("id", "")),
    ("Student", lambda r: r.get("student", {}).get("name", "")),
    ("Email", lambda r: r.get("student", {}).get("email", "")),
    ("Course", lambda r: r.get("course", {}).get("name", "")),
    ("Status", lambda r: r.get("status", "")),
    ("Admission Date", lambda r: iso(r.get("admissionDate"))),
    ("Enrollment Date", lambda r: iso(r.get("enrollmentDate"))),
    ("Notes", lambda r: r.get("notes", "")),
)


def to_csv(rows: Iterable[Dict[str, Any]], columns: Sequence[Column]) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow([header for header, _ in columns])
    for row in rows:
        writer.writerow([extract(row) for _, extract in columns])
    return output.getvalue()


def csv_response(content: str, filename: str) -> StreamingResponse:
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


def rows_as_dicts(rows: Iterable[Dict[str, Any]], columns: Sequence[Column]) -> List[Dict[str, Any]]:
    return [{header: extract(row) for header, extract in columns} for row in rows]


def summarize_by_course(admissions: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Per-course admission counts broken down by status"""
    summary: Dict[str, Dict[str, Any]] = {}
    for admission in admissions:
        course = admission.get("course", {})
        key = course.get("id") or "unknown"
        entry = summary.setdefault(key, {"course": course.get("name", "Unknown course"), "total": 0})
        entry["total"] += 1
        status = admission.get("status", "UNKNOWN")
        entry[status] = entry.get(status, 0) + 1
    return sorted(summary.values(), key=lambda e: e["total"], reverse=True)


SUMMARY_COLUMNS: Sequence[Column] = (
    ("Course", lambda r: r.get("course", "")),
    ("Total", lambda r: r.get("total", 0)),
    ("Admitted", lambda r: r.get("ADMITTED", 0)),
    ("Enrolled", lambda r: r.get("ENROLLED", 0)),
    ("Deferred", lambda r: r.get("DEFERRED", 0)),
    ("Withdrawn", lambda r: r.get("WITHDRAWN", 0)),
)
