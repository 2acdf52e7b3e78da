"""Firestore collection names (schema-in-code).

Firestore has no DDL or migrations; collections are created on first write.
These constants are the single source of truth for collection names.
"""

USERS = "users"
FACULTIES = "faculties"
COURSES = "courses"
APPLICATIONS = "applications"
ADMISSIONS = "admissions"
JOBS = "jobs"
EVENTS = "events"
RSVPS = "rsvps"
ACTIVITIES = "activities"
NOTIFICATIONS = "notifications"
MESSAGES = "messages"

# Written and read by the readiness check
HEALTH = "_health"
