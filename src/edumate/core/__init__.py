"""Core business logic.

Modules:
- accounts: Registration, authentication, cascading deletion
- session: Active student and durable session pointer
- exam_engine: Mock exam state machine and countdown
- notes: Generated study notes
- schedule: Weekly timetable editing
- collaborator: AI content generation and grading
- doubts: Doubt solver conversation
- progress: Dashboard helpers
- admin: Admin console
- app: Application context wiring
"""

__all__ = [
    "accounts",
    "admin",
    "app",
    "catalog",
    "collaborator",
    "credentials",
    "doubts",
    "errors",
    "exam_engine",
    "models",
    "notes",
    "notifications",
    "progress",
    "schedule",
    "session",
]
