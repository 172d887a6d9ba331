"""EduMate - local study companion with AI-backed mock exams."""

__version__ = "0.1.0"
