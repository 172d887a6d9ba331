"""Prompt templates for the study collaborator.

Each collaborator call is a system/user pair of Markdown files under
templates/, grouped by feature:

    exam/       generate_questions_*, grade_*
    notes/      generate_*
    schedule/   generate_*
    resources/  search_*
    doubts/     solve_*

Placeholders are written {name} and filled from keyword arguments, e.g.

    get_prompt("notes/generate_user", subject="Science", chapter="Light")
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"
TEMPLATE_SUFFIX = ".md"


def _read_template(key: str) -> str:
    """Read a template from disk.

    Raises:
        FileNotFoundError: If no template exists for the key
    """
    path = TEMPLATES_DIR / f"{key}{TEMPLATE_SUFFIX}"
    if not path.is_file():
        raise FileNotFoundError(f"Prompt not found: {key} (looked at {path})")
    return path.read_text(encoding="utf-8")


@lru_cache(maxsize=32)
def _cached_template(key: str) -> str:
    return _read_template(key)


def get_prompt(key: str, use_cache: bool = True, **variables: object) -> str:
    """Render a template with its placeholders filled.

    Only the placeholders named in ``variables`` are replaced, so the JSON
    response examples in the grading and exam templates keep their braces.

    Args:
        key: Template key such as "exam/grade_system"
        use_cache: Reuse the template text read on a previous call
        **variables: Placeholder values, converted with str()
    """
    text = _cached_template(key) if use_cache else _read_template(key)
    for name, value in variables.items():
        text = text.replace("{" + name + "}", str(value))
    return text


def list_prompts() -> list[str]:
    """Keys of every available template, sorted."""
    if not TEMPLATES_DIR.is_dir():
        logger.warning("prompts.templates_missing", path=str(TEMPLATES_DIR))
        return []
    return sorted(
        path.relative_to(TEMPLATES_DIR).with_suffix("").as_posix()
        for path in TEMPLATES_DIR.rglob(f"*{TEMPLATE_SUFFIX}")
    )


def clear_cache() -> None:
    _cached_template.cache_clear()
