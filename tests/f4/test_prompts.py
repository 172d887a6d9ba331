"""Tests for the prompt registry (F4)."""

import pytest

from edumate.prompts.registry import clear_cache, get_prompt, list_prompts


class TestPromptRegistry:
    """Tests for loading prompt templates."""

    def test_all_templates_listed(self):
        prompts = list_prompts()

        for key in (
            "exam/generate_questions_system",
            "exam/generate_questions_user",
            "exam/grade_system",
            "exam/grade_user",
            "notes/generate_system",
            "notes/generate_user",
            "schedule/generate_system",
            "schedule/generate_user",
            "resources/search_system",
            "resources/search_user",
            "doubts/solve_system",
            "doubts/solve_user",
        ):
            assert key in prompts

    def test_variables_substituted(self):
        prompt = get_prompt("notes/generate_user", subject="Science", chapter="Light")

        assert "Subject: Science" in prompt
        assert "Chapter: Light" in prompt

    def test_json_braces_survive(self):
        prompt = get_prompt("exam/grade_system", board="ICSE", standard="9")

        assert "ICSE examiner" in prompt
        assert '"score"' in prompt
        assert "{" in prompt

    def test_missing_prompt(self):
        with pytest.raises(FileNotFoundError):
            get_prompt("does/not_exist")

    def test_uncached_load(self):
        clear_cache()

        assert get_prompt("resources/search_user", use_cache=False, query="light") == "Find resources for: light\n"
