"""Prompt templates for the AI collaborator."""

from edumate.prompts.registry import get_prompt, list_prompts

__all__ = ["get_prompt", "list_prompts"]
