"""Prompt rendering for the model boundary.

Provides ``PromptManager``, a Jinja2-based template engine that renders a
``TurnRequest`` into a prompt string with JSON response format instructions.
"""

from intake_engine.prompt.manager import PromptManager

__all__ = ["PromptManager"]
