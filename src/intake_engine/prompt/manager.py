"""PromptManager — Jinja2-based prompt renderer for the model boundary.

Loads templates from the ``template/`` directory and renders a
``TurnRequest`` into a prompt string with JSON response instructions.

The first turn of a session uses ``first_turn.jinja2``; every later turn
uses ``turn.jinja2``.  Both include ``_context.jinja2`` (archetype,
missing fields, friction directive) and ``_response_format.jinja2``.
"""

from __future__ import annotations

import json
from pathlib import Path

import jinja2

from intake_engine.archetypes import archetype_label
from intake_engine.constants import PROMPT_HISTORY_TURNS, PROMPT_MISSING_FIELDS
from intake_engine.models.boundary import TurnRequest
from intake_engine.schema_merge import filled_paths
from intake_engine.widgets import catalog


class PromptManager:
    """Jinja2-based prompt renderer for the model boundary.

    Args:
        template_dir: optional override for the template directory.
            Defaults to ``template/`` sibling of this module.
    """

    def __init__(self, template_dir: Path | None = None) -> None:
        if template_dir is None:
            template_dir = Path(__file__).parent / "template"
        self._env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._env.filters["tojson"] = lambda v: json.dumps(v, ensure_ascii=False, indent=2)

    def render_turn(self, request: TurnRequest) -> str:
        """Render the prompt for one turn of *request*."""
        template_name = "first_turn.jinja2" if request.is_first_turn else "turn.jinja2"
        history = request.history[-PROMPT_HISTORY_TURNS:] if PROMPT_HISTORY_TURNS else []
        return self.render(
            template_name,
            request=request,
            archetype_label=archetype_label(request.archetype),
            missing_fields=request.missing_fields[:PROMPT_MISSING_FIELDS],
            filled_fields=filled_paths(request.profile),
            history=history,
            widgets=catalog(),
        )

    def render(self, template_name: str, **context) -> str:
        """Render a named template with arbitrary context."""
        template = self._env.get_template(template_name)
        return template.render(**context)
