#!/usr/bin/env python3
"""Simulate an intake interview end-to-end with a mocked DB and model.

A rule-based boundary stands in for the model gateway: each turn it asks
about the highest-priority missing field it has not asked yet.  A scripted
respondent (one of a few built-in personas) answers from a fixed fact
sheet and skips anything it does not know, or declines sensitive fields at
the configured rate.  Every turn is printed with the friction strategy
the engine mandated, so escalation and recovery can be watched live.

Pass ``--gateway URL`` to drive a real model gateway through
``HttpModelBoundary`` instead of the rule-based boundary.

Usage::

    # Default run (barista persona, no sensitive skips)
    python scripts/simulate_interview.py

    # Software engineer who declines half the sensitive questions
    python scripts/simulate_interview.py -p engineer --skip-rate 0.5 --seed 7

    # List personas
    python scripts/simulate_interview.py --list-personas

    # Verbose mode (print the final profile)
    python scripts/simulate_interview.py -v
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import random
import sys
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

# ---------------------------------------------------------------------------
# Ensure project root is on sys.path so we can import both the SDK and
# test mock infrastructure.
# ---------------------------------------------------------------------------
_SCRIPT_DIR = Path(__file__).resolve().parent
_REPO_ROOT = _SCRIPT_DIR.parent
sys.path.insert(0, str(_REPO_ROOT / "tests"))
sys.path.insert(0, str(_REPO_ROOT / "src"))

from test_orchestrator import MockRepository  # noqa: E402
from unittest.mock import AsyncMock  # noqa: E402

from intake_engine.constants import COMPLETE_PHASE  # noqa: E402
from intake_engine.friction import is_sensitive  # noqa: E402
from intake_engine.http_boundary import HttpModelBoundary  # noqa: E402
from intake_engine.interfaces import ModelBoundary  # noqa: E402
from intake_engine.models.boundary import TurnRequest, TurnResponse  # noqa: E402
from intake_engine.models.session import Answer, NextQuestion  # noqa: E402
from intake_engine.orchestrator import TurnOrchestrator  # noqa: E402
from intake_engine.reference import load_tables  # noqa: E402

# ---------------------------------------------------------------------------
# Personas: seed context plus the facts the respondent is willing to give
# ---------------------------------------------------------------------------

SUBJECT_ID = "sim_employer"

PERSONAS: dict[str, dict[str, Any]] = {
    "barista": {
        "seed": {"role_overview.job_title": "Barista", "role_overview.company_name": "Bean Co"},
        "facts": {
            "financial_reality.base_compensation.amount_or_range": "$17-19/hr",
            "financial_reality.base_compensation.pay_frequency": "hourly",
            "financial_reality.variable_compensation.tips": "about $4/hr pooled",
            "time_and_life.schedule_pattern.type": "rotating shifts",
            "time_and_life.break_reality.paid_breaks": True,
            "environment.physical_space.type": "cafe",
            "humans_and_culture.team_composition.team_size": 8,
        },
    },
    "engineer": {
        "seed": {"role_overview.job_title": "Senior Software Engineer"},
        "facts": {
            "financial_reality.base_compensation.amount_or_range": "$170k-$200k",
            "financial_reality.equity.offered": True,
            "time_and_life.flexibility.remote_allowed": True,
            "role_overview.visa_sponsorship": False,
            "growth_trajectory.career_path.promotion_path": "IC track to staff",
            "role_content.tech_stack": ["python", "postgres"],
        },
    },
    "executive": {
        "seed": {"role_overview.job_title": "Chief Financial Officer"},
        "facts": {
            "stability_signals.company_health.company_stage": "growth",
            "humans_and_culture.management_style.management_approach": "hands-off",
        },
    },
    "photographer": {
        "seed": {"role_overview.job_title": "Freelance Photographer"},
        "facts": {
            "financial_reality.base_compensation.amount_or_range": "$400 per shoot",
            "time_and_life.schedule_pattern.type": "project based",
        },
    },
}


# ---------------------------------------------------------------------------
# Rule-based model boundary
# ---------------------------------------------------------------------------

class RuleBasedBoundary(ModelBoundary):
    """Asks about the first missing field it has not asked yet.

    Declares the ``complete`` phase once every relevant field was asked or
    ``max_turns`` is reached.
    """

    def __init__(self, max_turns: int) -> None:
        self._max_turns = max_turns
        self._asked: set[str] = set()

    async def next_turn(self, request: TurnRequest) -> TurnResponse:
        pending = [f for f in request.missing_fields if f not in self._asked]
        if not pending or request.turn_number >= self._max_turns:
            return TurnResponse(
                message="Thanks, that covers everything I needed.",
                interview_phase=COMPLETE_PHASE,
            )

        field = pending[0]
        self._asked.add(field)
        topic = field.rsplit(".", 1)[-1].replace("_", " ")
        return TurnResponse(
            message=f"Could you tell me about the {topic}?",
            widget={"type": "smart_textarea", "props": {"placeholder": topic}},
            currently_asking_field=field,
            interview_phase="opening" if request.turn_number < 3 else "details",
        )


# ---------------------------------------------------------------------------
# Scripted respondent
# ---------------------------------------------------------------------------

def respond(
    question: NextQuestion,
    facts: dict[str, Any],
    skip_rate: float,
    rng: random.Random,
) -> Answer:
    """Answer from the fact sheet; skip unknown or (sometimes) sensitive fields."""
    field = question.asking_field
    if field is None:
        return Answer(text="Happy to keep going.")
    if is_sensitive(field) and rng.random() < skip_rate:
        return Answer(skip=True, skip_reason="prefer_not_to_say")
    if field in facts:
        return Answer(widget_response=facts[field])
    return Answer(skip=True, skip_reason="dont_know")


def _describe(answer: Answer) -> str:
    if answer.skip:
        return f"[yellow]skip[/] ({answer.skip_reason.value if answer.skip_reason else 'unknown'})"
    if answer.widget_response is not None:
        return json.dumps(answer.widget_response, ensure_ascii=False)
    return answer.text or ""


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------

async def run_simulation(
    persona_name: str,
    *,
    max_turns: int,
    skip_rate: float,
    seed: int | None,
    gateway: str | None,
    verbose: bool,
) -> int:
    console = Console()
    persona = PERSONAS[persona_name]
    rng = random.Random(seed)

    if gateway:
        boundary: ModelBoundary = HttpModelBoundary(gateway)
    else:
        boundary = RuleBasedBoundary(max_turns)
    orchestrator = TurnOrchestrator(boundary, repo=MockRepository(), tables=load_tables())
    db = AsyncMock()

    started = await orchestrator.start_session(
        db, subject_id=SUBJECT_ID, seed_context=persona["seed"]
    )
    session_id = started.session_id
    question = started.first_question
    console.print(f"\n[bold cyan]Session {session_id}[/] persona={persona_name}")

    table = Table(title="Interview transcript")
    for col in ("Turn", "Question", "Answer", "Strategy", "Done %"):
        table.add_column(col)

    try:
        while not question.is_complete and question.turn_number <= max_turns:
            answer = respond(question, persona["facts"], skip_rate, rng)
            next_question = await orchestrator.process_turn(
                db, session_id=session_id, answer=answer, subject_id=SUBJECT_ID
            )
            info = await orchestrator.get_session(db, session_id=session_id)
            table.add_row(
                str(question.turn_number),
                question.message,
                _describe(answer),
                info.friction_strategy,
                str(next_question.completion_percentage),
            )
            question = next_question
    finally:
        if isinstance(boundary, HttpModelBoundary):
            await boundary.aclose()

    console.print(table)

    if not question.is_complete:
        await orchestrator.complete_session(db, session_id=session_id, subject_id=SUBJECT_ID)
    summary = await orchestrator.get_session(db, session_id=session_id)
    profile = await orchestrator.get_profile(db, session_id=session_id, compact_output=True)

    console.print(
        f"\n[bold]Archetype:[/] {summary.archetype.value if summary.archetype else '-'}  "
        f"[bold]Turns:[/] {summary.turn_count}  "
        f"[bold]Completion:[/] {summary.completion_percentage}%  "
        f"[bold]Status:[/] {summary.status.value}"
    )
    if verbose:
        console.print_json(json.dumps(profile, ensure_ascii=False))
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Simulate an intake interview end-to-end with a mocked DB and model.",
    )
    parser.add_argument(
        "-p", "--persona",
        default="barista",
        choices=sorted(PERSONAS),
        help="Respondent persona (default: barista)",
    )
    parser.add_argument(
        "--list-personas",
        action="store_true",
        help="List the built-in personas and exit",
    )
    parser.add_argument(
        "-n", "--max-turns",
        type=int,
        default=15,
        help="Stop after this many turns (default: 15)",
    )
    parser.add_argument(
        "--skip-rate",
        type=float,
        default=0.0,
        help="Probability of declining a sensitive question (default: 0)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument(
        "--gateway",
        default=None,
        help="Model gateway URL; uses the rule-based boundary when omitted",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print the final compacted profile",
    )
    args = parser.parse_args()

    if args.list_personas:
        for name, persona in sorted(PERSONAS.items()):
            print(f"  {name:<14s} {persona['seed']['role_overview.job_title']}")
        sys.exit(0)

    logging.basicConfig(level=logging.WARNING)
    sys.exit(
        asyncio.run(
            run_simulation(
                args.persona,
                max_turns=args.max_turns,
                skip_rate=args.skip_rate,
                seed=args.seed,
                gateway=args.gateway,
                verbose=args.verbose,
            )
        )
    )


if __name__ == "__main__":
    main()
