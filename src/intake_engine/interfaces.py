"""Abstract interface for the external model boundary.

The orchestrator never talks to a language model directly.  It builds a
``TurnRequest`` and hands it to a ``ModelBoundary``; the SDK ships one
concrete implementation (``intake_engine.http_boundary.HttpModelBoundary``)
and tests plug in scripted fakes.

Typical integration flow::

    boundary: ModelBoundary = HttpModelBoundary(url=..., prompts=PromptManager())
    orchestrator = TurnOrchestrator(boundary)

    started = await orchestrator.start_session(db, subject_id="u1")
    nxt = await orchestrator.process_turn(
        db, session_id=started.session_id, answer=Answer(text="Barista"),
    )
"""

from abc import ABC, abstractmethod

from intake_engine.models.boundary import TurnRequest, TurnResponse


class ModelBoundary(ABC):
    """Produces the next question, widget, and extracted field updates.

    Implementations must raise ``ExternalBoundaryError`` for any failure
    (transport, non-success status, unparseable reply).  The orchestrator
    turns that into a fixed fallback question; it performs no retries.
    """

    @abstractmethod
    async def next_turn(self, request: TurnRequest) -> TurnResponse:
        """Return the model's reply for one turn.

        Parameters
        ----------
        request:
            The compacted profile, recent history, the respondent's answer,
            archetype, missing/skipped fields, and friction directive.

        Returns
        -------
        TurnResponse
            Next question text, optional widget, extracted updates, and
            the model's completion/phase estimates.
        """
        ...

    async def aclose(self) -> None:
        """Release any held resources.  Default: nothing to release."""
        return None
