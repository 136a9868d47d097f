"""intake_server — FastAPI REST API for the adaptive intake SDK.

Exposes the ``TurnOrchestrator`` as a stateless HTTP API: session start,
turn submission, completion, history/profile reads, and reference data
(archetypes, relevance, widget catalog).
"""
