"""Server configuration — reads settings from environment variables.

All settings have defaults suitable for local development.  In production
they are overridden through ``SERVER_*``, ``MODEL_BOUNDARY_*`` and
``INTAKE_*`` environment variables.
"""

import os
from dataclasses import dataclass, field

_TRUE = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ServerSettings:
    """Immutable server configuration read from environment at startup."""

    # Network
    host: str = "0.0.0.0"
    port: int = 8080

    # CORS: comma-separated origins, or "*" for wide-open dev mode
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    # Logging
    log_level: str = "INFO"

    # Reference tables directory (None → tables packaged with intake_engine)
    tables_dir: str | None = None

    # External model gateway
    model_boundary_url: str = "http://localhost:9000/generate"
    model_boundary_timeout: float = 30.0
    model_boundary_task_type: str = "intake_turn"

    # Reject saves carrying a stale session version (409) instead of
    # letting the last write win.
    optimistic_locking: bool = True


def load_settings() -> ServerSettings:
    """Build settings from environment variables."""
    raw_origins = os.getenv("SERVER_CORS_ORIGINS", "*")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]

    return ServerSettings(
        host=os.getenv("SERVER_HOST", "0.0.0.0"),
        port=int(os.getenv("SERVER_PORT", "8080")),
        cors_origins=origins,
        log_level=os.getenv("SERVER_LOG_LEVEL", "INFO").upper(),
        tables_dir=os.getenv("SERVER_TABLES_DIR") or None,
        model_boundary_url=os.getenv(
            "MODEL_BOUNDARY_URL", "http://localhost:9000/generate"
        ),
        model_boundary_timeout=float(os.getenv("MODEL_BOUNDARY_TIMEOUT", "30")),
        model_boundary_task_type=os.getenv("MODEL_BOUNDARY_TASK_TYPE", "intake_turn"),
        optimistic_locking=os.getenv("INTAKE_OPTIMISTIC_LOCKING", "true").lower() in _TRUE,
    )
