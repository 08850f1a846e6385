import logging
import os
import structlog
import sys
from pathlib import Path
from dotenv import load_dotenv

# Libraries that log every request or connection at INFO.
NOISY_LOGGERS = ("httpx", "httpcore")
SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

def resolve_level(name: str | None) -> int:
    level = getattr(logging, (name or "INFO").strip().upper(), None)
    return level if isinstance(level, int) else logging.INFO

def _render_chain(fmt: str) -> list:
    if fmt == "console":
        return [structlog.dev.ConsoleRenderer(colors=False)]
    return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]

def setup_logging(level: str | None = None, fmt: str | None = None, stream=None):
    """Route structlog events through the stdlib root logger.

    The proxy service logs JSON lines to stdout. The terminal chat passes
    ``fmt="console"`` and ``stream=sys.stderr`` so events stay off the
    conversation. ``LOG_LEVEL``, ``LOG_FORMAT`` and ``LOG_ERROR_FILE`` come
    from the environment or the repo-root ``.env``.
    """
    load_dotenv(dotenv_path=Path(__file__).resolve().parents[1] / ".env")
    log_level = resolve_level(level or os.getenv("LOG_LEVEL"))
    fmt = (fmt or os.getenv("LOG_FORMAT") or "json").strip().lower()
    error_log_path = os.getenv("LOG_ERROR_FILE", "").strip()

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(log_level)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)

    if error_log_path:
        Path(error_log_path).parent.mkdir(parents=True, exist_ok=True)
        errors = logging.FileHandler(error_log_path)
        errors.setLevel(logging.ERROR)
        errors.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(errors)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            *_render_chain(fmt),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=False,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))
    for name in SERVER_LOGGERS:
        logging.getLogger(name).setLevel(log_level)
