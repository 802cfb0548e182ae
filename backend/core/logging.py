from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from core.config import BACKEND_DIR


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
SCHEDULER_LOG = "scheduler.log"


def _handlers(env: str, level: int) -> list[logging.Handler]:
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z")

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(formatter)
    handlers: list[logging.Handler] = [console]

    if env == "production":
        logs_dir = Path(BACKEND_DIR) / "logs"
        logs_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            logs_dir / SCHEDULER_LOG,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)
    return handlers


def setup_logging(*, environment: str, solver_debug: bool = True) -> None:
    """Configure logging for the scheduler service.

    Development logs to the console at DEBUG; production adds a rotating
    `logs/scheduler.log` and logs at INFO. The `solver.*` loggers emit one
    DEBUG line per placed cell, so `solver_debug=False` caps them at INFO
    even in development.

    Root handlers are installed once; the solver level is applied on every call.
    """
    env = (environment or "development").lower().strip()
    level = logging.INFO if env == "production" else logging.DEBUG

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, handlers=_handlers(env, level))
        for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
            logging.getLogger(name).setLevel(level)

    logging.getLogger("solver").setLevel(logging.NOTSET if solver_debug else logging.INFO)
