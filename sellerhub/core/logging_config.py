"""
Логирование sellerhub: один stdout-хендлер.
GET /health в access-логе uvicorn глушится, если LOG_HEALTH_CHECKS не включён.
"""

import logging
from typing import Any, Dict

from sellerhub.core.config import Settings, settings as default_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class HealthCheckFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        return not ("/health" in message and "GET" in message)


def get_logging_config(cfg: Settings = default_settings) -> Dict[str, Any]:
    handler: Dict[str, Any] = {
        "class": "logging.StreamHandler",
        "formatter": "default",
        "stream": "ext://sys.stdout",
    }
    access: Dict[str, Any] = {"level": "INFO"}
    if not cfg.log_health_checks:
        access["filters"] = ["skip_health"]

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"skip_health": {"()": HealthCheckFilter}},
        "formatters": {"default": {"format": LOG_FORMAT}},
        "handlers": {"stdout": handler},
        "loggers": {
            "sellerhub": {"handlers": ["stdout"], "level": cfg.log_level.upper(), "propagate": False},
            "uvicorn.access": access,
        },
    }
