"""
Centralized logging configuration for CashBus.

Builds the LOGGING dict used by every settings module:
- console output everywhere, with key=value structured formatting
- a rotating application log file outside of tests
- a separate escalation log recording every letter decision
- PII scrubbing on every handler
"""

from pathlib import Path
from typing import Any, Dict

# Files rotate at midnight; backupCount is the number of days kept
RETENTION_DAYS = {
    "app": 30,
    "escalation": 365,
}


def get_logging_config(
    base_dir: Path, environment: str = "production", log_level: str = "INFO"
) -> Dict[str, Any]:
    """
    Return a logging dictConfig for the given environment.

    Args:
        base_dir: Project root; log files go to base_dir / "logs"
        environment: "production", "development" or "test"
        log_level: Level for the cashbus loggers

    Returns:
        dict: Configuration accepted by logging.config.dictConfig
    """
    scrubber = (
        "cashbus.logging_filters.SelectivePIIScrubberFilter"
        if environment == "development"
        else "cashbus.logging_filters.PIIScrubberFilter"
    )

    handlers: Dict[str, Dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "structured",
            "filters": ["pii_scrubber"],
        },
    }
    app_handlers = ["console"]
    escalation_handlers = ["console"]

    if environment != "test":
        log_dir = Path(base_dir) / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        handlers["app_file"] = {
            "class": "logging.handlers.TimedRotatingFileHandler",
            "filename": str(log_dir / "cashbus.log"),
            "when": "midnight",
            "backupCount": RETENTION_DAYS["app"],
            "encoding": "utf-8",
            "formatter": "structured",
            "filters": ["pii_scrubber"],
        }
        handlers["escalation_file"] = {
            "class": "logging.handlers.TimedRotatingFileHandler",
            "filename": str(log_dir / "escalation.log"),
            "when": "midnight",
            "backupCount": RETENTION_DAYS["escalation"],
            "encoding": "utf-8",
            "formatter": "structured",
            "filters": ["pii_scrubber"],
        }
        app_handlers.append("app_file")
        escalation_handlers = ["console", "app_file", "escalation_file"]

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "pii_scrubber": {"()": scrubber},
        },
        "formatters": {
            "structured": {
                "()": "cashbus.logging_utils.StructuredLogFormatter",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": handlers,
        "loggers": {
            "django": {
                "handlers": app_handlers,
                "level": "WARNING" if environment == "test" else "INFO",
                "propagate": False,
            },
            "cashbus": {
                "handlers": app_handlers,
                "level": log_level,
                "propagate": False,
            },
            "cashbus.escalation": {
                "handlers": escalation_handlers,
                "level": log_level,
                "propagate": False,
            },
            "celery": {
                "handlers": app_handlers,
                "level": "INFO",
                "propagate": False,
            },
        },
    }
