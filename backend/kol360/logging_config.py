"""
Structured logging setup.

Production: one JSON object per line for the log shipper.
Everything else: coloured, human-readable lines.
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional

from kol360.config import get_settings


class JSONFormatter(logging.Formatter):
    """Render log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ColoredFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        message = super().format(record)
        extra = getattr(record, "extra_fields", None)
        if extra:
            message += " " + " ".join(f"{k}={v}" for k, v in extra.items())
        return message.replace(record.levelname, f"{color}{record.levelname}{self.RESET}", 1)


class LogActions:
    """Dotted action names used for business-event log lines."""

    AUTH_LOGIN = "auth.login"
    AUTH_LOGIN_FAILED = "auth.login_failed"
    AUTH_SIGNUP = "auth.signup"

    USER_INVITED = "user.invited"
    USER_APPROVED = "user.approved"
    USER_DISABLED = "user.disabled"
    USER_ENABLED = "user.enabled"

    CAMPAIGN_CREATED = "campaign.created"
    CAMPAIGN_UPDATED = "campaign.updated"
    CAMPAIGN_DELETED = "campaign.deleted"
    CAMPAIGN_STATUS_CHANGED = "campaign.status_changed"

    DISTRIBUTION_INVITATIONS_SENT = "distribution.invitations_sent"
    DISTRIBUTION_REMINDERS_SENT = "distribution.reminders_sent"

    SURVEY_STARTED = "survey.started"
    SURVEY_SUBMITTED = "survey.submitted"
    SURVEY_UNSUBSCRIBED = "survey.unsubscribed"

    NOMINATION_MATCHED = "nomination.matched"
    NOMINATION_BULK_MATCHED = "nomination.bulk_matched"

    SCORES_CALCULATED = "scores.calculated"
    SCORES_PUBLISHED = "scores.published"

    PAYMENTS_EXPORTED = "payments.exported"
    PAYMENTS_IMPORTED = "payments.imported"

    EMAIL_SENT = "email.sent"
    EMAIL_FAILED = "email.failed"

    SETTINGS_UPDATED = "settings.updated"

    REQUEST_COMPLETED = "request.completed"
    REQUEST_FAILED = "request.failed"


def log_event(logger: logging.Logger, action: str, level: int = logging.INFO, **fields: Any) -> None:
    """Log a business event with structured fields attached."""
    logger.log(level, action, extra={"extra_fields": {"action": action, **fields}})


def setup_logging(environment: Optional[str] = None, log_level: Optional[str] = None) -> None:
    settings = get_settings()
    environment = (environment or settings.environment).lower()
    log_level = (log_level or settings.log_level).upper()

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if environment == "production":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(ColoredFormatter(
            fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))

    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))

    # Quieten chatty libraries
    for noisy in ("botocore", "boto3", "urllib3", "uvicorn.access", "sqlalchemy.engine", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
