"""
Logging configuration for cryptocond.

Provides structured JSON logging for condition audit trails and debugging.
Password, preimage and salt values are never passed to the audit logger;
only modes, cost factors, lengths, fees and public condition hex.
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Optional

# Context variable for correlating a build with its callers
request_id_var: ContextVar[str] = ContextVar('request_id', default='')


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs one JSON object per record so condition events can be
    shipped to a log aggregator.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        return json.dumps(log_data)


class ConditionAuditLogger:
    """
    Specialized logger for condition lifecycle events.

    Records how secrets were derived and which conditions were built
    or verified, without the secrets themselves.
    """

    def __init__(self, name: str = "cryptocond.audit"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, event_type: str, **kwargs) -> None:
        """Internal logging method with extra fields."""
        if not self._logger.isEnabledFor(level):
            return
        extra = {
            "event_type": event_type,
            "request_id": request_id_var.get(),
            **kwargs
        }

        record = self._logger.makeRecord(
            self._logger.name,
            level,
            "",
            0,
            f"{event_type}: {kwargs.get('message', '')}",
            (),
            None
        )
        record.extra_fields = extra
        self._logger.handle(record)

    def secret_derived(
        self,
        mode: str,
        rounds: Optional[int] = None,
        salt_random: bool = False
    ) -> None:
        """Log how a preimage was obtained (random, password, existing)."""
        self._log(
            logging.INFO,
            "SECRET_DERIVED",
            mode=mode,
            rounds=rounds,
            salt_random=salt_random,
            message=f"Secret derived in {mode} mode"
        )

    def condition_built(
        self,
        condition_hex: str,
        preimage_length: int,
        fee_drops: int
    ) -> None:
        """Log a successfully built condition."""
        self._log(
            logging.INFO,
            "CONDITION_BUILT",
            condition_hex=condition_hex,
            preimage_length=preimage_length,
            fee_drops=fee_drops,
            message=f"Condition built, finish fee {fee_drops} drops"
        )

    def self_check_failed(self, stage: str) -> None:
        """Log a failed internal consistency check."""
        self._log(
            logging.ERROR,
            "SELF_CHECK_FAILED",
            stage=stage,
            message=f"Self-check failed at {stage}"
        )

    def condition_verified(self, condition_hex: str, match: bool) -> None:
        """Log the outcome of checking a candidate secret."""
        level = logging.INFO if match else logging.WARNING
        self._log(
            level,
            "CONDITION_VERIFIED",
            condition_hex=condition_hex,
            match=match,
            message="Candidate secret matches" if match else "Candidate secret mismatched"
        )


def configure_logging(level: str = "INFO", json_format: bool = True) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatting

    Raises:
        ValueError: If the level is not a standard level name
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_format:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    # stderr keeps stdout free for command output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)


def set_request_id(request_id: Optional[str] = None) -> str:
    """
    Set the request ID for the current context.

    Args:
        request_id: Request ID to set, or None to generate one

    Returns:
        The request ID that was set
    """
    if request_id is None:
        request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


# Global audit logger instance
audit_log = ConditionAuditLogger()
