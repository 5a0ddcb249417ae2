"""Logging setup for the `liquidity_ledger` logger tree.

The dispatcher attaches ``pool``, ``opcode`` and ``error_code`` to its records
(see ``core/processor.py``); both formatters surface whichever are present.
"""

from __future__ import annotations

import json
import logging


LEDGER_FIELDS = ("pool", "opcode", "error_code")


def _ledger_fields(record: logging.LogRecord) -> dict[str, str]:
    return {k: record.__dict__[k] for k in LEDGER_FIELDS if record.__dict__.get(k) is not None}


class LedgerJSONFormatter(logging.Formatter):
    """One JSON object per line: level, logger, message, then ledger fields."""

    def format(self, record: logging.LogRecord) -> str:
        out = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            **_ledger_fields(record),
        }
        if record.exc_info:
            out["exc"] = self.formatException(record.exc_info)
        return json.dumps(out, sort_keys=True)


class LedgerTextFormatter(logging.Formatter):
    """Plain text with ledger fields appended as ``key=value``."""

    def __init__(self) -> None:
        super().__init__("%(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = _ledger_fields(record)
        if fields:
            line += " [" + " ".join(f"{k}={v}" for k, v in fields.items()) + "]"
        return line


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setFormatter(LedgerJSONFormatter() if fmt == "json" else LedgerTextFormatter())
    ledger_logger = logging.getLogger("liquidity_ledger")
    ledger_logger.addHandler(handler)
    ledger_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler
