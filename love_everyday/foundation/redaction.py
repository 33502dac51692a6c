"""Log redaction for family-identifying data.

Connection codes, account identifiers, e-mail addresses and device tokens
routinely end up in log messages ("Started monitoring for family 4821").
RedactingFilter masks them before any handler formats the record.
"""

from __future__ import annotations

import logging
import re

_FCM_TOKEN = re.compile(r"\bfcm[_-]?token[:\s=]*[a-zA-Z0-9:_-]{50,}", re.IGNORECASE)
_DEVICE_ID = re.compile(r"\bdevice[_\s]?id[:\s=]*[a-zA-Z0-9\-]{10,}", re.IGNORECASE)
_FAMILY_ID = re.compile(r"\bfamily[_\s]?[a-fA-F0-9\-]{20,}", re.IGNORECASE)
_EMAIL = re.compile(r"\b([A-Za-z0-9._%+-]+)@([A-Za-z0-9.-]+\.[A-Za-z]{2,})\b")
_LONG_ID = re.compile(r"\b[a-zA-Z0-9]{20,}\b")
# Only 4-digit numbers labelled as a family or connection code; years and
# counts are left alone.
_CONNECTION_CODE = re.compile(
    r"\b((?:(?:family|connection)[_\s]?code|family|code)[\s:=#]*)\d{4}\b",
    re.IGNORECASE,
)


def _mask_email(match: re.Match[str]) -> str:
    return f"{match.group(1)[:2]}***@{match.group(2)}"


def redact(message: str) -> str:
    """Return *message* with sensitive identifiers masked."""
    text = _FCM_TOKEN.sub("fcm_token: ***[REDACTED]", message)
    text = _DEVICE_ID.sub("device_id: ***[REDACTED]", text)
    text = _FAMILY_ID.sub("family_***[REDACTED]", text)
    text = _EMAIL.sub(_mask_email, text)
    text = _LONG_ID.sub(lambda m: f"***[{m.group(0)[:4]}...]", text)
    return _CONNECTION_CODE.sub(r"\1****", text)


class RedactingFilter(logging.Filter):
    """Rewrites each record's message in place with redact().

    Attach it to handlers, not loggers, so records from every module pass
    through it.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = redact(record.getMessage())
        record.args = None
        return True
