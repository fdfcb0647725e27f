# emr_core/common/logging.py
from __future__ import annotations

import logging
import re

_EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
# Phone-shaped only: "+<digits>" or NNN-NNN-NNNN style groups. Bare digit runs,
# ISO timestamps and UUIDs are left alone.
_PHONE_RE = re.compile(
    r"(?<![\w-])(?:"
    r"\+\d{10,14}"
    r"|(?:\+\d{1,3}[\s.-]?)?(?:\(\d{3}\)|\d{3})[\s.-]?\d{3}[\s.-]\d{4}"
    r")(?![\w-])"
)


def redact_pii(text: str) -> str:
    text = _EMAIL_RE.sub("[email]", text)
    return _PHONE_RE.sub("[phone]", text)


class PIIRedactingFilter(logging.Filter):
    """Masks e-mail addresses and phone numbers in log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = redact_pii(str(record.msg))
        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    k: redact_pii(v) if isinstance(v, str) else v
                    for k, v in record.args.items()
                }
            else:
                record.args = tuple(
                    redact_pii(a) if isinstance(a, str) else a
                    for a in record.args
                )
        return True
