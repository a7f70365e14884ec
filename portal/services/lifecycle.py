"""Display-only lifecycle labels.

The backend owns ``status``.  This module only derives a rendering hint:
an ACTIVE certificate whose expiry date is within the look-ahead window
is shown as "Expiring Soon".  Everything else shows the status verbatim.

The label depends on today's date, so it is recomputed on every call and
never stored on the record or cached.
"""

from __future__ import annotations

from datetime import date

from portal.core.config import SETTINGS
from portal.models.certificate import CertificateRecord, CertificateStatus

EXPIRING_SOON = "Expiring Soon"


def days_until_expiry(record: CertificateRecord, today: date | None = None) -> int | None:
    """Days left before expiry (negative once past), or None if it never expires."""
    if record.expiry_date is None:
        return None
    return (record.expiry_date - (today or date.today())).days


def is_expiring_soon(
    record: CertificateRecord,
    *,
    today: date | None = None,
    window_days: int | None = None,
) -> bool:
    if record.status is not CertificateStatus.ACTIVE:
        return False
    remaining = days_until_expiry(record, today)
    if remaining is None:
        return False
    window = SETTINGS.expiring_soon_days if window_days is None else window_days
    # Past-due but still ACTIVE means the backend has not swept it yet
    return remaining <= window


def display_status(
    record: CertificateRecord,
    *,
    today: date | None = None,
    window_days: int | None = None,
) -> str:
    if is_expiring_soon(record, today=today, window_days=window_days):
        return EXPIRING_SOON
    return record.status.value
