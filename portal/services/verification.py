"""Public certificate verification.

A verification ID either resolves to a certificate that is ACTIVE, or it
does not verify.  "Exists" is not enough: a certificate that is REVOKED,
EXPIRED or still PENDING comes back as Invalid with its status as the
reason, and the record attached so the caller can still show who issued
it.

Backend failures never escape as exceptions.  Not-found, network,
unauthorized and malformed responses all become Invalid with the
matching error code, so a verification page can always render a
verdict.  The only exception raised is PreconditionError for a blank ID,
before any network call.  Any other ID is looked up exactly as given.

Results are plain frozen dataclasses with no hidden state: verifying the
same ID twice with nothing changed in between yields equal results.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal
from urllib.parse import quote

from portal.core.metrics import VERIFICATION_RESULTS
from portal.models.certificate import CertificateRecord
from portal.services.api_client import ApiClient
from portal.services.errors import PortalError, PreconditionError

logger = logging.getLogger(__name__)

NOT_FOUND_REASON = "Certificate not found or invalid"


@dataclass(frozen=True, slots=True)
class Verified:
    certificate: CertificateRecord
    valid: Literal[True] = True


@dataclass(frozen=True, slots=True)
class Invalid:
    """Verification failed.

    code: "inactive" when a record exists but is not ACTIVE, otherwise
          the PortalError code (not_found, network, validation, ...).
    detail: the backend's own message, when there was one.
    """

    reason: str
    code: str
    certificate: CertificateRecord | None = None
    detail: str | None = None
    valid: Literal[False] = False


VerificationResult = Verified | Invalid


def classify(record: CertificateRecord) -> VerificationResult:
    """Verdict for a record the backend returned."""
    if record.is_active:
        return Verified(certificate=record)
    return Invalid(
        reason=f"Certificate is {record.status.value}",
        code="inactive",
        certificate=record,
    )


async def verify(client: ApiClient, verification_id: str) -> VerificationResult:
    """Look up ``verification_id`` and classify the result.

    Exactly one backend call per invocation, no retry.
    """
    vid = verification_id or ""
    if not vid.strip():
        raise PreconditionError("Certificate ID is required")

    try:
        payload = await client.get(
            f"/certificates/verify/{quote(vid, safe='')}",
            operation="verify_certificate",
            fallback=NOT_FOUND_REASON,
        )
        result = classify(CertificateRecord.from_payload(payload))
    except PortalError as e:
        detail = e.user_message if e.user_message != NOT_FOUND_REASON else None
        result = Invalid(reason=NOT_FOUND_REASON, code=e.code, detail=detail)

    label = "verified" if isinstance(result, Verified) else result.code
    VERIFICATION_RESULTS.labels(result=label).inc()
    logger.info("Verification  id=%s result=%s", vid, label)
    return result
