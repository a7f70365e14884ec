"""Demo: walk a session against a running CertifyPro backend.

Logs in as an issuer, lists pending requests, approves the first one,
shows its certificate's verification verdict, then logs out.

Run with:
    API_BASE_URL=http://localhost:8080/api \\
        python scripts/demo_portal_flow.py issuer@example.com password
"""

from __future__ import annotations

import asyncio
import sys
from datetime import date

from portal.core.config import SETTINGS
from portal.core.logging import setup_logging
from portal.services import certificates, lifecycle, request_workflow, verification
from portal.services.api_client import build_api_client
from portal.services.errors import PortalError
from portal.services.session import SessionContext
from portal.services.token_store import token_store


async def run(email: str, password: str) -> None:
    ctx = SessionContext(build_api_client(), token_store)

    # ── Step 1: restore or log in ───────────────────────────────────
    session = await ctx.start()
    if not session.is_authenticated:
        session = await ctx.login(email, password)
    print(f"1. Logged in as {session.user.username} ({session.user.role.value})")

    # ── Step 2: pending queue ───────────────────────────────────────
    pending = await request_workflow.pending(ctx.client())
    print(f"2. {len(pending)} pending request(s)")
    if not pending:
        await ctx.logout()
        return

    # ── Step 3: approve the oldest ──────────────────────────────────
    req = pending[0]
    outcome = await request_workflow.approve(
        ctx.client(),
        req.id,
        request_workflow.ApprovalData(
            certificate_name=f"{', '.join(req.skills)} certificate",
            issued_date=date.today(),
        ),
    )
    print(f"3. Approved {req.id} for {req.requester_username}")

    # ── Step 4: approving again must conflict ───────────────────────
    try:
        await request_workflow.approve(
            ctx.client(),
            req.id,
            request_workflow.ApprovalData(certificate_name="again", issued_date=date.today()),
        )
    except PortalError as e:
        print(f"4. Second approval → {e.code}: {e.user_message}")

    # ── Step 5: verify the minted certificate ───────────────────────
    record = outcome.certificate
    if record is None:
        issued = await certificates.issued_certificates(ctx.client())
        record = next((c for c in issued if c.holder.username == req.requester_username), None)
    if record is not None and record.verification_id:
        result = await verification.verify(ctx.client(), record.verification_id)
        print(
            f"5. Verify {record.verification_id} → valid={result.valid} "
            f"display={lifecycle.display_status(record)}"
        )

    await ctx.logout()
    print("6. Logged out")


def main() -> None:
    if len(sys.argv) != 3:
        print(__doc__)
        raise SystemExit(2)
    setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)
    asyncio.run(run(sys.argv[1], sys.argv[2]))


if __name__ == "__main__":
    main()
