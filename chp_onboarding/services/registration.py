from __future__ import annotations

import logging
import random
from collections.abc import Iterator, Sequence
from datetime import UTC, datetime
from typing import Any

from ..api.client import RegistrationEndpoint
from ..config.loader import RegistrationDefaults
from ..models.candidate import CandidateRecord, RegistrationStatus
from ..models.registration_result import RegistrationSummary, RowOutcome
from .progress import ProgressCallback

"""Sequential registration of validated candidates.

Exactly one registration call is in flight at any time and records are
attempted in roster order, so at most one record is ever PENDING. A failed row
never stops the queue. There is no automatic retry: running the sequencer
again re-attempts only the records that are not already SUCCESS.
"""

__all__ = [
    "build_registration_payload",
    "placeholder_email",
    "iter_registrations",
    "register_all",
]

logger = logging.getLogger(__name__)


def placeholder_email(username: str, domain: str, rng: random.Random | None = None) -> str:
    """username + random 4-digit suffix at the configured domain."""
    suffix = (rng or random).randint(1000, 9999)
    return f"{username}{suffix}@{domain}"


def build_registration_payload(
    record: CandidateRecord, defaults: RegistrationDefaults, rng: random.Random | None = None
) -> dict[str, Any]:
    return {
        "username": record.final_username,
        "email": placeholder_email(record.final_username, defaults.email_domain, rng),
        "phoneNumber": record.phone_number,
        "password": defaults.default_password,
        "role": defaults.role,
    }


def _register_one(
    record: CandidateRecord,
    endpoint: RegistrationEndpoint,
    defaults: RegistrationDefaults,
    rng: random.Random | None,
) -> None:
    record.registration_status = RegistrationStatus.PENDING
    record.error_message = None
    response = endpoint.register(build_registration_payload(record, defaults, rng))
    if response.ok:
        record.registration_status = RegistrationStatus.SUCCESS
        logger.debug(f"row {record.row_number}: registered {record.final_username!r}")
    else:
        record.registration_status = RegistrationStatus.FAILED
        record.error_message = response.diagnostic
        logger.debug(
            f"row {record.row_number}: registration of {record.final_username!r} failed: {record.error_message}"
        )


def iter_registrations(
    records: Sequence[CandidateRecord],
    endpoint: RegistrationEndpoint,
    defaults: RegistrationDefaults,
    rng: random.Random | None = None,
) -> Iterator[RowOutcome]:
    """Register ``records`` one by one, yielding each outcome as soon as it is known.

    The caller must pass only the records it wants attempted (see register_all
    for the already-registered filter).
    """
    total = len(records)
    for index, record in enumerate(records):
        _register_one(record, endpoint, defaults, rng)
        yield RowOutcome(
            index=index,
            total=total,
            record=record,
            status=record.registration_status,
            error_message=record.error_message,
        )


def register_all(
    records: Sequence[CandidateRecord],
    endpoint: RegistrationEndpoint,
    defaults: RegistrationDefaults,
    progress: ProgressCallback | None = None,
    rng: random.Random | None = None,
) -> RegistrationSummary:
    """Register every valid record that is not already registered.

    Args:
        records: Valid candidates in roster order
        endpoint: Registration endpoint (one call per record)
        defaults: Role / password / email domain for the synthesized payload
        progress: Optional observer receiving 0-100 over the attempted set
        rng: Random source for the placeholder email suffix

    Returns:
        RegistrationSummary with counts, timing and per-row outcomes
    """
    start_time = datetime.now(UTC)
    pending = [r for r in records if r.registration_status is not RegistrationStatus.SUCCESS]
    skipped = len(records) - len(pending)
    if skipped:
        logger.info(f"{skipped} rows already registered, not re-sent")

    outcomes: list[RowOutcome] = []
    success_count = 0
    failure_count = 0
    for outcome in iter_registrations(pending, endpoint, defaults, rng):
        outcomes.append(outcome)
        if outcome.status is RegistrationStatus.SUCCESS:
            success_count += 1
        else:
            failure_count += 1
        if progress is not None:
            progress(outcome.percent)

    end_time = datetime.now(UTC)
    return RegistrationSummary(
        success_count=success_count,
        failure_count=failure_count,
        skipped_already_registered=skipped,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        outcomes=outcomes,
    )
