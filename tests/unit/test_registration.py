from __future__ import annotations

import random
import re

from conftest import FakeEndpoint

from chp_onboarding.api.client import RegistrationResponse
from chp_onboarding.config.loader import RegistrationDefaults
from chp_onboarding.models.candidate import CandidateRecord, RegistrationStatus
from chp_onboarding.models.registration_result import RegistrationOutcome
from chp_onboarding.services.registration import (
    build_registration_payload,
    iter_registrations,
    placeholder_email,
    register_all,
)

DEFAULTS = RegistrationDefaults(role="CHP", default_password="Secret@123", email_domain="chp.test")


def _record(row: int, username: str, phone: str = "254712345678") -> CandidateRecord:
    return CandidateRecord(
        row_number=row,
        full_name=username.replace(".", " ").title(),
        phone_number=phone,
        original_username=username,
        final_username=username,
    )


def test_payload_uses_final_username_and_defaults():
    rec = _record(2, "john.doe")
    rec.final_username = "john.doe.002"
    payload = build_registration_payload(rec, DEFAULTS, random.Random(1))

    assert payload["username"] == "john.doe.002"
    assert re.fullmatch(r"john\.doe\.002\d{4}@chp\.test", payload["email"])
    assert payload["phoneNumber"] == "254712345678"
    assert payload["password"] == "Secret@123"
    assert payload["role"] == "CHP"
    assert set(payload) == {"username", "email", "phoneNumber", "password", "role"}


def test_placeholder_email_suffix_is_four_digits():
    rng = random.Random(7)
    for _ in range(50):
        email = placeholder_email("jane", "chp.test", rng)
        assert re.fullmatch(r"jane[1-9]\d{3}@chp\.test", email)


def test_success_then_http_400():
    first, second = _record(2, "john.doe"), _record(3, "jane.smith")
    endpoint = FakeEndpoint([
        RegistrationResponse(ok=True, status_code=201, text="created"),
        RegistrationResponse(ok=False, status_code=400, text='{"message":"Phone number already registered"}'),
    ])

    summary = register_all([first, second], endpoint, DEFAULTS)

    assert summary.success_count == 1
    assert summary.failure_count == 1
    assert summary.outcome is RegistrationOutcome.PARTIAL
    assert first.registration_status is RegistrationStatus.SUCCESS
    assert first.error_message is None
    assert second.registration_status is RegistrationStatus.FAILED
    assert second.error_message == 'HTTP 400: {"message":"Phone number already registered"}'


def test_network_error_is_recorded_and_queue_continues():
    records = [_record(2, "a.a"), _record(3, "b.b"), _record(4, "c.c")]
    endpoint = FakeEndpoint([
        RegistrationResponse(ok=False, status_code=None, text="Connection refused"),
    ])

    summary = register_all(records, endpoint, DEFAULTS)

    assert len(endpoint.payloads) == 3
    assert records[0].registration_status is RegistrationStatus.FAILED
    assert records[0].error_message == "Connection refused"
    assert [r.registration_status for r in records[1:]] == [RegistrationStatus.SUCCESS] * 2
    assert summary.success_count == 2
    assert summary.failure_count == 1


def test_never_two_records_pending_at_once():
    records = [_record(i + 2, f"user.{i}") for i in range(5)]
    pending_snapshots: list[int] = []

    def observe(payload):
        pending_snapshots.append(
            sum(1 for r in records if r.registration_status is RegistrationStatus.PENDING)
        )
        current = next(r for r in records if r.final_username == payload["username"])
        assert current.registration_status is RegistrationStatus.PENDING

    register_all(records, FakeEndpoint(observer=observe), DEFAULTS)

    assert pending_snapshots == [1] * 5
    assert all(r.registration_status is RegistrationStatus.SUCCESS for r in records)


def test_progress_over_attempted_set():
    seen: list[float] = []
    register_all([_record(2, "a.a"), _record(3, "b.b")], FakeEndpoint(), DEFAULTS, progress=seen.append)
    assert seen == [50.0, 100.0]


def test_rerun_only_attempts_records_not_yet_successful():
    records = [_record(2, "a.a"), _record(3, "b.b")]
    endpoint = FakeEndpoint([
        RegistrationResponse(ok=True, status_code=201, text=""),
        RegistrationResponse(ok=False, status_code=500, text="boom"),
    ])
    register_all(records, endpoint, DEFAULTS)
    assert records[1].registration_status is RegistrationStatus.FAILED

    summary = register_all(records, endpoint, DEFAULTS)

    assert [p["username"] for p in endpoint.payloads] == ["a.a", "b.b", "b.b"]
    assert summary.skipped_already_registered == 1
    assert summary.attempted == 1
    assert summary.outcome is RegistrationOutcome.ALL_SUCCEEDED
    assert records[1].registration_status is RegistrationStatus.SUCCESS
    assert records[1].error_message is None


def test_iter_registrations_yields_in_order():
    records = [_record(2, "a.a"), _record(3, "b.b")]
    outcomes = list(iter_registrations(records, FakeEndpoint(), DEFAULTS))
    assert [o.record.row_number for o in outcomes] == [2, 3]
    assert [o.percent for o in outcomes] == [50.0, 100.0]


def test_empty_set_counts_as_all_succeeded():
    summary = register_all([], FakeEndpoint(), DEFAULTS)
    assert summary.attempted == 0
    assert summary.outcome is RegistrationOutcome.ALL_SUCCEEDED
