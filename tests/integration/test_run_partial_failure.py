from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

from conftest import FakeApiClient, make_roster

from chp_onboarding.api.client import RegistrationResponse
from chp_onboarding.cli.__main__ import main as cli_main

"""Integration: invalid rows are skipped, registration failures are reported and logged."""


def test_register_partial_failure(temp_workdir: Path, write_config, capsys):
    roster = make_roster(temp_workdir / "data" / "mixed.xlsx", [
        ["fullName", "phoneNumber"],
        ["John Doe", "0701234567"],
        ["No Phone", None],
        ["Jane Smith", "0709876543"],
        ["Bad Phone", "call me"],
        ["Mary Wanjiru", "0711111111"],
    ])
    client = FakeApiClient(responses=[
        RegistrationResponse(ok=True, status_code=201, text="created"),
        RegistrationResponse(ok=False, status_code=409, text="username taken"),
        RegistrationResponse(ok=True, status_code=201, text="created"),
    ])
    with patch("chp_onboarding.cli.__main__.DirectoryClient", return_value=client):
        code = cli_main(["register", str(roster)])

    out = capsys.readouterr().out
    assert code == 2
    assert "WARN row 3 (No Phone): Phone number is required" in out
    assert "WARN row 5 (Bad Phone): Invalid phone number format" in out
    assert "SUMMARY validation total=5 valid=3 invalid=2 conflicts=0" in out
    assert "ERROR row 4 (jane.smith): HTTP 409: username taken" in out
    assert "SUMMARY registration attempted=3 success=2 failed=1 skipped=0 outcome=partial" in out
    assert "WARN registration partially completed: 2 successful, 1 failed" in out

    # invalid rows never reach the endpoint
    assert [p["username"] for p in client.payloads] == ["john.doe", "jane.smith", "mary.wanjiru"]

    logs = list((temp_workdir / "logs").glob("errors-*.log"))
    assert len(logs) == 1
    entries = [json.loads(line) for line in logs[0].read_text(encoding="utf-8").splitlines()]
    assert [(e["row"], e["error_type"]) for e in entries] == [
        (3, "VALIDATION_ERROR"),
        (5, "VALIDATION_ERROR"),
        (4, "REGISTRATION_FAILED"),
    ]
    assert all(e["file"] == "mixed.xlsx" and e["sheet"] == "CHPs" for e in entries)
    assert f"INFO error log written to {logs[0].relative_to(temp_workdir)}" in out


def test_network_failure_is_recorded_per_row(temp_workdir: Path, write_config, capsys):
    roster = make_roster(temp_workdir / "data" / "roster.xlsx", [
        ["fullName", "phoneNumber"],
        ["John Doe", "0701234567"],
    ])
    client = FakeApiClient(responses=[RegistrationResponse(ok=False, status_code=None, text="Request timeout (5s)")])
    with patch("chp_onboarding.cli.__main__.DirectoryClient", return_value=client):
        code = cli_main(["register", str(roster)])

    out = capsys.readouterr().out
    assert code == 2
    assert "ERROR row 2 (john.doe): Request timeout (5s)" in out
    assert "failed=1" in out


def test_no_valid_rows(temp_workdir: Path, write_config, capsys):
    roster = make_roster(temp_workdir / "data" / "roster.xlsx", [
        ["fullName", "phoneNumber"],
        ["John Doe", "12"],
    ])
    client = FakeApiClient()
    with patch("chp_onboarding.cli.__main__.DirectoryClient", return_value=client):
        code = cli_main(["register", str(roster)])

    assert code == 2
    assert "ERROR no valid records to register" in capsys.readouterr().out
    assert client.payloads == []
