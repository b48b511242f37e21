from __future__ import annotations

import re
from pathlib import Path
from unittest.mock import patch

from conftest import FakeApiClient, make_roster

from chp_onboarding.cli.__main__ import main as cli_main

"""Integration: a clean roster is validated and fully registered."""


def test_register_clean_roster(temp_workdir: Path, write_config, capsys):
    roster = make_roster(temp_workdir / "data" / "roster.xlsx", [
        ["Full Name", "Phone Number"],
        ["John Doe", "0701234567"],
        ["Jane  Smith", "254709876543"],
        [None, None],
        ["Michael O'Brien", "0705555555"],
    ])
    client = FakeApiClient()
    with patch("chp_onboarding.cli.__main__.DirectoryClient", return_value=client):
        code = cli_main(["register", str(roster)])

    out = capsys.readouterr().out
    assert code == 0
    assert "SUMMARY validation total=3 valid=3 invalid=0 conflicts=0" in out
    assert re.search(
        r"SUMMARY registration attempted=3 success=3 failed=0 skipped=0 outcome=all_succeeded elapsed_sec=[0-9.]+",
        out,
    )
    assert "INFO successfully registered 3 CHPs" in out

    assert client.calls == ["john.doe", "jane.smith", "michael.obrien"]
    assert [p["username"] for p in client.payloads] == ["john.doe", "jane.smith", "michael.obrien"]
    assert [p["phoneNumber"] for p in client.payloads] == ["254701234567", "254709876543", "254705555555"]
    for p in client.payloads:
        assert p["role"] == "CHP"
        assert p["password"] == "Secret@123"
        assert re.fullmatch(rf"{re.escape(p['username'])}\d{{4}}@chp\.test", p["email"])
    assert client.closed

    # nothing failed, so no error log file
    assert list((temp_workdir / "logs").iterdir()) == []


def test_validate_does_not_register(temp_workdir: Path, write_config, capsys):
    roster = make_roster(temp_workdir / "data" / "roster.xlsx", [
        ["name", "phone"],
        ["John Doe", "0701234567"],
    ])
    client = FakeApiClient()
    with patch("chp_onboarding.cli.__main__.DirectoryClient", return_value=client):
        code = cli_main(["validate", str(roster)])

    assert code == 0
    assert client.payloads == []
    assert "SUMMARY validation total=1 valid=1 invalid=0 conflicts=0" in capsys.readouterr().out
