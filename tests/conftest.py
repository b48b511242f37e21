# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from chp_onboarding.api.client import RegistrationResponse
from chp_onboarding.config.loader import ApiConfig, OnboardingConfig, RegistrationDefaults
from chp_onboarding.logging.init import reset_logging


class FakeDirectory:
    """In-memory directory: usernames in ``taken`` exist, everything else is free."""

    def __init__(self, taken: set[str] | None = None) -> None:
        self.taken = set(taken or ())
        self.calls: list[str] = []

    def username_exists(self, username: str) -> bool:
        self.calls.append(username)
        return username in self.taken


class FakeEndpoint:
    """Registration endpoint returning scripted responses in order (default: 201)."""

    def __init__(self, responses: list[RegistrationResponse] | None = None, observer: Any = None) -> None:
        self.responses = list(responses or [])
        self.payloads: list[dict[str, Any]] = []
        self.observer = observer

    def register(self, payload: dict[str, Any]) -> RegistrationResponse:
        if self.observer is not None:
            self.observer(payload)
        self.payloads.append(payload)
        if self.responses:
            return self.responses.pop(0)
        return RegistrationResponse(ok=True, status_code=201, text="created")


class FakeApiClient(FakeDirectory, FakeEndpoint):
    """Stand-in for DirectoryClient in CLI tests (lookup + registration, context manager)."""

    def __init__(self, taken: set[str] | None = None, responses: list[RegistrationResponse] | None = None) -> None:
        FakeDirectory.__init__(self, taken)
        FakeEndpoint.__init__(self, responses)
        self.closed = False

    def __enter__(self) -> FakeApiClient:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        for var in ("CHP_API_BASE_URL", "CHP_API_TOKEN", "CHP_API_TIMEOUT"):
            monkeypatch.delenv(var, raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """api:
  base_url: http://directory.test/api
  lookup_path: /users/exists
  register_path: /auth/register
  timeout_seconds: 5
registration:
  role: CHP
  default_password: Secret@123
  email_domain: chp.test
username:
  max_attempts: 999
error_log_dir: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "onboarding.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def onboarding_config(temp_workdir: Path) -> OnboardingConfig:
    return OnboardingConfig(
        api=ApiConfig(base_url="http://directory.test/api", timeout_seconds=5),
        registration=RegistrationDefaults(role="CHP", default_password="Secret@123", email_domain="chp.test"),
        error_log_dir=str(temp_workdir / "logs"),
    )


@pytest.fixture()
def fake_directory() -> FakeDirectory:
    return FakeDirectory()


@pytest.fixture()
def fake_endpoint() -> FakeEndpoint:
    return FakeEndpoint()


def make_roster(path: Path, rows: list[list[object]], sheets: dict[str, list[list[object]]] | None = None) -> Path:
    """Write a roster workbook; ``rows`` (header first) goes to the first sheet."""
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name="CHPs", header=False, index=False)
        for name, extra in (sheets or {}).items():
            pd.DataFrame(extra).to_excel(writer, sheet_name=name, header=False, index=False)
    return path
