# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path

import pytest

from roster_import.db.linker import ClientProfile, LinkResult
from roster_import.logging.init import reset_logging


class FakeLinker:
    """Collaborator double: records calls, answers from a per-email script.

    outcomes maps email -> LinkResult | Exception; unknown emails succeed.
    """

    def __init__(self, outcomes: dict[str, object] | None = None) -> None:
        self.outcomes = outcomes or {}
        self.calls: list[str] = []

    async def link(self, email: str) -> LinkResult:
        self.calls.append(email)
        outcome = self.outcomes.get(email)
        if isinstance(outcome, BaseException):
            raise outcome
        if outcome is None:
            return LinkResult.ok(ClientProfile(id=f"id-{len(self.calls)}", email=email))
        return outcome


async def no_sleep(_seconds: float) -> None:
    return None


@pytest.fixture(autouse=True)
def _fresh_logging():
    # handler must bind to the sys.stdout of the running test (capsys)
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
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """professional_id: pro-1
rate_limit_delay_ms: 0
roster_file: ./data/roster.txt
error_log_dir: ./logs
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def roster_file(temp_workdir: Path) -> Path:
    f = temp_workdir / "data" / "roster.txt"
    f.write_text("# already connected\nExisting@Clinic.com\n", encoding="utf-8")
    return f


@pytest.fixture()
def upload_csv(temp_workdir: Path) -> Path:
    f = temp_workdir / "data" / "clients.csv"
    f.write_text(
        "email,name\n"
        "alice@example.com,Alice\n"
        "not-an-email,Broken\n"
        "ALICE@example.com,Alice again\n"
        "existing@clinic.com,Already here\n"
        "\n"
        '"bob@example.com",Bob\n',
        encoding="utf-8",
    )
    return f


@pytest.fixture()
def fake_linker() -> FakeLinker:
    return FakeLinker()


@pytest.fixture()
def make_linker():
    return FakeLinker


@pytest.fixture()
def instant_sleep():
    return no_sleep
