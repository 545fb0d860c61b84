"""Tests for the dispatcher and identity CLI commands."""

import pytest
from click.testing import CliRunner

from cabdispatch import config
from cabdispatch.cli_module.cli import cli
from cabdispatch.cli_module.utils import save_token
from cabdispatch.engine.errors import LowConfidenceMatch, ScheduleConflict
from cabdispatch.services.dispatch_service import DispatchService
from cabdispatch.services.identity_service import IdentityService


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def config_dir(tmp_path, monkeypatch):
    """Keep saved tokens out of the real home directory."""
    monkeypatch.setattr(config, "CONFIG_DIR", str(tmp_path))
    monkeypatch.setattr(config, "CONFIG_FILE", str(tmp_path / "config.json"))


@pytest.fixture
def as_dispatcher():
    save_token(IdentityService.issue_token("disp-1", "dispatcher"))


@pytest.fixture
def as_driver():
    save_token(IdentityService.issue_token("driver-7", "driver"))


def _record(**overrides):
    record = {
        "booking_id": "b-1", "driver_id": "d-1", "mode": "manual", "is_reassignment": False,
        "previous_driver_id": None, "forced": False, "score": None,
    }
    record.update(overrides)
    return record


class TestIdentityCommands:
    """Test class for token handling."""

    def test_issue_save_and_whoami(self, runner):
        result = runner.invoke(cli, ["identity", "issue", "--user-id", "disp-1", "--role", "dispatcher", "--save"])
        assert result.exit_code == 0
        assert "Signed in as disp-1 (dispatcher)" in result.output

        result = runner.invoke(cli, ["identity", "whoami"])
        assert "disp-1 (dispatcher)" in result.output

    def test_use_rejects_bad_token(self, runner):
        result = runner.invoke(cli, ["identity", "use", "not-a-token"])
        assert "Error: Invalid token" in result.output

    def test_whoami_without_token(self, runner):
        result = runner.invoke(cli, ["identity", "whoami"])
        assert "not signed in" in result.output


class TestDispatchCommands:
    """Test class for ranking and assignment commands."""

    def test_requires_sign_in(self, runner):
        result = runner.invoke(cli, ["dispatch", "assign", "b-1", "d-1"])
        assert "You are not signed in" in result.output

    def test_driver_cannot_assign(self, runner, as_driver):
        result = runner.invoke(cli, ["dispatch", "assign", "b-1", "d-1"])
        assert "Access denied" in result.output

    def test_ranked_table(self, runner, as_dispatcher, monkeypatch):
        monkeypatch.setattr(DispatchService, "ranked_drivers", lambda booking_id, max_workers=None: [{
            "driver_id": "d-1", "driver_name": "Sam Lee", "score": 92, "badge": "Best Match",
            "reasons": ["Very close (1.2 mi)", "Currently available"], "warnings": [],
            "distance_miles": 1.2, "has_conflict": False, "conflicting_booking_id": None,
        }, {
            "driver_id": "d-2", "driver_name": "Kim Park", "score": 12, "badge": "Low Match",
            "reasons": [], "warnings": ["Schedule conflict with Alex Rider at 2026-03-02 09:00"],
            "distance_miles": None, "has_conflict": True, "conflicting_booking_id": "b-9",
        }])

        result = runner.invoke(cli, ["dispatch", "ranked", "b-1"])

        assert result.exit_code == 0
        assert "Best Match" in result.output
        assert "1.2 mi" in result.output
        assert "unknown" in result.output
        assert result.output.index("d-1") < result.output.index("d-2")

    def test_assign(self, runner, as_dispatcher, monkeypatch):
        calls = []

        def fake_assign(booking_id, driver_id, mode="manual", force=False):
            calls.append((booking_id, driver_id, mode, force))
            return _record()

        monkeypatch.setattr(DispatchService, "assign", fake_assign)

        result = runner.invoke(cli, ["dispatch", "assign", "b-1", "d-1"])

        assert "Booking b-1 assigned to driver d-1." in result.output
        assert calls == [("b-1", "d-1", "manual", False)]

    def test_reassign_message(self, runner, as_dispatcher, monkeypatch):
        monkeypatch.setattr(DispatchService, "assign",
                            lambda *args, **kwargs: _record(is_reassignment=True, previous_driver_id="d-0"))

        result = runner.invoke(cli, ["dispatch", "assign", "b-1", "d-1"])

        assert "reassigned" in result.output

    def test_conflict_suggests_force(self, runner, as_dispatcher, monkeypatch):
        def conflicted(*args, **kwargs):
            raise ScheduleConflict("d-1", "b-1", "b-9")

        monkeypatch.setattr(DispatchService, "assign", conflicted)

        result = runner.invoke(cli, ["dispatch", "assign", "b-1", "d-1"])

        assert "already booked for b-9" in result.output
        assert "--force" in result.output

    def test_low_confidence_suggests_manual_assign(self, runner, as_dispatcher, monkeypatch):
        def low(booking_id, min_score=None):
            raise LowConfidenceMatch(booking_id, "d-3", 28, 40)

        monkeypatch.setattr(DispatchService, "auto_assign", low)

        result = runner.invoke(cli, ["dispatch", "auto", "b-1"])

        assert "scored 28" in result.output
        assert "cabdispatch dispatch assign b-1 d-3" in result.output

    def test_auto_assign(self, runner, as_dispatcher, monkeypatch):
        monkeypatch.setattr(DispatchService, "auto_assign",
                            lambda booking_id, min_score=None: _record(mode="auto", score=91))

        result = runner.invoke(cli, ["dispatch", "auto", "b-1", "--min-score", "50"])

        assert "(score 91)" in result.output
