"""Tests for the booking CLI commands."""

from datetime import datetime

import pytest
from click.testing import CliRunner

from cabdispatch import config
from cabdispatch.cli_module.cli import cli
from cabdispatch.cli_module.utils import save_token
from cabdispatch.engine.errors import DeletionNotAllowed
from cabdispatch.models.booking import Booking, BookingStatus, ServiceType
from cabdispatch.models.location import Coordinate
from cabdispatch.services.dispatch_service import DispatchService
from cabdispatch.services.identity_service import IdentityService


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def as_dispatcher(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "CONFIG_DIR", str(tmp_path))
    monkeypatch.setattr(config, "CONFIG_FILE", str(tmp_path / "config.json"))
    save_token(IdentityService.issue_token("disp-1", "dispatcher"))


class TestBookingCommands:
    """Test class for creating, showing and deleting bookings."""

    def test_create_splits_address_coordinates(self, runner, monkeypatch):
        captured = {}

        def fake_create(**kwargs):
            captured.update(kwargs)
            return Booking(id="b-1", scheduled_at=kwargs["scheduled_at"], pickup_address=kwargs["pickup_address"],
                           pickup=kwargs["pickup"])

        monkeypatch.setattr(DispatchService, "create_booking", fake_create)

        result = runner.invoke(cli, [
            "booking", "create",
            "--pickup", "123 Main St|40.7128,-74.006",
            "--destination", "JFK Terminal 4",
            "--scheduled", "2026-03-02 09:00",
            "--passengers", "2",
        ])

        assert result.exit_code == 0
        assert "Booking b-1 created for 2026-03-02 09:00." in result.output
        assert captured["pickup_address"] == "123 Main St"
        assert captured["pickup"] == Coordinate(40.7128, -74.006)
        assert captured["destination"] is None
        assert captured["service_type"] == ServiceType.TRANSFER
        assert captured["scheduled_at"] == datetime(2026, 3, 2, 9, 0)

    def test_create_hourly_without_coordinates_warns(self, runner, monkeypatch):
        captured = {}

        def fake_create(**kwargs):
            captured.update(kwargs)
            return Booking(id="b-2", scheduled_at=kwargs["scheduled_at"], pickup_address=kwargs["pickup_address"])

        monkeypatch.setattr(DispatchService, "create_booking", fake_create)

        result = runner.invoke(cli, ["booking", "create", "--pickup", "Hotel", "--scheduled", "2026-03-02 09:00",
                                     "--hours", "3"])

        assert captured["service_type"] == ServiceType.HOURLY
        assert captured["requested_hours"] == 3
        assert "distance will be unknown" in result.output

    def test_show(self, runner, make_booking, monkeypatch):
        booking = make_booking(id="b-1", driver_id="d-1", status=BookingStatus.ASSIGNED)
        monkeypatch.setattr(DispatchService, "get_booking", lambda booking_id: booking)

        result = runner.invoke(cli, ["booking", "show", "b-1"])

        assert "assigned" in result.output
        assert "d-1" in result.output
        assert "accepted" in result.output

    def test_delete_refused(self, runner, monkeypatch):
        def refuse(booking_id):
            raise DeletionNotAllowed(booking_id, BookingStatus.ASSIGNED)

        monkeypatch.setattr(DispatchService, "delete_booking", refuse)

        result = runner.invoke(cli, ["booking", "delete", "b-1"])

        assert "only pending bookings can be deleted" in result.output
