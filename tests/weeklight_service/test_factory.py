"""Tests for factory functions and the command line entry point."""

import sys
from pathlib import Path

import pytest

from mocks import MockDevice
from weeklight_config.config_models import AppConfig
from weeklight_config.settings import Settings
from weeklight_dispatch.senders import HueBridgeSender, LoggingDeviceSender
from weeklight_service.engine import LightControlEngine
from weeklight_service.factory import create_device, create_engine
from weeklight_service.main import main
from weeklight_service.sinks import LoggingEventSink

EXAMPLE_CONFIG = Path(__file__).parent.parent.parent / "config.example.yml"


class TestCreateDevice:
    """Tests for create_device."""

    def test_hue_from_config(self):
        config = AppConfig(bridge_host="192.168.1.20", api_key="abc")

        device = create_device(config, Settings(_env_file=None, device="hue"))

        assert isinstance(device, HueBridgeSender)
        assert device.host == "192.168.1.20"
        assert device.api_key == "abc"

    def test_settings_override_config(self):
        config = AppConfig(bridge_host="192.168.1.20", api_key="abc")
        settings = Settings(_env_file=None, device="hue", bridge_host="10.0.0.5", api_key="xyz")

        device = create_device(config, settings)

        assert device.host == "10.0.0.5"
        assert device.api_key == "xyz"

    def test_log_device(self, tmp_path):
        device = create_device(
            AppConfig(), Settings(_env_file=None), device="log", device_log_path=tmp_path / "out.jsonl"
        )

        assert isinstance(device, LoggingDeviceSender)
        assert device.path == tmp_path / "out.jsonl"

    def test_unknown_device(self):
        with pytest.raises(ValueError, match="Unknown device"):
            create_device(AppConfig(), Settings(_env_file=None), device="dmx")


class TestCreateEngine:
    """Tests for create_engine."""

    def test_defaults(self):
        engine = create_engine(AppConfig(), Settings(_env_file=None, device="log"))

        assert isinstance(engine, LightControlEngine)
        assert isinstance(engine.device, LoggingDeviceSender)
        assert isinstance(engine._sink, LoggingEventSink)

    def test_injected_device(self):
        device = MockDevice()

        engine = create_engine(AppConfig(dispatch_interval_ms=250), Settings(_env_file=None), device=device)

        assert engine.device is device
        assert engine.dispatcher.interval_ms == 250


class TestMain:
    """Tests for the weeklight command."""

    def test_list_schedules(self, monkeypatch, capsys):
        monkeypatch.setenv("WEEKLIGHT_DEVICE", "log")
        monkeypatch.setattr(sys, "argv", ["weeklight", "--config", str(EXAMPLE_CONFIG), "--list-schedules"])

        assert main() == 0

        out = capsys.readouterr().out
        assert "  - default" in out
        assert "  - away" in out

    def test_list_schedules_reports_errors(self, monkeypatch, capsys, tmp_path):
        config = tmp_path / "config.yml"
        config.write_text(
            "groups: {all: [1]}\n"
            "schedules:\n"
            "  good:\n"
            "    elements: [{name: n, lights: all, days: [0], 'off': '1:00'}]\n"
            "  bad:\n"
            "    inherit: ghost\n"
        )
        monkeypatch.setenv("WEEKLIGHT_DEVICE", "log")
        monkeypatch.setattr(sys, "argv", ["weeklight", "--config", str(config), "--list-schedules"])

        assert main() == 0

        out = capsys.readouterr().out
        assert "  - good" in out
        assert "  ! bad:" in out

    def test_missing_config(self, monkeypatch, tmp_path):
        monkeypatch.setattr(sys, "argv", ["weeklight", "--config", str(tmp_path / "nope.yml")])

        assert main() == 1

    def test_invalid_config(self, monkeypatch, tmp_path):
        config = tmp_path / "config.yml"
        config.write_text("schedules: {a: {name: b}}\n")
        monkeypatch.setattr(sys, "argv", ["weeklight", "--config", str(config)])

        assert main() == 1
