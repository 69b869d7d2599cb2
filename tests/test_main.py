"""Tests for main.py - config loading and desktop key handling."""

import json
from unittest.mock import MagicMock

import pytest

from main import FocusApp, _DEFAULTS, load_config


@pytest.fixture(autouse=True)
def _no_env_api_key(monkeypatch):
    monkeypatch.delenv("OPENWEATHER_API_KEY", raising=False)


class TestLoadConfig:
    """Test load_config."""

    def test_no_config_path_returns_defaults(self):
        config = load_config(None)
        assert config == _DEFAULTS

    def test_valid_config_file(self, tmp_path):
        cfg = {
            "work_duration": 50 * 60,
            "break_duration": 10 * 60,
            "face_absent_threshold_ms": 8000,
            "thumbs_up_hold_ms": 1000,
            "camera_index": 1,
            "weather_api_key": "abc",
        }
        cfg_file = tmp_path / "config.json"
        cfg_file.write_text(json.dumps(cfg), encoding="utf-8")

        config = load_config(str(cfg_file))
        assert config["work_duration"] == 3000
        assert config["break_duration"] == 600
        assert config["face_absent_threshold_ms"] == 8000
        assert config["thumbs_up_hold_ms"] == 1000
        assert config["camera_index"] == 1
        assert config["weather_api_key"] == "abc"

    def test_missing_config_file_uses_defaults(self, capsys):
        config = load_config("/nonexistent/path.json")
        assert config == _DEFAULTS
        captured = capsys.readouterr()
        assert "配置文件不存在" in captured.out

    def test_invalid_json_uses_defaults(self, tmp_path, capsys):
        cfg_file = tmp_path / "bad.json"
        cfg_file.write_text("not valid json {{{", encoding="utf-8")

        config = load_config(str(cfg_file))
        assert config == _DEFAULTS
        captured = capsys.readouterr()
        assert "配置文件格式错误" in captured.out

    def test_partial_config_fills_defaults(self, tmp_path):
        cfg_file = tmp_path / "partial.json"
        cfg_file.write_text(json.dumps({"break_duration": 120}), encoding="utf-8")

        config = load_config(str(cfg_file))
        assert config["break_duration"] == 120
        assert config["work_duration"] == _DEFAULTS["work_duration"]
        assert config["three_fingers_hold_ms"] == _DEFAULTS["three_fingers_hold_ms"]

    def test_null_values_in_config_use_defaults(self, tmp_path):
        cfg_file = tmp_path / "nulls.json"
        cfg_file.write_text(json.dumps({"work_duration": None, "camera_index": 2}), encoding="utf-8")

        config = load_config(str(cfg_file))
        assert config["work_duration"] == _DEFAULTS["work_duration"]
        assert config["camera_index"] == 2

    def test_extra_fields_ignored(self, tmp_path):
        cfg_file = tmp_path / "extra.json"
        cfg_file.write_text(json.dumps({"unknown_field": 999}), encoding="utf-8")

        config = load_config(str(cfg_file))
        assert "unknown_field" not in config

    def test_api_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("OPENWEATHER_API_KEY", "from-env")
        assert load_config(None)["weather_api_key"] == "from-env"

    def test_config_api_key_wins_over_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("OPENWEATHER_API_KEY", "from-env")
        cfg_file = tmp_path / "key.json"
        cfg_file.write_text(json.dumps({"weather_api_key": "from-file"}), encoding="utf-8")
        assert load_config(str(cfg_file))["weather_api_key"] == "from-file"


class TestHandleKey:
    """Test FocusApp.handle_key."""

    def _app(self, detection_paused=False):
        controller = MagicMock()
        controller.board.detection_paused = detection_paused
        return FocusApp(dict(_DEFAULTS), controller=controller), controller

    @pytest.mark.parametrize(
        "key, method",
        [
            ("s", "start_pomodoro"),
            ("p", "pause_pomodoro"),
            ("r", "resume_pomodoro"),
            ("x", "reset_pomodoro"),
            ("m", "toggle_mute"),
        ],
    )
    def test_control_keys(self, key, method):
        app, controller = self._app()
        assert app.handle_key(ord(key)) is True
        getattr(controller, method).assert_called_once_with()

    def test_d_pauses_detection(self):
        app, controller = self._app(detection_paused=False)
        app.handle_key(ord("d"))
        controller.pause_detection.assert_called_once_with()

    def test_d_enables_when_paused(self):
        app, controller = self._app(detection_paused=True)
        app.handle_key(ord("d"))
        controller.enable_detection.assert_called_once_with()

    def test_unknown_key(self):
        app, _ = self._app()
        assert app.handle_key(ord("z")) is False
        assert app.handle_key(255) is False


class TestFocusAppStop:
    def test_stop_shuts_down_controller(self):
        controller = MagicMock()
        FocusApp(dict(_DEFAULTS), controller=controller).stop()
        controller.shutdown.assert_called_once_with()
