"""
Unit Tests for PathSettings and logging helpers

Run with: pytest tests/test_config.py -v
"""

import dataclasses
import logging

import pytest

from animpath.config import DEFAULT_SETTINGS, PathSettings
from animpath.core import (
    AnimPathException,
    DuplicateTimeError,
    LogContext,
    RotationPathDesyncError,
    TangentMode,
    ValidationError,
    get_logger,
    log_performance,
    setup_logging,
)


class TestPathSettings:
    """Frozen configuration dataclass."""

    def test_defaults(self):
        assert DEFAULT_SETTINGS.min_node_time_separation == 0.001
        assert DEFAULT_SETTINGS.key_time_tolerance == 1e-5
        assert DEFAULT_SETTINGS.path_length_sampling == 40
        assert DEFAULT_SETTINGS.default_ease_value == 0.05
        assert DEFAULT_SETTINGS.default_tilt_value == 0.0
        assert DEFAULT_SETTINGS.first_node_position == (0.0, 0.0, 0.0)
        assert DEFAULT_SETTINGS.last_node_position == (1.0, 0.0, 1.0)

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_SETTINGS.path_length_sampling = 10

    def test_tangent_mode_from_string(self):
        settings = PathSettings(aux_tangent_mode="linear")
        assert settings.aux_tangent_mode == TangentMode.LINEAR

    @pytest.mark.parametrize("kwargs", [
        {"min_node_time_separation": 0.0},
        {"min_node_time_separation": 0.6},
        {"key_time_tolerance": 0.01},
        {"path_length_sampling": 1},
        {"export_sampling": 0},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValidationError):
            PathSettings(**kwargs)

    def test_dict_round_trip(self):
        settings = PathSettings(path_length_sampling=80, last_node_position=(2.0, 1.0, 0.0))
        assert PathSettings.from_dict(settings.to_dict()) == settings

    def test_from_dict_ignores_unknown_keys(self):
        settings = PathSettings.from_dict({"export_sampling": 12, "colour": "red"})
        assert settings.export_sampling == 12


class TestExceptions:
    """Structured error details."""

    def test_details_in_message(self):
        error = DuplicateTimeError("Key exists", time=0.5, existing_index=1)
        assert error.details == {"existing_index": 1, "time": 0.5}
        assert "time=0.5" in str(error)
        assert isinstance(error, ValidationError)

    def test_to_dict(self):
        error = AnimPathException("broken", {"a": 1})
        assert error.to_dict() == {
            "error": "AnimPathException",
            "message": "broken",
            "details": {"a": 1},
        }

    def test_desync_recovery(self):
        error = RotationPathDesyncError("desync", time=0.3)
        assert error.recovery == "reset_rotation_path"
        assert error.details["recovery"] == "reset_rotation_path"


class TestLogging:
    """Package logger helpers."""

    def test_get_logger_namespaced(self):
        assert get_logger("custom").name == "animpath.custom"
        assert get_logger("animpath.document").name == "animpath.document"

    def test_setup_logging_replaces_handlers(self, tmp_path):
        log_file = tmp_path / "animpath.log"
        logger = setup_logging(logging.DEBUG, log_file=str(log_file))
        assert len(logger.handlers) == 2
        logger = setup_logging(logging.INFO)
        assert len(logger.handlers) == 1
        assert logger.level == logging.INFO

    def test_log_context_restores_level(self):
        logger = logging.getLogger("animpath")
        logger.setLevel(logging.WARNING)
        with LogContext(logging.DEBUG):
            assert logger.level == logging.DEBUG
        assert logger.level == logging.WARNING

    def test_log_performance(self, caplog):
        @log_performance
        def work(x):
            return x * 2

        with caplog.at_level(logging.DEBUG, logger="animpath"):
            assert work(3) == 6
        assert any("took" in record.getMessage() for record in caplog.records)
