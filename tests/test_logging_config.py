import logging

import pytest

from crpt_api.gate import AdmissionGate
from crpt_api.logging_config import add_component, configure_logging, get_logger
from crpt_api.time_window import TimeUnit


def test_add_component_uses_last_logger_segment() -> None:
    event = add_component(None, "info", {"logger": "crpt_api.gate", "event": "x"})
    assert event["component"] == "gate"


def test_add_component_ignores_flat_names() -> None:
    event = add_component(None, "info", {"logger": "root", "event": "x"})
    assert "component" not in event


def test_configure_logging_rejects_unknown_level() -> None:
    with pytest.raises(ValueError, match="unknown log level"):
        configure_logging("chatty", force=True)


def test_unconfigured_gate_writes_nothing_to_stdout(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr("crpt_api.logging_config.structlog.is_configured", lambda: False)

    AdmissionGate(TimeUnit.DAYS, 1).shutdown()

    assert capsys.readouterr().out == ""


def test_unconfigured_logger_routes_through_stdlib(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.setattr("crpt_api.logging_config.structlog.is_configured", lambda: False)
    caplog.set_level(logging.WARNING, logger="crpt_api.client")

    get_logger("crpt_api.client").warning("submission rejected", status_code=500)

    records = [record for record in caplog.records if record.name == "crpt_api.client"]
    assert any("submission rejected" in record.getMessage() for record in records)
