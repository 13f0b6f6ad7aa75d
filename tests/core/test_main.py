import pytest

from hospital_backend import main
from hospital_backend.core import config


def test_run_serves_app_on_configured_address(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []
    monkeypatch.setattr(main.uvicorn, 'run', lambda app, **kwargs: calls.append((app, kwargs)))
    monkeypatch.setattr(config, 'API_HOST', '0.0.0.0')
    monkeypatch.setattr(config, 'API_PORT', 8123)

    main.run()

    assert calls == [(main.app, {'host': '0.0.0.0', 'port': 8123})]


def test_root_reports_service_status() -> None:
    assert main.root() == {'status': 'Hospital Scheduling API Running'}
