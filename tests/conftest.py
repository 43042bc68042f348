import pytest

import frontline_otel.internal.logger


@pytest.fixture(autouse=True)
def _no_log_rate_limit(monkeypatch):
    # Warnings emitted from the same line would otherwise be skipped across tests
    monkeypatch.setattr(frontline_otel.internal.logger, "_rate_limit", 0)
    frontline_otel.internal.logger._windows.clear()
    yield
    frontline_otel.internal.logger._windows.clear()
