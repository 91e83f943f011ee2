from decimal import Decimal

from swapwidget.config import Settings


def test_defaults(monkeypatch):
    """Timing defaults match the widget's rate limiting."""

    for name in ("QUOTE_DEBOUNCE_SECONDS", "LATENCY_BUFFER_SECONDS", "DEFAULT_SLIPPAGE"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings()

    assert settings.quote_debounce_seconds == 0.5
    assert settings.latency_buffer_seconds == 1.0
    assert settings.default_slippage == Decimal("2.5")
    assert settings.notification_duration_seconds == 1.5


def test_aggregator_url_alias(monkeypatch):
    """Legacy backend URL variable is accepted."""

    monkeypatch.delenv("AGGREGATOR_BASE_URL", raising=False)
    monkeypatch.setenv("ONEINCH_BACKEND_URL", "https://backend.example")

    settings = Settings()

    assert settings.aggregator_base_url == "https://backend.example"


def test_non_positive_slippage_falls_back(monkeypatch):
    monkeypatch.setenv("DEFAULT_SLIPPAGE", "0")

    settings = Settings()

    assert settings.default_slippage == Decimal("2.5")
