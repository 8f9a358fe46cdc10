from defi_analyzer.config import Settings


def _clear_keys(monkeypatch):
    for name in ("DUNE_API_KEY", "ONEINCH_API_KEY", "ONE_INCH_API_KEY", "INCH_API_KEY"):
        monkeypatch.delenv(name, raising=False)


def test_oneinch_api_key_alias(monkeypatch):
    """1inch key should load from legacy aliases when present."""

    _clear_keys(monkeypatch)
    monkeypatch.setenv("ONE_INCH_API_KEY", "alias-from-legacy")

    settings = Settings(_env_file=None)

    assert settings.oneinch_api_key == "alias-from-legacy"
    assert settings.has_oneinch_key


def test_oneinch_api_key_direct_env(monkeypatch):
    """Environment-provided 1inch key remains the primary source."""

    _clear_keys(monkeypatch)
    monkeypatch.setenv("ONEINCH_API_KEY", "primary-key")
    monkeypatch.setenv("INCH_API_KEY", "alias-from-legacy")

    settings = Settings(_env_file=None)

    assert settings.oneinch_api_key == "primary-key"


def test_defaults(monkeypatch):
    _clear_keys(monkeypatch)

    settings = Settings(_env_file=None)

    assert settings.dune_query_id == "3238827"
    assert settings.dune_poll_interval_seconds == 2.0
    assert settings.dune_max_poll_attempts == 30
    assert settings.oneinch_base_url.endswith("/swap/v6.0/1")
    assert settings.comparison_transaction_limit == 10
    assert settings.report_transaction_limit == 50
    assert settings.volume_price_source == "spot"


def test_startup_warnings_name_missing_keys(monkeypatch):
    _clear_keys(monkeypatch)

    warnings = Settings(_env_file=None).startup_warnings()

    assert len(warnings) == 2
    assert warnings[0].startswith("DUNE_API_KEY is not set")
    assert warnings[1].startswith("ONEINCH_API_KEY is not set")


def test_no_startup_warnings_when_configured(monkeypatch):
    _clear_keys(monkeypatch)

    settings = Settings(_env_file=None, dune_api_key="dune", oneinch_api_key="inch")

    assert settings.startup_warnings() == []
