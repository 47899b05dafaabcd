from types import SimpleNamespace

import pytest

from config.validators import validate_startup_config


def _settings(**overrides):
    base = {
        "ENV": "dev",
        "PUBLIC_BASE_URL": "",
        "SESSION_TTL_S": 900,
        "CODE_DIGITS": 4,
        "CODE_MAX_ATTEMPTS": 0,
        "SWEEP_INTERVAL_S": 60,
        "FALLBACK_MAX_BYTES": 5 * 1024 * 1024,
        "RELAY_OUTBOX_SIZE": 64,
    }
    base.update(overrides)
    return SimpleNamespace(**base)


@pytest.mark.parametrize("name", ["SESSION_TTL_S", "SWEEP_INTERVAL_S", "FALLBACK_MAX_BYTES", "RELAY_OUTBOX_SIZE"])
def test_validate_startup_config_fails_on_non_positive(name):
    with pytest.raises(RuntimeError, match=name):
        validate_startup_config(_settings(**{name: 0}))


@pytest.mark.parametrize("digits", [0, 10])
def test_validate_startup_config_rejects_code_digits_out_of_range(digits):
    with pytest.raises(RuntimeError, match="CODE_DIGITS"):
        validate_startup_config(_settings(CODE_DIGITS=digits))


def test_validate_startup_config_rejects_negative_attempts():
    with pytest.raises(RuntimeError, match="CODE_MAX_ATTEMPTS"):
        validate_startup_config(_settings(CODE_MAX_ATTEMPTS=-1))


def test_validate_startup_config_warns_when_sweep_slower_than_ttl(caplog):
    caplog.set_level("WARNING")

    validate_startup_config(_settings(SESSION_TTL_S=30, SWEEP_INTERVAL_S=60))

    assert "SWEEP_INTERVAL_S" in caplog.text


def test_validate_startup_config_warns_on_prod_without_public_url(caplog):
    caplog.set_level("WARNING")

    validate_startup_config(_settings(ENV="prod"))

    assert "PUBLIC_BASE_URL" in caplog.text


def test_validate_startup_config_passes_with_defaults(caplog):
    caplog.set_level("WARNING")

    validate_startup_config(_settings())

    assert caplog.text == ""
