from datetime import timedelta
from pathlib import Path
import pytest
from catalog_acl.config import FileBasedAccessControlConfig, parse_duration
from catalog_acl.errors import AccessControlConfigError


@pytest.mark.parametrize("text,expected", [
    ("1000ns", timedelta(microseconds=1)),
    ("250us", timedelta(microseconds=250)),
    ("500ms", timedelta(milliseconds=500)),
    ("10s", timedelta(seconds=10)),
    ("1.5m", timedelta(seconds=90)),
    ("2h", timedelta(hours=2)),
    ("1d", timedelta(days=1)),
    (" 30 s ", timedelta(seconds=30)),
])
def test_parse_duration(text, expected):
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["", "10", "s", "10 minutes", "-1s"])
def test_parse_duration_rejects_garbage(text):
    with pytest.raises(ValueError):
        parse_duration(text)


def test_options():
    config = FileBasedAccessControlConfig.from_options({
        "security.config-file": "/etc/acl/rules.json",
        "security.refresh-period": "1m",
    })
    assert config.config_file == Path("/etc/acl/rules.json")
    assert config.refresh_period == timedelta(minutes=1)


def test_refresh_period_is_optional():
    config = FileBasedAccessControlConfig.from_options({"security.config-file": "rules.json"})
    assert config.refresh_period is None


def test_config_file_is_required():
    with pytest.raises(AccessControlConfigError, match="security.config-file is required"):
        FileBasedAccessControlConfig.from_options({})


def test_unknown_option_is_rejected():
    with pytest.raises(AccessControlConfigError, match="unknown option security.config-fiel"):
        FileBasedAccessControlConfig.from_options({
            "security.config-file": "rules.json",
            "security.config-fiel": "rules.json",
        })


@pytest.mark.parametrize("period", ["soon", "0s"])
def test_invalid_refresh_period(period):
    with pytest.raises(AccessControlConfigError, match="security.refresh-period"):
        FileBasedAccessControlConfig.from_options({
            "security.config-file": "rules.json",
            "security.refresh-period": period,
        })
