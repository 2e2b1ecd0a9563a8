from pathlib import Path
from textwrap import dedent

import pytest

from asgtarget.config.keys import redact_config
from asgtarget.core.config import (
    TargetSettings,
    get_target_settings,
    parse_duration,
    reset_target_settings,
)
from asgtarget.core.errors import ConfigError


def test_bundled_defaults(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    reset_target_settings()

    cfg = get_target_settings()
    assert cfg == TargetSettings(region="us-east-1", retry_interval=10.0, retry_limit=15, drain_deadline=900.0)
    assert cfg.convergence_timeout == 150.0


def test_load_settings_from_env_file(tmp_path: Path, monkeypatch):
    config_file = tmp_path / "custom.yaml"
    config_file.write_text(
        dedent(
            """
            target:
              region: eu-west-1
              retry_interval: 2s
              retry_limit: 4
              drain_deadline: 1h30m
            """
        ),
        encoding="utf-8",
    )

    monkeypatch.setenv("ASGTARGET_CONFIG", str(config_file))
    reset_target_settings()

    cfg = get_target_settings()
    assert cfg.region == "eu-west-1"
    assert cfg.retry_interval == 2.0
    assert cfg.retry_limit == 4
    assert cfg.drain_deadline == 5400.0


def test_cwd_file_is_used_when_env_missing(tmp_path: Path, monkeypatch):
    (tmp_path / "asgtarget.yaml").write_text("target:\n  retry_limit: 2\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    reset_target_settings()

    cfg = get_target_settings()
    assert cfg.retry_limit == 2
    assert cfg.region == "us-east-1"


def test_invalid_section_rejected(tmp_path: Path, monkeypatch):
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("target: [1, 2]\n", encoding="utf-8")
    monkeypatch.setenv("ASGTARGET_CONFIG", str(config_file))
    reset_target_settings()

    with pytest.raises(ConfigError):
        get_target_settings()


def test_call_config_overrides_settings():
    base = TargetSettings()
    merged = base.merged({"drain_deadline": "45s", "retry_limit": "3", "asg_name": "ignored"})
    assert merged.drain_deadline == 45.0
    assert merged.retry_limit == 3
    assert merged.retry_interval == base.retry_interval
    assert base.merged({}) is base


@pytest.mark.parametrize(
    "value, seconds",
    [
        ("15m", 900.0),
        ("1h30m", 5400.0),
        ("2.5s", 2.5),
        ("500ms", 0.5),
        ("90", 90.0),
        (30, 30.0),
    ],
)
def test_parse_duration(value, seconds):
    assert parse_duration(value) == pytest.approx(seconds)


@pytest.mark.parametrize("value", ["", "soon", "10x", "5m junk", "-3s", True])
def test_parse_duration_rejects_garbage(value):
    with pytest.raises(ConfigError):
        parse_duration(value, key="drain_deadline")


def test_retry_limit_must_be_positive():
    with pytest.raises(ConfigError) as excinfo:
        TargetSettings().merged({"retry_limit": "0"})
    assert excinfo.value.key == "retry_limit"


def test_redact_config_masks_credentials():
    redacted = redact_config(
        {"asg_name": "workers", "aws_access_key_id": "AKIA", "aws_secret_access_key": "s3cr3t"}
    )
    assert redacted == {"asg_name": "workers", "aws_access_key_id": "***", "aws_secret_access_key": "***"}
