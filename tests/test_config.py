"""Tests for configuration module."""

from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from host_provisioner.config import (
    DEFAULT_NOTIFY_URL,
    AccountConfig,
    LoggingConfig,
    PipelineConfig,
    ProvisionerConfig,
)
from host_provisioner.types import FailurePolicy


def test_defaults_match_fixed_behaviour():
    """Test default values reproduce the fixed provisioning targets."""
    config = ProvisionerConfig.from_env()
    assert config.account.username == "ansible"
    assert config.account.allow_group == "ssh_allowed_users"
    assert config.account.sudoers_file == Path("/etc/sudoers")
    assert config.ssh_policy.path == Path("/etc/ssh/sshd_config.d/ssh_user.conf")
    assert not config.ssh_policy.skip_existing_directives
    assert config.notify.enabled
    assert config.notify.url == DEFAULT_NOTIFY_URL
    assert config.notify.timeout is None
    assert config.pipeline.on_system_failure is FailurePolicy.CONTINUE
    assert config.pipeline.on_provisioning_failure is FailurePolicy.CONTINUE
    assert config.pipeline.command_timeout is None
    assert config.logging.file == Path("/var/log/configure_new_machine.log")


def test_env_overrides(monkeypatch):
    """Test settings are read from prefixed environment variables."""
    monkeypatch.setenv("ACCOUNT_USERNAME", " deploy ")
    monkeypatch.setenv("PIPELINE_ON_SYSTEM_FAILURE", "halt")
    monkeypatch.setenv("NOTIFY_ENABLED", "false")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    config = ProvisionerConfig.from_env()

    assert config.account.username == "deploy"
    assert config.pipeline.on_system_failure is FailurePolicy.HALT
    assert not config.notify.enabled
    assert config.logging.level == "DEBUG"


def test_invalid_policy_rejected():
    """Test unknown failure policies fail validation."""
    with pytest.raises(PydanticValidationError):
        PipelineConfig(on_system_failure="retry")


def test_validate_config_clean():
    config = ProvisionerConfig.from_env()
    assert config.validate_config() == []


def test_validate_config_issues():
    """Test configuration validation reports every issue."""
    config = ProvisionerConfig.from_env()
    config.account = AccountConfig(username="", allow_group="")

    issues = config.validate_config()

    assert "No automation username configured" in issues
    assert "No SSH allow-list group configured" in issues


def test_unknown_log_level_rejected():
    with pytest.raises(PydanticValidationError, match="Unknown log level: LOUD"):
        LoggingConfig(level="LOUD")
