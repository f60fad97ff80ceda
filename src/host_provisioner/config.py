"""Configuration management for Host Provisioner."""

import logging
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from host_provisioner.types import FailurePolicy

DEFAULT_NOTIFY_URL = "http://172.16.1.72/post_listener.sh"


class AccountConfig(BaseSettings):
    """Automation account and allow-list group settings."""

    username: str = Field(default="ansible", description="Automation account name")
    allow_group: str = Field(
        default="ssh_allowed_users", description="Group allowed to log in over SSH"
    )
    shell: str = Field(default="/bin/bash")
    sudoers_file: Path = Field(default=Path("/etc/sudoers"))

    model_config = SettingsConfigDict(
        env_prefix="ACCOUNT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @field_validator("username", "allow_group", mode="before")
    @classmethod
    def strip_names(cls, v: object) -> object:
        """Strip surrounding whitespace from names."""
        if isinstance(v, str):
            return v.strip()
        return v


class SSHPolicyConfig(BaseSettings):
    """SSH daemon drop-in fragment settings."""

    path: Path = Field(default=Path("/etc/ssh/sshd_config.d/ssh_user.conf"))
    skip_existing_directives: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_prefix="SSH_POLICY_",
        env_file=".env",
        env_file_encoding="utf-8",
    )


class NotifyConfig(BaseSettings):
    """Orchestrator notification settings."""

    enabled: bool = Field(default=True)
    url: str = Field(default=DEFAULT_NOTIFY_URL)
    timeout: Optional[float] = Field(default=None, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="NOTIFY_",
        env_file=".env",
        env_file_encoding="utf-8",
    )


class PipelineConfig(BaseSettings):
    """Failure handling for the provisioning pipeline."""

    on_system_failure: FailurePolicy = Field(default=FailurePolicy.CONTINUE)
    on_provisioning_failure: FailurePolicy = Field(default=FailurePolicy.CONTINUE)
    command_timeout: Optional[float] = Field(default=None, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="PIPELINE_",
        env_file=".env",
        env_file_encoding="utf-8",
    )


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="INFO")
    file: Optional[Path] = Field(default=Path("/var/log/configure_new_machine.log"))

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: object) -> str:
        """Upper-case the level name and reject names logging does not know."""
        level = str(v).strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level


class ProvisionerConfig(BaseSettings):
    """Main configuration container."""

    account: AccountConfig = Field(default_factory=AccountConfig)
    ssh_policy: SSHPolicyConfig = Field(default_factory=SSHPolicyConfig)
    notify: NotifyConfig = Field(default_factory=NotifyConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    @classmethod
    def from_env(cls) -> "ProvisionerConfig":
        """Create configuration from environment variables."""
        return cls(
            account=AccountConfig(),
            ssh_policy=SSHPolicyConfig(),
            notify=NotifyConfig(),
            pipeline=PipelineConfig(),
            logging=LoggingConfig(),
        )

    def validate_config(self) -> List[str]:
        """Validate configuration and return list of issues."""
        issues: List[str] = []

        if not self.account.username:
            issues.append("No automation username configured")

        if not self.account.allow_group:
            issues.append("No SSH allow-list group configured")

        if not self.account.shell.startswith("/"):
            issues.append(f"Shell must be an absolute path: {self.account.shell}")

        if self.notify.enabled and not self.notify.url:
            issues.append("Notification enabled but no URL configured")

        return issues
