"""Pytest configuration and fixtures."""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pytest
import structlog

from host_provisioner.config import ProvisionerConfig
from host_provisioner.provisioner import MachineProvisioner
from host_provisioner.system_info import SystemInfo
from host_provisioner.types import CommandResult, Distro, HostIdentity
from host_provisioner.utils.command import CommandExecutor
from host_provisioner.utils.file import FileManager
from host_provisioner.utils.log import LOGGER_NAME, OUTPUT_LOGGER_NAME
from host_provisioner.utils.validation import Validator


class RecordingExecutor(CommandExecutor):
    """Executor that records commands instead of running them."""

    def __init__(self, failures: Optional[Dict[str, str]] = None) -> None:
        super().__init__()
        # Maps a command's program name to the stderr it fails with.
        self.failures = failures or {}
        self.calls: List[Tuple[Tuple[str, ...], Optional[str]]] = []

    def execute(self, cmd: Sequence[str], input=None, timeout=None):
        cmd = tuple(cmd)
        self.calls.append((cmd, input))
        if cmd[0] in self.failures:
            return CommandResult(False, "", self.failures[cmd[0]], 1)
        return CommandResult(True, "", "", 0)

    @property
    def commands(self) -> List[Tuple[str, ...]]:
        return [cmd for cmd, _ in self.calls]

    def programs(self) -> List[str]:
        return [cmd[0] for cmd in self.commands]


class FakeValidator(Validator):
    """Validator with fixed sets of existing users and groups."""

    def __init__(
        self, existing_users: Sequence[str] = (), existing_groups: Sequence[str] = ()
    ) -> None:
        self.existing_users = set(existing_users)
        self.existing_groups = set(existing_groups)

    def user_exists(self, username: str) -> bool:
        return username in self.existing_users

    def group_exists(self, group: str) -> bool:
        return group in self.existing_groups


class FakeSystemInfo(SystemInfo):
    """Host facts without touching the real system."""

    def __init__(self, distro: Distro, is_root: bool = True) -> None:
        self.root = Path("/")
        self.distro = distro
        self.is_root = is_root
        self.identity = HostIdentity("node01", "10.0.0.5")


class RecordingNotifier:
    """Notifier that records identities and optionally fails."""

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.sent: List[HostIdentity] = []

    def notify(self, identity: HostIdentity) -> None:
        self.sent.append(identity)
        if self.error is not None:
            raise self.error


@pytest.fixture
def test_config(tmp_path: Path) -> ProvisionerConfig:
    """Create test configuration with every path under tmp_path."""
    config = ProvisionerConfig.from_env()
    sshd_dir = tmp_path / "sshd_config.d"
    sshd_dir.mkdir()
    config.ssh_policy.path = sshd_dir / "ssh_user.conf"
    config.account.sudoers_file = tmp_path / "sudoers"
    config.account.sudoers_file.write_text("root ALL=(ALL) ALL\n")
    config.logging.file = tmp_path / "provision.log"
    return config


@pytest.fixture
def executor() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def make_provisioner(test_config, executor, notifier):
    """Build a provisioner wired to fakes."""

    def _make(
        distro: Distro = Distro.DEBIAN,
        password: str = "s3cret",
        existing_users: Sequence[str] = (),
        existing_groups: Sequence[str] = (),
        **overrides,
    ) -> MachineProvisioner:
        kwargs = dict(
            system=FakeSystemInfo(distro),
            executor=executor,
            file_manager=FileManager(),
            validator=FakeValidator(existing_users, existing_groups),
            notifier=notifier,
            password_prompt=lambda prompt: password,
        )
        kwargs.update(overrides)
        return MachineProvisioner(test_config, **kwargs)

    return _make


@pytest.fixture
def fake_root(tmp_path: Path) -> Path:
    """Empty filesystem root for distribution detection."""
    root = tmp_path / "root"
    (root / "etc").mkdir(parents=True)
    return root


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo configure_logging between tests."""
    yield
    structlog.reset_defaults()
    for name in (OUTPUT_LOGGER_NAME, LOGGER_NAME):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.propagate = True
