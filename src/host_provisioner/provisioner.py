"""Main host provisioning implementation."""

import getpass
import sys
from typing import Callable, List, Optional, Sequence, Tuple

import structlog

from host_provisioner.config import ProvisionerConfig
from host_provisioner.distros import package_manager_of, profile_for
from host_provisioner.exceptions import (
    ConfigurationError,
    NotificationError,
    PipelineHaltedError,
    SystemRequirementError,
)
from host_provisioner.notifier import OrchestratorNotifier
from host_provisioner.system_info import SystemInfo
from host_provisioner.types import (
    Command,
    CommandChain,
    Distro,
    FailurePolicy,
    StepResult,
    StepStatus,
)
from host_provisioner.utils.command import CommandExecutor, format_command
from host_provisioner.utils.file import FileManager
from host_provisioner.utils.validation import Validator

logger = structlog.get_logger(__name__)

PasswordPrompt = Callable[[str], str]
Step = Callable[[Distro], StepResult]


class ProvisioningReport:
    """Ordered results of one pipeline run."""

    def __init__(self, distro: Distro) -> None:
        self.distro = distro
        self.results: List[StepResult] = []

    def add(self, result: StepResult) -> None:
        self.results.append(result)

    @property
    def failed(self) -> List[StepResult]:
        return [r for r in self.results if r.status is StepStatus.FAILED]

    @property
    def succeeded(self) -> bool:
        return not self.failed

    def get(self, step: str) -> Optional[StepResult]:
        for result in self.results:
            if result.step == step:
                return result
        return None


class MachineProvisioner:
    """Bring a fresh host to the state expected by configuration management."""

    def __init__(
        self,
        config: ProvisionerConfig,
        dry_run: bool = False,
        system: Optional[SystemInfo] = None,
        executor: Optional[CommandExecutor] = None,
        file_manager: Optional[FileManager] = None,
        validator: Optional[Validator] = None,
        notifier: Optional[OrchestratorNotifier] = None,
        password_prompt: Optional[PasswordPrompt] = None,
    ) -> None:
        """Initialize the provisioner.

        Args:
            config: Configuration object
            dry_run: If True, only simulate changes
            system: Detected host facts, inspected now if omitted
            executor: Runs external commands
            file_manager: Writes the sudoers and SSH policy files
            validator: Checks credentials and the user database
            notifier: Reports the host to the orchestrator
            password_prompt: Reads the automation account password
        """
        self.config = config
        self.dry_run = dry_run

        self.system = system or SystemInfo()
        self.executor = executor or CommandExecutor(
            dry_run=dry_run, timeout=config.pipeline.command_timeout
        )
        self.file_manager = file_manager or FileManager(dry_run=dry_run)
        self.validator = validator or Validator()
        self.notifier = notifier or OrchestratorNotifier(
            config.notify.url, timeout=config.notify.timeout, dry_run=dry_run
        )
        self.password_prompt = password_prompt or getpass.getpass

    def preflight_checks(self) -> None:
        """Verify the run can make system changes.

        Raises:
            SystemRequirementError: If not running as root on Linux
            ConfigurationError: If configuration is invalid
        """
        logger.info("Starting preflight checks")

        if not sys.platform.startswith("linux"):
            raise SystemRequirementError("This tool only supports Linux systems")

        if not self.system.is_root:
            if not self.dry_run:
                raise SystemRequirementError(
                    "This script must be run as root. "
                    "Please use 'sudo' or switch to the root user."
                )
            logger.warning("Not running as root, dry run only")

        issues = self.config.validate_config()
        if issues:
            for issue in issues:
                logger.error("preflight_issue", issue=issue)
            raise ConfigurationError("; ".join(issues))

        logger.info("Preflight checks passed")

    def steps(self) -> List[Tuple[Step, FailurePolicy]]:
        """Pipeline steps in execution order with their failure policy."""
        system_policy = self.config.pipeline.on_system_failure
        provisioning_policy = self.config.pipeline.on_provisioning_failure
        return [
            (self.update_system, system_policy),
            (self.install_packages, system_policy),
            (self.start_ssh_service, system_policy),
            (self.create_allow_group, provisioning_policy),
            (self.create_automation_user, provisioning_policy),
            (self.write_ssh_policy, provisioning_policy),
            (self.notify_orchestrator, provisioning_policy),
        ]

    def run(self) -> ProvisioningReport:
        """Execute the provisioning pipeline.

        Returns:
            Report with one result per step

        Raises:
            SystemRequirementError: If preflight checks fail
            PipelineHaltedError: If a failed step's policy is HALT
        """
        logger.info("Starting configuration for new machine", dry_run=self.dry_run)
        self.preflight_checks()

        distro = self.system.distro
        if distro is Distro.UNKNOWN:
            logger.warning(
                "Unknown distribution type. "
                "Please run this on a Debian, Red Hat, or Arch-based system."
            )
        else:
            logger.info("Distribution detected", **self.system.to_dict())

        report = ProvisioningReport(distro)
        for step, policy in self.steps():
            result = step(distro)
            report.add(result)
            self._log_result(result)

            if result.failed and policy is FailurePolicy.HALT:
                raise PipelineHaltedError(result.step, result.message)

        if report.succeeded:
            logger.info("Configuration completed successfully")
        else:
            logger.warning(
                "Configuration completed with failures",
                failed=[r.step for r in report.failed],
            )
        return report

    def update_system(self, distro: Distro) -> StepResult:
        """Refresh package metadata and upgrade installed packages."""
        logger.info("Updating the system", package_manager=package_manager_of(distro))
        profile = profile_for(distro)
        if profile is None:
            return self._skipped("update_system", "Unsupported distribution for system update.")
        return self._run_commands("update_system", profile.update, "System updated")

    def install_packages(self, distro: Distro) -> StepResult:
        """Install the SSH server package."""
        logger.info("Installing necessary packages")
        profile = profile_for(distro)
        if profile is None:
            return self._skipped(
                "install_packages", "Unsupported distribution for package installation."
            )
        return self._run_commands("install_packages", profile.install, "SSH server installed")

    def start_ssh_service(self, distro: Distro) -> StepResult:
        """Start the SSH daemon and enable it at boot."""
        logger.info("Starting SSH daemon")
        profile = profile_for(distro)
        if profile is None:
            return self._skipped(
                "start_ssh_service", "Unsupported distribution for starting SSH daemon."
            )
        return self._run_commands(
            "start_ssh_service", profile.service, "SSH daemon started and enabled"
        )

    def create_allow_group(self, distro: Distro) -> StepResult:
        """Create the group whose members may log in over SSH."""
        group = self.config.account.allow_group
        logger.info("Creating SSH allow-list group", group=group)

        if profile_for(distro) is None:
            return self._failed(
                "create_allow_group", "Unsupported distribution for group creation."
            )

        if self.validator.group_exists(group):
            return self._failed(
                "create_allow_group", f"Failed to create group {group}: group already exists"
            )

        cmd: Command = ("groupadd", group)
        result = self.executor.execute(cmd)
        if not result.success:
            return self._failed(
                "create_allow_group",
                f"Failed to create group {group}: {result.stderr}",
                cmd,
            )
        return self._succeeded("create_allow_group", f"Group '{group}' created successfully.")

    def create_automation_user(self, distro: Distro) -> StepResult:
        """Create the automation account with admin rights and SSH access.

        The four mutations are not transactional: a failure after the
        account is created leaves it in place without the later settings.
        """
        step = "create_automation_user"
        account = self.config.account
        username = account.username

        profile = profile_for(distro)
        if profile is None:
            return self._failed(
                step, f"Unsupported distribution for user creation: {distro.value}"
            )

        try:
            password = self.password_prompt(f"Enter the password for the {username} user: ")
        except EOFError:
            password = ""

        errors = self.validator.validate_credentials(username, password)
        if errors:
            return self._failed(step, f"Error: {' '.join(errors)}")

        if self.validator.user_exists(username):
            return self._failed(step, f"Error: User {username} already exists.")

        logger.info("Creating a new user", user=username)

        create_cmd: Command = ("useradd", "-m", "-s", account.shell, username)
        result = self.executor.execute(create_cmd)
        if not result.success:
            return self._failed(
                step, f"Failed to create user {username}: {result.stderr}", create_cmd
            )

        groups = f"{profile.admin_group},{account.allow_group}"
        mutations: List[Tuple[Command, Optional[str], str]] = [
            (("chpasswd",), f"{username}:{password}\n", f"Failed to set password for {username}"),
            (
                ("usermod", "-aG", groups, username),
                None,
                f"Failed to add {username} to {profile.admin_group} group",
            ),
        ]
        for cmd, stdin, error in mutations:
            result = self.executor.execute(cmd, input=stdin)
            if not result.success:
                return self._partial_user(step, f"{error}: {result.stderr}", cmd)

        sudoers_line = f"{username}  ALL=(ALL)  NOPASSWD: ALL"
        try:
            self.file_manager.append_line(account.sudoers_file, sudoers_line)
        except (OSError, UnicodeError) as e:
            return self._partial_user(step, f"Failed to add {username} user to sudoers: {e}")

        return self._succeeded(step, f"User {username} created successfully.")

    def write_ssh_policy(self, distro: Distro) -> StepResult:
        """Append the root-login and allow-group directives to the drop-in.

        Re-running appends the directives again unless
        ``skip_existing_directives`` is set.
        """
        step = "write_ssh_policy"
        policy = self.config.ssh_policy
        path = policy.path
        logger.info("Creating SSH user configuration file", file=str(path))

        try:
            self.file_manager.touch(path)
        except OSError as e:
            return self._failed(step, f"Failed to create SSH user configuration file: {e}")

        directives = [
            "PermitRootLogin no",
            f"AllowGroups {self.config.account.allow_group}",
        ]
        for directive in directives:
            try:
                if self.file_manager.has_line(path, directive):
                    if policy.skip_existing_directives:
                        logger.info("Directive already present", directive=directive)
                        continue
                    logger.warning(
                        "Directive already present, appending duplicate",
                        directive=directive,
                    )
                self.file_manager.append_line(path, directive)
            except (OSError, UnicodeError) as e:
                return self._failed(
                    step, f"Failed to write to SSH user configuration file: {e}"
                )

        return self._succeeded(step, f"SSH policy written to {path}")

    def notify_orchestrator(self, distro: Distro) -> StepResult:
        """Report hostname and address to the orchestration server."""
        step = "notify_orchestrator"
        if not self.config.notify.enabled:
            return self._skipped(step, "Notification disabled")

        logger.info("Informing Ansible about the new machine", url=self.config.notify.url)
        try:
            self.notifier.notify(self.system.identity)
        except NotificationError as e:
            return self._failed(step, f"Failed to inform Ansible about the new machine: {e}")

        return self._succeeded(step, f"Reported {self.system.identity.payload()}")

    def _run_commands(
        self, step: str, chains: Sequence[CommandChain], success_message: str
    ) -> StepResult:
        """Run every chain, each one stopping at its first failed command."""
        failures: List[str] = []
        first_failed: Optional[Command] = None
        for chain in chains:
            for cmd in chain:
                result = self.executor.execute(cmd)
                if not result.success:
                    detail = result.stderr or f"exit status {result.return_code}"
                    failures.append(f"{format_command(cmd)} failed: {detail}")
                    first_failed = first_failed or cmd
                    break

        if failures:
            return self._failed(step, "; ".join(failures), first_failed)
        return self._succeeded(step, success_message)

    def _partial_user(
        self, step: str, message: str, cmd: Optional[Command] = None
    ) -> StepResult:
        logger.warning(
            "Account left partially provisioned", user=self.config.account.username
        )
        return self._failed(step, f"{message} (account partially provisioned)", cmd)

    @staticmethod
    def _succeeded(step: str, message: str) -> StepResult:
        return StepResult(step, StepStatus.SUCCEEDED, message)

    @staticmethod
    def _failed(step: str, message: str, cmd: Optional[Command] = None) -> StepResult:
        return StepResult(step, StepStatus.FAILED, message, cmd)

    @staticmethod
    def _skipped(step: str, message: str) -> StepResult:
        return StepResult(step, StepStatus.SKIPPED, message)

    @staticmethod
    def _log_result(result: StepResult) -> None:
        if result.status is StepStatus.FAILED:
            logger.error("Step failed", step=result.step, error=result.message)
        elif result.status is StepStatus.SKIPPED:
            logger.warning("Step skipped", step=result.step, reason=result.message)
        else:
            logger.info("Step completed", step=result.step, detail=result.message)
