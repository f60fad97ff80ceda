"""Command execution utilities."""

import shlex
import subprocess
from typing import Optional, Sequence

import structlog

from host_provisioner.types import CommandResult

logger = structlog.get_logger(__name__)


def format_command(cmd: Sequence[str]) -> str:
    """Render an argument vector as a shell-quoted string for logs."""
    return " ".join(shlex.quote(part) for part in cmd)


class CommandExecutor:
    """Execute system commands with proper error handling."""

    def __init__(self, dry_run: bool = False, timeout: Optional[float] = None) -> None:
        """Initialize command executor.

        Args:
            dry_run: If True, only log commands without executing
            timeout: Default timeout in seconds, None waits forever
        """
        self.dry_run = dry_run
        self.timeout = timeout

    def execute(
        self,
        cmd: Sequence[str],
        input: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        """Execute a command without a shell.

        Args:
            cmd: Argument vector to execute
            input: Text fed to the command's stdin, never logged
            timeout: Command timeout in seconds, overrides the default

        Returns:
            CommandResult with execution details
        """
        printable = format_command(cmd)
        timeout = timeout if timeout is not None else self.timeout

        if self.dry_run:
            logger.info("dry_run_command", command=printable)
            return CommandResult(True, f"[DRY RUN] {printable}", "", 0)

        logger.debug("running_command", command=printable)

        try:
            result = subprocess.run(
                list(cmd),
                input=input,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=timeout,
                check=False,
            )

            cmd_result = CommandResult(
                success=result.returncode == 0,
                stdout=result.stdout,
                stderr=result.stderr.strip(),
                return_code=result.returncode,
            )

            if not cmd_result.success:
                logger.debug(
                    "command_failed",
                    command=printable,
                    return_code=result.returncode,
                    stderr=cmd_result.stderr,
                )

            return cmd_result

        except subprocess.TimeoutExpired:
            error_msg = f"Command timed out after {timeout}s: {printable}"
            return CommandResult(False, "", error_msg, -1)

        except OSError as e:
            error_msg = f"Command execution failed: {printable}\nError: {e}"
            return CommandResult(False, "", error_msg, -1)

