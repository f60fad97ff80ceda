"""Type definitions for Host Provisioner."""

from enum import Enum
from typing import NamedTuple, Optional, Tuple


class Distro(str, Enum):
    """Supported distribution families."""

    DEBIAN = "debian"
    REDHAT = "redhat"
    ARCH = "arch"
    UNKNOWN = "unknown"


class FailurePolicy(str, Enum):
    """What the pipeline does when a step fails."""

    CONTINUE = "continue"
    HALT = "halt"


class StepStatus(str, Enum):
    """Outcome of a single provisioning step."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


Command = Tuple[str, ...]
# Commands joined as with shell "&&": a failure skips the rest of the chain.
CommandChain = Tuple[Command, ...]


class CommandResult(NamedTuple):
    """Result of command execution."""

    success: bool
    stdout: str
    stderr: str
    return_code: int = 0


class DistroProfile(NamedTuple):
    """Commands and groups used for one distribution family.

    Each step holds independent chains; one failing chain does not stop
    the next.
    """

    update: Tuple[CommandChain, ...]
    install: Tuple[CommandChain, ...]
    service: Tuple[CommandChain, ...]
    admin_group: str


class HostIdentity(NamedTuple):
    """Hostname and primary address reported to the orchestrator."""

    hostname: str
    ip_address: str

    def payload(self) -> str:
        return f"{self.hostname}:{self.ip_address}"


class StepResult(NamedTuple):
    """Result of a provisioning step."""

    step: str
    status: StepStatus
    message: str = ""
    command: Optional[Command] = None

    @property
    def failed(self) -> bool:
        return self.status is StepStatus.FAILED
