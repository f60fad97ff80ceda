"""System information detection for Host Provisioner."""

import os
import socket
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import structlog

from host_provisioner.types import Distro, HostIdentity
from host_provisioner.utils.command import CommandExecutor

logger = structlog.get_logger(__name__)

# Checked in order, the first marker present wins.
DISTRO_MARKERS: List[Tuple[str, Distro]] = [
    ("etc/debian_version", Distro.DEBIAN),
    ("etc/redhat-release", Distro.REDHAT),
    ("etc/arch-release", Distro.ARCH),
]

UNKNOWN_ADDRESS = "unknown"


def detect_distro(root: Path = Path("/")) -> Distro:
    """Classify the host by the distribution marker files under ``root``."""
    for marker, distro in DISTRO_MARKERS:
        if (root / marker).exists():
            return distro
    return Distro.UNKNOWN


class SystemInfo:
    """Detect and store host facts used by the provisioning steps."""

    def __init__(
        self,
        root: Path = Path("/"),
        executor: Optional[CommandExecutor] = None,
    ) -> None:
        """Initialize system information detection.

        Args:
            root: Filesystem root holding the distribution markers
            executor: Runs the address lookup commands
        """
        self.root = root
        # Address lookups are read-only, so they always run for real.
        self._executor = executor or CommandExecutor()
        self.distro = detect_distro(root)
        self.is_root = os.geteuid() == 0
        self.identity = HostIdentity(
            hostname=socket.gethostname(),
            ip_address=self._detect_ip_address(),
        )

    def _detect_ip_address(self) -> str:
        """Get the host's primary IP address."""
        result = self._executor.execute(("hostname", "-I"))
        if result.success and result.stdout.split():
            return result.stdout.split()[0]

        result = self._executor.execute(("ip", "-4", "route", "get", "1.1.1.1"))
        if result.success:
            fields = result.stdout.split()
            if "src" in fields and fields.index("src") + 1 < len(fields):
                return fields[fields.index("src") + 1]

        logger.warning("ip_address_not_found")
        return UNKNOWN_ADDRESS

    def to_dict(self) -> Dict[str, str]:
        """Convert system info to dictionary."""
        return {
            "distro": self.distro.value,
            "is_root": str(self.is_root),
            "hostname": self.identity.hostname,
            "ip_address": self.identity.ip_address,
        }
