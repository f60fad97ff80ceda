"""Host Provisioner - first-boot setup for new Linux machines."""

__version__ = "1.0.0"
__author__ = "DevOps Team"
__license__ = "MIT"

from host_provisioner.exceptions import (
    ConfigurationError,
    NotificationError,
    PipelineHaltedError,
    ProvisionerError,
    SystemRequirementError,
)
from host_provisioner.provisioner import MachineProvisioner, ProvisioningReport
from host_provisioner.system_info import SystemInfo, detect_distro

__all__ = [
    "MachineProvisioner",
    "ProvisioningReport",
    "SystemInfo",
    "detect_distro",
    "ProvisionerError",
    "ConfigurationError",
    "NotificationError",
    "PipelineHaltedError",
    "SystemRequirementError",
]
