"""Utility modules for Host Provisioner."""

from host_provisioner.utils.command import CommandExecutor
from host_provisioner.utils.file import FileManager
from host_provisioner.utils.log import configure_logging
from host_provisioner.utils.validation import Validator

__all__ = ["CommandExecutor", "FileManager", "Validator", "configure_logging"]
