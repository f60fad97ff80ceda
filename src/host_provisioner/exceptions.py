"""Custom exceptions for Host Provisioner."""


class ProvisionerError(Exception):
    """Base exception for all provisioner errors."""

    pass


class ConfigurationError(ProvisionerError):
    """Raised when configuration is invalid."""

    pass


class SystemRequirementError(ProvisionerError):
    """Raised when system requirements are not met."""

    pass


class NotificationError(ProvisionerError):
    """Raised when the orchestrator cannot be notified."""

    pass


class PipelineHaltedError(ProvisionerError):
    """Raised when a failed step stops the pipeline."""

    def __init__(self, step: str, message: str) -> None:
        super().__init__(f"Step {step} failed: {message}")
        self.step = step
        self.message = message
