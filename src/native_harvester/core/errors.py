"""Custom exceptions for native-harvester."""


class HarvestError(Exception):
    """Base exception for all harvesting errors."""

    def __init__(self, message: str, cause: BaseException | None = None):
        self.message = message
        self.cause = cause
        super().__init__(message)


class ConfigError(HarvestError):
    """Raised when a build config file is missing or malformed."""


class UnsupportedRuntimeError(HarvestError):
    """Raised for runtime identifiers that do not map to a supported OS family."""


class PackageInfoError(HarvestError):
    """Raised when the package manager has no (usable) metadata for a package."""


class ClosureError(HarvestError):
    """Raised when the binary closure of a library cannot be built."""


class ClosureNotFound(ClosureError):
    """Raised when the library's package is not installed; callers skip the library."""


class PlannerError(HarvestError):
    """Raised when a deployment plan cannot be created."""


class DeployError(HarvestError):
    """Raised when a deployment action fails; earlier actions are not rolled back."""

    def __init__(self, message: str, cause: BaseException | None = None, action_type: str | None = None):
        self.action_type = action_type
        super().__init__(message, cause)
