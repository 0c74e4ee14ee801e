"""Exception types raised by the cleaner."""


class CleanerError(Exception):
    """Base class for cleaner errors."""


class CapabilityError(CleanerError):
    """Raised when repair behavior is requested from an auditor that cannot repair."""

    def __init__(self, auditor_name: str):
        super().__init__(f"Auditor '{auditor_name}' does not support fixing")
        self.auditor_name = auditor_name


class ConfigError(CleanerError):
    """Raised when the project configuration file cannot be loaded."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Invalid configuration in {path}: {reason}")
        self.path = path
        self.reason = reason
