"""Custom exception hierarchy for gitscope."""


class GitscopeError(Exception):
    """Base exception for all gitscope errors."""


class DuplicateClassError(GitscopeError):
    """Raised when a project class is redefined with incompatible variables."""


class UnknownClassError(GitscopeError):
    """Raised when a binding references a project class that was never defined."""


class InvalidScopeError(GitscopeError):
    """Raised when a scope variable holds a value that cannot be applied."""


class NotFoundError(GitscopeError):
    """Raised when no working-copy root exists above a path."""


class NotInProjectError(GitscopeError):
    """Raised when a project operation is attempted outside any resolved project."""


class UntrustedConfigurationError(NotInProjectError):
    """Raised when a binding's values are not on the trust list and were not confirmed."""


class SubprocessTimeout(GitscopeError):
    """Raised when the external git process exceeds the configured timeout."""


class StorageError(GitscopeError):
    """Raised on persistence failures (DB connection, unserializable values, etc.)."""
