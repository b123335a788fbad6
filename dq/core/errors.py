"""Error taxonomy shared by the audit and remediation layers."""


class DataQualityError(RuntimeError):
    """Base class for failures raised while auditing or fixing locations.

    ``summary`` is the short, stable text reported as a result's error;
    the full message carries the record details.
    """

    kind = "error"
    fatal = False
    summary = None


class NotFoundError(DataQualityError):
    """Raised when a location disappeared before it could be fixed."""

    kind = "not_found"


class ConflictError(DataQualityError):
    """Raised when a rename target id is already taken."""

    kind = "conflict"
    summary = "ID conflict"


class ValidationError(DataQualityError):
    """Raised when a value falls outside its allowed domain."""

    kind = "validation"


class UpstreamError(DataQualityError):
    """Raised when the record store or an external lookup fails."""

    kind = "upstream"


class AmbiguousFixError(DataQualityError):
    """Raised when no value is safe enough to apply without review."""

    kind = "ambiguous"


class InconsistentStateError(DataQualityError):
    """Raised when a multi-step write left the store half-applied.

    Operators have to resolve these by hand; they are never retried.
    """

    kind = "inconsistent"
    fatal = True


class StoreError(UpstreamError):
    """Raised when a database statement fails."""


class ConfigError(RuntimeError):
    """Raised when configuration or the overrides file is malformed."""
