"""
Exception types for the hook framework.

Propagation policy:
    - ConfigurationError is only raised on request (ValidationResult.raise_for_errors);
      validation itself reports errors as data.
    - DiscoveryError never escapes a discovery function; it is caught at the
      source boundary and logged.
    - An exception escaping a hook's execute() keeps its own type; the
      registry and the error_handler middleware turn it into a FAILURE result.
    - ServiceError is raised by the analysis client and must be handled by
      the hook that made the call.
"""


class HookError(Exception):
    """Base class for all hook framework errors."""


class ConfigurationError(HookError):
    """Configuration does not satisfy its schema."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []


class DiscoveryError(HookError):
    """A hook source could not be read or declares malformed entries."""


class HookNotFoundError(HookError):
    """No hook is registered under the requested id."""


class ServiceError(HookError):
    """The external analysis service failed or returned an unusable response."""
