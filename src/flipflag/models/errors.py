from pathlib import Path
from typing import Any, Optional, Union


class FlipFlagError(Exception):
    """Base class for every error raised by the FlipFlag SDK."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class FlipFlagConfigurationError(FlipFlagError):
    """The SDK or its local configuration file is misconfigured.

    Configuration errors are never swallowed, not even when they happen in a
    background sync.
    """


class ConfigReadError(FlipFlagConfigurationError):
    def __init__(self, path: Union[str, Path], cause: BaseException):
        self.path = str(path)
        self.cause = cause
        super().__init__(f"FlipFlag: cannot read config at {self.path}: {cause}")


class ConfigParseError(FlipFlagConfigurationError):
    def __init__(self, path: Union[str, Path], cause: BaseException):
        self.path = str(path)
        self.cause = cause
        super().__init__(f"FlipFlag: invalid YAML in {self.path}: {cause}")


class ConfigShapeError(FlipFlagConfigurationError):
    def __init__(
        self,
        message="FlipFlag: YAML root must be a mapping of feature name to feature config",
    ):
        super().__init__(message)


class InvalidDateError(FlipFlagConfigurationError):
    """A ``started`` or ``finished`` value is not a valid timestamp."""

    def __init__(self, feature_name: str, field: str, value: Any):
        self.feature_name = feature_name
        self.field = field
        self.value = value
        super().__init__(
            f'FlipFlag: invalid "{field}" date in {feature_name}: {value!r}'
        )


class MissingPublicKeyError(FlipFlagConfigurationError):
    def __init__(
        self,
        message="Public key is missing. Please provide a valid public_key in the SDK configuration or set the FLIPFLAG_PUBLIC_KEY environment variable.",
    ):
        super().__init__(message)


class MissingBaseUrlError(FlipFlagConfigurationError):
    def __init__(
        self,
        message="Base API URL is not configured. Please provide api_url in the SDK options or set the FLIPFLAG_API_URL environment variable.",
    ):
        super().__init__(message)


class FlipFlagRemoteError(FlipFlagError):
    """The FlipFlag API could not be reached or answered with an error."""


class RemoteFetchError(FlipFlagRemoteError):
    """Fetching feature flags failed.

    Carries the HTTP status code and the raw response body so callers can
    tell an authentication problem from an outage.
    """

    def __init__(self, status_code: int, body: str, reason: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        message = f"Failed to get features: {status_code} - {body}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class RemoteConnectionError(FlipFlagRemoteError):
    def __init__(self, url: str, cause: BaseException):
        self.url = url
        self.cause = cause
        super().__init__(f"FlipFlag: request to {url} failed: {cause!r}")


class LifecycleError(FlipFlagError):
    """An operation was attempted in a state that does not allow it."""
