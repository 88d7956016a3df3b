from .errors import (
    ConfigParseError,
    ConfigReadError,
    ConfigShapeError,
    FlipFlagConfigurationError,
    FlipFlagError,
    FlipFlagRemoteError,
    InvalidDateError,
    LifecycleError,
    MissingBaseUrlError,
    MissingPublicKeyError,
    RemoteConnectionError,
    RemoteFetchError,
)
from .features import (
    DeclarationTime,
    FeatureDeclaration,
    FeatureFlag,
    FeatureUsage,
    ManagerState,
)

__all__ = [
    "ConfigParseError",
    "ConfigReadError",
    "ConfigShapeError",
    "DeclarationTime",
    "FeatureDeclaration",
    "FeatureFlag",
    "FeatureUsage",
    "FlipFlagConfigurationError",
    "FlipFlagError",
    "FlipFlagRemoteError",
    "InvalidDateError",
    "LifecycleError",
    "ManagerState",
    "MissingBaseUrlError",
    "MissingPublicKeyError",
    "RemoteConnectionError",
    "RemoteFetchError",
]
