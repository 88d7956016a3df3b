"""FlipFlag Python SDK.

Feature flags with a local cache: ``is_enabled`` never waits on the network,
flags, declarations and usage are synced in the background.
"""

from ._config import Config
from ._config_loader import load_declarations
from ._flipflag import FlipFlag
from .models import (
    ConfigParseError,
    ConfigReadError,
    ConfigShapeError,
    DeclarationTime,
    FeatureDeclaration,
    FeatureFlag,
    FeatureUsage,
    FlipFlagConfigurationError,
    FlipFlagError,
    FlipFlagRemoteError,
    InvalidDateError,
    LifecycleError,
    ManagerState,
    MissingBaseUrlError,
    MissingPublicKeyError,
    RemoteConnectionError,
    RemoteFetchError,
)

__all__ = [
    "Config",
    "ConfigParseError",
    "ConfigReadError",
    "ConfigShapeError",
    "DeclarationTime",
    "FeatureDeclaration",
    "FeatureFlag",
    "FeatureUsage",
    "FlipFlag",
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
    "load_declarations",
]
