from importlib.metadata import PackageNotFoundError, version

from .constants import USER_AGENT_PREFIX


def sdk_version() -> str:
    try:
        return version("flipflag")
    except PackageNotFoundError:
        return "0.0.0"


def user_agent_value() -> str:
    return f"{USER_AGENT_PREFIX}/{sdk_version()}"
