from ._endpoint import Endpoint
from ._logs import setup_logging
from ._request_spec import RequestSpec
from ._user_agent import user_agent_value

__all__ = [
    "Endpoint",
    "setup_logging",
    "RequestSpec",
    "user_agent_value",
]
