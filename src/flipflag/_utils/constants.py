# Environment variables
ENV_PUBLIC_KEY = "FLIPFLAG_PUBLIC_KEY"
ENV_PRIVATE_KEY = "FLIPFLAG_PRIVATE_KEY"
ENV_API_URL = "FLIPFLAG_API_URL"
ENV_CONFIG_PATH = "FLIPFLAG_CONFIG_PATH"

# Defaults
DEFAULT_API_URL = "https://api.flipflag.dev"
DEFAULT_POLL_INTERVAL = 10.0
FLIPFLAG_CONFIG_FILE = ".flipflag.yml"

# Headers
HEADER_USER_AGENT = "User-Agent"
USER_AGENT_PREFIX = "FlipFlag.Python.Sdk"

# Endpoints
FEATURE_FLAGS_ENDPOINT = "/v1/sdk/feature/flags"
FEATURE_ENDPOINT = "/v1/sdk/feature"
FEATURE_USAGES_ENDPOINT = "/v1/sdk/feature/usages"

# Config file keys
CONFIG_CONTRIBUTOR_KEY = "contributor"
