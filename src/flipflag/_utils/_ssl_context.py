import os
import ssl
from typing import Any, Optional

DEFAULT_TIMEOUT = 30.0

# Checked in order; the first one set wins.
_CA_BUNDLE_ENV_VARS = ("SSL_CERT_FILE", "REQUESTS_CA_BUNDLE")


def expand_path(path: Optional[str]) -> Optional[str]:
    """Expand environment variables and user home directory in path."""
    if not path:
        return path
    return os.path.expanduser(os.path.expandvars(path))


def _ca_bundle() -> Optional[str]:
    for name in _CA_BUNDLE_ENV_VARS:
        path = expand_path(os.environ.get(name))
        if path:
            return path
    return None


def create_ssl_context() -> ssl.SSLContext:
    # Try truststore first (system certificates)
    try:
        import truststore

        return truststore.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    except ImportError:
        import certifi

        return ssl.create_default_context(
            cafile=_ca_bundle() or certifi.where(),
            capath=expand_path(os.environ.get("SSL_CERT_DIR")),
        )


def get_httpx_client_kwargs() -> dict[str, Any]:
    """Keyword arguments shared by every httpx client of the SDK.

    Request timeouts are left to the transport; the manager never adds its
    own on top.
    """
    return {
        "verify": create_ssl_context(),
        "follow_redirects": True,
        "timeout": DEFAULT_TIMEOUT,
        "trust_env": True,
    }
