from pathlib import Path
from typing import Optional

from pydantic import BaseModel, field_validator

from ._utils.constants import DEFAULT_API_URL, DEFAULT_POLL_INTERVAL


class Config(BaseModel):
    """Options of a :class:`~flipflag.FlipFlag` manager.

    ``public_key`` is needed to read flags and report usage. ``private_key``
    is optional; without it the manager never registers features remotely.
    ``config_path`` defaults to ``.flipflag.yml`` in the working directory.
    """

    public_key: Optional[str] = None
    private_key: Optional[str] = None
    api_url: Optional[str] = DEFAULT_API_URL
    config_path: Optional[Path] = None
    ignore_missing_config: bool = True
    poll_interval: float = DEFAULT_POLL_INTERVAL
    debug: bool = False

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slashes(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.rstrip("/") or None

    @field_validator("poll_interval")
    @classmethod
    def _positive_interval(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("poll_interval must be greater than 0")
        return value
