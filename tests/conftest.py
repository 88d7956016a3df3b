import sys
from pathlib import Path

import pytest

# Ensure local source package (src/flipflag) is importable before tests collect
_PROJECT_ROOT: Path = Path(__file__).resolve().parents[1]
_SRC_PATH: Path = _PROJECT_ROOT / "src"
if _SRC_PATH.exists():
    sys.path.insert(0, str(_SRC_PATH))

from flipflag import Config  # noqa: E402


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clean environment variables before each test."""
    for name in (
        "FLIPFLAG_PUBLIC_KEY",
        "FLIPFLAG_PRIVATE_KEY",
        "FLIPFLAG_API_URL",
        "FLIPFLAG_CONFIG_PATH",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def base_url() -> str:
    return "https://test.flipflag.dev"


@pytest.fixture
def public_key() -> str:
    return "pub"


@pytest.fixture
def private_key() -> str:
    return "priv"


@pytest.fixture
def config(base_url: str, public_key: str, private_key: str) -> Config:
    return Config(public_key=public_key, private_key=private_key, api_url=base_url)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """A declaration file with one open-ended feature."""
    path = tmp_path / ".flipflag.yml"
    path.write_text(
        "contributor: dev@example.com\n"
        "my.feature:\n"
        "  times:\n"
        '    - started: "2025-01-01T10:00:00.000Z"\n'
        "      finished: null\n",
        encoding="utf-8",
    )
    return path
