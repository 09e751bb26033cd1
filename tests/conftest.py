"""
Pytest configuration: default runs most tests; use --run-slow to include slow tests.
"""

import base64
import io
from pathlib import Path

import pytest
from PIL import Image

from stylemix.core.config import Config


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="Run slow tests (live Gemini calls). Default: skip them.",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if config.getoption("--run-slow", False):
        return
    skip_slow = pytest.mark.skip(reason="Slow test; run with --run-slow to include")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


def _png_bytes(size: tuple[int, int] = (2, 2), color: tuple[int, int, int] = (200, 10, 10)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color=color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    """A tiny valid PNG."""
    return _png_bytes()


@pytest.fixture
def png_b64(png_bytes: bytes) -> str:
    return base64.b64encode(png_bytes).decode("ascii")


@pytest.fixture
def png_data_uri(png_b64: str) -> str:
    return f"data:image/png;base64,{png_b64}"


@pytest.fixture
def test_config(tmp_path: Path) -> Config:
    """Config that never touches the user's home directory."""
    return Config(
        gemini_api_key="test-key-1234567890",
        credential_store_path=tmp_path / "credentials.json",
    )
