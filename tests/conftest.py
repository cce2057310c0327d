"""
Pytest configuration for the website stack test suite.

Tests import `infrastructure...` normally. The repository root is put on
`sys.path` so that works in a fresh checkout without an editable install.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest


REPO_ROOT = Path(__file__).resolve().parent.parent

# CDK/jsii tries to write to the user cache directory (e.g. ~/Library/Caches/...)
# during import. In the sandbox, writes outside the workspace are blocked, so we
# redirect the jsii runtime package cache into the repo.
os.environ.setdefault(
    "JSII_RUNTIME_PACKAGE_CACHE_ROOT",
    str(REPO_ROOT / ".jsii-package-cache"),
)

CONFIG_ENV_VARS = (
    "WEBSITE_GROUP_NAME",
    "WEBSITE_DOMAIN_SUFFIX",
    "WEBSITE_ALLOWED_SOURCE_IP",
    "WEBSITE_HOSTED_ZONE_ID",
    "WEBSITE_ZONE_NAME",
    "WEBSITE_PRICE_CLASS",
    "WEBSITE_GEO_DENYLIST",
    "WEBSITE_ASSET_PATH",
    "CDK_DEFAULT_ACCOUNT",
    "CDK_DEFAULT_REGION",
    "LOG_LEVEL",
)


def pytest_configure() -> None:
    """Ensure the local `infrastructure` package is importable for tests."""
    if str(REPO_ROOT) not in sys.path:
        sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """
    Isolate configuration loading from the developer's shell and .env files.

    Every config variable is registered with monkeypatch (set, then removed) so
    values a test loads from a .env file are rolled back afterwards too.
    """
    from infrastructure import config

    for name in CONFIG_ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)

    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config, "REPO_ROOT", tmp_path)
    return tmp_path
