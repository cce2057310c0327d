"""
Website stack configuration.

Loads .env and exposes the named values the website stack is built from. Every
value has a default except the group name and can be overridden via
environment variables or CDK context (`cdk synth -c group_name=team1`).

Environment variables:
  - WEBSITE_GROUP_NAME          (required unless passed as CDK context `group_name`)
  - WEBSITE_DOMAIN_SUFFIX       (optional, default: cloud-ha.com)
  - WEBSITE_ALLOWED_SOURCE_IP   (optional, default: 79.133.25.93/32)
  - WEBSITE_HOSTED_ZONE_ID      (optional, default: Z0413857YT73A0A8FRFF)
  - WEBSITE_ZONE_NAME           (optional, default: cloud-ha.com)
  - WEBSITE_PRICE_CLASS         (optional, default: PriceClass_100)
  - WEBSITE_GEO_DENYLIST        (optional, comma-separated, default: CN)
  - WEBSITE_ASSET_PATH          (optional, default: <repo>/website)
  - CDK_DEFAULT_ACCOUNT         (optional; normally provided by the CDK CLI)
  - CDK_DEFAULT_REGION          (optional, default: eu-north-1)
  - LOG_LEVEL                   (optional, default: INFO)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

from dotenv import load_dotenv

from infrastructure.validators import validate_site


REPO_ROOT = Path(__file__).resolve().parents[1]

DEFAULT_DOMAIN_SUFFIX = "cloud-ha.com"
DEFAULT_ALLOWED_SOURCE_IP = "79.133.25.93/32"
DEFAULT_HOSTED_ZONE_ID = "Z0413857YT73A0A8FRFF"
DEFAULT_ZONE_NAME = "cloud-ha.com"
DEFAULT_PRICE_CLASS = "PriceClass_100"
DEFAULT_GEO_DENYLIST: Tuple[str, ...] = ("CN",)
DEFAULT_ASSET_PATH = str(REPO_ROOT / "website")
DEFAULT_REGION = "eu-north-1"
DEFAULT_LOG_LEVEL = "INFO"

# Maps SiteSettings fields to their environment variable names.
_SETTING_ENV_VARS = {
    "domain_suffix": "WEBSITE_DOMAIN_SUFFIX",
    "allowed_source_ip": "WEBSITE_ALLOWED_SOURCE_IP",
    "hosted_zone_id": "WEBSITE_HOSTED_ZONE_ID",
    "zone_name": "WEBSITE_ZONE_NAME",
    "price_class": "WEBSITE_PRICE_CLASS",
    "geo_denylist": "WEBSITE_GEO_DENYLIST",
    "website_asset_path": "WEBSITE_ASSET_PATH",
}


class ConfigError(ValueError):
    """Invalid or missing configuration with a user-facing message."""


@dataclass(frozen=True)
class SiteSettings:
    """Fixed values embedded in the website declaration."""

    domain_suffix: str = DEFAULT_DOMAIN_SUFFIX
    allowed_source_ip: str = DEFAULT_ALLOWED_SOURCE_IP
    hosted_zone_id: str = DEFAULT_HOSTED_ZONE_ID
    zone_name: str = DEFAULT_ZONE_NAME
    price_class: str = DEFAULT_PRICE_CLASS
    geo_denylist: Tuple[str, ...] = field(default=DEFAULT_GEO_DENYLIST)
    website_asset_path: str = DEFAULT_ASSET_PATH

    def site_domain(self, group_name: str) -> str:
        """Return the bucket name and DNS record name for a group."""
        return f"{group_name}.{self.domain_suffix}"

    def export_name(self, group_name: str) -> str:
        """Return the CloudFormation export name of the website URL output."""
        return f"{group_name}-assignment2-url"


@dataclass(frozen=True)
class AppConfig:
    group_name: str
    settings: SiteSettings
    account: Optional[str]
    region: str
    log_level: str


def _load_dotenv(log: Optional[logging.LoggerAdapter] = None) -> None:
    """
    Load a .env file into the process environment (if one exists).

    Search order:
    1. Current working directory (.env)
    2. The repository root, one level up from this package

    Shell / CI environment variables already set take priority: we always
    call load_dotenv() with override=False so existing values are never
    overwritten.
    """
    cwd_env = Path.cwd() / ".env"
    repo_root_env = REPO_ROOT / ".env"

    env_file: Optional[Path] = None
    if cwd_env.is_file():
        env_file = cwd_env
    elif repo_root_env.is_file():
        env_file = repo_root_env

    if env_file is None:
        return

    loaded = load_dotenv(env_file, override=False)
    if log is not None:
        if loaded:
            log.debug("loaded .env from %s (shell vars take precedence)", env_file)
        else:
            log.debug(
                ".env found at %s but all variables were already set in the environment",
                env_file,
            )


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    """Get environment variable, stripped; return default if unset or empty."""
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip()
    return value or default


def _clean(value: Any) -> Optional[Any]:
    """Normalize a CDK context value: strip strings, treat empty as unset."""
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def parse_country_codes(value: Any) -> Tuple[str, ...]:
    """
    Parse a geo-restriction list.

    Accepts a comma-separated string ("CN, RU") or a sequence (JSON list from
    cdk.json context). Codes are upper-cased; blanks are dropped.
    """
    if isinstance(value, str):
        parts = value.split(",")
    else:
        parts = list(value)
    return tuple(str(part).strip().upper() for part in parts if str(part).strip())


def load_settings(context: Optional[Mapping[str, Any]] = None) -> SiteSettings:
    """
    Build SiteSettings from CDK context, environment variables and defaults.

    Args:
        context: CDK context values; these win over environment variables

    Returns:
        SiteSettings with every field resolved
    """
    context = context or {}
    overrides = {}
    for name, env_var in _SETTING_ENV_VARS.items():
        value = _clean(context.get(name))
        if value is None:
            value = _get_env(env_var)
        if value is None:
            continue
        if name == "geo_denylist":
            value = parse_country_codes(value)
        elif name == "website_asset_path":
            value = str(Path(value).expanduser().resolve())
        overrides[name] = value
    return replace(SiteSettings(), **overrides)


def ensure_valid_site(group_name: str, settings: SiteSettings) -> None:
    """
    Validate a group name with its settings.

    Raises:
        ConfigError: Listing every invalid field
    """
    result = validate_site(group_name, settings)
    if not result.is_valid:
        raise ConfigError(
            "Invalid website configuration: "
            + "; ".join(str(error) for error in result.errors)
        )


def load_config(
    context: Optional[Mapping[str, Any]] = None,
    *,
    log: Optional[logging.LoggerAdapter] = None,
) -> AppConfig:
    """
    Load the application configuration.

    Args:
        context: CDK context values (e.g. from `cdk synth -c group_name=team1`)
        log: Optional logger

    Returns:
        AppConfig

    Raises:
        ConfigError: If the group name is missing or any value is invalid
    """
    _load_dotenv(log=log)
    context = context or {}

    group_name = _clean(context.get("group_name")) or _get_env("WEBSITE_GROUP_NAME")
    if not group_name:
        raise ConfigError(
            "Missing group name: set WEBSITE_GROUP_NAME or pass -c group_name=<name>"
        )

    settings = load_settings(context)
    ensure_valid_site(group_name, settings)

    return AppConfig(
        group_name=group_name,
        settings=settings,
        account=_get_env("CDK_DEFAULT_ACCOUNT"),
        region=_get_env("CDK_DEFAULT_REGION", DEFAULT_REGION) or DEFAULT_REGION,
        log_level=_get_env("LOG_LEVEL", DEFAULT_LOG_LEVEL) or DEFAULT_LOG_LEVEL,
    )
