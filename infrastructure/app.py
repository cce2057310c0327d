"""AWS CDK Application for a group's static website."""

import sys
from pathlib import Path
from typing import Any, Mapping, Optional

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from aws_cdk import App, Environment, Tags

from infrastructure.config import ConfigError, load_config
from infrastructure.logging_config import configure_logging
from infrastructure.stacks.website_bucket_stack import WebsiteBucketStack


CONTEXT_KEYS = (
    "group_name",
    "domain_suffix",
    "allowed_source_ip",
    "hosted_zone_id",
    "zone_name",
    "price_class",
    "geo_denylist",
    "website_asset_path",
)


def _read_context(app: App) -> dict:
    context = {}
    for key in CONTEXT_KEYS:
        value = app.node.try_get_context(key)
        if value is not None:
            context[key] = value
    return context


def create_app(context: Optional[Mapping[str, Any]] = None) -> App:
    """
    Create and configure the CDK App.

    Args:
        context: Initial CDK context values (the CDK CLI passes `-c` values itself)

    Returns:
        Configured CDK App instance

    Raises:
        ConfigError: If the configuration is missing or invalid
    """
    app = App(context=dict(context) if context else None)

    log = configure_logging()
    try:
        config = load_config(_read_context(app), log=log)
    except ConfigError as exc:
        log.error("%s", exc)
        raise
    configure_logging(config.log_level)

    settings = config.settings
    log.info(
        "synthesizing website for group %s (%s, region=%s)",
        config.group_name,
        settings.site_domain(config.group_name),
        config.region,
    )
    log.debug("site settings: %s", settings)

    # Global tags applied to all stacks in this app
    Tags.of(app).add("Project", "static-website")
    Tags.of(app).add("ManagedBy", "CDK")
    Tags.of(app).add("Group", config.group_name)

    # The Route 53 S3 website alias needs a concrete region, so it always has a default.
    env_config = Environment(account=config.account, region=config.region)

    WebsiteBucketStack(
        app,
        f"WebsiteBucketStack-{config.group_name}",
        group_name=config.group_name,
        settings=settings,
        env=env_config,
        description=f"Static website for group {config.group_name}",
    )

    return app


if __name__ == "__main__":
    create_app().synth()
