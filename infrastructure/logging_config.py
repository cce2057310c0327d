"""Logging setup for CDK synth runs."""

import logging


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _coerce_log_level(level: str) -> int:
    level_upper = (level or "").strip().upper()
    if not level_upper:
        return logging.INFO
    return logging._nameToLevel.get(level_upper, logging.INFO)


def configure_logging(level: str = "INFO") -> logging.LoggerAdapter:
    """
    Configure logging for synth runs.

    - Uses root logger configuration only if nothing is configured yet.
    - Logs go to stderr, which the CDK CLI shows next to its own output.
    """
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=_coerce_log_level(level), format=LOG_FORMAT)
    else:
        root.setLevel(_coerce_log_level(level))

    return logging.LoggerAdapter(logging.getLogger("infrastructure"), {})
