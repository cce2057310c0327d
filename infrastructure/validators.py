"""
Validation module for the website stack configuration.

Provides validation functions for every configurable value with structured
error handling. All functions are pure and never touch AWS.
"""

import ipaddress
import re
from typing import Any, Iterable, List, Tuple


PRICE_CLASSES = ("PriceClass_100", "PriceClass_200", "PriceClass_All")

_DNS_LABEL_RE = re.compile(r"^[a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?$")
_BUCKET_NAME_RE = re.compile(r"^[a-z0-9][a-z0-9.-]{1,61}[a-z0-9]$")
_IPV4_LIKE_RE = re.compile(r"^\d{1,3}(\.\d{1,3}){3}$")
_HOSTED_ZONE_ID_RE = re.compile(r"^Z[A-Z0-9]{1,31}$")
_COUNTRY_CODE_RE = re.compile(r"^[A-Z]{2}$")


class ValidationError:
    """Represents a single validation error."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class ValidationResult:
    """Result of validation containing errors if any."""

    def __init__(self, is_valid: bool, errors: List[ValidationError] = None):
        self.is_valid = is_valid
        self.errors = errors or []


def validate_group_name(value: str) -> Tuple[bool, str]:
    """
    Validate a group name.

    The group name becomes the leftmost label of the site domain, so it must be
    a single lowercase DNS label.

    Args:
        value: The group name to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, "Group name must be a string"
    if not value:
        return False, "Group name is required"
    if not _DNS_LABEL_RE.match(value):
        return False, (
            "Group name must be 1-63 lowercase letters, digits or hyphens "
            "and must not start or end with a hyphen"
        )
    return True, ""


def validate_domain_name(value: str) -> Tuple[bool, str]:
    """
    Validate a domain name made of dot-separated DNS labels.

    Args:
        value: The domain name (no trailing dot)

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(value, str) or not value:
        return False, "Domain name is required"
    if len(value) > 253:
        return False, "Domain name must be at most 253 characters"
    labels = value.split(".")
    if len(labels) < 2:
        return False, "Domain name must contain at least two labels"
    for label in labels:
        if not _DNS_LABEL_RE.match(label):
            return False, f"Invalid domain label: {label!r}"
    return True, ""


def validate_bucket_name(value: str) -> Tuple[bool, str]:
    """
    Validate an S3 bucket name against the general purpose bucket naming rules.

    Args:
        value: The bucket name to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, "Bucket name must be a string"
    if not 3 <= len(value) <= 63:
        return False, "Bucket name must be between 3 and 63 characters"
    if not _BUCKET_NAME_RE.match(value):
        return False, (
            "Bucket name may only contain lowercase letters, digits, dots and hyphens "
            "and must start and end with a letter or digit"
        )
    if ".." in value:
        return False, "Bucket name must not contain consecutive dots"
    if _IPV4_LIKE_RE.match(value):
        return False, "Bucket name must not be formatted as an IP address"
    return True, ""


def validate_source_ip_cidr(value: str) -> Tuple[bool, str]:
    """
    Validate a source IP range in CIDR notation (e.g. 203.0.113.7/32).

    The prefix length must be explicit and the address must not have host bits
    set, because the value is matched verbatim by the aws:SourceIp condition.

    Args:
        value: The CIDR string to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(value, str) or not value:
        return False, "Source IP is required"
    if "/" not in value:
        return False, "Source IP must be in CIDR notation (address/prefix)"
    try:
        ipaddress.ip_network(value, strict=True)
    except ValueError as exc:
        return False, f"Invalid source IP CIDR: {exc}"
    return True, ""


def validate_hosted_zone_id(value: str) -> Tuple[bool, str]:
    """Validate a Route 53 hosted zone id (e.g. Z0413857YT73A0A8FRFF)."""
    if not isinstance(value, str) or not value:
        return False, "Hosted zone id is required"
    if not _HOSTED_ZONE_ID_RE.match(value):
        return False, "Hosted zone id must start with 'Z' followed by uppercase letters or digits"
    return True, ""


def validate_record_in_zone(record_name: str, zone_name: str) -> Tuple[bool, str]:
    """
    Validate that a record name belongs to a hosted zone.

    Args:
        record_name: Fully-qualified record name (no trailing dot)
        zone_name: Hosted zone name (no trailing dot)

    Returns:
        Tuple of (is_valid, error_message)
    """
    record = record_name.rstrip(".").lower()
    zone = zone_name.rstrip(".").lower()
    if record == zone or record.endswith(f".{zone}"):
        return True, ""
    return False, f"Record {record_name!r} is not inside hosted zone {zone_name!r}"


def validate_price_class(value: str) -> Tuple[bool, str]:
    """Validate a CloudFront price class name."""
    if value not in PRICE_CLASSES:
        return False, f"Price class must be one of: {', '.join(PRICE_CLASSES)}"
    return True, ""


def validate_country_codes(values: Iterable[str]) -> Tuple[bool, str]:
    """
    Validate a geo-restriction country list.

    Args:
        values: ISO 3166-1 alpha-2 country codes

    Returns:
        Tuple of (is_valid, error_message)
    """
    codes = list(values)
    if not codes:
        return False, "At least one country code is required"
    for code in codes:
        if not isinstance(code, str) or not _COUNTRY_CODE_RE.match(code):
            return False, f"Invalid country code: {code!r} (expected two uppercase letters)"
    if len(set(codes)) != len(codes):
        return False, "Country codes must not contain duplicates"
    return True, ""


def validate_site(group_name: str, settings: Any) -> ValidationResult:
    """
    Validate a group name together with its site settings.

    Args:
        group_name: The group identifier
        settings: A SiteSettings instance

    Returns:
        ValidationResult with every failing field
    """
    errors: List[ValidationError] = []

    def check(field: str, result: Tuple[bool, str]) -> None:
        is_valid, message = result
        if not is_valid:
            errors.append(ValidationError(field, message))

    check("group_name", validate_group_name(group_name))
    check("domain_suffix", validate_domain_name(settings.domain_suffix))
    check("allowed_source_ip", validate_source_ip_cidr(settings.allowed_source_ip))
    check("hosted_zone_id", validate_hosted_zone_id(settings.hosted_zone_id))
    check("zone_name", validate_domain_name(settings.zone_name))
    check("price_class", validate_price_class(settings.price_class))
    check("geo_denylist", validate_country_codes(settings.geo_denylist))

    # Only meaningful once the parts are individually valid.
    if not errors:
        site_domain = settings.site_domain(group_name)
        check("bucket_name", validate_bucket_name(site_domain))
        check("zone_name", validate_record_in_zone(site_domain, settings.zone_name))

    return ValidationResult(is_valid=not errors, errors=errors)
