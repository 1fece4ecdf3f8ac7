"""Validation utilities and types used across the application."""

import re
import unicodedata
from typing import Any
from urllib.parse import urlsplit, urlunsplit

from bson import ObjectId

from toolhub.core.exceptions import NotFoundException


class PyObjectId(ObjectId):
    """Custom ObjectId type for Pydantic models."""

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type, handler):
        from pydantic_core import core_schema

        return core_schema.no_info_plain_validator_function(cls.validate)

    @classmethod
    def validate(cls, v):
        if not ObjectId.is_valid(v):
            raise ValueError("Invalid objectid")
        return ObjectId(v)

    @classmethod
    def __get_pydantic_json_schema__(cls, core_schema, handler):
        return {"type": "string"}


def parse_object_id(value: str, resource: str = "Resource") -> ObjectId:
    """
    Convert a path/body identifier into an ObjectId.

    Malformed identifiers cannot match any document, so they are reported
    as missing rather than as a server error.
    """
    if not ObjectId.is_valid(value):
        raise NotFoundException(resource=resource, resource_id=str(value))
    return ObjectId(value)


def normalize_coupon_code(code: str) -> str:
    """Coupon codes are stored trimmed and upper-cased."""
    return code.strip().upper()


def normalize_url(url: str) -> str:
    """
    Canonical form of a website URL used for duplicate detection.

    Lower-cases scheme and host, drops a leading ``www.``, the fragment and
    any trailing slash on the path.
    """
    raw = url.strip()
    if "://" not in raw:
        raw = f"https://{raw}"

    parts = urlsplit(raw)
    host = parts.netloc.lower()
    if host.startswith("www."):
        host = host[4:]
    path = parts.path.rstrip("/")

    return urlunsplit((parts.scheme.lower(), host, path, parts.query, ""))


def slugify(value: str) -> str:
    """Lower-case, ASCII-only, dash separated slug."""
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore")
    text = normalized.decode("ascii").lower()
    text = re.sub(r"[^a-z0-9]+", "-", text).strip("-")
    return text


def validate_phone_number(value: Any) -> str | None:
    """
    Validate and normalize phone number to E.164 format (for optional fields).

    Args:
        value: The phone number to validate (can be None for optional fields)

    Returns:
        Normalized phone number in E.164 format or None if input is None

    Raises:
        ValueError: If phone number is invalid
    """
    if value is None:
        return None

    if value == "":
        raise ValueError("Phone number cannot be empty")

    if value.count("+") > 1:
        raise ValueError("Phone number cannot contain multiple plus signs")

    phone_digits = re.sub(r"\D", "", value)

    if len(phone_digits) < 7 or len(phone_digits) > 15:
        raise ValueError("Phone number must be between 7 and 15 digits")

    return f"+{phone_digits}"
