"""Encodes upload provenance into stored file names and decodes it back."""

import logging
import re
import secrets
from datetime import datetime
from typing import Optional

from common.constants import SALT_BYTES
from common.types import DecodedName

logger = logging.getLogger(__name__)

# Letters, digits, CJK unified ideographs and dots survive; everything else collapses to "_".
_UNSAFE_CHARS = re.compile(r'[^A-Za-z0-9\u4e00-\u9fa5.]')
_STORED_NAME = re.compile(r'([0-9]+)_[0-9a-f]+_(.+)')

EMPTY_NAME_PLACEHOLDER = "unnamed"


def sanitize_name(original_name: str) -> str:
    """
    Replace every character outside the safe set with an underscore.

    Args:
        original_name: Name supplied by the uploader

    Returns:
        Sanitized name, never empty
    """
    sanitized = _UNSAFE_CHARS.sub('_', original_name or '')
    return sanitized or EMPTY_NAME_PLACEHOLDER


def generate_salt(nbytes: int = SALT_BYTES) -> bytes:
    """Return cryptographically strong random salt bytes."""
    return secrets.token_bytes(nbytes)


def encode(original_name: str, timestamp_millis: int, random_salt: bytes) -> str:
    """
    Build the stored name "{timestamp}_{salthex}_{sanitized}".

    Args:
        original_name: Name supplied by the uploader
        timestamp_millis: Ingestion time in epoch milliseconds
        random_salt: At least SALT_BYTES random bytes

    Returns:
        Filesystem-safe stored name

    Raises:
        ValueError: If the salt is too short or the timestamp negative
    """
    if len(random_salt) < SALT_BYTES:
        raise ValueError(f"random_salt must be at least {SALT_BYTES} bytes")
    if timestamp_millis < 0:
        raise ValueError("timestamp_millis cannot be negative")

    return f"{int(timestamp_millis)}_{random_salt.hex()}_{sanitize_name(original_name)}"


def is_representable_millis(timestamp_millis: int) -> bool:
    """Return True if the epoch milliseconds map to a local calendar time."""
    try:
        datetime.fromtimestamp(timestamp_millis / 1000)
    except (OverflowError, OSError, ValueError):
        return False
    return True


def decode(stored_name: str) -> Optional[DecodedName]:
    """
    Parse a stored name back into its timestamp and original name.

    Args:
        stored_name: On-disk file name

    Returns:
        DecodedName, or None if the name does not follow the encoding
            or carries a timestamp outside the calendar range
    """
    match = _STORED_NAME.fullmatch(stored_name)
    if not match:
        return None

    timestamp_millis = int(match.group(1))
    if not is_representable_millis(timestamp_millis):
        return None
    return DecodedName(timestamp_millis=timestamp_millis, original_name=match.group(2))


def decode_or_fallback(stored_name: str, fallback_millis: int) -> DecodedName:
    """
    Decode a stored name, degrading to the raw name and a fallback time.

    Args:
        stored_name: On-disk file name
        fallback_millis: Time to report when the name cannot be decoded

    Returns:
        DecodedName in every case
    """
    decoded = decode(stored_name)
    if decoded is None:
        logger.debug(f"Name {stored_name!r} does not follow the stored-name encoding, using fallback")
        return DecodedName(timestamp_millis=int(fallback_millis), original_name=stored_name)
    return decoded
