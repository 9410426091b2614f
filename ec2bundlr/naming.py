"""Image name helpers."""

from __future__ import annotations

import re

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9\-_. ]")
_INVALID_IMAGE_NAME_CHARS = re.compile(r"[^a-z0-9().\-/_\s]", re.IGNORECASE)

MIN_IMAGE_NAME_LENGTH = 3
MAX_IMAGE_NAME_LENGTH = 128


def sanitize_name(value: str) -> str:
    """Strip characters unsafe for storage paths and turn spaces into underscores."""
    return _UNSAFE_CHARS.sub("", value).replace(" ", "_")


def bucket_name_for(image_name: str) -> str:
    return sanitize_name(image_name)


def image_prefix_for(image_name: str) -> str:
    return sanitize_name(image_name)


def validate_image_name(value: str) -> str | None:
    """Return an error message if the image name would be rejected at registration."""
    if (
        len(value) < MIN_IMAGE_NAME_LENGTH
        or len(value) > MAX_IMAGE_NAME_LENGTH
        or _INVALID_IMAGE_NAME_CHARS.search(value)
    ):
        return (
            f"AMI name must be between {MIN_IMAGE_NAME_LENGTH} and {MAX_IMAGE_NAME_LENGTH} "
            "characters long, and may contain letters, numbers, '(', ')', '.', '-', '/' and '_'."
        )
    return None
