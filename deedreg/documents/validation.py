"""
DeedReg Validation — Field rules gating every document mutation.

All lengths are UTF-8 byte lengths.

Predicates (is_valid_tag, validate_tag_format) answer yes/no; the
check_* helpers raise the typed registry error for the first violation.
"""

from __future__ import annotations

from typing import Any, Sequence

from deedreg.engine.errors import (
    InvalidDocumentSizeError,
    InvalidTitleError,
    TagValidationError,
)

MAX_TITLE_BYTES = 64
MAX_DESCRIPTION_BYTES = 128
MAX_FILE_SIZE = 1_000_000_000  # exclusive
MAX_TAGS = 10
MAX_TAG_BYTES = 32
ARCHIVED_TAG = "ARCHIVED"


def byte_length(value: str) -> int:
    return len(value.encode("utf-8"))


def is_valid_tag(tag: Any) -> bool:
    """True iff `tag` is a string of 1..32 bytes."""
    return isinstance(tag, str) and 0 < byte_length(tag) <= MAX_TAG_BYTES


def validate_tag_format(tags: Sequence[Any]) -> bool:
    """True iff there are 1..10 tags and every one passes is_valid_tag."""
    if isinstance(tags, str):
        return False
    return 0 < len(tags) <= MAX_TAGS and all(is_valid_tag(t) for t in tags)


def check_text_fields(title: str, description: str, **context: Any) -> None:
    """Raise InvalidTitleError if title or description is out of bounds."""
    if not isinstance(title, str) or not 0 < byte_length(title) <= MAX_TITLE_BYTES:
        raise InvalidTitleError(
            f"Title must be 1-{MAX_TITLE_BYTES} bytes",
            field="title",
            **context,
        )
    if not isinstance(description, str) or not 0 < byte_length(description) <= MAX_DESCRIPTION_BYTES:
        raise InvalidTitleError(
            f"Description must be 1-{MAX_DESCRIPTION_BYTES} bytes",
            field="description",
            **context,
        )


def check_file_size(file_size: int, **context: Any) -> None:
    """Raise InvalidDocumentSizeError unless 0 < file_size < 1_000_000_000."""
    # bool is an int subclass; True is not a file size
    if isinstance(file_size, bool) or not isinstance(file_size, int) or not 0 < file_size < MAX_FILE_SIZE:
        raise InvalidDocumentSizeError(
            f"File size must be between 1 and {MAX_FILE_SIZE - 1} bytes, got {file_size!r}",
            file_size=file_size,
            **context,
        )


def check_tags(tags: Sequence[Any], **context: Any) -> None:
    """Raise TagValidationError if `tags` fails validate_tag_format."""
    if not validate_tag_format(tags):
        raise TagValidationError(
            f"Tags must be 1-{MAX_TAGS} non-empty values of at most {MAX_TAG_BYTES} bytes",
            tags=list(tags) if not isinstance(tags, str) else [tags],
            **context,
        )


def check_tag_capacity(existing: Sequence[str], additional: Sequence[str], **context: Any) -> None:
    """Raise TagValidationError if appending `additional` would exceed MAX_TAGS."""
    combined = len(existing) + len(additional)
    if combined > MAX_TAGS:
        raise TagValidationError(
            f"Document would carry {combined} tags; at most {MAX_TAGS} allowed",
            tags=list(additional),
            **context,
        )


def check_identity(value: Any, field: str) -> None:
    """Raise ValueError unless `value` is a non-blank identity string."""
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field} must be a non-empty identity, got {value!r}")
