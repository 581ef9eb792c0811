"""Utility modules for shared functionality."""

from .blocks import markdown_to_blocks
from .constants import (
    DEFAULT_OPERATION_BATCH_SIZE,
    GITHUB_PAGE_SIZE,
    NOTION_MAX_BLOCKS_PER_REQUEST,
    NOTION_MAX_RICH_TEXT_LENGTH,
    NOTION_PAGE_REFERENCE_PATTERN,
)
from .retry import is_authentication_error, retry_on_transient_error

__all__ = [
    "DEFAULT_OPERATION_BATCH_SIZE",
    "GITHUB_PAGE_SIZE",
    "NOTION_MAX_BLOCKS_PER_REQUEST",
    "NOTION_MAX_RICH_TEXT_LENGTH",
    "NOTION_PAGE_REFERENCE_PATTERN",
    "markdown_to_blocks",
    "is_authentication_error",
    "retry_on_transient_error",
]
