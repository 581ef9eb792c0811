"""Shared constants used across the application."""

import re

# GitHub Constants
# ----------------

DEFAULT_GITHUB_API_URL = "https://api.github.com"
"""Default GitHub REST API base URL."""

GITHUB_PAGE_SIZE = 100
"""Number of records requested per GitHub page (the API maximum)."""

# Notion Constants
# ----------------

DEFAULT_NOTION_API_URL = "https://api.notion.com/v1"
"""Default Notion REST API base URL."""

NOTION_API_VERSION = "2022-06-28"
"""Value sent in the Notion-Version header."""

NOTION_MAX_BLOCKS_PER_REQUEST = 100
"""Notion accepts at most 100 child blocks per create or append request."""

NOTION_MAX_RICH_TEXT_LENGTH = 2000
"""Maximum characters in a single Notion rich text object."""

NOTION_PAGE_REFERENCE_PATTERN = re.compile(r"https://(?:www\.)?notion\.so/(?:[\w-]+/)?(?:[\w-]*-)?(?P<page_id>[0-9a-fA-F]{32})\b")
"""Pattern to match a Notion page link and capture its 32 character page id."""

# Sync Constants
# --------------

DEFAULT_OPERATION_BATCH_SIZE = 10
"""Number of mirror mutations allowed in flight at once."""

MERGED_STATUS = "Closed - Merged"
NOT_MERGED_STATUS = "Closed - Not Merged"
OPEN_STATUS = "Open"
