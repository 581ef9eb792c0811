"""Contains exceptions raised by the Notion adapter."""


class NotionAPIError(Exception):
    """Raised when the Notion API responds with a non-success status code."""

    def __init__(self, status_code: int, code: str | None, message: str, retry_after: float | None = None) -> None:
        """Initializes the exception with the details of the failed response."""
        super().__init__(f"Notion API error {status_code} ({code or 'unknown'}): {message}")
        self.status_code = status_code
        self.code = code
        self.message = message
        self.retry_after = retry_after

    @property
    def is_rate_limited(self) -> bool:
        return self.status_code == 429

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code in (401, 403)

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500 or self.status_code == 409


class IncompletePageContentError(Exception):
    """Raised when a page was created but appending the rest of its content failed.

    The page exists in Notion, so later runs update its properties and never
    rewrite its body. The page id is carried so the body can be repaired by hand.
    """

    def __init__(self, page_id: str, appended_count: int, total_count: int, reason: str) -> None:
        """Initializes the exception with the created page and how much content it received."""
        super().__init__(f"Created Notion page {page_id} with only {appended_count} of {total_count} content blocks: {reason}")
        self.page_id = page_id
        self.appended_count = appended_count
        self.total_count = total_count
        self.reason = reason
