"""Converts GitHub-flavoured markdown into Notion block objects.

Reference: https://developers.notion.com/reference/block

The conversion is line oriented: headings, bulleted, numbered and task list
items, block quotes, dividers, fenced code blocks and paragraphs. Inline
**bold**, *italic*, ~~strikethrough~~, `code` and [links](url) become rich
text annotations. Anything else is carried through as plain paragraph text.
"""

import re
from typing import Any

from github_notion_sync.utils.constants import NOTION_MAX_RICH_TEXT_LENGTH

INLINE_PATTERN = re.compile(
    r"(?P<bold>\*\*(?P<bold_text>[^*]+)\*\*)"
    r"|(?P<strike>~~(?P<strike_text>[^~]+)~~)"
    r"|(?P<code>`(?P<code_text>[^`]+)`)"
    r"|(?P<link>\[(?P<link_text>[^\]]+)\]\((?P<link_url>https?://[^)\s]+)\))"
    r"|(?P<italic>(?<![\w*])[*_](?P<italic_text>[^*_\n]+)[*_](?![\w*]))"
)

HEADING_PATTERN = re.compile(r"^(?P<hashes>#{1,6})\s+(?P<text>.*?)\s*#*\s*$")
TASK_PATTERN = re.compile(r"^\s*[-*+]\s+\[(?P<mark>[ xX])\]\s+(?P<text>.*)$")
BULLET_PATTERN = re.compile(r"^\s*[-*+]\s+(?P<text>.*)$")
NUMBERED_PATTERN = re.compile(r"^\s*\d+[.)]\s+(?P<text>.*)$")
QUOTE_PATTERN = re.compile(r"^\s*>\s?(?P<text>.*)$")
DIVIDER_PATTERN = re.compile(r"^\s*([-*_])(\s*\1){2,}\s*$")
FENCE_PATTERN = re.compile(r"^\s*(?P<fence>```|~~~)\s*(?P<language>[\w+#-]*)\s*$")

# Subset of the languages accepted by Notion code blocks.
CODE_LANGUAGES = {
    "bash": "bash",
    "c": "c",
    "c#": "c#",
    "cpp": "c++",
    "c++": "c++",
    "css": "css",
    "diff": "diff",
    "docker": "docker",
    "dockerfile": "docker",
    "go": "go",
    "html": "html",
    "java": "java",
    "javascript": "javascript",
    "js": "javascript",
    "json": "json",
    "kotlin": "kotlin",
    "markdown": "markdown",
    "md": "markdown",
    "python": "python",
    "py": "python",
    "ruby": "ruby",
    "rust": "rust",
    "sh": "shell",
    "shell": "shell",
    "sql": "sql",
    "swift": "swift",
    "ts": "typescript",
    "typescript": "typescript",
    "yaml": "yaml",
    "yml": "yaml",
}


def split_text(text: str, limit: int = NOTION_MAX_RICH_TEXT_LENGTH) -> list[str]:
    """Split text into chunks Notion accepts in a single rich text object."""
    if not text:
        return []
    return [text[start : start + limit] for start in range(0, len(text), limit)]


def text_segments(text: str, link: str | None = None, **annotations: bool) -> list[dict[str, Any]]:
    """Build rich text objects for a run of identically formatted text."""
    segments: list[dict[str, Any]] = []
    for chunk in split_text(text):
        segment: dict[str, Any] = {"type": "text", "text": {"content": chunk}}
        if link:
            segment["text"]["link"] = {"url": link}
        if annotations:
            segment["annotations"] = annotations
        segments.append(segment)
    return segments


def parse_inline(text: str) -> list[dict[str, Any]]:
    """Parse inline markdown formatting into Notion rich text."""
    rich_text: list[dict[str, Any]] = []
    last_end = 0
    for match in INLINE_PATTERN.finditer(text):
        if match.start() > last_end:
            rich_text.extend(text_segments(text[last_end : match.start()]))
        if match.group("bold"):
            rich_text.extend(text_segments(match.group("bold_text"), bold=True))
        elif match.group("strike"):
            rich_text.extend(text_segments(match.group("strike_text"), strikethrough=True))
        elif match.group("code"):
            rich_text.extend(text_segments(match.group("code_text"), code=True))
        elif match.group("link"):
            rich_text.extend(text_segments(match.group("link_text"), link=match.group("link_url")))
        else:
            rich_text.extend(text_segments(match.group("italic_text"), italic=True))
        last_end = match.end()
    if last_end < len(text):
        rich_text.extend(text_segments(text[last_end:]))
    return rich_text


def _block(block_type: str, **content: Any) -> dict[str, Any]:
    return {"object": "block", "type": block_type, block_type: content}


def _code_block(lines: list[str], language: str) -> dict[str, Any]:
    notion_language = CODE_LANGUAGES.get(language.lower(), "plain text")
    return _block("code", rich_text=text_segments("\n".join(lines)), language=notion_language)


def markdown_to_blocks(markdown: str | None) -> list[dict[str, Any]]:
    """Convert a markdown document into an ordered list of Notion blocks.

    Empty or absent input yields an empty list.
    """
    if not markdown or not markdown.strip():
        return []

    blocks: list[dict[str, Any]] = []
    code_lines: list[str] | None = None
    code_fence = ""
    code_language = ""

    for line in markdown.replace("\r\n", "\n").split("\n"):
        fence_match = FENCE_PATTERN.match(line)

        # Inside a fenced code block everything is literal until the closing fence.
        if code_lines is not None:
            if fence_match and fence_match.group("fence") == code_fence and not fence_match.group("language"):
                blocks.append(_code_block(code_lines, code_language))
                code_lines = None
            else:
                code_lines.append(line)
            continue

        if fence_match:
            code_lines = []
            code_fence = fence_match.group("fence")
            code_language = fence_match.group("language")
            continue

        if not line.strip():
            continue

        if heading_match := HEADING_PATTERN.match(line):
            # Notion only has three heading levels.
            level = min(len(heading_match.group("hashes")), 3)
            blocks.append(_block(f"heading_{level}", rich_text=parse_inline(heading_match.group("text"))))
        elif DIVIDER_PATTERN.match(line):
            blocks.append(_block("divider"))
        elif task_match := TASK_PATTERN.match(line):
            checked = task_match.group("mark").lower() == "x"
            blocks.append(_block("to_do", rich_text=parse_inline(task_match.group("text")), checked=checked))
        elif bullet_match := BULLET_PATTERN.match(line):
            blocks.append(_block("bulleted_list_item", rich_text=parse_inline(bullet_match.group("text"))))
        elif numbered_match := NUMBERED_PATTERN.match(line):
            blocks.append(_block("numbered_list_item", rich_text=parse_inline(numbered_match.group("text"))))
        elif quote_match := QUOTE_PATTERN.match(line):
            blocks.append(_block("quote", rich_text=parse_inline(quote_match.group("text"))))
        else:
            blocks.append(_block("paragraph", rich_text=parse_inline(line.strip())))

    # An unterminated fence still keeps its content.
    if code_lines is not None:
        blocks.append(_code_block(code_lines, code_language))

    return blocks
