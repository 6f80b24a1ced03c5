"""Text normalization shared by analysis and summary handling."""

import re

# C0 control characters that are invalid in the output document XML.
# Tab, newline and carriage return are kept.
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F]")

_MARKDOWN_MARKERS = [
    (re.compile(r"\*\*"), ""),
    (re.compile(r"##"), ""),
    (re.compile(r"__"), ""),
    (re.compile(r"\*"), ""),
    (re.compile(r"^#+\s", re.MULTILINE), ""),
]


def sanitize_text(text: str) -> str:
    """Strip control characters and surrounding whitespace."""
    if not text:
        return ""
    return _CONTROL_CHARS.sub("", text).strip()


def clean_markdown(text: str) -> str:
    """Remove Markdown emphasis and heading markers, keeping sentence content."""
    if not text:
        return ""
    for pattern, replacement in _MARKDOWN_MARKERS:
        text = pattern.sub(replacement, text)
    return text
