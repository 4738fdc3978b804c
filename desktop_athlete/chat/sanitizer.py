"""User input sanitization.

Strips markup and control characters from chat input before it leaves
the process.
"""

import re
import unicodedata

_SCRIPT_OR_STYLE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_TAG = re.compile(r"</?[a-zA-Z!][^>]*>")
_JS_URL = re.compile(r"javascript\s*:", re.IGNORECASE)
# C0 controls and DEL, except tab and newline
_CONTROL = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]")
_SPACES = re.compile(r"[ \t]+")
_BLANK_LINES = re.compile(r"\n{3,}")


def sanitize_input(text: str) -> str:
    """Return a cleaned copy of a user message.

    Removes script/style blocks and HTML tags, ``javascript:`` URLs and
    control characters, collapses runs of spaces and blank lines, and trims
    the result. An empty string means nothing usable was left.
    """
    text = unicodedata.normalize("NFKC", text)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _SCRIPT_OR_STYLE.sub("", text)
    text = _TAG.sub("", text)
    text = _JS_URL.sub("", text)
    text = _CONTROL.sub("", text)
    text = _SPACES.sub(" ", text)
    text = "\n".join(line.strip() for line in text.split("\n"))
    text = _BLANK_LINES.sub("\n\n", text)
    return text.strip()
