"""Post-processing of converted Markdown: strips text-level noise that survives
HTML sanitisation (obfuscated e-mails, cookie notices, stray entities, ...).
"""

import html
import re

# Cloudflare e-mail obfuscation leaves "[email protected]" placeholders
_EMAIL_PROTECTED_RE = re.compile(
    r"\[email(?:\s| |&#160;|&nbsp;)+protected\]", re.IGNORECASE
)

_TEL_URI_RE = re.compile(r"tel:[+\d%().\-]+", re.IGNORECASE)

_NUMERIC_ENTITY_RE = re.compile(r"&#(?:\d+|x[0-9a-f]+);", re.IGNORECASE)

# Whole sentences that only exist because of a cookie banner
_COOKIE_SENTENCE_RE = re.compile(
    r"[^.!?\n]*\b(?:"
    r"this (?:web)?site uses cookies"
    r"|we use cookies"
    r"|accept (?:all )?cookies"
    r"|cookie (?:policy|settings|preferences)"
    r")\b[^.!?\n]*[.!?]?",
    re.IGNORECASE,
)

# "[ ](https://...)" – links whose text was an icon or image that got stripped
_EMPTY_LINK_RE = re.compile(r"(?<!!)\[\s*\]\([^)]*\)")

_TRAILING_WS_RE = re.compile(r"[ \t]+$", re.MULTILINE)
_INNER_WS_RE = re.compile(r"(?<=\S)[ \t]{2,}(?=\S)")
_BLANK_LINES_RE = re.compile(r"\n{3,}")


def clean_markdown(text: str) -> str:
    """Return *text* with common scraping noise removed."""
    if not text:
        return ""

    text = _EMAIL_PROTECTED_RE.sub("", text)
    text = _TEL_URI_RE.sub("", text)
    text = _NUMERIC_ENTITY_RE.sub(lambda m: html.unescape(m.group(0)), text)
    text = _COOKIE_SENTENCE_RE.sub("", text)
    text = _EMPTY_LINK_RE.sub("", text)

    text = _TRAILING_WS_RE.sub("", text)
    text = _INNER_WS_RE.sub(" ", text)
    text = _BLANK_LINES_RE.sub("\n\n", text)
    return text.strip()
