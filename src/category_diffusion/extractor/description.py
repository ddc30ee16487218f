"""Best-effort caption extraction from raw file-page wikitext.

Two rules, tried in order:

1. A ``|description = ...`` template field (as written by the
   ``{{Information}}`` family). Nested templates are dropped, links are
   reduced to their display text, bold/italic quotes and extra whitespace
   are removed. A template written on one line ends the value at the next
   top-level ``|`` or ``}}``. Capped at 500 characters.
2. Otherwise the first line that does not open with markup
   (``[ { | ! = <``) and is longer than 10 characters, capped at 300.

Anything else yields an empty string. This is not a wikitext parser.
"""

import re

MAX_FIELD_LENGTH = 500
MAX_LINE_LENGTH = 300
MIN_LINE_LENGTH = 10

# Field value runs until a line-leading parameter, closing braces or the end
_DESCRIPTION_FIELD_RE = re.compile(
    r"\|\s*[Dd]escription\s*=\s*([\s\S]*?)(?=\n\s*\||\n\s*\}\}|\Z)",
    re.MULTILINE,
)
_TEMPLATE_RE = re.compile(r"\{\{[^}]*\}\}")
_LINK_RE = re.compile(r"\[\[(?:[^\]|]*\|)?([^\]]*)\]\]")
_QUOTES_RE = re.compile(r"'''?")
_WHITESPACE_RE = re.compile(r"\s+")
_MARKUP_START_RE = re.compile(r"^\s*[\[{|!=<]")


def extract_description(wikitext: str) -> str:
    """Return a short human-readable description of a file page."""
    if not wikitext:
        return ""

    match = _DESCRIPTION_FIELD_RE.search(wikitext)
    if match:
        desc = _clean_field(_top_level_value(match.group(1)))
        if desc:
            return desc[:MAX_FIELD_LENGTH]

    for raw_line in wikitext.split("\n"):
        line = raw_line.strip()
        if line and not _MARKUP_START_RE.match(line) and len(line) > MIN_LINE_LENGTH:
            return line[:MAX_LINE_LENGTH]

    return ""


def _top_level_value(value: str) -> str:
    """Cut ``value`` at the first ``|`` or ``}}`` not nested in ``{{ }}`` or ``[[ ]]``."""
    depth = 0
    i = 0
    while i < len(value):
        pair = value[i:i + 2]
        if pair in ("{{", "[["):
            depth += 1
            i += 2
            continue
        if pair in ("}}", "]]"):
            if depth == 0:
                if pair == "}}":
                    return value[:i]
            else:
                depth -= 1
            i += 2
            continue
        if value[i] == "|" and depth == 0:
            return value[:i]
        i += 1
    return value


def _clean_field(value: str) -> str:
    text = _TEMPLATE_RE.sub("", value.strip())
    text = _LINK_RE.sub(r"\1", text)
    text = _QUOTES_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()
