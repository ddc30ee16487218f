"""Parse and validate model replies against the crawled vocabulary."""

import json
import logging
import re
from collections.abc import Collection

from category_diffusion.errors import ResponseParseError
from category_diffusion.utils.titles import CATEGORY_PREFIX, FILE_PREFIX, ensure_prefix, strip_prefix

logger = logging.getLogger(__name__)

# First "{" through last "}": tolerates prose and ``` fences around the object
_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def parse_response(text: str, vocabulary: Collection[str]) -> dict[str, list[str]]:
    """Map file titles to the suggested categories that exist in ``vocabulary``.

    Raises :class:`ResponseParseError` when no JSON object can be read. Keys
    whose value is not a list are skipped; unknown category names are
    dropped silently.
    """
    if not isinstance(text, str):
        raise ResponseParseError(f"Model response is not text: {type(text).__name__}")
    match = _JSON_OBJECT_RE.search(text)
    if not match:
        raise ResponseParseError("No JSON object in model response")

    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"Invalid JSON in model response: {e}") from e

    if not isinstance(parsed, dict):
        raise ResponseParseError("Model response JSON is not an object")

    result: dict[str, list[str]] = {}
    for key, value in parsed.items():
        if not isinstance(value, list):
            logger.debug("Ignoring non-list suggestion value for %r", key)
            continue

        title = ensure_prefix(str(key).strip(), FILE_PREFIX)
        accepted: list[str] = []
        for entry in value:
            name = strip_prefix(str(entry).strip(), CATEGORY_PREFIX).strip()
            if name in vocabulary and name not in accepted:
                accepted.append(name)
        result[title] = accepted

    return result
