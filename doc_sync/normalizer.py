"""MDX/Markdown to plain prose.

Strips JSX tags, export/import statements, markdown decoration, code and
comments so that only readable text is sent for processing.
"""

import re
from typing import List, Tuple

from doc_sync.errors import NormalizationError


# Order matters: later rules assume earlier ones already removed tags and
# declarations.
RULES: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"</?[^>]+>"), ""),
    (re.compile(r"export\s+const\s+\w+\s+=.*?\n"), ""),
    (re.compile(r"import\s+.*?\n"), ""),
    (re.compile(r"#{1,6}\s+"), ""),
    (re.compile(r"!?\[([^\]]+)\]\([^)]*\)"), r"\1"),
    (re.compile(r"(\*\*|__)(.*?)\1"), r"\2"),
    (re.compile(r"(\*|_)(.*?)\1"), r"\2"),
    (re.compile(r"```[\s\S]*?```"), ""),
    (re.compile(r"`[^`]*`"), ""),
    (re.compile(r"<!--[\s\S]*?-->"), ""),
    (re.compile(r"---+"), ""),
    (re.compile(r"\s+"), " "),
]


def _clean_once(text: str) -> str:
    for pattern, replacement in RULES:
        text = pattern.sub(replacement, text)
    return text.strip()


def normalize(raw: str) -> str:
    """Reduce an MDX document to whitespace-collapsed plain text.

    The rule pass is repeated until the output is stable, because removing
    code spans can leave new matches for earlier rules (``#`x` y`` becomes
    ``# y``). This makes ``normalize(normalize(x)) == normalize(x)``.

    Raises:
        NormalizationError: ``raw`` is not text or a pattern failed.
    """
    if not isinstance(raw, str):
        raise NormalizationError(
            f"Expected text, got {type(raw).__name__}"
        )

    try:
        text = _clean_once(raw)
        while True:
            cleaned = _clean_once(text)
            if cleaned == text:
                return cleaned
            text = cleaned
    except (re.error, RecursionError) as exc:
        raise NormalizationError(f"Failed to clean content: {exc}") from exc
