"""Free-text search normalization.

Turns a raw search string into a ``SearchPredicate``. Codes follow the
usual SKU wildcard conventions: ``*``, ``_`` and a double space each
stand for one arbitrary character, and the code pattern is anchored at
the start, so "AB_12" matches "AB512" but not "xAB512".
"""

import re

from catalogquery.catalog.filters import SearchPredicate

CODE_WILDCARDS = ("  ", "*", "_")


def escape_pattern(value: str) -> str:
    """Escape every regex metacharacter in a user-supplied value."""
    return re.escape(value)


def code_pattern(value: str) -> str:
    """Build the anchored code pattern for a search value.

    Args:
        value: Raw search value.

    Returns:
        Regex anchored at the start of the code.
    """
    parts = ["^"]
    i = 0
    while i < len(value):
        for wildcard in CODE_WILDCARDS:
            if value.startswith(wildcard, i):
                parts.append(".")
                i += len(wildcard)
                break
        else:
            parts.append(re.escape(value[i]))
            i += 1
    return "".join(parts)


class TextSearchNormalizer:
    """Builds search predicates from raw search values.

    Example usage:
        predicate = TextSearchNormalizer().normalize("AB_12")
        predicate.code_pattern  # "^AB.12"
    """

    def normalize(self, raw: str | None) -> SearchPredicate | None:
        """Normalize a raw search value.

        Args:
            raw: Search value as typed by the caller.

        Returns:
            Search predicate, or None when there is nothing to search for.
        """
        if not raw:
            return None

        return SearchPredicate(
            text_pattern=escape_pattern(raw),
            code_pattern=code_pattern(raw),
            barcode=raw,
        )
