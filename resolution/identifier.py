"""
Canonical identifiers for territories.
"""

import re

Identifier = str

TRAILING_NON_SPACE = re.compile(r"[^\S ]+$")


def canonicalize(name: str) -> Identifier:
    """
    Derive the canonical key for a display name.

    Trims, lowercases, keeps only what precedes the first comma and turns
    spaces and dashes into underscores. Diacritics and other punctuation are
    left alone, so "Côte d'Ivoire, Republic of" and "côte d'ivoire" share a
    key while "Cote d'Ivoire" does not. A space right before the comma
    survives as a trailing underscore.

    Args:
        name: Free-text display name or code

    Returns:
        Canonical identifier
    """
    lowered = name.strip().lower()

    # Spaces before the comma are kept; other trailing whitespace would
    # otherwise survive a second pass
    head = TRAILING_NON_SPACE.sub("", lowered.split(",", 1)[0])

    return head.replace(" ", "_").replace("-", "_")
