"""Strips markdown emphasis and heading markers from report fragments."""

import re

_MARKERS = re.compile(r"\*+|#+")


def clean(fragment: str) -> str:
    """Remove every run of ``*`` and ``#`` from a text fragment."""
    if not fragment:
        return ""
    return _MARKERS.sub("", fragment)
