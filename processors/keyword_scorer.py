"""Additive keyword-overlap scoring of unstructured chunks against a term list."""

import re

from schemas.chunk import UnstructuredChunk

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def compact(text: str) -> str:
    """Strip everything but lower-case ASCII letters and digits."""
    return _NON_ALNUM.sub("", text)


def keyword_score(chunk: UnstructuredChunk, terms: list[str]) -> int:
    """Score a chunk's title and text against query terms.

    A substring hit is worth 2 for a multi-word term and 1 for a single word.
    A term whose punctuation-free form differs from the term itself earns one
    more point when that form occurs in the punctuation-free text, so
    "4th night free" still matches "4thNightFree".
    """
    text = f"{chunk.title} {chunk.text}".lower()
    compact_text = compact(text)
    score = 0

    for term in terms:
        t = term.lower()
        if not t.strip():
            continue
        if t in text:
            score += 2 if " " in t else 1
        squeezed = compact(t)
        if squeezed and squeezed != t and squeezed in compact_text:
            score += 1

    return score
