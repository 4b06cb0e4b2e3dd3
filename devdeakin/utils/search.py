"""
Search tokens stored on content documents and the matching rule used to query them
"""

import re
from typing import Any, Dict, Iterable, List, Sequence

_NON_TOKEN = re.compile(r"[^a-z0-9\s-]")

MIN_TOKEN_LENGTH = 2
MAX_TOKEN_LENGTH = 24
MAX_STORED_TOKENS = 50
MAX_QUERY_TOKENS = 10


def _words(text: str) -> List[str]:
    return _NON_TOKEN.sub(" ", (text or "").lower()).split()


def tokenize(text: str) -> List[str]:
    """
    Tokens written to ``searchTokens`` at create time.

    Lowercased, punctuation stripped, 2..24 chars, at most 50 (counted before
    de-duplication), unique in first-seen order.
    """
    words = [w for w in _words(text) if MIN_TOKEN_LENGTH <= len(w) <= MAX_TOKEN_LENGTH]
    return list(dict.fromkeys(words[:MAX_STORED_TOKENS]))


def query_tokens(text: str) -> List[str]:
    """Tokens of a user query; single characters are kept"""
    return _words(text)[:MAX_QUERY_TOKENS]


def matches(doc: Dict[str, Any], tokens: Sequence[str], fields: Iterable[str]) -> bool:
    """
    True when any query token hits the document.

    Documents with stored tokens are matched by substring against each stored
    token (prefix only for a lone one-character query). Documents written
    before tokens existed fall back to a substring scan of ``fields``.
    """
    if not tokens:
        return True

    stored = doc.get("searchTokens")
    if isinstance(stored, list) and stored:
        stored = [str(s) for s in stored]
        one_char = len(tokens) == 1 and len(tokens[0]) == 1
        if one_char:
            return any(s.startswith(tokens[0]) for s in stored)
        return any(t in s for t in tokens for s in stored)

    haystack = " ".join(str(doc.get(f) or "") for f in fields).lower()
    return any(t in haystack for t in tokens)


def slugify(text: str) -> str:
    """Create a URL-safe slug from a title"""
    s = re.sub(r"[^a-z0-9]+", "-", (text or "").lower()).strip("-")
    return s or "post"
