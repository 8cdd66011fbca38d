import re

# ASCII word characters only; whitespace stays Unicode-aware
_NON_SLUG_CHARS = re.compile(r"[^a-z0-9_\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHEN_RUNS = re.compile(r"-+")


def generate_slug(title: str) -> str:
    """
    Convert a title into a lowercase, URL-safe slug.

    "React Summit! 2025" becomes "react-summit-2025". Titles made only of
    symbols produce an empty string, which callers must reject.
    """
    slug = title.lower().strip()
    slug = _NON_SLUG_CHARS.sub("", slug)
    slug = _WHITESPACE.sub("-", slug)
    slug = _HYPHEN_RUNS.sub("-", slug)
    return slug.strip("-")
