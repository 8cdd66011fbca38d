import logging
import secrets
from typing import Optional

from devevents.core.errors import SlugGenerationFailedError, ValidationError
from devevents.utils.slug import generate_slug

logger = logging.getLogger(__name__)

MAX_SLUG_ATTEMPTS = 5


def suffixed_slug(base_slug: str) -> str:
    """Append a random disambiguating token to a base slug."""
    return f"{base_slug}-{secrets.token_hex(3)}"


def base_slug_for(title: str) -> str:
    base_slug = generate_slug(title)
    if not base_slug:
        raise ValidationError("title must contain at least one letter or digit", field="title")
    return base_slug


async def resolve_unique_slug(
    events_repo,
    title: str,
    exclude_id: Optional[str] = None,
    max_attempts: int = MAX_SLUG_ATTEMPTS,
) -> str:
    """
    Find a slug for ``title`` that no other event owns.

    The plain slug is tried first; on collision a random suffix is appended and
    the check repeated, up to ``max_attempts`` checks in total. ``exclude_id``
    lets an event keep its own slug when it is renamed to an equivalent title.

    Raises:
        ValidationError: If the title yields an empty slug
        SlugGenerationFailedError: If every candidate was taken
    """
    base_slug = base_slug_for(title)
    candidate = base_slug

    for _ in range(max_attempts):
        if not await events_repo.slug_exists(candidate, exclude_id=exclude_id):
            if candidate != base_slug:
                logger.warning("Slug '%s' taken, using '%s'", base_slug, candidate)
            return candidate
        candidate = suffixed_slug(base_slug)

    raise SlugGenerationFailedError(base_slug, max_attempts)
