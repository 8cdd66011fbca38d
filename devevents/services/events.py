import json
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple
from uuid import uuid4

from pymongo.errors import (
    AutoReconnect,
    DuplicateKeyError,
    ExecutionTimeout,
    PyMongoError,
    WTimeoutError,
)

from devevents.core.errors import (
    EventNotFoundError,
    SlugGenerationFailedError,
    StoreError,
    ValidationError,
    VersionConflictError,
)
from devevents.models.event import (
    INITIAL_VERSION,
    LIST_FIELDS,
    MAX_LENGTHS,
    REQUIRED_STRING_FIELDS,
    EventMode,
)
from devevents.services.assets import AssetReplacementCoordinator, ImageUpload, validate_image
from devevents.services.slugs import base_slug_for, resolve_unique_slug, suffixed_slug
from devevents.utils.dates import normalize_date, normalize_time

logger = logging.getLogger(__name__)

# Extra attempts when the unique slug index rejects a write
SLUG_WRITE_RETRIES = 3

# Errors after which the write may or may not have been applied
AMBIGUOUS_STORE_ERRORS = (AutoReconnect, ExecutionTimeout, WTimeoutError)

MODES = [mode.value for mode in EventMode]


def sanitize_slug(slug: str) -> str:
    if not isinstance(slug, str) or slug.strip() == "":
        raise ValidationError("Invalid or missing slug parameter", field="slug")
    return slug.strip().lower()


def clean_string_field(field: str, value: Any) -> str:
    """Trim, check and normalize one of the required string fields."""
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", field=field)

    cleaned = value.strip()
    if cleaned == "":
        raise ValidationError(f"{field} cannot be empty", field=field)

    max_length = MAX_LENGTHS.get(field)
    if max_length is not None and len(cleaned) > max_length:
        raise ValidationError(
            f"{field} must be less than {max_length} characters", field=field
        )

    if field == "mode" and cleaned not in MODES:
        raise ValidationError("Mode must be online, offline, or hybrid", field=field)
    if field == "date":
        return normalize_date(cleaned)
    if field == "time":
        return normalize_time(cleaned)

    return cleaned


def parse_list_field(field: str, value: Any) -> List[str]:
    """Decode a JSON-encoded, non-empty array of strings (``tags``, ``agenda``)."""
    label = field.capitalize()

    if not isinstance(value, str):
        raise ValidationError(f"{label} must be provided as a JSON string", field=field)

    try:
        parsed = json.loads(value)
    except ValueError:
        raise ValidationError(f"{label} must be valid JSON", field=field)

    if not isinstance(parsed, list) or len(parsed) == 0:
        raise ValidationError(f"{label} must contain at least one item", field=field)

    return [item if isinstance(item, str) else json.dumps(item) for item in parsed]


def stage_fields(fields: Mapping[str, Any], require_all: bool = False) -> Dict[str, Any]:
    """
    Validate and normalize the editable fields present in ``fields``.

    Unknown keys are ignored. With ``require_all`` every field must be present,
    which is what creation needs; updates accept any subset.
    """
    staged: Dict[str, Any] = {}

    for field in REQUIRED_STRING_FIELDS:
        if field in fields and fields[field] is not None:
            staged[field] = clean_string_field(field, fields[field])
        elif require_all:
            raise ValidationError(f"{field} is required", field=field)

    for field in LIST_FIELDS:
        if field in fields and fields[field] is not None:
            staged[field] = parse_list_field(field, fields[field])
        elif require_all:
            raise ValidationError(
                f"{field.capitalize()} must contain at least one item", field=field
            )

    return staged


class EventsService:
    """Reads events and runs the create and partial-update flows."""

    def __init__(self, events_repo, bookings_repo, media_store, upload_timeout: Optional[float] = None):
        self.events_repo = events_repo
        self.bookings_repo = bookings_repo
        self.assets = AssetReplacementCoordinator(media_store, upload_timeout=upload_timeout)

    async def list_events(self) -> List[Dict[str, Any]]:
        return await self.events_repo.find_many({}, sort=[("created_at", -1)])

    async def get_event(self, slug: str) -> Dict[str, Any]:
        """
        Raises:
            ValidationError: If the slug is blank
            EventNotFoundError: If no event owns the slug
        """
        sanitized_slug = sanitize_slug(slug)
        event = await self.events_repo.find_by_slug(sanitized_slug)
        if not event:
            raise EventNotFoundError(sanitized_slug)
        return event

    async def get_event_with_bookings(self, slug: str) -> Tuple[Dict[str, Any], int]:
        event = await self.get_event(slug)
        bookings_count = await self.bookings_repo.count_for_event(event["_id"])
        return event, bookings_count

    async def get_similar_events(self, slug: str) -> List[Dict[str, Any]]:
        """Other events sharing at least one tag with the event at ``slug``."""
        try:
            event = await self.get_event(slug)
        except EventNotFoundError:
            return []

        if not event.get("tags"):
            return []

        return await self.events_repo.find_many(
            {"_id": {"$ne": event["_id"]}, "tags": {"$in": event["tags"]}},
            sort=[("created_at", -1)],
        )

    async def create_event(self, fields: Mapping[str, Any], image: Optional[ImageUpload]) -> Dict[str, Any]:
        staged = stage_fields(fields, require_all=True)

        if image is None:
            raise ValidationError("Image file is required", field="image")
        validate_image(image)

        slug = await resolve_unique_slug(self.events_repo, staged["title"])

        async def commit(asset_fields: Dict[str, Any]) -> Dict[str, Any]:
            now = datetime.now(timezone.utc)
            document = {
                "_id": str(uuid4()),
                "slug": slug,
                **staged,
                **asset_fields,
                "version": INITIAL_VERSION,
                "created_at": now,
                "updated_at": now,
            }
            return await self._write_with_slug_retry(self._insert_event, document)

        event = await self.assets.replace(image, None, commit)
        logger.info("Created event %s", event["slug"])
        return event

    async def update_event(
        self,
        slug: str,
        fields: Mapping[str, Any],
        image: Optional[ImageUpload] = None,
    ) -> Dict[str, Any]:
        """
        Apply a partial update to the event at ``slug``.

        Fields are validated and normalized before anything is read. Only the
        fields that differ from the stored event are written; a new slug is
        resolved only when the title changed. A request that changes nothing
        and carries no image returns the stored event without writing.

        Raises:
            ValidationError: On malformed fields or an unacceptable image
            EventNotFoundError: If no event owns the slug
            VersionConflictError: If another request updated the event first
            UploadFailedError: If the media host rejected the new image
            SlugGenerationFailedError: If no free slug could be found
            StoreError: On unexpected database failures
        """
        staged = stage_fields(fields)
        if image is not None:
            validate_image(image)

        event = await self.get_event(slug)

        changes = {key: value for key, value in staged.items() if event.get(key) != value}

        if "title" in changes:
            new_slug = await resolve_unique_slug(
                self.events_repo, changes["title"], exclude_id=event["_id"]
            )
            if new_slug != event["slug"]:
                changes["slug"] = new_slug

        if not changes and image is None:
            logger.debug("No changes for event %s", event["slug"])
            return event

        async def commit(asset_fields: Dict[str, Any]) -> Dict[str, Any]:
            update_data = {**changes, **asset_fields}

            async def write(data: Dict[str, Any]) -> Dict[str, Any]:
                return await self.apply_update(event["_id"], event["version"], data)

            return await self._write_with_slug_retry(write, update_data)

        updated = await self.assets.replace(image, event.get("image_public_id"), commit)
        logger.info("Updated event %s to version %s", updated["slug"], updated["version"])
        return updated

    async def apply_update(
        self,
        event_id: str,
        expected_version: int,
        update_data: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Write ``update_data`` only if the event is still at ``expected_version``.

        One compare-and-swap round-trip, no retry: on success the version is
        bumped by exactly one, otherwise VersionConflictError tells the caller
        to reload and repeat the whole operation.
        """
        try:
            updated = await self.events_repo.update_if_version(
                event_id, expected_version, update_data
            )
        except DuplicateKeyError:
            raise
        except AMBIGUOUS_STORE_ERRORS as e:
            logger.exception("Update of event %s timed out", event_id)
            raise StoreError(str(e), outcome_unknown=True) from e
        except PyMongoError as e:
            logger.exception("Update of event %s failed", event_id)
            raise StoreError(str(e)) from e

        if updated is None:
            logger.warning(
                "Version conflict on event %s (expected version %s)", event_id, expected_version
            )
            raise VersionConflictError(event_id, expected_version)

        return updated

    async def _insert_event(self, document: Dict[str, Any]) -> Dict[str, Any]:
        try:
            await self.events_repo.insert_one(document)
        except DuplicateKeyError:
            raise
        except AMBIGUOUS_STORE_ERRORS as e:
            logger.exception("Insert of event %s timed out", document["slug"])
            raise StoreError(str(e), outcome_unknown=True) from e
        except PyMongoError as e:
            logger.exception("Insert of event %s failed", document["slug"])
            raise StoreError(str(e)) from e
        return document

    async def _write_with_slug_retry(
        self,
        write: Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]],
        data: Dict[str, Any],
    ) -> Dict[str, Any]:
        # A concurrent writer can claim a slug between the check and the write
        retries = 0
        while True:
            try:
                return await write(data)
            except DuplicateKeyError as e:
                if "slug" not in data:
                    raise StoreError(str(e)) from e
                base_slug = base_slug_for(data["title"])
                if retries >= SLUG_WRITE_RETRIES:
                    raise SlugGenerationFailedError(base_slug, retries + 1) from e
                retries += 1
                data = {**data, "slug": suffixed_slug(base_slug)}
                logger.warning("Slug collision on write, retrying with '%s'", data["slug"])
