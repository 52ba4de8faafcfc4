"""Compensator: best-effort removal of stored media the database no longer references."""

from typing import Iterable, Optional

import structlog

from sfa.application.services.visit_upsert import split_urls
from sfa.infrastructure.storage import BlobStorage

logger = structlog.get_logger(__name__)


def delete_urls(storage: Optional[BlobStorage], urls: Iterable[str], reason: str, index: int) -> int:
    """Delete each URL, logging failures instead of raising. Returns the number deleted."""
    deleted = 0
    if storage is None:
        return deleted

    for url in urls:
        try:
            storage.delete(url)
            deleted += 1
        except Exception as e:
            # Orphaned objects are tolerated; the item outcome must not change
            logger.warning("Media cleanup failed", index=index, reason=reason, url=url, error=str(e))
    return deleted


def discard_uploads(storage: Optional[BlobStorage], uploaded: list[str], index: int) -> int:
    """Roll back the uploads of a failed item."""
    if not uploaded:
        return 0
    deleted = delete_urls(storage, uploaded, "item_failed", index)
    logger.info("Uploaded media discarded", index=index, uploaded=len(uploaded), deleted=deleted)
    return deleted


def purge_replaced(
    storage: Optional[BlobStorage],
    replaced: dict[str, str],
    uploaded: list[str],
    index: int,
) -> int:
    """Remove media superseded by a successful update."""
    keep = set(uploaded)
    stale = [url for urls in replaced.values() for url in split_urls(urls) if url not in keep]
    if not stale:
        return 0
    deleted = delete_urls(storage, stale, "replaced", index)
    logger.info("Replaced media purged", index=index, stale=len(stale), deleted=deleted)
    return deleted
