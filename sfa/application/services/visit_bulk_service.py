"""Bulk visit service: drives every batch item through upload, write and cleanup.

Items run sequentially in input order. Each one moves through
``validation -> media -> transaction -> compensation`` and ends in exactly one
result bucket; a failing item never affects its neighbours.
"""

import time
from typing import Any, Callable, Optional

import structlog

from sfa.application.services.batch_normalizer import normalize_batch, parse_item
from sfa.application.services.bulk_result import BulkResultAggregator
from sfa.application.services.compensator import discard_uploads, purge_replaced
from sfa.application.services.media_uploader import MediaFile, MediaUploader, files_for_item
from sfa.application.services.visit_upsert import upsert_visit_aggregate
from sfa.config import get_settings
from sfa.core.exceptions import AppError
from sfa.infrastructure.storage import BlobStorage
from sfa.infrastructure.unit_of_work import SqlAlchemyUnitOfWork

logger = structlog.get_logger(__name__)
settings = get_settings()


class BulkVisitService:
    def __init__(
        self,
        uow_factory: Callable[[], SqlAlchemyUnitOfWork] = SqlAlchemyUnitOfWork,
        storage: Optional[BlobStorage] = None,
    ):
        self.uow_factory = uow_factory
        self.storage = storage
        self.uploader = MediaUploader(storage)

    def bulk_upsert(
        self,
        payload: Any,
        files: Optional[dict[str, list[MediaFile]]] = None,
        actor_id: Optional[int] = None,
    ) -> BulkResultAggregator:
        """Process a whole batch. Raises ValidationError only when the payload is unusable."""
        files = files or {}
        batch = normalize_batch(payload)
        results = BulkResultAggregator(total=len(batch.items))

        logger.info(
            "Bulk visit upsert started",
            shape=batch.shape.value,
            items=len(batch.items),
            file_keys=sorted(files),
        )

        for index, raw in enumerate(batch.items):
            self._process_item(index, raw, files, actor_id, results)

        logger.info(
            "Bulk visit upsert completed",
            created=len(results.created),
            updated=len(results.updated),
            failed=len(results.failed),
            status_code=results.status_code,
        )
        return results

    def _process_item(
        self,
        index: int,
        raw: Any,
        files: dict[str, list[MediaFile]],
        actor_id: Optional[int],
        results: BulkResultAggregator,
    ) -> None:
        uploaded: list[str] = []
        stage = "validation"
        started = time.perf_counter()
        log = logger.bind(index=index)

        def stage_done(outcome: str) -> None:
            nonlocal started
            log.info(
                "Visit item stage",
                stage=stage,
                outcome=outcome,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            started = time.perf_counter()

        try:
            item = parse_item(raw)
            stage_done("ok")

            stage = "media"
            media = self.uploader.upload_item(index, item.visit.visit_id, files_for_item(files, index), uploaded)
            stage_done("ok")

            stage = "transaction"
            actor = actor_id or item.visit.createdby or settings.DEFAULT_ACTOR_ID
            with self.uow_factory() as uow:
                outcome = upsert_visit_aggregate(uow, item, media, actor)
                uow.commit()
            stage_done("ok")
        except AppError as e:
            stage_done("failed")
            self._fail(index, raw, stage, e.message, e.details, uploaded, results)
            return
        except Exception as e:
            log.exception("Unexpected error processing visit item", stage=stage)
            stage_done("failed")
            self._fail(index, raw, stage, str(e), {"type": e.__class__.__name__}, uploaded, results)
            return

        stage = "compensation"
        if outcome.is_update:
            purge_replaced(self.storage, outcome.replaced_media, uploaded, index)
        stage_done("ok")

        results.add_success(outcome.aggregate, outcome.is_update)

    def _fail(
        self,
        index: int,
        raw: Any,
        stage: str,
        error: str,
        details: dict[str, Any],
        uploaded: list[str],
        results: BulkResultAggregator,
    ) -> None:
        logger.warning("Visit item failed", index=index, stage=stage, error=error)
        discard_uploads(self.storage, uploaded, index)
        results.add_failure(index, raw, error, stage, details)
