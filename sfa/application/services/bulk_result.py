"""Result aggregator: buckets per-item outcomes and derives the batch status."""

from typing import Any, Optional

from fastapi import status

from sfa.domain.schemas.visit_result import (
    BulkResults,
    BulkSummary,
    BulkUpsertResponse,
    BulkVisitFailure,
    BulkVisitSuccess,
    VisitAggregateRead,
)


class BulkResultAggregator:
    def __init__(self, total: int = 0):
        self.total = total
        self.created: list[BulkVisitSuccess] = []
        self.updated: list[BulkVisitSuccess] = []
        self.failed: list[BulkVisitFailure] = []

    def add_success(self, aggregate: VisitAggregateRead, is_update: bool) -> None:
        if is_update:
            self.updated.append(
                BulkVisitSuccess(visit_id=aggregate.id, message="Visit updated successfully", visit=aggregate)
            )
        else:
            self.created.append(
                BulkVisitSuccess(visit_id=aggregate.id, message="Visit created successfully", visit=aggregate)
            )

    def add_failure(
        self,
        index: int,
        item_input: Any,
        error: str,
        stage: str,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.failed.append(
            BulkVisitFailure(index=index, input=item_input, error=error, stage=stage, details=details or {})
        )

    @property
    def processed(self) -> int:
        return len(self.created) + len(self.updated) + len(self.failed)

    @property
    def status_code(self) -> int:
        """400 all failed, 207 some failed, 201 something created, else 200."""
        if self.failed and len(self.failed) == self.processed:
            return status.HTTP_400_BAD_REQUEST
        if self.failed:
            return status.HTTP_207_MULTI_STATUS
        if self.created:
            return status.HTTP_201_CREATED
        return status.HTTP_200_OK

    def to_response(self) -> BulkUpsertResponse:
        return BulkUpsertResponse(
            success=not self.failed,
            message="Bulk upsert completed",
            summary=BulkSummary(
                total=self.total or self.processed,
                created=len(self.created),
                updated=len(self.updated),
                failed=len(self.failed),
            ),
            results=BulkResults(created=self.created, updated=self.updated, failed=self.failed),
        )
