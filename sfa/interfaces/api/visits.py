"""Visit API routes: bulk upsert of visits with their child records and photos."""

import json
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from sfa.application.services.batch_normalizer import CHILD_KEYS
from sfa.application.services.media_uploader import FILE_KEY_PATTERN, MediaFile
from sfa.application.services.visit_bulk_service import BulkVisitService
from sfa.core.exceptions import ValidationError
from sfa.interfaces.api.deps import get_current_actor_id
from sfa.interfaces.deps import get_bulk_visit_service

router = APIRouter(prefix="/api/visits", tags=["Visits"])

# Form fields carrying JSON-encoded batch data in multipart requests
FORM_JSON_FIELDS = ("visits", "visit", *CHILD_KEYS)


async def _read_multipart(request: Request) -> tuple[dict[str, Any], dict[str, list[MediaFile]]]:
    form = await request.form()
    payload: dict[str, Any] = {}
    files: dict[str, list[MediaFile]] = {}

    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            if FILE_KEY_PATTERN.match(key):
                files.setdefault(key, []).append(
                    MediaFile(
                        filename=value.filename or "upload",
                        content_type=value.content_type or "application/octet-stream",
                        data=await value.read(),
                    )
                )
        elif key in FORM_JSON_FIELDS:
            payload[key] = value

    return payload, files


async def _read_json(request: Request) -> Any:
    body = await request.body()
    if not body:
        raise ValidationError("No visit data provided")
    try:
        return json.loads(body)
    except json.JSONDecodeError as e:
        raise ValidationError("Invalid JSON body", details={"error": str(e)}) from e


@router.post("/bulk-upsert")
async def bulk_upsert_visits(
    request: Request,
    actor_id: Optional[int] = Depends(get_current_actor_id),
    service: BulkVisitService = Depends(get_bulk_visit_service),
):
    """Create or update a batch of visits.

    Accepts a JSON body or a multipart form whose ``visits``/``visit`` fields
    (and, for a single visit, its child collections)
    hold JSON and whose files are keyed ``visit_<index>_<slot>``. Responds 201,
    200, 207 (partial failure) or 400 (every item failed).
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        payload, files = await _read_multipart(request)
    else:
        payload, files = await _read_json(request), {}

    # DB and storage calls block; keep them off the event loop
    results = await run_in_threadpool(service.bulk_upsert, payload, files, actor_id)

    return JSONResponse(
        status_code=results.status_code,
        content=results.to_response().model_dump(mode="json"),
    )
