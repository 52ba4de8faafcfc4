"""Media uploader: pushes a visit's photos to blob storage before any DB write."""

import re
import time
from dataclasses import dataclass
from typing import Optional

import structlog

from sfa.core.exceptions import UploadError
from sfa.domain.models.visit import MEDIA_FIELDS
from sfa.domain.schemas.visit_batch import is_positive_id
from sfa.infrastructure.storage import BlobStorage

logger = structlog.get_logger(__name__)

# Upload slot -> storage folder
SLOT_FOLDERS = {
    "self_images": "visits/self",
    "customer_images": "visits/customer",
    "cooler_images": "visits/cooler",
}

FILE_KEY_PATTERN = re.compile(r"^visit_(\d+)_(self_images|customer_images|cooler_images)$")


@dataclass
class MediaFile:
    filename: str
    content_type: str
    data: bytes


def files_for_item(files: dict[str, list[MediaFile]], index: int) -> dict[str, list[MediaFile]]:
    """Pick the ``visit_<index>_<slot>`` entries belonging to one item."""
    return {slot: files.get(f"visit_{index}_{slot}") or [] for slot in SLOT_FOLDERS}


def _safe_filename(filename: str) -> str:
    name = (filename or "upload").replace("\\", "/").rsplit("/", 1)[-1].strip()
    return name or "upload"


class MediaUploader:
    """Uploads every slot of one item, recording each produced URL."""

    def __init__(self, storage: Optional[BlobStorage]):
        self.storage = storage

    def object_key(self, slot: str, owner: int, filename: str) -> str:
        timestamp = int(time.time() * 1000)
        return f"{SLOT_FOLDERS[slot]}/{owner}-{timestamp}-{_safe_filename(filename)}"

    def upload_item(
        self,
        index: int,
        visit_id: Optional[int],
        files: dict[str, list[MediaFile]],
        uploaded: list[str],
    ) -> dict[str, str]:
        """Upload the item's files slot by slot.

        Returns the comma-joined URL string per visit column, only for slots
        that received files. Every URL is appended to ``uploaded`` as soon as it
        exists so a later failure can clean it up. Raises UploadError.
        """
        owner = visit_id if is_positive_id(visit_id) else int(time.time() * 1000) + index
        columns = {slot: column for column, slot in MEDIA_FIELDS.items()}
        media: dict[str, str] = {}

        for slot, slot_files in files.items():
            if not slot_files:
                continue
            if self.storage is None:
                raise UploadError("Image upload failed: blob storage is not configured")

            urls = []
            for media_file in slot_files:
                key = self.object_key(slot, owner, media_file.filename)
                try:
                    url = self.storage.upload(media_file.data, key, media_file.content_type)
                except UploadError:
                    raise
                except Exception as e:
                    raise UploadError(f"Image upload failed: {e}", details={"key": key}) from e
                uploaded.append(url)
                urls.append(url)

            media[columns[slot]] = ",".join(urls)
            logger.info("Images uploaded", index=index, slot=slot, count=len(urls))

        return media
