"""Document file uploads.

LIVE uploads are written to blob storage and consume quota. PREVIEW
uploads are never stored; they get a preview URL derived from the file
contents, so the same file always previews at the same address.
"""

import hashlib
import re
from dataclasses import dataclass
from uuid import UUID, uuid4

from signdesk.billing.admission import ActionOutcome, ModeGate
from signdesk.billing.modes import ActionKind, ProcessingMode
from signdesk.core.exceptions import ValidationError
from signdesk.core.logging import LoggerMixin
from signdesk.integrations.storage import BlobStorage
from signdesk.models.base import utcnow

MAX_UPLOAD_BYTES = 25 * 1024 * 1024

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class UploadResult:
    file_url: str
    file_name: str
    size: int


def normalize_file_name(file_name: str | None) -> str:
    """Replace whitespace runs with ``-``; fall back to a timestamped name."""
    name = _WHITESPACE.sub("-", (file_name or "").strip())
    if not name:
        name = f"document-{int(utcnow().timestamp() * 1000)}"
    return name


class UploadService(LoggerMixin):
    """Stores uploaded files according to the processing mode."""

    def __init__(
        self,
        gate: ModeGate,
        storage: BlobStorage,
        preview_base_url: str,
        max_bytes: int = MAX_UPLOAD_BYTES,
    ) -> None:
        self.gate = gate
        self.storage = storage
        self.preview_base_url = preview_base_url.rstrip("/")
        self.max_bytes = max_bytes

    def preview_url(self, user_id: UUID, file_name: str, data: bytes) -> str:
        digest = hashlib.sha256(data).hexdigest()[:12]
        return f"{self.preview_base_url}/{user_id}/{digest}/{file_name}"

    async def upload(
        self,
        user_id: UUID,
        file_name: str | None,
        data: bytes,
        content_type: str | None,
        mode: ProcessingMode,
    ) -> ActionOutcome[UploadResult]:
        """Upload a file.

        Raises:
            ValidationError: If the file is empty or too large
            TierIneligibleError: LIVE upload from a free account
            QuotaExhaustedError: LIVE upload with no quota left
            StorageProviderError: If blob storage rejects the write
        """
        if not data:
            raise ValidationError("Uploaded file is empty", field="file")
        if len(data) > self.max_bytes:
            raise ValidationError(
                "Uploaded file is too large",
                field="file",
                details={"max_bytes": self.max_bytes},
            )

        name = normalize_file_name(file_name)
        content_type = content_type or "application/octet-stream"

        async def live_effect() -> UploadResult:
            key = f"{user_id}/{uuid4().hex[:12]}/{name}"
            blob = await self.storage.put(key, data, content_type)
            return UploadResult(file_url=blob.url, file_name=name, size=blob.size)

        async def preview_effect() -> UploadResult:
            return UploadResult(
                file_url=self.preview_url(user_id, name, data),
                file_name=name,
                size=len(data),
            )

        effect = live_effect if mode == ProcessingMode.LIVE else preview_effect
        outcome = await self.gate.run(user_id, mode, ActionKind.UPLOAD, effect)

        self.logger.info(
            "file_uploaded",
            file_name=name,
            size=len(data),
            mode=outcome.mode.value,
        )

        return outcome
