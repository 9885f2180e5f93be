"""
Try-on workflow controller.

Owns the two upload slots (person, clothing) and the generation lifecycle:

  idle ⇄ ready → generating → succeeded | failed

All mutation goes through set_upload() / request_generation() / reset().
Every failure ends up in the single `error` field; nothing is raised to the caller.
"""

import base64
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from ..core.errors import EncodingError, TryOnError, ValidationError
from .encoder import EncodedImage, encode_path, encode_upload

logger = logging.getLogger(__name__)

RESULT_PREFIX = "data:image/png;base64,"
DOWNLOAD_FILENAME = "clothy-try-on.png"

FILE_ERROR_MESSAGE = "Failed to process file. Please try another image."
MISSING_UPLOADS_MESSAGE = "Please upload both images before trying on."
IN_PROGRESS_MESSAGE = "A try-on is already in progress."


class UploadRole(str, Enum):
    PERSON = "person"
    CLOTHING = "clothing"


class WorkflowState(str, Enum):
    IDLE = "idle"
    READY = "ready"
    GENERATING = "generating"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class UploadSlot:
    """One user-provided image and its encoded form."""

    filename: str
    size: int
    image: EncodedImage

    def describe(self) -> dict:
        return {
            "filename": self.filename,
            "media_type": self.image.media_type,
            "size": self.size,
        }


class WorkflowController:
    """One per session. Drives uploads and try-on attempts against a GenerationClient."""

    def __init__(self, client, encode=encode_upload):
        self.client = client
        self._encode = encode
        self.slots: dict[UploadRole, Optional[UploadSlot]] = {
            UploadRole.PERSON: None,
            UploadRole.CLOTHING: None,
        }
        self.state = WorkflowState.IDLE
        self.loading = False
        self.error: Optional[str] = None
        self.result: Optional[str] = None

    # ── Uploads ──────────────────────────────────────────────────────

    async def set_upload(self, role: UploadRole, file=None) -> None:
        """
        Store (or with file=None, clear) the image for a role.

        `file` is an UploadFile-like object, or a path on disk for scripts
        driving the controller without HTTP.
        """
        role = UploadRole(role)
        if file is None:
            self.slots[role] = None
            logger.info("Cleared %s upload", role.value)
            self._refresh_readiness()
            return

        from_disk = isinstance(file, (str, Path))
        try:
            image = await (encode_path(file) if from_disk else self._encode(file))
        except EncodingError as e:
            logger.warning("Upload for %s rejected: %s", role.value, e.message)
            self.error = FILE_ERROR_MESSAGE
            return

        if from_disk:
            filename = Path(file).name
        else:
            filename = getattr(file, "filename", None) or f"{role.value}-upload"
        self.slots[role] = UploadSlot(
            filename=filename,
            size=len(image.to_bytes()),
            image=image,
        )
        logger.info("Stored %s upload: %s (%s)", role.value, filename, image.media_type)
        self._refresh_readiness()

    def _refresh_readiness(self) -> None:
        # An attempt in flight keeps the images it was started with
        if self.state is WorkflowState.GENERATING:
            return
        if not self._both_uploaded():
            # A finished result no longer matches the uploads once one is removed
            self.result = None
            self.state = WorkflowState.IDLE
        elif self.state is WorkflowState.IDLE:
            self.state = WorkflowState.READY

    def _both_uploaded(self) -> bool:
        return all(slot is not None for slot in self.slots.values())

    def _check_ready(self) -> tuple[UploadSlot, UploadSlot]:
        person = self.slots[UploadRole.PERSON]
        clothing = self.slots[UploadRole.CLOTHING]
        if person is None or clothing is None:
            raise ValidationError(MISSING_UPLOADS_MESSAGE)
        return person, clothing

    # ── Generation ───────────────────────────────────────────────────

    async def request_generation(self) -> WorkflowState:
        """
        Run one try-on attempt.

        A missing upload is a validation failure: the error is set, the state
        returns to idle and no call is made. A call while another attempt is
        in flight is rejected with IN_PROGRESS_MESSAGE; the running attempt
        keeps its state and result.
        """
        if self.loading:
            logger.warning("Try-on requested while a generation is in flight, rejecting")
            self.error = IN_PROGRESS_MESSAGE
            return self.state

        try:
            person, clothing = self._check_ready()
        except ValidationError as e:
            self.error = e.message
            self.result = None
            self.state = WorkflowState.IDLE
            return self.state

        self.loading = True
        self.error = None
        self.result = None
        self.state = WorkflowState.GENERATING
        logger.info("Generating try-on: %s + %s", person.filename, clothing.filename)

        try:
            payload = await self.client.generate(person.image, clothing.image)
            self.result = f"{RESULT_PREFIX}{payload}"
            self.error = None
            self.state = WorkflowState.SUCCEEDED
            logger.info("Try-on succeeded")
        except Exception as e:
            message = e.message if isinstance(e, TryOnError) else str(e)
            if not isinstance(e, TryOnError):
                logger.exception("Unexpected try-on failure")
            self.error = f"An error occurred: {message.rstrip('.')}. Please try again."
            self.state = WorkflowState.FAILED
            logger.info("Try-on failed: %s", message)
        finally:
            self.loading = False

        return self.state

    # ── Output ───────────────────────────────────────────────────────

    def download(self) -> Optional[tuple[bytes, str]]:
        """Decoded result image and its download filename, or None without a result."""
        if not self.result:
            return None
        return base64.b64decode(self.result[len(RESULT_PREFIX):]), DOWNLOAD_FILENAME

    def reset(self) -> None:
        if self.loading:
            logger.warning("Reset requested while a generation is in flight, ignoring")
            return
        for role in self.slots:
            self.slots[role] = None
        self.state = WorkflowState.IDLE
        self.error = None
        self.result = None

    def snapshot(self) -> dict:
        person = self.slots[UploadRole.PERSON]
        clothing = self.slots[UploadRole.CLOTHING]
        return {
            "state": self.state.value,
            "loading": self.loading,
            "error": self.error,
            "result": self.result,
            "person": person.describe() if person else None,
            "clothing": clothing.describe() if clothing else None,
            "download_filename": DOWNLOAD_FILENAME if self.result else None,
        }
