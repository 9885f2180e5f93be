"""
Try-on API — drives the session's workflow controller.

GET    /v1/tryon                 — Current workflow state
PUT    /v1/tryon/uploads/{role}  — Upload the person or clothing image (multipart)
DELETE /v1/tryon/uploads/{role}  — Clear an upload
POST   /v1/tryon/generate        — Run one try-on attempt
GET    /v1/tryon/result          — Download the generated image
POST   /v1/tryon/reset           — Clear uploads and result
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel

from ..core.config import Settings, get_settings
from ..core.dependencies import get_controller
from ..services.workflow import UploadRole, WorkflowController

logger = logging.getLogger(__name__)

tryon_router = APIRouter(prefix="/tryon", tags=["tryon"])


# ── Response models ───────────────────────────────────────────────────

class UploadInfo(BaseModel):
    filename: str
    media_type: str
    size: int = 0


class TryOnStateResponse(BaseModel):
    state: str
    loading: bool = False
    error: Optional[str] = None
    result: Optional[str] = None  # data:image/png;base64,...
    person: Optional[UploadInfo] = None
    clothing: Optional[UploadInfo] = None
    download_filename: Optional[str] = None


# ── Routes ────────────────────────────────────────────────────────────

@tryon_router.get("", response_model=TryOnStateResponse)
async def get_state(controller: WorkflowController = Depends(get_controller)):
    return controller.snapshot()


@tryon_router.put("/uploads/{role}", response_model=TryOnStateResponse)
async def upload_image(
    role: UploadRole,
    file: UploadFile = File(..., description="Person photo or clothing photo"),
    controller: WorkflowController = Depends(get_controller),
    settings: Settings = Depends(get_settings),
):
    """
    Upload the image for one role. Replaces any previous image for that role.

    Example:
        curl -X PUT http://localhost:8000/v1/tryon/uploads/person -F "file=@me.jpg"
    """
    max_bytes = settings.max_upload_mb * 1024 * 1024
    if file.size is not None and file.size > max_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File too large (max {settings.max_upload_mb}MB).",
        )

    await controller.set_upload(role, file)
    return controller.snapshot()


@tryon_router.delete("/uploads/{role}", response_model=TryOnStateResponse)
async def clear_image(
    role: UploadRole,
    controller: WorkflowController = Depends(get_controller),
):
    await controller.set_upload(role, None)
    return controller.snapshot()


@tryon_router.post("/generate", response_model=TryOnStateResponse)
async def generate(controller: WorkflowController = Depends(get_controller)):
    """Run one try-on attempt. The outcome (result or error) is in the returned state."""
    await controller.request_generation()
    return controller.snapshot()


@tryon_router.get("/result")
async def download_result(controller: WorkflowController = Depends(get_controller)):
    """Serve the generated image as a file download."""
    download = controller.download()
    if download is None:
        raise HTTPException(status_code=404, detail="No try-on result available")

    image_bytes, filename = download
    return Response(
        content=image_bytes,
        media_type="image/png",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@tryon_router.post("/reset", response_model=TryOnStateResponse)
async def reset(controller: WorkflowController = Depends(get_controller)):
    controller.reset()
    return controller.snapshot()
