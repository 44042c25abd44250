"""
FastAPI upload API for MediaQ.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional

try:
    from fastapi import FastAPI, File, Form, HTTPException, Query, UploadFile
    import uvicorn

    FASTAPI_AVAILABLE = True
except ImportError:
    FASTAPI_AVAILABLE = False

from pydantic import ValidationError

from ..client import MediaQ
from ..core.models import MediaFilter, MediaMetadata, MediaSort
from ..errors import MediaNotFoundError, MediaValidationError


def create_api_app(mediaq: Optional[MediaQ] = None) -> "FastAPI":
    """Create the upload/status API bound to one MediaQ instance"""
    if not FASTAPI_AVAILABLE:
        raise ImportError(
            "FastAPI is required for the API. Install with: pip install 'mediaq[api]'"
        )

    mediaq = mediaq or MediaQ()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if not mediaq.is_closed:
            await mediaq.close()

    app = FastAPI(
        title="MediaQ",
        description="Media upload with asynchronous thumbnail generation",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.mediaq = mediaq

    @app.post("/media", status_code=202)
    async def upload_media(
        file: UploadFile = File(...),
        uploader_id: int = Form(...),
        name: Optional[str] = Form(None),
        description: Optional[str] = Form(None),
        width: Optional[int] = Form(None),
        height: Optional[int] = Form(None),
        duration: Optional[int] = Form(None),
    ) -> Dict[str, Any]:
        """Store an upload; thumbnails follow asynchronously"""
        content = await file.read()
        try:
            metadata = MediaMetadata(
                uploader_id=uploader_id,
                name=name or file.filename or "upload",
                description=description,
                mime_type=file.content_type or "application/octet-stream",
                size=len(content),
                width=width,
                height=height,
                duration=duration,
            )
            record = await mediaq.upload_media(content, file.filename or "", metadata)
        except (MediaValidationError, ValidationError) as e:
            raise HTTPException(status_code=400, detail=str(e))
        return record.model_dump(mode="json")

    @app.get("/media")
    async def list_media(
        page: int = Query(1),
        size: int = Query(10),
        sort: MediaSort = Query(MediaSort.CREATED_AT_DESC),
        mime_type: Optional[str] = Query(None, alias="mimeType"),
        uploaded_after: Optional[datetime] = Query(None, alias="uploadedAfter"),
        uploaded_before: Optional[datetime] = Query(None, alias="uploadedBefore"),
        search: Optional[str] = Query(None),
    ) -> List[Dict[str, Any]]:
        """Paged listing with presigned URLs"""
        try:
            filters = MediaFilter(
                page=page,
                size=size,
                sort=sort,
                mime_type=mime_type,
                uploaded_after=uploaded_after,
                uploaded_before=uploaded_before,
                search=search,
            )
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return await mediaq.list_media(filters)

    @app.get("/media/{media_id}")
    async def get_media(media_id: int) -> Dict[str, Any]:
        """Record with presigned original and thumbnail URLs"""
        try:
            return await mediaq.get_media(media_id)
        except MediaNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))

    return app


def run_api(mediaq: Optional[MediaQ] = None, host: str = "127.0.0.1", port: int = 8000) -> None:
    """Serve the API with uvicorn"""
    if not FASTAPI_AVAILABLE:
        raise ImportError(
            "FastAPI is required for the API. Install with: pip install 'mediaq[api]'"
        )
    uvicorn.run(create_api_app(mediaq), host=host, port=port)
