"""
Client for the image transform service (imagor / imagorvideo).

The service is stateless: ``GET {base}/unsafe/{w}x{h}/{source_url}``
fetches the source itself and answers with the rendered image.
"""

import logging
from dataclasses import dataclass

import aiohttp

from .errors import TransformError

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass
class RenderedImage:
    data: bytes
    content_type: str


class TransformClient:
    def __init__(self, base_url: str, timeout_seconds: float = 60.0):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    def build_url(self, width: int, height: int, source_url: str) -> str:
        return f"{self.base_url}/unsafe/{width}x{height}/{source_url}"

    async def render(self, width: int, height: int, source_url: str) -> RenderedImage:
        """Request one rendition; raises TransformError on a non-2xx answer."""
        url = self.build_url(width, height, source_url)
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(url) as response:
                if response.status >= 400:
                    detail = (await response.text())[:200]
                    raise TransformError(url, response.status, detail or None)
                data = await response.read()
                content_type = response.headers.get("Content-Type", DEFAULT_CONTENT_TYPE)

        logger.debug(f"Rendered {width}x{height} ({len(data)} bytes, {content_type})")
        return RenderedImage(data=data, content_type=content_type)
