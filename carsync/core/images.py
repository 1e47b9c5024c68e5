from __future__ import annotations

import io
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol, Sequence

import httpx
from PIL import Image, ImageOps

from carsync.core.report import RunReport


LOGGER = logging.getLogger(__name__)

IMAGE_FORMAT = "WEBP"
IMAGE_EXTENSION = "webp"
IMAGE_CONTENT_TYPE = "image/webp"


class ImageStore(Protocol):
    def upload_public_object(self, path: str, data: bytes, content_type: str) -> str:
        """Store bytes at path, replacing any existing object, and return its public URL."""


def transcode(source: bytes, width: int, height: int, quality: int) -> bytes:
    """
    Cover-fit source pixels into width x height and encode as lossy WEBP.

    The longer side is center-cropped; the image is never stretched.
    """
    with Image.open(io.BytesIO(source)) as img:
        img = ImageOps.exif_transpose(img)
        if img.mode != "RGB":
            img = img.convert("RGB")
        fitted = ImageOps.fit(img, (width, height), method=Image.Resampling.LANCZOS, centering=(0.5, 0.5))
    buffer = io.BytesIO()
    fitted.save(buffer, format=IMAGE_FORMAT, quality=quality)
    return buffer.getvalue()


def image_path(slug: str, index: int) -> str:
    return f"{slug}/{index}.{IMAGE_EXTENSION}"


class ImagePipeline:
    def __init__(
        self,
        store: ImageStore,
        client: httpx.Client | None = None,
        width: int = 1200,
        height: int = 900,
        max_images: int = 10,
        quality: int = 85,
        workers: int = 4,
        timeout_seconds: float = 30.0,
    ) -> None:
        self.store = store
        self.client = client or httpx.Client(timeout=timeout_seconds, follow_redirects=True)
        self.width = width
        self.height = height
        self.max_images = max_images
        self.quality = quality
        self.workers = max(1, workers)

    def process(self, sources: Sequence[str], slug: str, report: RunReport) -> list[str]:
        """
        Rehost up to max_images source images under <slug>/<index>.webp.

        Failed images are recorded and dropped; the result keeps source order.
        """
        attempted = list(sources[: self.max_images])
        if not attempted:
            return []
        jobs = [(index, url, slug, report) for index, url in enumerate(attempted)]
        if self.workers == 1:
            results = [self._process_one(*job) for job in jobs]
        else:
            with ThreadPoolExecutor(max_workers=min(self.workers, len(jobs))) as pool:
                results = list(pool.map(lambda job: self._process_one(*job), jobs))
        return [url for url in results if url]

    def _process_one(self, index: int, source_url: str, slug: str, report: RunReport) -> str | None:
        try:
            source = self._fetch(source_url)
            encoded = transcode(source, self.width, self.height, self.quality)
            public_url = self.store.upload_public_object(image_path(slug, index), encoded, IMAGE_CONTENT_TYPE)
        except Exception as exc:  # noqa: BLE001
            LOGGER.error("Error processing image %s for %s: %s", index, slug, exc)
            report.record_error("image", f"{slug}/{index}", exc)
            return None
        report.increment("images_uploaded")
        return public_url

    def _fetch(self, source_url: str) -> bytes:
        response = self.client.get(source_url)
        response.raise_for_status()
        return response.content

    def close(self) -> None:
        self.client.close()
