"""
Set icon normalization.

Scryfall serves set icons as cross-origin SVG files, which the snapshot
step does not fetch. Before capture, each icon is fetched through a proxy,
rendered to a square PNG with PyMuPDF and inlined as a data URI. Any
failure keeps the original reference for that icon only.
"""
from __future__ import annotations

import asyncio
import base64
import enum
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from io import BytesIO
from typing import AsyncIterator, Callable, List, Optional
from urllib.parse import quote

import fitz  # PyMuPDF - renders the SVG icons
import httpx
from PIL import Image

from .config import (
    DEFAULT_ICON_CONCURRENCY,
    DEFAULT_ICON_SIZE,
    DEFAULT_ICON_TIMEOUT,
    DEFAULT_PROXY_BASE,
    ExportConfig,
)
from .errors import FetchError, IconConversionError, IconDecodeError, IconTimeoutError
from .surface import Element, vector_icons

logger = logging.getLogger(__name__)


# Characters left unescaped by JavaScript's encodeURIComponent
_URI_COMPONENT_SAFE = "-_.!~*'()"

Rasterizer = Callable[[bytes, int], bytes]


def rasterize_svg(data: bytes, size: int = DEFAULT_ICON_SIZE) -> bytes:
    """
    Render SVG bytes into a `size` x `size` PNG on an opaque white square.

    The drawing is scaled uniformly to fit and centered.
    """
    doc = fitz.open(stream=data, filetype="svg")
    try:
        page = doc[0]
        rect = page.rect
        if rect.width <= 0 or rect.height <= 0:
            raise ValueError("SVG has no drawable area")

        scale = min(size / rect.width, size / rect.height)
        pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
        icon = Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
    finally:
        doc.close()

    square = Image.new("RGB", (size, size), "white")
    square.paste(icon, ((size - icon.width) // 2, (size - icon.height) // 2))

    out = BytesIO()
    square.save(out, format="PNG")
    return out.getvalue()


def to_data_uri(png: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")


class OutcomeKind(enum.Enum):
    OK = "ok"
    DECODE_ERROR = "decode_error"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class RasterOutcome:
    """Result of a bounded raster wait: a value, a decode error or a timeout."""

    kind: OutcomeKind
    value: Optional[bytes] = None
    error: Optional[BaseException] = None


async def await_raster(
    render: Rasterizer,
    data: bytes,
    size: int,
    timeout: float,
) -> RasterOutcome:
    """Run `render` in a worker thread and wait at most `timeout` seconds."""
    try:
        value = await asyncio.wait_for(asyncio.to_thread(render, data, size), timeout)
    except asyncio.TimeoutError:
        return RasterOutcome(OutcomeKind.TIMEOUT)
    except Exception as e:
        return RasterOutcome(OutcomeKind.DECODE_ERROR, error=e)
    return RasterOutcome(OutcomeKind.OK, value=value)


@dataclass(frozen=True)
class IconConversion:
    """
    Outcome for one icon. `value` is always usable as an image source: the
    inline PNG on success, the original reference on failure.
    """

    original: str
    value: str
    error: Optional[IconConversionError] = None

    @property
    def converted(self) -> bool:
        return self.error is None


class IconNormalizer:
    """Fetches, rasterizes and inlines the SVG icons of a surface."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        proxy_base: str = DEFAULT_PROXY_BASE,
        size: int = DEFAULT_ICON_SIZE,
        timeout: float = DEFAULT_ICON_TIMEOUT,
        concurrency: int = DEFAULT_ICON_CONCURRENCY,
        rasterizer: Rasterizer = rasterize_svg,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.client = client
        self.proxy_base = proxy_base
        self.size = size
        self.timeout = timeout
        self.concurrency = concurrency
        self.rasterizer = rasterizer

    @classmethod
    def from_config(cls, client: httpx.AsyncClient, config: ExportConfig) -> "IconNormalizer":
        return cls(
            client=client,
            proxy_base=config.proxy_base,
            size=config.icon_size,
            timeout=config.icon_timeout,
            concurrency=config.icon_concurrency,
        )

    def proxy_url(self, ref: str) -> str:
        return f"{self.proxy_base}{quote(ref, safe=_URI_COMPONENT_SAFE)}"

    async def fetch(self, ref: str) -> bytes:
        """
        Fetch the icon source through the proxy.

        Raises:
            FetchError: On transport errors or a non-success status
        """
        url = self.proxy_url(ref)
        logger.debug("Fetching icon via proxy: %s", url)
        try:
            response = await self.client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            raise FetchError(f"HTTP {response.status_code}: {response.reason_phrase}")
        return response.content

    async def render(self, data: bytes) -> str:
        """
        Rasterize fetched SVG bytes into a PNG data URI.

        Raises:
            IconTimeoutError: If rendering does not finish within the timeout
            IconDecodeError: If the content cannot be decoded or drawn
        """
        outcome = await await_raster(self.rasterizer, data, self.size, self.timeout)
        if outcome.kind is OutcomeKind.TIMEOUT:
            raise IconTimeoutError(f"SVG render timed out after {self.timeout:g}s")
        if outcome.kind is OutcomeKind.DECODE_ERROR:
            error = outcome.error
            raise IconDecodeError(f"{type(error).__name__}: {error}") from error
        return to_data_uri(outcome.value)

    async def convert(self, ref: str) -> IconConversion:
        """Convert one icon reference. Never raises for conversion failures."""
        try:
            data = await self.fetch(ref)
            value = await self.render(data)
        except IconConversionError as e:
            logger.warning("Keeping original icon %s: %s", ref, e)
            return IconConversion(original=ref, value=ref, error=e)

        logger.debug("Inlined icon %s (%d bytes)", ref, len(value))
        return IconConversion(original=ref, value=value)

    @asynccontextmanager
    async def inlined(self, root: Element) -> AsyncIterator[List[IconConversion]]:
        """
        Substitute every SVG icon under root with its inline PNG for the
        duration of the block, then put the original sources back.
        """
        icons = vector_icons(root)
        originals = [(img, img.attrs["src"]) for img in icons]
        semaphore = asyncio.Semaphore(self.concurrency)

        async def process(img: Element) -> IconConversion:
            async with semaphore:
                conversion = await self.convert(img.attrs["src"])
            img.attrs["src"] = conversion.value
            return conversion

        try:
            logger.debug("Found %d SVG icons to convert", len(icons))
            conversions = list(await asyncio.gather(*(process(img) for img in icons)))
            failed = sum(1 for c in conversions if not c.converted)
            if failed:
                logger.info("%d of %d icons kept their original source", failed, len(conversions))
            yield conversions
        finally:
            for img, src in originals:
                img.attrs["src"] = src
