"""Raster capture of the card grid."""
from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import math
import re
from dataclasses import dataclass
from functools import lru_cache
from io import BytesIO
from typing import Dict, List, Optional, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFont, ImageOps, UnidentifiedImageError

from .config import CSS_PX_PER_MM, ExportConfig
from .divider_card import format_full_date, format_month, set_type_label
from .errors import RenderError
from .models import CardRecord, RasterSnapshot
from .mutator import HIDE_CUTLINES_CLASS, hidden_affordances
from .surface import Element

logger = logging.getLogger(__name__)


_LENGTH_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*(mm|cm|px|rem)?\s*$")
_REPEAT_RE = re.compile(r"^\s*repeat\(\s*(\d+)\s*,")

# Browser default root font size, in CSS px
ROOT_FONT_SIZE_PX = 16

Box = Tuple[int, int, int, int]


def parse_length_mm(value: Optional[str], default: float) -> float:
    """
    Parse a `mm`/`cm`/`px`/`rem` style length; unitless numbers are
    millimeters. Anything else (percentages, `calc()`) resolves to `default`.
    """
    if not value:
        return default
    match = _LENGTH_RE.match(value)
    if match is None:
        logger.debug("Unsupported length %r, using %g mm", value, default)
        return default
    number = float(match.group(1))
    unit = match.group(2)
    if unit == "px":
        return number / CSS_PX_PER_MM
    if unit == "rem":
        return number * ROOT_FONT_SIZE_PX / CSS_PX_PER_MM
    if unit == "cm":
        return number * 10
    return number


def parse_track_count(value: Optional[str]) -> Optional[int]:
    """Column count of a fixed `grid-template-columns`, None if responsive."""
    if not value:
        return None
    match = _REPEAT_RE.match(value)
    if match is not None:
        return int(match.group(1))
    if "auto-fill" in value or "auto-fit" in value:
        return None
    return len(value.split())


@lru_cache(maxsize=32)
def _font(size_px: int) -> ImageFont.ImageFont:
    return ImageFont.load_default(size=size_px)


def _wrap(draw: ImageDraw.ImageDraw, text: str, font: ImageFont.ImageFont, width: float) -> List[str]:
    lines: List[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}".strip()
        if current and draw.textlength(candidate, font=font) > width:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines


@dataclass(frozen=True)
class GridGeometry:
    """Resolved on-page geometry of the grid element, in millimeters."""

    columns: int
    rows: int
    width_mm: float
    height_mm: float
    card_width_mm: float
    card_height_mm: float
    gap_mm: float


class SnapshotRenderer:
    """
    Paints the card grid into one RGB image at `config.snapshot_scale`
    times the CSS pixel density.

    Only inline `data:` images are drawn; remote references are never
    fetched at this stage and leave their area blank.
    """

    def __init__(self, config: Optional[ExportConfig] = None) -> None:
        self.config = config or ExportConfig()

    def px(self, mm: float) -> int:
        return round(mm * self.config.px_per_mm)

    def resolve_geometry(self, grid: Element) -> GridGeometry:
        cells = grid.query_selector_all("card-wrapper")
        if not cells:
            raise RenderError("Cards grid has nothing to render")

        card_w = self.config.card_width_mm
        card_h = self.config.card_height_mm
        gap = parse_length_mm(grid.style.get("gap"), self.config.gap_mm)

        columns = parse_track_count(grid.style.get("grid-template-columns"))
        viewport_mm = self.config.viewport_width_px / CSS_PX_PER_MM
        if columns is None:
            # Responsive auto-fill: as many tracks as the viewport holds
            columns = max(1, int((viewport_mm + gap) // (card_w + gap)))
            default_width = viewport_mm
        else:
            default_width = columns * card_w + (columns - 1) * gap

        rows = math.ceil(len(cells) / columns)
        return GridGeometry(
            columns=columns,
            rows=rows,
            width_mm=parse_length_mm(grid.style.get("width"), default_width),
            height_mm=rows * card_h + (rows - 1) * gap,
            card_width_mm=card_w,
            card_height_mm=card_h,
            gap_mm=gap,
        )

    async def capture(self, grid: Element) -> RasterSnapshot:
        """
        Capture the grid as it is currently styled.

        Remove buttons and cut guides are hidden during the capture and
        shown again afterwards.

        Raises:
            RenderError: If the element is detached, has no cards, or its
                images cannot be decoded within the image timeout
        """
        if not grid.is_connected:
            raise RenderError(f"Cannot capture detached element {grid!r}")

        with hidden_affordances(grid):
            geometry = self.resolve_geometry(grid)
            sources = [img.attrs.get("src", "") for img in grid.query_selector_all(tag="img")]
            try:
                images = await asyncio.wait_for(
                    asyncio.to_thread(self._load_images, sources),
                    self.config.image_timeout,
                )
            except asyncio.TimeoutError as e:
                raise RenderError(
                    f"Image loading timed out after {self.config.image_timeout:g}s"
                ) from e

            logger.debug(
                "Rendering %d x %d grid at %gx (%.1f x %.1f mm)",
                geometry.columns,
                geometry.rows,
                self.config.snapshot_scale,
                geometry.width_mm,
                geometry.height_mm,
            )
            image = self.paint(grid, geometry, images)

        return RasterSnapshot(image=image, scale_factor=self.config.snapshot_scale)

    def _load_images(self, sources: Sequence[str]) -> Dict[str, Image.Image]:
        images: Dict[str, Image.Image] = {}
        for src in sources:
            if src in images:
                continue
            if not src.startswith("data:"):
                if src:
                    logger.debug("Skipping remote image %s", src)
                continue
            header, _, payload = src.partition(",")
            if not header.endswith(";base64"):
                logger.debug("Skipping non-base64 data URI")
                continue
            try:
                with Image.open(BytesIO(base64.b64decode(payload))) as img:
                    images[src] = img.convert("RGB")
            except (binascii.Error, UnidentifiedImageError, OSError) as e:
                logger.warning("Could not decode inline image: %s", e)
        return images

    def paint(self, grid: Element, geometry: GridGeometry, images: Dict[str, Image.Image]) -> Image.Image:
        canvas = Image.new(
            "RGB",
            (self.px(geometry.width_mm), self.px(geometry.height_mm)),
            "#ffffff",
        )
        draw = ImageDraw.Draw(canvas)

        for index, cell in enumerate(grid.query_selector_all("card-wrapper")):
            row, col = divmod(index, geometry.columns)
            x = col * (geometry.card_width_mm + geometry.gap_mm)
            y = row * (geometry.card_height_mm + geometry.gap_mm)
            box = (
                self.px(x),
                self.px(y),
                self.px(x + geometry.card_width_mm),
                self.px(y + geometry.card_height_mm),
            )
            self._paint_cell(canvas, draw, cell, box, images)

        return canvas

    def _paint_cell(
        self,
        canvas: Image.Image,
        draw: ImageDraw.ImageDraw,
        cell: Element,
        box: Box,
        images: Dict[str, Image.Image],
    ) -> None:
        card = cell.query_selector("divider-card")
        if card is None:
            return
        record: Optional[CardRecord] = card.data.get("record")

        left, top, right, bottom = box
        draw.rectangle(box, outline="#222222", width=max(1, self.px(0.3)))

        if not card.has_class(HIDE_CUTLINES_CLASS):
            self._paint_cut_guides(draw, box)

        if record is not None:
            self._paint_face(canvas, draw, card, record, box, images)

        for button in cell.query_selector_all("remove-button"):
            if button.is_displayed:
                radius = self.px(3)
                cx, cy = right - self.px(5), top + self.px(5)
                draw.ellipse((cx - radius, cy - radius, cx + radius, cy + radius), fill="#d32f2f")
                draw.text((cx, cy), "x", fill="white", font=_font(self.px(4)), anchor="mm")

    def _paint_cut_guides(self, draw: ImageDraw.ImageDraw, box: Box) -> None:
        left, top, right, bottom = box
        dash, width = self.px(2), max(1, self.px(0.2))
        for x in range(left, right, dash * 2):
            draw.line((x, top, min(x + dash, right), top), fill="#999999", width=width)
            draw.line((x, bottom, min(x + dash, right), bottom), fill="#999999", width=width)
        for y in range(top, bottom, dash * 2):
            draw.line((left, y, left, min(y + dash, bottom)), fill="#999999", width=width)
            draw.line((right, y, right, min(y + dash, bottom)), fill="#999999", width=width)

    def _paint_face(
        self,
        canvas: Image.Image,
        draw: ImageDraw.ImageDraw,
        card: Element,
        record: CardRecord,
        box: Box,
        images: Dict[str, Image.Image],
    ) -> None:
        left, top, right, bottom = box
        pad = self.px(4)
        inner_width = right - left - 2 * pad

        # Header: set code and release month
        header_font = _font(self.px(5))
        draw.text((left + pad, top + pad), record.code, fill="black", font=header_font)
        if record.released_at:
            draw.text(
                (right - pad, top + pad),
                format_month(record.released_at),
                fill="black",
                font=_font(self.px(3.5)),
                anchor="ra",
            )
        header_bottom = top + pad + self.px(7)
        draw.line((left + pad, header_bottom, right - pad, header_bottom), fill="#222222", width=max(1, self.px(0.3)))

        # Icon
        icon_size = self.px(30)
        icon_top = header_bottom + self.px(6)
        img_el = card.query_selector(tag="img")
        icon = images.get(img_el.attrs.get("src", "")) if img_el is not None else None
        if icon is not None:
            fitted = ImageOps.contain(icon, (icon_size, icon_size))
            canvas.paste(
                fitted,
                (left + (right - left - fitted.width) // 2, icon_top + (icon_size - fitted.height) // 2),
            )

        # Name and details
        y = icon_top + icon_size + self.px(6)
        name_font = _font(self.px(4.2))
        for line in _wrap(draw, record.name, name_font, inner_width):
            draw.text(((left + right) // 2, y), line, fill="black", font=name_font, anchor="ma")
            y += self.px(5.2)

        y += self.px(2)
        detail_font = _font(self.px(3))
        details = [set_type_label(record.set_type)]
        if record.released_at:
            details.append(format_full_date(record.released_at))
        details.append(f"{record.card_count} cards")
        if record.block:
            details.append(record.block)
        for detail in details:
            if y > bottom - pad:
                break
            draw.text(((left + right) // 2, y), detail, fill="#444444", font=detail_font, anchor="ma")
            y += self.px(4)
