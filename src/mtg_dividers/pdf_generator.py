"""PDF generation for divider card sheets."""
from __future__ import annotations

from contextlib import suppress
from io import BytesIO
from pathlib import Path
from typing import Tuple

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from .config import A4_HEIGHT_MM, A4_WIDTH_MM
from .errors import AssemblyError
from .models import ExportDocument, PageBand, RasterSnapshot


# Leftover below this is float noise from page-fit scaling, not content
_EPSILON_MM = 1e-9

DEFAULT_TITLE = "MTG Divider Cards"


def fit_to_page_width(
    width_mm: float,
    height_mm: float,
    page_width_mm: float = A4_WIDTH_MM,
) -> Tuple[float, float]:
    """
    Scale an image down uniformly so it is no wider than the page.

    Images that already fit are returned unchanged (never upscaled).
    """
    if width_mm > page_width_mm:
        scale = page_width_mm / width_mm
        return page_width_mm, height_mm * scale
    return width_mm, height_mm


def paginate(
    width_mm: float,
    height_mm: float,
    page_width_mm: float = A4_WIDTH_MM,
    page_height_mm: float = A4_HEIGHT_MM,
) -> ExportDocument:
    """
    Split one tall image into page bands.

    Every page shows the whole image, shifted up by the height already
    printed on earlier pages; the page boundary clips the rest. The first
    band sits at offset 0, each following one at `remaining - image_height`.

    Raises:
        ValueError: If the image has no height
    """
    img_width, img_height = fit_to_page_width(width_mm, height_mm, page_width_mm)
    if img_height <= 0:
        raise ValueError("Cannot paginate an image without height")

    bands = [PageBand(page_index=0, vertical_offset_mm=0.0, height_mm=min(img_height, page_height_mm))]
    remaining = img_height - page_height_mm

    while remaining > _EPSILON_MM:
        bands.append(
            PageBand(
                page_index=len(bands),
                vertical_offset_mm=remaining - img_height,
                height_mm=min(remaining, page_height_mm),
            )
        )
        remaining -= page_height_mm

    return ExportDocument(image_width_mm=img_width, image_height_mm=img_height, bands=bands)


def assemble_pdf(
    snapshot: RasterSnapshot,
    document: ExportDocument,
    title: str = DEFAULT_TITLE,
) -> bytes:
    """
    Draw the snapshot on A4 portrait pages, one page per band.

    The image is embedded once and referenced from every page.

    Raises:
        AssemblyError: If the document cannot be built
    """
    if not document.bands:
        raise AssemblyError("Document has no pages")

    page_width, page_height = A4
    img_width = document.image_width_mm * mm
    img_height = document.image_height_mm * mm

    out = BytesIO()
    try:
        image = ImageReader(snapshot.image)
        c = canvas.Canvas(out, pagesize=(page_width, page_height))
        c.setTitle(title)

        for band in document.bands:
            # Band offsets are measured from the top edge, reportlab from the bottom
            y = page_height - band.vertical_offset_mm * mm - img_height
            c.drawImage(image, 0, y, width=img_width, height=img_height)
            c.showPage()

        c.save()
    except Exception as e:
        raise AssemblyError(f"{type(e).__name__}: {e}") from e

    return out.getvalue()


def save_pdf(data: bytes, output_path: Path) -> Path:
    """
    Write PDF bytes to `output_path`.

    The bytes go to a temporary sibling first, so a failed write never
    leaves a partial file under the final name.

    Raises:
        AssemblyError: If the file cannot be written
    """
    partial = output_path.with_name(output_path.name + ".part")
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        partial.write_bytes(data)
        partial.replace(output_path)
    except OSError as e:
        with suppress(OSError):
            partial.unlink(missing_ok=True)
        raise AssemblyError(f"Could not write {output_path}: {e}") from e
    return output_path


def get_file_size_str(file_path: Path) -> str:
    """
    Get a human-readable file size string.

    Returns:
        Size string like "1.5 MB" or "256.0 KB"
    """
    file_size = file_path.stat().st_size
    if file_size >= 1024 * 1024:
        return f"{file_size / (1024 * 1024):.1f} MB"
    else:
        return f"{file_size / 1024:.1f} KB"
