"""
Print-layout export pipeline.

generate_pdf: count cards -> grid layout -> pin the surface to the layout
-> inline icons -> capture snapshot -> restore surface -> paginate ->
assemble and write the PDF.
"""
from __future__ import annotations

import asyncio
import logging
import subprocess
from io import BytesIO
from pathlib import Path
from typing import Callable, Optional, Sequence, Tuple

from .config import ExportConfig
from .errors import (
    EmptyExportError,
    ExportError,
    ExportInProgressError,
    PrintError,
    RenderError,
)
from .icons import IconNormalizer
from .layout import compute_grid_layout
from .models import ExportDocument, RasterSnapshot
from .mutator import export_layout
from .pdf_generator import assemble_pdf, paginate, save_pdf
from .renderer import SnapshotRenderer
from .surface import Element

logger = logging.getLogger(__name__)


DEFAULT_PRINT_COMMAND = ("lpr",)

Runner = Callable[..., subprocess.CompletedProcess]


class PdfExporter:
    """
    Exports the card grid under a root element as a paginated A4 PDF.

    One exporter owns the surface while an export runs; a second export
    started meanwhile is rejected rather than queued.

    `normalizer` is only needed by `generate_pdf`; `print_cards` captures
    the surface without converting icons.
    """

    def __init__(
        self,
        normalizer: Optional[IconNormalizer] = None,
        renderer: Optional[SnapshotRenderer] = None,
        config: Optional[ExportConfig] = None,
    ) -> None:
        self.config = config or ExportConfig()
        self.normalizer = normalizer
        self.renderer = renderer or SnapshotRenderer(self.config)
        self._lock = asyncio.Lock()

    @property
    def is_generating(self) -> bool:
        return self._lock.locked()

    async def generate_pdf(
        self,
        root: Element,
        output_dir: Path = Path("."),
        filename: Optional[str] = None,
    ) -> Path:
        """
        Export the cards under `root` and write the PDF.

        Returns:
            Path of the written PDF

        Raises:
            EmptyExportError: If there are no cards (nothing is touched)
            ExportInProgressError: If another export is running
            ExportError: For any failure of the pipeline itself
        """
        if self.normalizer is None:
            raise ExportError("PDF export needs an icon normalizer")
        if self._lock.locked():
            raise ExportInProgressError("An export is already in progress")

        async with self._lock:
            card_count = len(root.query_selector_all("divider-card"))
            if card_count == 0:
                raise EmptyExportError("There are no cards to export")

            output_path = Path(output_dir) / (filename or self.config.filename)
            try:
                snapshot, document = await self._render(root, card_count)
                pdf = assemble_pdf(snapshot, document)
                save_pdf(pdf, output_path)
            except Exception as e:
                logger.exception("PDF generation failed (%s)", type(e).__name__)
                raise ExportError("PDF generation failed") from e

        logger.info("Wrote %d page(s) to %s", document.page_count, output_path)
        return output_path

    async def _render(self, root: Element, card_count: int) -> Tuple[RasterSnapshot, ExportDocument]:
        layout = compute_grid_layout(card_count, self.config)
        logger.debug(
            "Grid: %d rows x %d columns (%d cards), target %g x %g mm",
            layout.rows,
            layout.columns,
            card_count,
            layout.target_width_mm,
            layout.target_height_mm,
        )

        grid = root.query_selector("cards-grid")
        if grid is None:
            raise RenderError("Cards grid not found")

        with export_layout(root, grid, layout):
            async with self.normalizer.inlined(root):
                snapshot = await self.renderer.capture(grid)

        return snapshot, paginate(layout.target_width_mm, layout.target_height_mm)

    async def print_cards(
        self,
        root: Element,
        command: Sequence[str] = DEFAULT_PRINT_COMMAND,
        runner: Runner = subprocess.run,
    ) -> None:
        """
        Send the surface, as it is on screen, to the platform print command.

        No layout override, icon conversion or pagination happens here, and
        no file is written: the PNG is piped to the command's stdin.

        Raises:
            EmptyExportError: If there are no cards
            ExportInProgressError: If an export is running
            PrintError: If the command is missing or fails
        """
        if self._lock.locked():
            raise ExportInProgressError("An export is already in progress")

        async with self._lock:
            grid = root.query_selector("cards-grid")
            if grid is None or not grid.query_selector_all("divider-card"):
                raise EmptyExportError("There are no cards to print")

            snapshot = await self.renderer.capture(grid)
            png = BytesIO()
            snapshot.image.save(png, format="PNG")

            try:
                runner(list(command), input=png.getvalue(), check=True)
            except (OSError, subprocess.CalledProcessError) as e:
                raise PrintError(f"Printing failed: {e}") from e
