"""
Package initialization for mtg_dividers.

This package turns a list of MTG sets into a printable sheet of 63x99 mm
divider cards, exported as a paginated A4 PDF.

Modules:
    - layout: Grid geometry from the card count
    - surface / divider_card: The card grid being exported
    - mutator: Scoped layout override with guaranteed restoration
    - icons: SVG set icon fetching and rasterization (PyMuPDF)
    - renderer: Raster snapshot of the card grid (Pillow)
    - pdf_generator: Pagination and PDF assembly (reportlab)
    - exporter: High-level API orchestrating the above modules
    - catalog / set_list: Scryfall lookups and the saved set list
"""

from .catalog import ScryfallClient, search_sets
from .config import ExportConfig
from .divider_card import build_document, print_area
from .errors import (
    AssemblyError,
    DividerCardsError,
    EmptyExportError,
    ExportError,
    ExportInProgressError,
    RenderError,
)
from .exporter import PdfExporter
from .icons import IconConversion, IconNormalizer
from .layout import compute_grid_layout
from .models import CardRecord, ExportDocument, GridLayout, PageBand, RasterSnapshot
from .pdf_generator import assemble_pdf, paginate
from .renderer import SnapshotRenderer
from .set_list import SetList, load_set_list, save_set_list

__all__ = [
    "CardRecord",
    "GridLayout",
    "RasterSnapshot",
    "PageBand",
    "ExportDocument",
    "ExportConfig",
    "compute_grid_layout",
    "build_document",
    "print_area",
    "IconNormalizer",
    "IconConversion",
    "SnapshotRenderer",
    "paginate",
    "assemble_pdf",
    "PdfExporter",
    "ScryfallClient",
    "search_sets",
    "SetList",
    "load_set_list",
    "save_set_list",
    "DividerCardsError",
    "EmptyExportError",
    "ExportError",
    "ExportInProgressError",
    "RenderError",
    "AssemblyError",
]
