"""Export configuration and physical constants."""
from __future__ import annotations

from dataclasses import dataclass


# Divider card size in millimeters
DEFAULT_CARD_WIDTH_MM = 63.0
DEFAULT_CARD_HEIGHT_MM = 99.0
DEFAULT_GAP_MM = 0.0
DEFAULT_MAX_COLUMNS = 3

# A4 portrait in millimeters
A4_WIDTH_MM = 210.0
A4_HEIGHT_MM = 297.0

# CSS reference pixel: 96 px per inch
CSS_PX_PER_MM = 96.0 / 25.4

DEFAULT_SNAPSHOT_SCALE = 4
DEFAULT_ICON_SIZE = 256
DEFAULT_ICON_TIMEOUT = 5.0
DEFAULT_IMAGE_TIMEOUT = 15.0
DEFAULT_ICON_CONCURRENCY = 1

# Used by the on-screen responsive grid when no column override is set
DEFAULT_VIEWPORT_WIDTH_PX = 1200.0

DEFAULT_PROXY_BASE = "https://corsproxy.io/?"
DEFAULT_FILENAME = "mtg-divider-cards.pdf"


@dataclass(frozen=True)
class ExportConfig:
    """All tunables of the export pipeline."""

    card_width_mm: float = DEFAULT_CARD_WIDTH_MM
    card_height_mm: float = DEFAULT_CARD_HEIGHT_MM
    gap_mm: float = DEFAULT_GAP_MM
    max_columns: int = DEFAULT_MAX_COLUMNS
    snapshot_scale: int = DEFAULT_SNAPSHOT_SCALE
    icon_size: int = DEFAULT_ICON_SIZE
    icon_timeout: float = DEFAULT_ICON_TIMEOUT
    image_timeout: float = DEFAULT_IMAGE_TIMEOUT
    icon_concurrency: int = DEFAULT_ICON_CONCURRENCY
    viewport_width_px: float = DEFAULT_VIEWPORT_WIDTH_PX
    proxy_base: str = DEFAULT_PROXY_BASE
    filename: str = DEFAULT_FILENAME

    @property
    def px_per_mm(self) -> float:
        """Snapshot pixels per millimeter at the configured scale."""
        return CSS_PX_PER_MM * self.snapshot_scale
