"""Data classes shared by the export pipeline and the set list."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from PIL import Image


@dataclass(frozen=True)
class CardRecord:
    """One MTG set, printed as one divider card."""

    code: str
    name: str
    released_at: str
    icon_svg_uri: str
    set_type: str
    card_count: int
    block: Optional[str] = None

    def __post_init__(self) -> None:
        # Set codes are compared case-insensitively everywhere
        object.__setattr__(self, "code", self.code.upper())

    @classmethod
    def from_scryfall(cls, payload: Mapping[str, Any]) -> "CardRecord":
        """Build a record from a Scryfall set object."""
        return cls(
            code=str(payload["code"]),
            name=str(payload["name"]),
            released_at=str(payload.get("released_at") or ""),
            icon_svg_uri=str(payload.get("icon_svg_uri") or ""),
            set_type=str(payload.get("set_type") or ""),
            card_count=int(payload.get("card_count") or 0),
            block=payload.get("block"),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CardRecord":
        return cls.from_scryfall(data)

    def to_dict(self) -> dict:
        data = {
            "code": self.code,
            "name": self.name,
            "released_at": self.released_at,
            "icon_svg_uri": self.icon_svg_uri,
            "set_type": self.set_type,
            "card_count": self.card_count,
        }
        if self.block is not None:
            data["block"] = self.block
        return data


@dataclass(frozen=True)
class GridLayout:
    """Geometry of the printed card grid, in millimeters."""

    card_count: int
    columns: int
    rows: int
    card_width_mm: float
    card_height_mm: float
    gap_mm: float

    @property
    def target_width_mm(self) -> float:
        if self.columns == 0:
            return 0.0
        return self.columns * self.card_width_mm + (self.columns - 1) * self.gap_mm

    @property
    def target_height_mm(self) -> float:
        if self.rows == 0:
            return 0.0
        return self.rows * self.card_height_mm + (self.rows - 1) * self.gap_mm


@dataclass
class RasterSnapshot:
    """The single high-resolution capture of the card grid."""

    image: Image.Image
    scale_factor: int
    background_color: str = "#ffffff"

    @property
    def pixel_width(self) -> int:
        return self.image.width

    @property
    def pixel_height(self) -> int:
        return self.image.height


@dataclass(frozen=True)
class PageBand:
    """
    The part of the snapshot visible on one page.

    `vertical_offset_mm` is where the top of the full image sits on the page
    (zero or negative); `height_mm` is how much of the image the page shows.
    """

    page_index: int
    vertical_offset_mm: float
    height_mm: float


@dataclass
class ExportDocument:
    """Page band placements of one export, in page order."""

    image_width_mm: float
    image_height_mm: float
    bands: List[PageBand] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.bands)
