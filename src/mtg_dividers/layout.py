"""Grid geometry for the printed divider card sheet."""
from __future__ import annotations

import math

from .config import ExportConfig
from .models import GridLayout


def compute_grid_layout(card_count: int, config: ExportConfig | None = None) -> GridLayout:
    """
    Map a card count to the physical grid used for export.

    - At most `config.max_columns` columns; a single row is only as wide as
      its cards.
    - Zero cards give an empty 0x0 layout; callers must not export it.

    Raises:
        ValueError: If card_count is negative
    """
    if card_count < 0:
        raise ValueError(f"card_count must not be negative, got {card_count}")

    config = config or ExportConfig()
    columns = min(card_count, config.max_columns)
    rows = math.ceil(card_count / config.max_columns)

    return GridLayout(
        card_count=card_count,
        columns=columns,
        rows=rows,
        card_width_mm=config.card_width_mm,
        card_height_mm=config.card_height_mm,
        gap_mm=config.gap_mm,
    )
