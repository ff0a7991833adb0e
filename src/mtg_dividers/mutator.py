"""Scoped, reversible changes to the live visual surface."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from .models import GridLayout
from .surface import Element

logger = logging.getLogger(__name__)


ROOT_PROPERTIES = ("box-sizing", "width", "height", "max-width")
GRID_PROPERTIES = ("grid-template-columns", "justify-content", "width", "max-width", "gap")

HIDE_CUTLINES_CLASS = "hide-cutlines"

StyleSnapshot = Dict[str, Optional[str]]


def _format_mm(value: float) -> str:
    return f"{value:g}mm"


def capture_style(element: Element, properties: Sequence[str]) -> StyleSnapshot:
    """Record the current value of each property; absent ones as None."""
    return {prop: element.style.get(prop) for prop in properties}


def restore_style(element: Element, snapshot: StyleSnapshot) -> None:
    """Put every recorded property back, dropping those that were absent."""
    for prop, value in snapshot.items():
        if value is None:
            element.style.pop(prop, None)
        else:
            element.style[prop] = value


@contextmanager
def export_layout(root: Element, grid: Element, layout: GridLayout) -> Iterator[GridLayout]:
    """
    Pin the root and grid elements to the exact export geometry.

    The root gets an explicit content-box size of the target dimensions and
    the grid gets `layout.columns` fixed-width tracks instead of its
    responsive auto-fill. Original values are restored when the block exits,
    whether it returns or raises.
    """
    root_before = capture_style(root, ROOT_PROPERTIES)
    grid_before = capture_style(grid, GRID_PROPERTIES)

    width = _format_mm(layout.target_width_mm)
    height = _format_mm(layout.target_height_mm)

    try:
        root.style["box-sizing"] = "content-box"
        root.style["width"] = width
        root.style["height"] = height
        root.style["max-width"] = width

        grid.style["grid-template-columns"] = f"repeat({layout.columns}, {_format_mm(layout.card_width_mm)})"
        grid.style["justify-content"] = "start"
        grid.style["width"] = width
        grid.style["max-width"] = width
        grid.style["gap"] = _format_mm(layout.gap_mm)

        logger.debug("Applied export layout %s x %s (%d columns)", width, height, layout.columns)
        yield layout
    finally:
        restore_style(root, root_before)
        restore_style(grid, grid_before)
        logger.debug("Restored on-screen layout")


@contextmanager
def hidden_affordances(root: Element) -> Iterator[None]:
    """
    Hide remove buttons and cut guides under root for the duration of the
    block.

    Only the changes made here are undone: a class that was already present
    stays, and each button gets back its exact previous display value.
    """
    buttons: List[Tuple[Element, StyleSnapshot]] = []
    classed: List[Element] = []

    try:
        for button in root.query_selector_all("remove-button"):
            buttons.append((button, capture_style(button, ("display",))))
            button.style["display"] = "none"

        for el in root.query_selector_all("card-wrapper") + root.query_selector_all("divider-card"):
            if not el.has_class(HIDE_CUTLINES_CLASS):
                el.add_class(HIDE_CUTLINES_CLASS)
                classed.append(el)
        yield
    finally:
        for button, snapshot in buttons:
            restore_style(button, snapshot)
        for el in classed:
            el.remove_class(HIDE_CUTLINES_CLASS)
