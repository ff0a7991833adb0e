"""Divider card face: text helpers and the card grid surface."""
from __future__ import annotations

from typing import Iterable

from .models import CardRecord
from .surface import Document, Element


PRINT_AREA_ID = "print-area"

SET_TYPE_LABELS = {
    "archenemy": "Archenemy",
    "core": "Core Set",
    "expansion": "Expansion",
    "masters": "Masters",
    "commander": "Commander",
    "draft_innovation": "Draft Innovation",
    "funny": "Fun Set",
    "starter": "Starter",
    "promo": "Promo",
    "token": "Token",
    "memorabilia": "Memorabilia",
    "alchemy": "Alchemy",
    "arsenal": "Arsenal",
    "box": "Box",
    "duel_deck": "Duel Deck",
    "from_the_vault": "From the Vault",
    "masterpiece": "Masterpiece",
    "planechase": "Planechase",
    "premium_deck": "Premium Deck",
    "spellbook": "Spellbook",
    "treasure_chest": "Treasure Chest",
    "vanguard": "Vanguard",
}


def format_month(date: str) -> str:
    """`YYYY-MM-DD` -> `YYYY-MM` for the card header."""
    year, month = date.split("-")[:2]
    return f"{year}-{month}"


def format_full_date(date: str) -> str:
    """`YYYY-MM-DD` -> `DD.MM.YYYY`."""
    year, month, day = date.split("-")[:3]
    return f"{day}.{month}.{year}"


def set_type_label(set_type: str) -> str:
    return SET_TYPE_LABELS.get(set_type, set_type)


def build_card_element(record: CardRecord) -> Element:
    """
    Build one grid cell: a wrapper holding the divider card and its
    on-screen remove button.
    """
    wrapper = Element("div", classes=["card-wrapper"])
    card = wrapper.append(Element("div", classes=["divider-card"], data={"record": record}))
    card.append(
        Element(
            "img",
            classes=["set-icon"],
            attrs={"src": record.icon_svg_uri, "alt": record.code},
        )
    )
    wrapper.append(Element("button", classes=["remove-button"], attrs={"title": f"Remove {record.code}"}))
    return wrapper


def build_document(records: Iterable[CardRecord]) -> Document:
    """Lay out records as the on-screen print area and return its document."""
    document = Document()
    root = document.body.append(Element("div", classes=["print-area"], attrs={"id": PRINT_AREA_ID}))
    grid = root.append(Element("div", classes=["cards-grid"]))
    for record in records:
        grid.append(build_card_element(record))
    return document


def print_area(document: Document) -> Element:
    """The root container the exporter works on."""
    root = document.get_element_by_id(PRINT_AREA_ID)
    if root is None:
        raise LookupError(f"Element not found: #{PRINT_AREA_ID}")
    return root
