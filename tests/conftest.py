from typing import Callable, List

import httpx
import pytest

from mtg_dividers.divider_card import build_document, print_area
from mtg_dividers.models import CardRecord
from mtg_dividers.surface import Document, Element


SAMPLE_SVG = (
    b'<svg xmlns="http://www.w3.org/2000/svg" width="100" height="50" viewBox="0 0 100 50">'
    b'<rect x="0" y="0" width="100" height="50" fill="#ff0000"/>'
    b"</svg>"
)


def make_record(code: str, name: str = "", released_at: str = "2024-06-14", **kwargs) -> CardRecord:
    return CardRecord(
        code=code,
        name=name or f"Set {code.upper()}",
        released_at=released_at,
        icon_svg_uri=kwargs.pop("icon_svg_uri", f"https://svgs.scryfall.io/sets/{code.lower()}.svg?1718596800"),
        set_type=kwargs.pop("set_type", "expansion"),
        card_count=kwargs.pop("card_count", 250),
        **kwargs,
    )


@pytest.fixture
def sample_svg() -> bytes:
    return SAMPLE_SVG


@pytest.fixture
def record_factory() -> Callable[..., CardRecord]:
    return make_record


@pytest.fixture
def sample_records() -> List[CardRecord]:
    return [
        make_record("mh3", "Modern Horizons 3", "2024-06-14", set_type="draft_innovation", card_count=303),
        make_record("blb", "Bloomburrow", "2024-08-02", card_count=281),
        make_record("otj", "Outlaws of Thunder Junction", "2024-04-19", card_count=286),
        make_record("dsk", "Duskmourn: House of Horror", "2024-09-27", card_count=286),
    ]


@pytest.fixture
def document(sample_records: List[CardRecord]) -> Document:
    return build_document(sample_records)


@pytest.fixture
def root(document: Document) -> Element:
    return print_area(document)


@pytest.fixture
def svg_client() -> Callable[..., httpx.AsyncClient]:
    """Factory for an AsyncClient whose proxy answers every icon with SAMPLE_SVG."""

    def factory(handler=None) -> httpx.AsyncClient:
        def default_handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=SAMPLE_SVG, headers={"Content-Type": "image/svg+xml"})

        return httpx.AsyncClient(transport=httpx.MockTransport(handler or default_handler))

    return factory
