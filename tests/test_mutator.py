import pytest

from mtg_dividers.layout import compute_grid_layout
from mtg_dividers.mutator import (
    GRID_PROPERTIES,
    HIDE_CUTLINES_CLASS,
    ROOT_PROPERTIES,
    capture_style,
    export_layout,
    hidden_affordances,
)
from mtg_dividers.surface import Element


@pytest.fixture
def grid(root: Element) -> Element:
    return root.query_selector("cards-grid")


class TestExportLayout:
    def test_applies_export_geometry(self, root: Element, grid: Element) -> None:
        with export_layout(root, grid, compute_grid_layout(4)):
            assert root.style["box-sizing"] == "content-box"
            assert root.style["width"] == "189mm"
            assert root.style["height"] == "198mm"
            assert root.style["max-width"] == "189mm"
            assert grid.style["grid-template-columns"] == "repeat(3, 63mm)"
            assert grid.style["justify-content"] == "start"
            assert grid.style["width"] == "189mm"
            assert grid.style["gap"] == "0mm"

    def test_restores_previous_values(self, root: Element, grid: Element) -> None:
        root.style.update({"width": "100%", "box-sizing": "border-box", "color": "black"})
        grid.style.update({"gap": "1rem", "grid-template-columns": "repeat(auto-fill, 63mm)"})
        root_before, grid_before = dict(root.style), dict(grid.style)

        with export_layout(root, grid, compute_grid_layout(2)):
            pass

        assert root.style == root_before
        assert grid.style == grid_before

    def test_removes_properties_that_were_absent(self, root: Element, grid: Element) -> None:
        with export_layout(root, grid, compute_grid_layout(4)):
            pass

        assert root.style == {}
        assert grid.style == {}

    def test_restores_after_error(self, root: Element, grid: Element) -> None:
        root.style["width"] = "80vw"
        root_before = capture_style(root, ROOT_PROPERTIES)
        grid_before = capture_style(grid, GRID_PROPERTIES)

        with pytest.raises(RuntimeError):
            with export_layout(root, grid, compute_grid_layout(4)):
                raise RuntimeError("capture failed")

        assert capture_style(root, ROOT_PROPERTIES) == root_before
        assert capture_style(grid, GRID_PROPERTIES) == grid_before


class TestHiddenAffordances:
    def test_hides_and_restores(self, root: Element) -> None:
        buttons = root.query_selector_all("remove-button")
        cards = root.query_selector_all("divider-card")

        with hidden_affordances(root):
            assert all(b.style["display"] == "none" for b in buttons)
            assert all(c.has_class(HIDE_CUTLINES_CLASS) for c in cards)

        assert all("display" not in b.style for b in buttons)
        assert not any(c.has_class(HIDE_CUTLINES_CLASS) for c in cards)

    def test_keeps_existing_state(self, root: Element) -> None:
        button = root.query_selector("remove-button")
        button.style["display"] = "inline-block"
        wrapper = root.query_selector("card-wrapper")
        wrapper.add_class(HIDE_CUTLINES_CLASS)

        with pytest.raises(ValueError):
            with hidden_affordances(root):
                raise ValueError("boom")

        assert button.style["display"] == "inline-block"
        assert wrapper.has_class(HIDE_CUTLINES_CLASS)
