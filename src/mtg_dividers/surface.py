"""
A small element tree standing in for the on-screen card grid.

Each element carries a tag, a class list, inline style properties and
attributes. The export pipeline mutates these in place and the snapshot
renderer paints from them, so what is captured is exactly what the styles
say at capture time.
"""
from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional
from urllib.parse import urlsplit


class Element:
    """A node of the visual surface."""

    def __init__(
        self,
        tag: str,
        classes: Optional[List[str]] = None,
        style: Optional[Dict[str, str]] = None,
        attrs: Optional[Dict[str, str]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.tag = tag
        self.classes: List[str] = list(classes or [])
        self.style: Dict[str, str] = dict(style or {})
        self.attrs: Dict[str, str] = dict(attrs or {})
        self.data: Dict[str, Any] = dict(data or {})
        self.children: List[Element] = []
        self.parent: Optional[Element] = None

    def __repr__(self) -> str:
        ident = f"#{self.attrs['id']}" if "id" in self.attrs else ""
        classes = "".join(f".{c}" for c in self.classes)
        return f"<{self.tag}{ident}{classes}>"

    @property
    def id(self) -> Optional[str]:
        return self.attrs.get("id")

    def append(self, child: "Element") -> "Element":
        if child.parent is not None:
            child.parent.remove(child)
        child.parent = self
        self.children.append(child)
        return child

    def remove(self, child: "Element") -> None:
        self.children.remove(child)
        child.parent = None

    def detach(self) -> None:
        """Remove this element from its parent, if any."""
        if self.parent is not None:
            self.parent.remove(self)

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def add_class(self, name: str) -> None:
        if name not in self.classes:
            self.classes.append(name)

    def remove_class(self, name: str) -> None:
        if name in self.classes:
            self.classes.remove(name)

    def iter(self) -> Iterator["Element"]:
        """Depth-first, document order, including self."""
        yield self
        for child in self.children:
            yield from child.iter()

    def query_selector_all(
        self, class_name: Optional[str] = None, tag: Optional[str] = None
    ) -> List["Element"]:
        """Descendants matching a class and/or tag, in document order."""
        return [
            el
            for el in self.iter()
            if el is not self
            and (class_name is None or el.has_class(class_name))
            and (tag is None or el.tag == tag)
        ]

    def query_selector(
        self, class_name: Optional[str] = None, tag: Optional[str] = None
    ) -> Optional["Element"]:
        matches = self.query_selector_all(class_name=class_name, tag=tag)
        return matches[0] if matches else None

    def get_element_by_id(self, element_id: str) -> Optional["Element"]:
        for el in self.iter():
            if el.id == element_id:
                return el
        return None

    @property
    def is_displayed(self) -> bool:
        return self.style.get("display") != "none"

    @property
    def is_connected(self) -> bool:
        """True when the element's topmost ancestor is a Document."""
        node: Element = self
        while node.parent is not None:
            node = node.parent
        return isinstance(node, Document)


class Document(Element):
    """Root of a visual surface."""

    def __init__(self) -> None:
        super().__init__("#document")
        self.body = self.append(Element("body"))


def is_vector_icon(src: str) -> bool:
    """Whether an image reference points at an SVG file (by extension)."""
    if not src or src.startswith("data:"):
        return False
    return urlsplit(src).path.lower().endswith(".svg")


def vector_icons(root: Element) -> List[Element]:
    """All `img` elements under root whose source is an SVG file."""
    return [img for img in root.query_selector_all(tag="img") if is_vector_icon(img.attrs.get("src", ""))]
