from __future__ import annotations
import logging
from typing import Dict, Iterator, List, Optional
from urllib.parse import urljoin, urlsplit
from pathlib import Path
from blinker import Signal
from .style import Stylesheet


logger = logging.getLogger(__name__)


def origin_of(url: Optional[str]) -> Optional[str]:
    """
    Returns "scheme://host[:port]" for http(s) URLs, "file://" for file
    URLs and None for everything else.
    """
    if not url:
        return None
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    if scheme in ("http", "https"):
        return f"{scheme}://{parts.netloc.lower()}"
    if scheme == "file":
        return "file://"
    return None


class Document:
    """
    Owner of elements. The URL is used as the base for relative URLs and as
    the origin for cross-origin checks; a document without a URL performs
    no such checks.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        stylesheet: Optional[Stylesheet] = None,
    ):
        self.url = url
        self.stylesheet = stylesheet

    @property
    def origin(self) -> Optional[str]:
        return origin_of(self.url)

    def resolve_url(self, url: str) -> str:
        if self.url:
            return urljoin(self.url, url)
        if "://" in url or url.startswith("data:"):
            return url
        return Path(url).resolve().as_uri()

    def create_element(self, tag_name: str, **attributes) -> "Element":
        return Element(tag_name, attributes, owner_document=self)


class Style:
    """Inline style declarations of an element."""

    def __init__(self, element: "Element", declarations=None):
        self._element = element
        self._declarations: Dict[str, str] = {
            name.lower(): value
            for name, value in (declarations or {}).items()
        }

    def __getitem__(self, name: str) -> str:
        return self._declarations.get(name.lower(), "")

    def __setitem__(self, name: str, value: str):
        name = name.lower()
        if value:
            self._declarations[name] = value
        else:
            self._declarations.pop(name, None)
        self._element.changed.send(self._element, name=name)

    def __iter__(self) -> Iterator[str]:
        return iter(self._declarations)

    def __len__(self) -> int:
        return len(self._declarations)

    @property
    def background_image(self) -> str:
        return self["background-image"]

    @background_image.setter
    def background_image(self, value: str):
        self["background-image"] = value

    def to_dict(self) -> Dict[str, str]:
        return dict(self._declarations)


class Element:
    def __init__(
        self,
        tag_name: str,
        attributes: Optional[Dict[str, str]] = None,
        style: Optional[Dict[str, str]] = None,
        owner_document: Optional[Document] = None,
    ):
        self.tag_name = tag_name
        self.attributes: Dict[str, str] = dict(attributes or {})
        self.owner_document = owner_document
        self.changed = Signal()
        self.style = Style(self, style)

    def __repr__(self):
        return f"<{self.tag_name.lower()} {self.attributes!r}>"

    def get_attribute(self, name: str) -> Optional[str]:
        return self.attributes.get(name)

    def set_attribute(self, name: str, value: str):
        self.attributes[name] = value
        self.changed.send(self, name=name)

    @property
    def src(self) -> str:
        src = self.get_attribute("src")
        if not src:
            return ""
        if self.owner_document is not None:
            return self.owner_document.resolve_url(src)
        return src

    @src.setter
    def src(self, value: str):
        self.set_attribute("src", value)

    @property
    def id(self) -> Optional[str]:
        return self.get_attribute("id")

    @property
    def class_list(self) -> List[str]:
        return (self.get_attribute("class") or "").split()
