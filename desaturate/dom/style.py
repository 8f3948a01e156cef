from __future__ import annotations
import re
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional

if TYPE_CHECKING:
    from .document import Element


logger = logging.getLogger(__name__)

# Initial values of the properties the resolver knows about.
DEFAULTS: Dict[str, str] = {
    "background-image": "none",
}

_URL_RE = re.compile(r"^url\(\s*(['\"]?)(.*?)\1\s*\)$", re.DOTALL)
_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_RULE_RE = re.compile(r"([^{}]+)\{([^{}]*)\}")
_SIMPLE_SELECTOR_RE = re.compile(r"([#.]?)([A-Za-z0-9_*-]+)")


def parse_url(value: str) -> Optional[str]:
    """
    Returns the URL wrapped by a CSS url() value, without quotes, or None
    if the value is not a url() value.
    """
    match = _URL_RE.match(value.strip())
    if not match:
        return None
    return match.group(2)


def _split_declarations(text: str) -> List[str]:
    # Semicolons inside url(...) or quotes, as in data URLs, do not
    # separate declarations.
    parts, current = [], []
    depth, quote = 0, None
    for char in text:
        if quote:
            if char == quote:
                quote = None
        elif char in "'\"":
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth = max(depth - 1, 0)
        elif char == ";" and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    parts.append("".join(current))
    return parts


def parse_declarations(text: str) -> Dict[str, str]:
    """Parses "prop: value; prop: value" into a dict."""
    declarations = {}
    for part in _split_declarations(text):
        if ":" not in part:
            continue
        name, value = part.split(":", 1)
        name = name.strip().lower()
        value = value.strip()
        if name and value:
            declarations[name] = value
    return declarations


@dataclass
class Selector:
    tag: Optional[str] = None
    id: Optional[str] = None
    classes: List[str] = field(default_factory=list)

    @classmethod
    def parse(cls, text: str) -> "Selector":
        text = text.strip()
        if not text or " " in text or ">" in text:
            raise ValueError(f"Unsupported selector: {text!r}")
        selector = cls()
        consumed = 0
        for match in _SIMPLE_SELECTOR_RE.finditer(text):
            if match.start() != consumed:
                break
            consumed = match.end()
            prefix, name = match.groups()
            if prefix == "#":
                selector.id = name
            elif prefix == ".":
                selector.classes.append(name)
            elif name != "*":
                selector.tag = name.lower()
        if consumed != len(text):
            raise ValueError(f"Unsupported selector: {text!r}")
        return selector

    def matches(self, element: Element) -> bool:
        if self.tag and element.tag_name.lower() != self.tag:
            return False
        if self.id and element.id != self.id:
            return False
        return all(c in element.class_list for c in self.classes)


@dataclass
class Rule:
    selectors: List[Selector]
    declarations: Dict[str, str]

    def matches(self, element: Element) -> bool:
        return any(s.matches(element) for s in self.selectors)


class Stylesheet:
    """
    A flat list of rules. Rules are applied in source order; there is no
    specificity.
    """

    def __init__(self, rules: Optional[List[Rule]] = None):
        self.rules: List[Rule] = rules or []

    @classmethod
    def parse(cls, text: str) -> "Stylesheet":
        text = _COMMENT_RE.sub("", text)
        rules = []
        for match in _RULE_RE.finditer(text):
            selector_text, body = match.groups()
            try:
                selectors = [
                    Selector.parse(s) for s in selector_text.split(",")
                ]
            except ValueError as e:
                # Like browsers, drop the whole rule.
                logger.warning(
                    f"Skipping rule {selector_text.strip()!r}: {e}"
                )
                continue
            rules.append(Rule(selectors, parse_declarations(body)))
        logger.debug(f"Parsed stylesheet with {len(rules)} rules")
        return cls(rules)

    def add_rule(self, selector: str, declarations: Dict[str, str]):
        selectors = [Selector.parse(s) for s in selector.split(",")]
        self.rules.append(Rule(selectors, dict(declarations)))


def computed_style(element: Element) -> Dict[str, str]:
    """
    Resolves the effective style of an element: initial values, then the
    owner document's matching rules, then the inline style.
    """
    style = dict(DEFAULTS)
    document = element.owner_document
    if document is not None and document.stylesheet is not None:
        for rule in document.stylesheet.rules:
            if rule.matches(element):
                style.update(rule.declarations)
    style.update(element.style.to_dict())
    return style
