"""
Grammar table for the UI backend.

Static element and style data plus the two pure helpers that turn a
property into a CSS declaration.
"""

import re
from typing import Optional

from yggdra.compiler.values import NUMBER_RE

# Element kind -> rendered tag; unmapped kinds render as their own name
TAG_MAP: dict[str, str] = {
    "VBox": "div",
    "HBox": "div",
    "Text": "span",
    "Button": "button",
    "Input": "input",
    "Image": "img",
    "Title": "h1",
}

# Declarations added once to every class of the kind
DEFAULT_STYLES: dict[str, dict[str, str]] = {
    "VBox": {"display": "flex", "flex-direction": "column"},
    "HBox": {"display": "flex", "flex-direction": "row", "align-items": "center"},
    "Grid": {"display": "grid", "gap": "10px"},
}

SELF_CLOSING: frozenset[str] = frozenset({"Input", "Image"})

# Element kinds where a dynamic `.value` becomes a two-way binding
INPUT_KINDS: frozenset[str] = frozenset({"Input"})

CSS_PROPERTIES: frozenset[str] = frozenset({
    # Box model
    "padding", "paddingTop", "paddingBottom", "paddingLeft", "paddingRight",
    "margin", "marginTop", "marginBottom", "marginLeft", "marginRight",
    "width", "height", "maxWidth", "minWidth", "maxHeight", "minHeight",
    "gap",
    # Appearance
    "color", "background", "backgroundColor", "bg",
    "opacity",
    "border", "borderRadius", "radius",
    "shadow", "boxShadow",
    "cursor", "outline",
    "textDecoration", "decoration",
    "fontStyle", "style",
    # Text
    "size", "fontSize", "weight", "fontWeight", "textAlign", "lineHeight", "fontFamily",
    # Layout
    "display", "flex", "flexDirection", "align", "alignItems", "justify", "justifyContent",
    "position", "top", "left", "right", "bottom", "zIndex",
    "overflow", "overflowY", "overflowX",
    # Motion
    "transition", "transform", "animation",
})

CSS_ALIASES: dict[str, str] = {
    "size": "font-size",
    "shadow": "box-shadow",
    "justify": "justify-content",
    "align": "align-items",
    "radius": "border-radius",
    "weight": "font-weight",
    "bg": "background",
    "decoration": "text-decoration",
    "style": "font-style",
}

UNITLESS: frozenset[str] = frozenset({
    "opacity", "z-index", "font-weight", "line-height", "flex",
    "order", "flex-grow", "flex-shrink",
})

_UPPER_RE = re.compile(r"[A-Z]")


def to_kebab_case(name: str) -> str:
    """``backgroundColor`` -> ``background-color``."""
    return _UPPER_RE.sub(lambda m: "-" + m.group(0).lower(), name)


def resolve_tag(element_type: str, explicit_tag: Optional[str] = None) -> str:
    if explicit_tag:
        return explicit_tag
    return TAG_MAP.get(element_type, element_type)


def is_style_property(key: str) -> bool:
    return key in CSS_PROPERTIES


def css_key(key: str) -> str:
    """Resolve aliases, then kebab-case."""
    return to_kebab_case(CSS_ALIASES.get(key, key))


def format_css_value(key: str, value: Optional[str]) -> tuple[str, str]:
    """
    Turn a style property into a CSS declaration.

    Purely numeric values get ``px`` unless the property is unitless::

        >>> format_css_value("radius", "8")
        ('border-radius', '8px')
        >>> format_css_value("opacity", "0.5")
        ('opacity', '0.5')
    """
    name = css_key(key)
    text = "" if value is None else value.strip()
    if text and NUMBER_RE.match(text) and name not in UNITLESS:
        return name, f"{text}px"
    return name, text
