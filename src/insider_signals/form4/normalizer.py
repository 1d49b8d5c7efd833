"""Form 4 XML normalizer.

Turns one ``ownershipDocument`` into a plain dict tree with uniform shapes:

- leaf element text          -> str
- empty / self-closing leaf  -> "" (present but empty)
- absent element             -> key missing
- attributes                 -> "@name" keys
- text next to attrs/children -> "#text"

SEC generators collapse single-occurrence lists to a bare element, so every
semantically list-valued path (owners, signatures, transactions, holdings,
footnotes, footnote references) is forced to a list here. Extraction code
never has to check for scalar-vs-list.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from xml.etree.ElementTree import Element

import defusedxml.ElementTree as ET
from defusedxml import DefusedXmlException

from insider_signals.core.exceptions import MalformedDocument
from insider_signals.core.logging import get_logger

logger = get_logger(__name__)

ROOT_TAG = "ownershipDocument"

# Paths relative to ownershipDocument whose leaf is always a list
LIST_PATHS: frozenset[tuple[str, ...]] = frozenset(
    {
        ("reportingOwner",),
        ("ownerSignature",),
        ("nonDerivativeTable", "nonDerivativeTransaction"),
        ("nonDerivativeTable", "nonDerivativeHolding"),
        ("derivativeTable", "derivativeTransaction"),
        ("derivativeTable", "derivativeHolding"),
        ("footnotes", "footnote"),
    }
)

# Tags that are list-valued wherever they appear
LIST_TAGS: frozenset[str] = frozenset({"footnoteId"})

Tree = dict[str, Any]


def _strip_ns(tag: str) -> str:
    if "}" in tag:
        return tag.split("}", 1)[1]
    return tag


def _is_list_field(path: tuple[str, ...], tag: str) -> bool:
    return tag in LIST_TAGS or (*path, tag) in LIST_PATHS


def _element_to_node(el: Element, path: tuple[str, ...]) -> Any:
    children = list(el)
    attrs = {f"@{_strip_ns(k)}": v for k, v in el.attrib.items()}

    if not children:
        text = (el.text or "").strip()
        if not attrs:
            return text
        node: Tree = dict(attrs)
        if text:
            node["#text"] = text
        return node

    node = dict(attrs)
    for child in children:
        tag = _strip_ns(child.tag)
        value = _element_to_node(child, (*path, tag))
        if _is_list_field(path, tag):
            node.setdefault(tag, []).append(value)
        elif tag not in node:
            node[tag] = value
        else:
            logger.debug("Repeated scalar element ignored", path="/".join((*path, tag)))

    # Mixed content (footnotes with inline markup) keeps the full text
    has_text = bool(el.text and el.text.strip()) or any(
        c.tail and c.tail.strip() for c in children
    )
    if has_text:
        node["#text"] = "".join(el.itertext()).strip()
    return node


def _find_root(root: Element) -> Element | None:
    if _strip_ns(root.tag) == ROOT_TAG:
        return root
    for el in root.iter():
        if _strip_ns(el.tag) == ROOT_TAG:
            return el
    return None


def normalize(xml: str | bytes, accession_number: str | None = None) -> Tree:
    """Parse raw Form 4 XML into a normalized tree.

    Raises:
        MalformedDocument: XML is unparsable or has no ownershipDocument
    """
    try:
        root = ET.fromstring(xml)
    except (ET.ParseError, DefusedXmlException) as e:
        raise MalformedDocument(
            f"Form 4 XML parse failed: {e}",
            parse_error=e,
            accession_number=accession_number,
        ) from e

    doc_el = _find_root(root)
    if doc_el is None:
        raise MalformedDocument(
            "No ownershipDocument element found in XML",
            accession_number=accession_number,
        )

    tree = _element_to_node(doc_el, ())
    if not isinstance(tree, dict):
        # <ownershipDocument/> with no content
        tree = {}
    return tree


def normalize_tree(doc: Mapping[str, Any]) -> Tree:
    """Apply list normalization to an already-decoded document mapping.

    Accepts trees produced by XML-to-object converters that emit a bare
    object for single occurrences. The mapping may be the ownershipDocument
    itself or a wrapper containing it.
    """
    if ROOT_TAG in doc and isinstance(doc[ROOT_TAG], Mapping):
        doc = doc[ROOT_TAG]
    return _coerce(doc, ())


def _coerce(node: Any, path: tuple[str, ...]) -> Any:
    if isinstance(node, Mapping):
        out: Tree = {}
        for key, value in node.items():
            tag = str(key)
            if tag.startswith("@_"):
                tag = "@" + tag[2:]
            if _is_list_field(path, tag):
                items = value if isinstance(value, list) else [value]
                out[tag] = [_coerce(item, (*path, tag)) for item in items if item is not None]
            elif isinstance(value, list):
                # Scalar field emitted as an array: keep the first occurrence
                out[tag] = _coerce(value[0], (*path, tag)) if value else ""
            elif value is None:
                out[tag] = ""
            else:
                out[tag] = _coerce(value, (*path, tag))
        return out
    if isinstance(node, bool):
        return "1" if node else "0"
    if isinstance(node, (int, float)):
        return str(node)
    if isinstance(node, str):
        return node.strip()
    return node
