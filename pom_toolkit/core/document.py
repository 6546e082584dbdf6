from __future__ import annotations

"""Parsing, serialization and file I/O for manifest documents.

``lxml`` does the heavy lifting in both directions; this module converts between
its element/text/tail representation and the explicit node tree of
:mod:`pom_toolkit.core.models`.

Writing is all-or-nothing: :func:`save` renders the complete text before it
touches the file system and replaces the target atomically, so a step that fails
never leaves a half-written manifest behind.
"""

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import List, Optional, Union

from lxml import etree as ET

from pom_toolkit.core.exceptions import ParseError
from pom_toolkit.core.models import (
    Comment,
    Document,
    Element,
    Node,
    ProcessingInstruction,
    Text,
)

__all__ = [
    "parse",
    "parse_fragment",
    "parse_entries",
    "build",
    "load",
    "load_or_create",
    "save",
]

logger = logging.getLogger(__name__)

_FRAGMENT_WRAPPER = "fragment"

_DECLARED_ENCODING = re.compile(r"""^\s*<\?xml[^>]*?\bencoding\s*=\s*["']([A-Za-z0-9._-]+)["']""")


def _new_parser(encoding: Optional[str] = None) -> ET.XMLParser:
    # Blank text and comments are part of what a human edited; keep them.
    return ET.XMLParser(
        remove_blank_text=False,
        remove_comments=False,
        remove_pis=False,
        no_network=True,
        encoding=encoding,
    )


# ---------------------------------------------------------------------------
# lxml -> model
# ---------------------------------------------------------------------------

def _from_lxml(el: ET._Element, parent_nsmap: dict) -> Element:
    qname = ET.QName(el)
    declared = {p: uri for p, uri in el.nsmap.items() if parent_nsmap.get(p) != uri}
    node = Element(
        name=qname.localname,
        attributes=dict(el.attrib),
        namespace=qname.namespace,
        nsmap=declared,
    )
    if el.text:
        node.children.append(Text(el.text))
    for child in el:
        if child.tag is ET.Comment:
            node.children.append(Comment(child.text or ""))
        elif child.tag is ET.PI:
            node.children.append(ProcessingInstruction(child.target, child.text or ""))
        elif child.tag is ET.Entity:
            raise ParseError(f"Unresolved entity reference {child.text}")
        else:
            node.children.append(_from_lxml(child, el.nsmap))
        if child.tail:
            node.children.append(Text(child.tail))
    return node


def _top_level(sibling: ET._Element) -> Node:
    if sibling.tag is ET.Comment:
        return Comment(sibling.text or "")
    return ProcessingInstruction(sibling.target, sibling.text or "")


def parse(text: Union[str, bytes], source: Optional[str] = None) -> Document:
    """Parse manifest *text* into a :class:`Document`.

    Raises
    ------
    ParseError
        When *text* is empty or not well-formed.
    """
    declared: Optional[str] = None
    if isinstance(text, str):
        # Already decoded: parse the UTF-8 bytes whatever the declaration names,
        # but remember the declared encoding for writing back.
        data, parser_encoding = text.encode("utf-8"), "utf-8"
        found = _DECLARED_ENCODING.match(text)
        declared = found.group(1) if found else None
    else:
        data, parser_encoding = text, None
    if not data.strip():
        raise ParseError("Document is empty", source=source)

    try:
        root = ET.fromstring(data, _new_parser(parser_encoding))
    except ET.XMLSyntaxError as exc:
        line, column = getattr(exc, "position", (None, None))
        raise ParseError(f"Malformed markup: {exc.msg}", source=source,
                         line=line, column=column, cause=exc) from exc
    except ValueError as exc:
        raise ParseError(f"Malformed markup: {exc}", source=source, cause=exc) from exc

    tree = root.getroottree()
    nodes: List[Node] = [_top_level(s) for s in reversed(list(root.itersiblings(preceding=True)))]
    nodes.append(_from_lxml(root, {}))
    nodes.extend(_top_level(s) for s in root.itersiblings())

    docinfo = tree.docinfo
    doc = Document(
        nodes=nodes,
        doctype=docinfo.doctype or None,
        encoding=declared or (None if parser_encoding else docinfo.encoding) or "UTF-8",
    )
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Parsed document source=%s root=<%s>", source or "<text>", doc.root.name)
    return doc


def parse_fragment(text: str) -> Element:
    """Parse a single-element snippet, e.g. one ``<dependency>`` block."""
    return parse(text, source="<fragment>").root


def parse_entries(text: str) -> List[Element]:
    """Parse a sequence of sibling elements, e.g. several ``<dependency>`` blocks."""
    wrapper = parse(f"<{_FRAGMENT_WRAPPER}>{text}</{_FRAGMENT_WRAPPER}>", source="<fragment>").root
    return list(wrapper.elements())


# ---------------------------------------------------------------------------
# model -> lxml
# ---------------------------------------------------------------------------

def _tag(node: Element, parent_ns: Optional[str]) -> tuple[str, Optional[str]]:
    ns = node.namespace if node.namespace is not None else parent_ns
    return (f"{{{ns}}}{node.name}" if ns else node.name), ns


def _fill(el: ET._Element, node: Element, ns: Optional[str]) -> None:
    last: Optional[ET._Element] = None
    for child in node.children:
        if isinstance(child, Text):
            if last is None:
                el.text = (el.text or "") + child.value
            else:
                last.tail = (last.tail or "") + child.value
            continue
        if isinstance(child, Element):
            tag, child_ns = _tag(child, ns)
            last = ET.SubElement(el, tag, child.attributes, nsmap=child.nsmap or None)
            _fill(last, child, child_ns)
        elif isinstance(child, Comment):
            last = ET.Comment(child.value)
            el.append(last)
        elif isinstance(child, ProcessingInstruction):
            last = ET.PI(child.target, child.value or None)
            el.append(last)
        else:
            raise TypeError(f"Unsupported node type: {type(child).__name__}")


def _to_tree(document: Document) -> ET._ElementTree:
    root_node = document.root
    tag, ns = _tag(root_node, None)
    root = ET.Element(tag, root_node.attributes, nsmap=root_node.nsmap or None)
    _fill(root, root_node, ns)

    idx = document.nodes.index(root_node)
    for node in document.nodes[:idx]:
        if isinstance(node, Comment):
            root.addprevious(ET.Comment(node.value))
        elif isinstance(node, ProcessingInstruction):
            root.addprevious(ET.PI(node.target, node.value or None))
    for node in reversed(document.nodes[idx + 1:]):
        if isinstance(node, Comment):
            root.addnext(ET.Comment(node.value))
        elif isinstance(node, ProcessingInstruction):
            root.addnext(ET.PI(node.target, node.value or None))
    return root.getroottree()


def build(document: Document, indent: Optional[str] = "  ",
          xml_declaration: bool = True) -> str:
    """Serialize *document* to text.

    Whitespace-only text is re-indented with *indent* (``None`` keeps the
    whitespace exactly as it is in the tree). Output always ends with a newline.
    """
    tree = _to_tree(document)
    if indent is not None:
        ET.indent(tree, space=indent)

    body = ET.tostring(tree, encoding="unicode", pretty_print=True,
                       doctype=document.doctype)
    if xml_declaration:
        body = f'<?xml version="1.0" encoding="{document.encoding}"?>\n{body}'
    return body if body.endswith("\n") else body + "\n"


# ---------------------------------------------------------------------------
# File I/O
# ---------------------------------------------------------------------------

def load(path: Union[str, Path]) -> Document:
    """Read and parse the manifest stored at *path*."""
    p = Path(path)
    data = p.read_bytes()
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("I/O: read XML path=%s bytes=%d", p, len(data))
    return parse(data, source=str(p))


def load_or_create(path: Union[str, Path], template_text: str) -> Document:
    """Load *path* when it exists, else parse the rendered *template_text*."""
    p = Path(path)
    if p.exists():
        return load(p)
    logger.info("No manifest at %s, starting from template", p)
    return parse(template_text, source=f"<template for {p}>")


def save(document: Document, path: Union[str, Path], indent: Optional[str] = "  ",
         xml_declaration: bool = True) -> None:
    """Serialize *document* and atomically overwrite *path*."""
    p = Path(path)
    text = build(document, indent=indent, xml_declaration=xml_declaration)
    data = text.encode(document.encoding)

    p.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{p.name}.", suffix=".tmp", dir=str(p.parent))
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        os.replace(tmp_name, p)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("I/O: wrote XML path=%s bytes=%d", p, len(data))
    except Exception:
        # Caller context handles user feedback; file handler captures traceback
        logger.error("I/O FAIL: write XML path=%s", p, exc_info=True)
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
