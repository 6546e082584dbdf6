from __future__ import annotations

"""Tag-name path lookup into nested manifest sections.

``find_section(doc, "dependencyManagement", "dependencies")`` walks one level
per segment, looking only at Element children. A missing segment is not an
error; the lookup returns ``None`` and the caller decides whether to create the
section (:func:`ensure_section`) or skip the operation.
"""

import logging
from typing import Optional, Union

from pom_toolkit.core.models import Document, Element, Section, Text

__all__ = ["find_element", "find_section", "ensure_section"]

logger = logging.getLogger(__name__)

Container = Union[Document, Element]


def _start(container: Container, path: tuple[str, ...]) -> tuple[Element, tuple[str, ...]]:
    if isinstance(container, Document):
        root = container.root
        # Accept both ("project", "dependencies") and ("dependencies",)
        if path and path[0] == root.name:
            return root, path[1:]
        return root, path
    return container, path


def find_element(container: Container, *path: str) -> Optional[Element]:
    """Return the Element at *path* below *container*, or ``None``."""
    current, remaining = _start(container, path)
    for segment in remaining:
        current = current.child(segment)
        if current is None:
            return None
    return current


def find_section(container: Container, *path: str) -> Optional[Section]:
    """Return the :class:`Section` owned by the Element at *path*, or ``None``."""
    owner = find_element(container, *path)
    if owner is None:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Section not found: %s", "/".join(path))
        return None
    return Section(owner)


def _indent_of(parent: Element) -> str:
    # Reuse the whitespace that precedes the parent's existing children.
    for child in parent.children:
        if isinstance(child, Text) and child.is_blank():
            return child.value
    return ""


def ensure_section(container: Container, *path: str) -> Section:
    """Return the section at *path*, creating missing segments as last children."""
    current, remaining = _start(container, path)
    for segment in remaining:
        nxt = current.child(segment)
        if nxt is None:
            nxt = Element(segment)
            ws = _indent_of(current)
            last_element = None
            for child in current.elements():
                last_element = child
            if last_element is None:
                current.children.append(nxt)
            else:
                pos = current.index_of(last_element) + 1
                new_nodes = [Text(ws), nxt] if ws else [nxt]
                current.children[pos:pos] = new_nodes
            logger.debug("Created missing section <%s> under <%s>", segment, current.name)
        current = nxt
    return Section(current)
