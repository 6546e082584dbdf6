from __future__ import annotations

"""Collapse spuriously wrapped single-value leaves back to one line.

Some serializers (and some hand edits) turn ``<version>1.2.3</version>`` into::

    <version>
      1.2.3
    </version>

The rule here is structural: an Element is collapsed only when its *sole*
child is one Text node whose stripped value is a non-empty single line and that
is surrounded by whitespace. Elements holding comments, several children or
genuinely multi-line text are left alone.
"""

import logging
from typing import Union

from pom_toolkit.core.document import build, parse
from pom_toolkit.core.models import Document, Element, Text

__all__ = ["normalize_leaves", "normalize_text"]

logger = logging.getLogger(__name__)


def _collapsible(el: Element) -> bool:
    if len(el.children) != 1 or not isinstance(el.children[0], Text):
        return False
    value = el.children[0].value
    stripped = value.strip()
    if not stripped or "\n" in stripped or "\r" in stripped:
        return False
    return stripped != value


def _walk(el: Element) -> int:
    if _collapsible(el):
        el.children[0] = Text(el.children[0].value.strip())
        return 1
    count = 0
    for child in el.elements():
        count += _walk(child)
    return count


def normalize_leaves(target: Union[Document, Element]) -> int:
    """Collapse wrapped leaves in place and return how many were collapsed."""
    root = target.root if isinstance(target, Document) else target
    count = _walk(root)
    if count:
        logger.debug("Collapsed %d wrapped leaf element(s)", count)
    return count


def normalize_text(text: str, indent: str = "  ") -> str:
    """Parse *text*, collapse wrapped leaves and serialize it again.

    The XML declaration is written only when *text* carried one.
    """
    document = parse(text, source="<normalize>")
    normalize_leaves(document)
    has_declaration = text.lstrip().startswith("<?xml")
    return build(document, indent=indent, xml_declaration=has_declaration)
