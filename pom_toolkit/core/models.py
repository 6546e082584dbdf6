from __future__ import annotations

"""Order-preserving tree model for manifest documents.

This module is intentionally free of parsing and I/O so that the contained
objects can be built by hand in tests or by callers assembling candidate
entries. Parsing and serialization live in :mod:`pom_toolkit.core.document`.

A node is one of :class:`Element`, :class:`Text`, :class:`Comment` or
:class:`ProcessingInstruction`. Children are kept in document order, including
whitespace text, so that a sub-tree nobody touches is written back as it was
read.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Union

__all__ = [
    "Element",
    "Text",
    "Comment",
    "ProcessingInstruction",
    "Node",
    "Document",
    "Section",
    "structurally_equal",
]


@dataclass
class Text:
    """Character data between elements."""

    value: str

    def is_blank(self) -> bool:
        return not self.value.strip()


@dataclass
class Comment:
    """A markup comment, kept verbatim."""

    value: str


@dataclass
class ProcessingInstruction:
    """Opaque ``<?target value?>`` node carried through unchanged."""

    target: str
    value: str = ""


@dataclass
class Element:
    """A tagged element with ordered attributes and children.

    Attributes
    ----------
    name
        Local tag name (``dependency``), without namespace or prefix.
    attributes
        Insertion-ordered attribute mapping. Namespaced attribute keys use
        ``{uri}local`` notation.
    children
        Child nodes in document order.
    namespace
        Namespace URI of the element, or ``None`` when the element was built
        without one. Such elements inherit their parent's namespace when the
        document is serialized.
    nsmap
        Namespace declarations made on this element (prefix -> URI, ``None`` for
        the default namespace).
    """

    name: str
    attributes: Dict[str, str] = field(default_factory=dict)
    children: List["Node"] = field(default_factory=list)
    namespace: Optional[str] = None
    nsmap: Dict[Optional[str], str] = field(default_factory=dict)

    # ------------------------------------------------------------------
    # Navigation helpers
    # ------------------------------------------------------------------
    def elements(self) -> Iterator["Element"]:
        """Yield the Element children, skipping text, comments and PIs."""
        for child in self.children:
            if isinstance(child, Element):
                yield child

    def child(self, name: str) -> Optional["Element"]:
        """Return the first child Element named *name*, or ``None``."""
        for el in self.elements():
            if el.name == name:
                return el
        return None

    def child_text(self, name: str) -> Optional[str]:
        """Return the stripped text of child *name*, or ``None`` when absent or empty."""
        el = self.child(name)
        if el is None:
            return None
        value = el.text.strip()
        return value or None

    @property
    def text(self) -> str:
        """Concatenated direct Text children."""
        return "".join(c.value for c in self.children if isinstance(c, Text))

    @text.setter
    def text(self, value: str) -> None:
        self.children = [Text(value)] if value else []

    def append(self, node: "Node") -> "Node":
        self.children.append(node)
        return node

    def index_of(self, node: "Node") -> int:
        """Return the position of *node* in ``children`` by identity."""
        for idx, child in enumerate(self.children):
            if child is node:
                return idx
        raise ValueError(f"<{node!r}> is not a child of <{self.name}>")

    def __repr__(self) -> str:  # dataclass repr recurses through whole sub-trees
        return f"Element(name={self.name!r}, children={len(self.children)})"


Node = Union[Element, Text, Comment, ProcessingInstruction]


@dataclass
class Document:
    """A parsed manifest: one root Element plus surrounding top-level nodes."""

    nodes: List[Node] = field(default_factory=list)
    doctype: Optional[str] = None
    encoding: str = "UTF-8"

    @property
    def root(self) -> Element:
        for node in self.nodes:
            if isinstance(node, Element):
                return node
        raise ValueError("Document has no root element")


class Section:
    """View over the children of one Element reached by a tag-name path.

    The owner keeps all of its child nodes; ``entries`` exposes only the
    Element children, which are the items merge operations work on.
    """

    __slots__ = ("owner",)

    def __init__(self, owner: Element) -> None:
        self.owner = owner

    @property
    def name(self) -> str:
        return self.owner.name

    @property
    def entries(self) -> List[Element]:
        return list(self.owner.elements())

    def __iter__(self) -> Iterator[Element]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __repr__(self) -> str:
        return f"Section(<{self.owner.name}>, entries={len(self)})"


# ---------------------------------------------------------------------------
# Structural comparison
# ---------------------------------------------------------------------------

def _significant(children: List[Node]) -> List[Node]:
    return [c for c in children if not (isinstance(c, Text) and c.is_blank())]


def _node_equal(a: Node, b: Node) -> bool:
    if type(a) is not type(b):
        return False
    if isinstance(a, Element):
        assert isinstance(b, Element)
        if a.name != b.name or a.attributes != b.attributes:
            return False
        left, right = _significant(a.children), _significant(b.children)
        if len(left) != len(right):
            return False
        return all(_node_equal(x, y) for x, y in zip(left, right))
    if isinstance(a, Text):
        assert isinstance(b, Text)
        return a.value == b.value
    if isinstance(a, Comment):
        assert isinstance(b, Comment)
        return a.value == b.value
    if isinstance(a, ProcessingInstruction):
        assert isinstance(b, ProcessingInstruction)
        return a.target == b.target and a.value.strip() == b.value.strip()
    raise TypeError(f"Unsupported node type: {type(a).__name__}")


def structurally_equal(a: Union[Document, Node], b: Union[Document, Node]) -> bool:
    """Return *True* when *a* and *b* have the same shape and content.

    Whitespace-only text is ignored, so a document compares equal to its own
    re-indented serialization.
    """
    if isinstance(a, Document) and isinstance(b, Document):
        left, right = _significant(a.nodes), _significant(b.nodes)
        if len(left) != len(right):
            return False
        return all(_node_equal(x, y) for x, y in zip(left, right))
    if isinstance(a, Document) or isinstance(b, Document):
        return False
    return _node_equal(a, b)
