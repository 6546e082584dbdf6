"""Top-level package for POM Toolkit.

Incremental, order-preserving merging of Maven project manifests. Generators
should depend on the public API re-exported here rather than importing
internal modules directly.
"""

from .core.document import build, load, load_or_create, parse, save
from .core.exceptions import NoMatchingVersion, ParseError, PomToolkitError
from .core.merge import MergeEngine, insert_anchored, merge_add_if_absent, remove_matching
from .core.models import Comment, Document, Element, Section, Text
from .core.paths import ensure_section, find_section

__all__: list[str] = [
    "Comment",
    "Document",
    "Element",
    "Section",
    "Text",
    "parse",
    "build",
    "load",
    "load_or_create",
    "save",
    "find_section",
    "ensure_section",
    "merge_add_if_absent",
    "remove_matching",
    "insert_anchored",
    "MergeEngine",
    "PomToolkitError",
    "ParseError",
    "NoMatchingVersion",
]
