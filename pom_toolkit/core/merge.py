from __future__ import annotations

"""Section merge engine – add, remove and anchor-insert manifest entries.

This module is UI-agnostic and manipulates only the in-memory node tree.
It must not perform any file I/O so that it can be reused by generators,
services and tests.

Every operation works on one :class:`~pom_toolkit.core.models.Section` and
mutates only that section's owner. Entries the operation does not touch keep
their relative order; inserted entries are deep copies of the candidates so
one candidate list can be merged into several sections.
"""

import logging
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Union

from pom_toolkit.core.models import Comment, Element, Section, Text
from pom_toolkit.core.predicates import Anchor, Predicate

__all__ = [
    "merge_add_if_absent",
    "remove_matching",
    "insert_anchored",
    "merge_sections",
    "MergeEngine",
    "MergeResult",
]

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helper utilities (internal)
# ---------------------------------------------------------------------------

def _require(section: Optional[Section]) -> Section:
    if section is None:
        raise ValueError(
            "Cannot merge into an absent section; create it with ensure_section() first"
        )
    return section


def _describe(entry: Element) -> str:
    group_id = entry.child_text("groupId")
    artifact_id = entry.child_text("artifactId")
    if artifact_id:
        return f"{group_id or '?'}:{artifact_id}"
    profile_id = entry.child_text("id")
    if profile_id:
        return f"{entry.name}#{profile_id}"
    return entry.name


def _end_position(owner: Element) -> int:
    """Index just after the last non-blank child (trailing whitespace stays last)."""
    for idx in range(len(owner.children) - 1, -1, -1):
        child = owner.children[idx]
        if not (isinstance(child, Text) and child.is_blank()):
            return idx + 1
    return 0


def _first_match(owner: Element, anchor: Anchor) -> Optional[Element]:
    for entry in owner.elements():
        if anchor(entry):
            return entry
    return None


def _insert_after(owner: Element, reference: Optional[Element], entry: Element) -> None:
    if reference is None:
        pos = _end_position(owner)
    else:
        pos = owner.index_of(reference) + 1
    owner.children.insert(pos, entry)


# ---------------------------------------------------------------------------
# Primitive operations
# ---------------------------------------------------------------------------

def merge_add_if_absent(section: Optional[Section], candidates: Iterable[Element],
                        predicate: Predicate,
                        anchor: Optional[Anchor] = None) -> List[Element]:
    """Add each candidate that has no matching entry yet.

    An existing match wins and is left untouched; the candidate is discarded.
    Without an *anchor* new entries are appended. With an anchor the first
    added entry goes right after the first anchor match and the following ones
    after each other, keeping the candidate order; if nothing matches the
    anchor they are appended.

    Returns the inserted entries.
    """
    owner = _require(section).owner
    added: List[Element] = []
    cursor: Optional[Element] = None

    for candidate in candidates:
        existing = next((e for e in owner.elements() if predicate(e, candidate)), None)
        if existing is not None:
            logger.debug("Keeping existing entry %s in <%s>", _describe(existing), owner.name)
            continue

        entry = deepcopy(candidate)
        reference = cursor
        if reference is None and anchor is not None:
            reference = _first_match(owner, anchor)
        _insert_after(owner, reference, entry)
        if reference is not None:
            cursor = entry
        added.append(entry)
        logger.debug("Added entry %s to <%s>", _describe(entry), owner.name)

    return added


def remove_matching(section: Optional[Section], candidates: Iterable[Element],
                    predicates: Union[Predicate, Sequence[Predicate]]) -> List[Element]:
    """Remove every entry for which any predicate matches any candidate.

    The blank text immediately preceding a removed entry goes with it, so a
    remove-then-add refresh does not accumulate whitespace.

    Returns the removed entries in document order.
    """
    owner = _require(section).owner
    preds = [predicates] if callable(predicates) else list(predicates)
    wanted = list(candidates)
    removed: List[Element] = []

    for entry in list(owner.elements()):
        if not any(p(entry, c) for p in preds for c in wanted):
            continue
        idx = owner.index_of(entry)
        del owner.children[idx]
        if idx > 0:
            before = owner.children[idx - 1]
            if isinstance(before, Text) and before.is_blank():
                del owner.children[idx - 1]
        removed.append(entry)
        logger.debug("Removed entry %s from <%s>", _describe(entry), owner.name)

    return removed


def insert_anchored(section: Optional[Section], entry: Element, anchor: Anchor) -> Element:
    """Insert a copy of *entry* right after the first anchor match, else at the end."""
    owner = _require(section).owner
    inserted = deepcopy(entry)
    _insert_after(owner, _first_match(owner, anchor), inserted)
    logger.debug("Inserted entry %s into <%s>", _describe(inserted), owner.name)
    return inserted


def _leading_comments(owner: Element, entry: Element) -> List[Comment]:
    """Comments sitting directly above *entry*, in document order."""
    comments: List[Comment] = []
    idx = owner.index_of(entry) - 1
    while idx >= 0:
        node = owner.children[idx]
        if isinstance(node, Comment):
            comments.insert(0, node)
        elif not (isinstance(node, Text) and node.is_blank()):
            break
        idx -= 1
    return comments


def merge_sections(target: Optional[Section], source: Optional[Section],
                   predicate: Predicate) -> List[Element]:
    """Carry over every *source* entry that has no match in *target*.

    Used when a manifest is rendered afresh from a template: entries a human
    added to the existing file survive, appended after the template's own,
    together with the comments written directly above them. A missing
    *source* is a no-op.

    Returns the carried entries.
    """
    owner = _require(target).owner
    if source is None:
        return []

    carried: List[Element] = []
    for entry in source.entries:
        if any(predicate(e, entry) for e in owner.elements()):
            continue
        for comment in _leading_comments(source.owner, entry):
            owner.children.insert(_end_position(owner), deepcopy(comment))
        copy = deepcopy(entry)
        owner.children.insert(_end_position(owner), copy)
        carried.append(copy)
        logger.debug("Carried entry %s into <%s>", _describe(copy), owner.name)
    return carried


# ---------------------------------------------------------------------------
# Service façade
# ---------------------------------------------------------------------------

@dataclass
class MergeResult:
    """Outcome of a composite refresh."""

    removed: List[Element] = field(default_factory=list)
    added: List[Element] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.removed or self.added)


class MergeEngine:
    """Stateless service exposing the merge primitives.

    Components that contribute to a manifest receive an engine instance
    instead of importing the functions directly, which keeps them easy to
    substitute in tests.
    """

    def add_if_absent(self, section: Optional[Section], candidates: Iterable[Element],
                      predicate: Predicate, anchor: Optional[Anchor] = None) -> List[Element]:
        return merge_add_if_absent(section, candidates, predicate, anchor)

    def remove_matching(self, section: Optional[Section], candidates: Iterable[Element],
                        predicates: Union[Predicate, Sequence[Predicate]]) -> List[Element]:
        return remove_matching(section, candidates, predicates)

    def insert_anchored(self, section: Optional[Section], entry: Element,
                        anchor: Anchor) -> Element:
        return insert_anchored(section, entry, anchor)

    def merge_sections(self, target: Optional[Section], source: Optional[Section],
                       predicate: Predicate) -> List[Element]:
        return merge_sections(target, source, predicate)

    def refresh(self, section: Optional[Section], candidates: Sequence[Element],
                predicate: Predicate, anchor: Optional[Anchor] = None,
                stale: Optional[Sequence[Element]] = None,
                remove_predicates: Optional[Union[Predicate, Sequence[Predicate]]] = None) -> MergeResult:
        """Delete-then-reinsert: drop entries matching *candidates* (and *stale*), then add.

        *stale* lists identities that must go away even though they are not
        re-added, e.g. the on-premise API jar when switching to the cloud SDK.
        *remove_predicates* replaces *predicate* for the removal half, e.g.
        ``artifact_id_in("uber-jar", "aem-sdk-api")`` to clear either API jar.
        """
        _require(section)
        candidates = list(candidates)
        removal = predicate if remove_predicates is None else remove_predicates
        removed = remove_matching(section, list(stale or []) + candidates, removal)
        added = merge_add_if_absent(section, candidates, predicate, anchor)
        return MergeResult(removed=removed, added=added)
