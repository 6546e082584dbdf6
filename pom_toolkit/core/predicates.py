from __future__ import annotations

"""Identity predicates deciding whether two entries denote the same item.

A predicate is called as ``predicate(existing, candidate)``. Only the fixed
identifying fields of an entity kind are compared, so a candidate that carries
nothing but ``groupId``/``artifactId`` still matches a fully specified existing
entry. An entry lacking one of the identifying fields matches nothing, except
that plugins are matched on ``artifactId`` alone when a ``groupId`` is missing.

Anchors are the unary counterpart used to position new entries:
``anchor(existing) -> bool``.
"""

from typing import Callable, Optional

from pom_toolkit.core.models import Element

__all__ = [
    "Predicate",
    "Anchor",
    "dependency_predicate",
    "plugin_predicate",
    "embedded_predicate",
    "profile_predicate",
    "property_predicate",
    "module_predicate",
    "coordinates_anchor",
    "artifact_id_in",
]

Predicate = Callable[[Element, Element], bool]
Anchor = Callable[[Element], bool]


def _coordinates_equal(existing: Element, candidate: Element) -> bool:
    for field_name in ("groupId", "artifactId"):
        left = existing.child_text(field_name)
        right = candidate.child_text(field_name)
        if left is None or right is None or left != right:
            return False
    return True


def dependency_predicate(existing: Element, candidate: Element) -> bool:
    """Same ``groupId`` and ``artifactId``; version, scope and type are ignored."""
    return _coordinates_equal(existing, candidate)


def plugin_predicate(existing: Element, candidate: Element) -> bool:
    """Same plugin ``artifactId``, and the same ``groupId`` when both sides name one.

    Maven plugins commonly omit their groupId (the implicit
    ``org.apache.maven.plugins``, or whatever a human left out), so a missing
    groupId on either side does not block the match.
    """
    left = existing.child_text("artifactId")
    if left is None or left != candidate.child_text("artifactId"):
        return False
    left_group = existing.child_text("groupId")
    right_group = candidate.child_text("groupId")
    if left_group is None or right_group is None:
        return True
    return left_group == right_group


def embedded_predicate(existing: Element, candidate: Element) -> bool:
    """Same embedded artifact ``groupId`` and ``artifactId``."""
    return _coordinates_equal(existing, candidate)


def profile_predicate(existing: Element, candidate: Element) -> bool:
    """Same profile ``id``."""
    left = existing.child_text("id")
    right = candidate.child_text("id")
    return left is not None and left == right


def property_predicate(existing: Element, candidate: Element) -> bool:
    """Same property name, i.e. the same tag; the value is ignored."""
    return bool(existing.name) and existing.name == candidate.name


def module_predicate(existing: Element, candidate: Element) -> bool:
    """Same ``<module>`` path."""
    left = existing.text.strip()
    right = candidate.text.strip()
    return bool(left) and left == right


def coordinates_anchor(group_id: Optional[str] = None,
                       artifact_id: Optional[str] = None) -> Anchor:
    """Build an anchor matching entries with the given coordinates.

    Omitted coordinates are not checked; an anchor with neither coordinate
    matches nothing.
    """
    def _anchor(existing: Element) -> bool:
        if group_id is None and artifact_id is None:
            return False
        if group_id is not None and existing.child_text("groupId") != group_id:
            return False
        if artifact_id is not None and existing.child_text("artifactId") != artifact_id:
            return False
        return True

    return _anchor


def artifact_id_in(*artifact_ids: str) -> Predicate:
    """Build a predicate matching existing entries whose artifactId is listed.

    The candidate side is ignored, which makes the predicate usable as a
    blanket filter with :func:`pom_toolkit.core.merge.remove_matching`.
    """
    wanted = frozenset(artifact_ids)

    def _predicate(existing: Element, candidate: Element) -> bool:
        return existing.child_text("artifactId") in wanted

    return _predicate
