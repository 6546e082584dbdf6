from __future__ import annotations

"""Builders for candidate entries handed to the merge engine."""

from copy import deepcopy
from typing import Optional

from pom_toolkit.core.models import Element, Text

__all__ = ["leaf", "coordinates", "dependency", "module", "with_version"]


def leaf(name: str, value: str) -> Element:
    """``<name>value</name>``"""
    return Element(name, children=[Text(value)])


def coordinates(kind: str, group_id: str, artifact_id: str,
                version: Optional[str] = None) -> Element:
    """Element *kind* holding groupId/artifactId and an optional version.

    Works for ``dependency``, ``plugin`` and ``embedded`` entries.
    """
    el = Element(kind, children=[leaf("groupId", group_id), leaf("artifactId", artifact_id)])
    if version is not None:
        el.children.append(leaf("version", version))
    return el


def dependency(group_id: str, artifact_id: str, version: Optional[str] = None,
               type_: Optional[str] = None, scope: Optional[str] = None) -> Element:
    """Build a ``<dependency>`` in the usual Maven field order."""
    el = coordinates("dependency", group_id, artifact_id, version)
    if type_ is not None:
        el.children.append(leaf("type", type_))
    if scope is not None:
        el.children.append(leaf("scope", scope))
    return el


def module(path: str) -> Element:
    return leaf("module", path)


def with_version(entry: Element, version: str) -> Element:
    """Copy of *entry* whose ``<version>`` is *version*.

    An existing version child is overwritten; otherwise one is inserted right
    after ``artifactId`` (or appended when there is none).
    """
    copy = deepcopy(entry)
    current = copy.child("version")
    if current is not None:
        current.text = version
        return copy

    new = leaf("version", version)
    artifact = copy.child("artifactId")
    if artifact is None:
        copy.children.append(new)
    else:
        pos = copy.index_of(artifact) + 1
        copy.children.insert(pos, new)
    return copy
