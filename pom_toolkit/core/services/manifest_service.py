from __future__ import annotations

"""High-level manifest update service.

Entry-point for generators that contribute configuration to a ``pom.xml``.
One call handles one file: load (or start from the rendered template), run the
requested merge steps in memory, normalize, and write the result back in one
go. A failure anywhere before the write leaves the file as it was.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

from pom_toolkit.config import ConfigManager
from pom_toolkit.core.document import load, load_or_create, parse, save
from pom_toolkit.core.entries import module, with_version
from pom_toolkit.core.merge import MergeEngine, MergeResult
from pom_toolkit.core.models import Document, Element
from pom_toolkit.core.normalizer import normalize_leaves
from pom_toolkit.core.paths import ensure_section, find_element, find_section
from pom_toolkit.core.predicates import (
    Anchor,
    Predicate,
    dependency_predicate,
    module_predicate,
    plugin_predicate,
    profile_predicate,
    property_predicate,
)
from pom_toolkit.core.versions import VersionResolver

logger = logging.getLogger(__name__)

__all__ = ["ManifestService", "ManifestStep", "RefreshStep", "REGENERATED_SECTIONS"]

PathLike = Union[str, Path]

ManifestStep = Callable[[Document, MergeEngine], None]

# Sections carried from an existing manifest into a freshly rendered one.
REGENERATED_SECTIONS: Tuple[Tuple[Tuple[str, ...], Predicate], ...] = (
    (("modules",), module_predicate),
    (("properties",), property_predicate),
    (("dependencyManagement", "dependencies"), dependency_predicate),
    (("dependencies",), dependency_predicate),
    (("build", "pluginManagement", "plugins"), plugin_predicate),
    (("build", "plugins"), plugin_predicate),
    (("profiles",), profile_predicate),
)


@dataclass
class RefreshStep:
    """Delete-then-reinsert *candidates* into the section at *path*.

    When the section is missing it is created if *create* is set, otherwise
    the step is skipped. *remove_predicates* replaces the removal predicate (see
    :meth:`MergeEngine.refresh`).
    """

    path: Tuple[str, ...]
    candidates: Sequence[Element]
    predicate: Predicate = dependency_predicate
    anchor: Optional[Anchor] = None
    stale: Sequence[Element] = ()
    create: bool = True
    remove_predicates: Optional[Union[Predicate, Sequence[Predicate]]] = None
    result: Optional[MergeResult] = None

    def __call__(self, document: Document, engine: MergeEngine) -> None:
        section = find_section(document, *self.path)
        if section is None:
            if not self.create:
                logger.info("Skipping refresh, no <%s> section", "/".join(self.path))
                return
            section = ensure_section(document, *self.path)
        self.result = engine.refresh(section, self.candidates, self.predicate,
                                     anchor=self.anchor, stale=self.stale,
                                     remove_predicates=self.remove_predicates)


class ManifestService:
    """Business-logic façade over load / merge / save for manifest files."""

    def __init__(self, engine: Optional[MergeEngine] = None,
                 config_manager: Optional[ConfigManager] = None,
                 resolver: Optional[VersionResolver] = None) -> None:
        self.engine = engine or MergeEngine()
        self.resolver = resolver
        self.config_manager = config_manager or ConfigManager()
        settings = self.config_manager.get_serialization_config()
        self.indent: str = settings["indent"]
        self.xml_declaration: bool = bool(settings["xml_declaration"])
        self.normalize: bool = bool(settings["normalize_leaves"])

    # ---------------------------------------------------------------------
    # PUBLIC API
    # ---------------------------------------------------------------------
    def update(self, path: PathLike, steps: Iterable[ManifestStep],
               template_text: Optional[str] = None) -> Document:
        """Apply *steps* to the manifest at *path* and write it back.

        Without *template_text* the file must exist; with it, a missing file
        starts from the rendered template.
        """
        p = Path(path)
        document = load(p) if template_text is None else load_or_create(p, template_text)
        for step in steps:
            step(document, self.engine)
        self.write(document, p)
        return document

    def regenerate(self, path: PathLike, template_text: str) -> Document:
        """Render the manifest from *template_text*, keeping human additions.

        Entries of the existing file that the template does not define
        (modules, properties, dependencies, plugins, profiles) are carried
        over after the template's own entries.
        """
        p = Path(path)
        generated = parse(template_text, source=f"<template for {p}>")
        if p.exists():
            existing = load(p)
            for section_path, predicate in REGENERATED_SECTIONS:
                source = find_section(existing, *section_path)
                if source is None:
                    continue
                target = find_section(generated, *section_path)
                if target is None:
                    target = ensure_section(generated, *section_path)
                carried = self.engine.merge_sections(target, source, predicate)
                if carried:
                    logger.info("Kept %d existing <%s> entries in %s",
                                len(carried), "/".join(section_path), p)
        self.write(generated, p)
        return generated

    def add_module(self, path: PathLike, module_path: str) -> bool:
        """Register *module_path* in the parent manifest's ``<modules>``."""
        added: List[Element] = []

        def _step(document: Document, engine: MergeEngine) -> None:
            section = ensure_section(document, "modules")
            added.extend(engine.add_if_absent(section, [module(module_path)], module_predicate))

        self.update(path, [_step])
        return bool(added)

    def refresh_entries(self, path: PathLike, section_path: Sequence[str],
                        candidates: Sequence[Element],
                        predicate: Predicate = dependency_predicate,
                        anchor: Optional[Anchor] = None,
                        stale: Sequence[Element] = (),
                        requested_version: Optional[str] = None,
                        remove_predicates: Optional[Union[Predicate, Sequence[Predicate]]] = None) -> MergeResult:
        """Replace the entries identified by *candidates* in one section.

        When *requested_version* is given, it is resolved through the
        configured :class:`VersionResolver` before the file is read and the
        concrete version is stamped into every candidate.
        """
        if requested_version is not None:
            version = self.resolve_version(requested_version)
            candidates = [with_version(c, version) for c in candidates]

        step = RefreshStep(tuple(section_path), list(candidates), predicate, anchor, list(stale),
                           remove_predicates=remove_predicates)
        self.update(path, [step])
        return step.result or MergeResult()

    def resolve_version(self, requested: str) -> str:
        if self.resolver is None:
            raise ValueError("No version resolver configured")
        return self.resolver.resolve(requested)

    def set_property(self, document: Document, name: str, value: str) -> bool:
        """Set ``<properties>/<name>``, creating it at the end when missing.

        An existing property keeps its position and only its value changes.
        Returns *True* when the document changed.
        """
        section = ensure_section(document, "properties")
        existing = find_element(section.owner, name)
        if existing is not None:
            if existing.text.strip() == value:
                return False
            existing.text = value
            return True
        new = Element(name)
        new.text = value
        self.engine.add_if_absent(section, [new], property_predicate)
        return True

    def write(self, document: Document, path: PathLike) -> None:
        if self.normalize:
            normalize_leaves(document)
        save(document, path, indent=self.indent, xml_declaration=self.xml_declaration)
        logger.info("Wrote manifest %s", path)
