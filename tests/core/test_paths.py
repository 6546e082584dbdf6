from pom_toolkit.core.document import build, parse
from pom_toolkit.core.models import Comment, Element, Text
from pom_toolkit.core.paths import ensure_section, find_element, find_section


def test_find_nested_section(sample_document):
    section = find_section(sample_document, "dependencyManagement", "dependencies")
    assert section is not None
    assert section.name == "dependencies"
    assert [e.child_text("artifactId") for e in section] == ["uber-jar", "otherdep"]


def test_root_name_prefix_is_optional(sample_document):
    with_root = find_section(sample_document, "project", "build", "plugins")
    without_root = find_section(sample_document, "build", "plugins")
    assert with_root.owner is without_root.owner


def test_find_from_element(sample_document):
    plugin = find_section(sample_document, "build", "plugins").entries[0]
    embeddeds = find_section(plugin, "configuration", "embeddeds")
    assert [e.child_text("artifactId") for e in embeddeds] == ["test.core"]


def test_missing_segment_returns_none(sample_document):
    assert find_section(sample_document, "build", "pluginManagement", "plugins") is None
    assert find_section(sample_document, "nothing") is None
    assert find_element(sample_document, "properties", "missing.property") is None


def test_does_not_search_deeper_than_the_path(sample_document):
    # <dependencies> only exists under <dependencyManagement>
    assert find_section(sample_document, "dependencies") is None


def test_entries_skip_text_and_comments(sample_document):
    section = find_section(sample_document, "properties")
    assert [e.name for e in section.entries] == ["aem.version", "custom.flag"]
    assert len(section) == 2


def test_lookup_ignores_comment_text_that_looks_like_a_tag():
    doc = parse("<project><!-- <modules><module>x</module></modules> --></project>")
    assert find_section(doc, "modules") is None


def test_ensure_section_returns_existing_owner(sample_document):
    existing = find_section(sample_document, "modules")
    ensured = ensure_section(sample_document, "modules")
    assert ensured.owner is existing.owner


def test_ensure_section_creates_missing_path(sample_document):
    section = ensure_section(sample_document, "build", "pluginManagement", "plugins")
    assert len(section) == 0
    assert find_section(sample_document, "build", "pluginManagement", "plugins").owner is section.owner

    build_el = find_element(sample_document, "build")
    assert [e.name for e in build_el.elements()] == ["plugins", "pluginManagement"]


def test_ensure_section_appends_after_last_element(sample_document):
    ensure_section(sample_document, "dependencies")
    names = [e.name for e in sample_document.root.elements()]
    assert names[-2:] == ["profiles", "dependencies"]
    text = build(sample_document)
    assert "  <dependencies/>\n</project>" in text


def test_ensure_section_on_empty_element():
    root = Element("project")
    section = ensure_section(root, "properties")
    assert root.children == [section.owner]
    assert not any(isinstance(c, (Text, Comment)) for c in root.children)
