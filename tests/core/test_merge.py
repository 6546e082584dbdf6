import pytest

from pom_toolkit.core.document import build, parse
from pom_toolkit.core.entries import coordinates, dependency, leaf
from pom_toolkit.core.merge import (
    MergeEngine,
    insert_anchored,
    merge_add_if_absent,
    merge_sections,
    remove_matching,
)
from pom_toolkit.core.models import Comment, Element, Section, Text
from pom_toolkit.core.paths import find_section
from pom_toolkit.core.predicates import (
    artifact_id_in,
    coordinates_anchor,
    dependency_predicate,
    embedded_predicate,
    plugin_predicate,
    profile_predicate,
    property_predicate,
)
from tests.conftest import gav

DEPS_XML = """<project>
  <dependencies>
    <dependency>
      <groupId>com.adobe.aem</groupId>
      <artifactId>uber-jar</artifactId>
      <version>v1</version>
    </dependency>
    <dependency>
      <groupId>com.test</groupId>
      <artifactId>otherdep</artifactId>
      <version>v1</version>
    </dependency>
  </dependencies>
</project>
"""


@pytest.fixture
def deps_document():
    return parse(DEPS_XML)


@pytest.fixture
def deps(deps_document) -> Section:
    return find_section(deps_document, "dependencies")


def _scenario_a(section):
    sdk = dependency("com.adobe.aem", "aem-sdk-api", "v2")
    remove_matching(section, [sdk], artifact_id_in("uber-jar", "aem-sdk-api"))
    insert_anchored(section, sdk, coordinates_anchor(group_id="com.adobe.aem"))


class TestScenarios:

    def test_scenario_a_replace_api_dependency(self, deps):
        _scenario_a(deps)
        assert gav(deps) == [
            ("com.test", "otherdep", "v1"),
            ("com.adobe.aem", "aem-sdk-api", "v2"),
        ]

    def test_scenario_b_rerun_is_identical(self, deps_document, deps):
        _scenario_a(deps)
        once = build(deps_document)
        children_once = list(deps.owner.children)

        _scenario_a(deps)
        assert build(deps_document) == once
        assert deps.owner.children == children_once

    def test_scenario_b_rerun_on_saved_output(self, deps_document, deps):
        _scenario_a(deps)
        once = build(deps_document)

        reloaded = parse(once)
        _scenario_a(find_section(reloaded, "dependencies"))
        assert build(reloaded) == once

    def test_scenario_c_existing_entry_wins(self, deps):
        before = deps.entries[1]
        added = merge_add_if_absent(deps, [dependency("com.test", "otherdep", "v2")], dependency_predicate)
        assert added == []
        assert deps.entries[1] is before
        assert gav(deps)[1] == ("com.test", "otherdep", "v1")


class TestMergeAddIfAbsent:

    def test_appends_missing_candidates_in_order(self, deps):
        added = merge_add_if_absent(
            deps,
            [dependency("a", "one"), dependency("com.test", "otherdep"), dependency("a", "two")],
            dependency_predicate,
        )
        assert [e.child_text("artifactId") for e in added] == ["one", "two"]
        assert [a for _, a, _ in gav(deps)] == ["uber-jar", "otherdep", "one", "two"]

    def test_no_duplicates_within_one_call(self, deps):
        merge_add_if_absent(deps, [dependency("a", "one", "1"), dependency("a", "one", "2")], dependency_predicate)
        matches = [e for e in deps.entries if dependency_predicate(e, dependency("a", "one"))]
        assert len(matches) == 1
        assert matches[0].child_text("version") == "1"

    def test_idempotent(self, deps_document, deps):
        candidates = [dependency("a", "one"), dependency("a", "two")]
        merge_add_if_absent(deps, candidates, dependency_predicate)
        once = build(deps_document)
        assert merge_add_if_absent(deps, candidates, dependency_predicate) == []
        assert build(deps_document) == once

    def test_anchor_places_block_after_first_match_in_candidate_order(self, deps):
        added = merge_add_if_absent(
            deps,
            [dependency("com.adobe.cq", "core.wcm.components.core"),
             dependency("com.adobe.cq", "core.wcm.components.content", type_="zip")],
            dependency_predicate,
            anchor=coordinates_anchor("com.adobe.aem", "uber-jar"),
        )
        assert len(added) == 2
        assert [a for _, a, _ in gav(deps)] == [
            "uber-jar",
            "core.wcm.components.core",
            "core.wcm.components.content",
            "otherdep",
        ]

    def test_unmatched_anchor_appends(self, deps):
        merge_add_if_absent(deps, [dependency("x", "y")], dependency_predicate,
                            anchor=coordinates_anchor(group_id="nobody"))
        assert gav(deps)[-1] == ("x", "y", None)

    def test_inserted_entries_are_copies(self, deps):
        candidate = dependency("a", "one", "1")
        merge_add_if_absent(deps, [candidate], dependency_predicate)
        candidate.child("version").text = "changed"
        assert gav(deps)[-1] == ("a", "one", "1")

    def test_appends_before_trailing_whitespace(self, deps):
        merge_add_if_absent(deps, [dependency("a", "one")], dependency_predicate)
        last = deps.owner.children[-1]
        assert isinstance(last, Text) and last.is_blank()
        assert deps.owner.children[-2] is deps.entries[-1]

    def test_untouched_entries_keep_relative_order(self):
        doc = parse("<p><properties><z>1</z><a>2</a><m>3</m></properties></p>")
        section = find_section(doc, "properties")
        merge_add_if_absent(section, [leaf("b", "x"), leaf("a", "changed")], property_predicate)
        assert [e.name for e in section] == ["z", "a", "m", "b"]
        assert section.entries[1].text == "2"

    def test_existing_duplicates_are_left_alone(self):
        doc = parse(
            "<p><dependencies>"
            "<dependency><groupId>g</groupId><artifactId>a</artifactId><version>1</version></dependency>"
            "<dependency><groupId>g</groupId><artifactId>a</artifactId><version>2</version></dependency>"
            "</dependencies></p>"
        )
        section = find_section(doc, "dependencies")
        merge_add_if_absent(section, [dependency("g", "a", "3")], dependency_predicate)
        assert gav(section) == [("g", "a", "1"), ("g", "a", "2")]

    def test_absent_section_is_rejected(self):
        with pytest.raises(ValueError):
            merge_add_if_absent(None, [dependency("g", "a")], dependency_predicate)

    def test_empty_section(self):
        section = Section(Element("dependencies"))
        merge_add_if_absent(section, [dependency("g", "a")], dependency_predicate)
        assert gav(section) == [("g", "a", None)]

    def test_plugin_without_group_is_not_duplicated(self):
        doc = parse(
            "<project><build><plugins>"
            "<plugin><artifactId>maven-release-plugin</artifactId><version>2.5</version></plugin>"
            "</plugins></build></project>"
        )
        section = find_section(doc, "build", "plugins")
        added = merge_add_if_absent(
            section,
            [coordinates("plugin", "org.apache.maven.plugins", "maven-release-plugin", "3.0")],
            plugin_predicate,
        )
        assert added == []
        assert gav(section) == [(None, "maven-release-plugin", "2.5")]


class TestRemoveMatching:

    def test_any_predicate_against_any_candidate(self, deps):
        removed = remove_matching(
            deps,
            [dependency("com.test", "otherdep")],
            [dependency_predicate, artifact_id_in("uber-jar")],
        )
        assert [e.child_text("artifactId") for e in removed] == ["uber-jar", "otherdep"]
        assert len(deps) == 0

    def test_single_predicate_callable(self, deps):
        remove_matching(deps, [dependency("com.test", "otherdep", "v9")], dependency_predicate)
        assert gav(deps) == [("com.adobe.aem", "uber-jar", "v1")]

    def test_removes_pre_existing_duplicates(self):
        doc = parse(
            "<p><dependencies>"
            "<dependency><groupId>g</groupId><artifactId>a</artifactId></dependency>"
            "<dependency><groupId>g</groupId><artifactId>b</artifactId></dependency>"
            "<dependency><groupId>g</groupId><artifactId>a</artifactId></dependency>"
            "</dependencies></p>"
        )
        section = find_section(doc, "dependencies")
        remove_matching(section, [dependency("g", "a")], dependency_predicate)
        assert gav(section) == [("g", "b", None)]

    def test_no_candidates_removes_nothing(self, deps):
        assert remove_matching(deps, [], artifact_id_in("uber-jar")) == []
        assert len(deps) == 2

    def test_keeps_comments_and_drops_leading_whitespace(self):
        doc = parse(
            "<p><dependencies>\n  <!-- keep -->\n  "
            "<dependency><groupId>g</groupId><artifactId>a</artifactId></dependency>\n"
            "</dependencies></p>"
        )
        section = find_section(doc, "dependencies")
        remove_matching(section, [dependency("g", "a")], dependency_predicate)
        values = [getattr(c, "value", None) for c in section.owner.children]
        assert values == ["\n  ", " keep ", "\n"]


class TestInsertAnchored:

    def test_after_first_anchor_match(self, deps):
        inserted = insert_anchored(deps, dependency("com.adobe.aem", "aem-sdk-api", "v2"),
                                   coordinates_anchor(group_id="com.adobe.aem"))
        assert deps.entries[1] is inserted
        assert [a for _, a, _ in gav(deps)] == ["uber-jar", "aem-sdk-api", "otherdep"]

    def test_appends_without_match(self, deps):
        insert_anchored(deps, dependency("x", "y"), coordinates_anchor(group_id="nobody"))
        assert deps.entries[-1].child_text("artifactId") == "y"

    def test_always_inserts(self, deps):
        insert_anchored(deps, dependency("com.test", "otherdep", "v2"), coordinates_anchor(group_id="com.test"))
        assert gav(deps) == [
            ("com.adobe.aem", "uber-jar", "v1"),
            ("com.test", "otherdep", "v1"),
            ("com.test", "otherdep", "v2"),
        ]


class TestMergeSections:

    def test_carries_unmatched_source_entries(self):
        template = parse("<p><profiles><profile><id>a</id><activation/></profile></profiles></p>")
        existing = parse(
            "<p><profiles>"
            "<profile><id>a</id></profile>"
            "<profile><id>mine</id></profile>"
            "</profiles></p>"
        )
        target = find_section(template, "profiles")
        carried = merge_sections(target, find_section(existing, "profiles"), profile_predicate)
        assert [e.child_text("id") for e in carried] == ["mine"]
        assert [e.child_text("id") for e in target] == ["a", "mine"]
        # Template definition wins for shared identities
        assert target.entries[0].child("activation") is not None

    def test_missing_source_is_noop(self):
        target = Section(Element("profiles"))
        assert merge_sections(target, None, profile_predicate) == []

    def test_carries_comments_written_above_entries(self):
        template = parse("<p><properties><a>1</a></properties></p>")
        existing = parse(
            "<p><properties>\n"
            "  <!-- dropped with a -->\n  <a>0</a>\n"
            "  <!-- local tuning -->\n  <!-- second line -->\n  <b>2</b>\n"
            "  <c>3</c>\n"
            "</properties></p>"
        )
        target = find_section(template, "properties")
        merge_sections(target, find_section(existing, "properties"), property_predicate)

        significant = [c for c in target.owner.children if not isinstance(c, Text)]
        assert [c.value if isinstance(c, Comment) else c.name for c in significant] == [
            "a", " local tuning ", " second line ", "b", "c",
        ]

    def test_carried_comments_are_stable(self):
        existing = parse("<p><properties><!-- mine --><b>2</b></properties></p>")
        once = parse("<p><properties><a>1</a></properties></p>")
        merge_sections(find_section(once, "properties"), find_section(existing, "properties"),
                       property_predicate)
        twice = parse("<p><properties><a>1</a></properties></p>")
        merge_sections(find_section(twice, "properties"), find_section(once, "properties"),
                       property_predicate)
        assert build(twice) == build(once)


class TestMergeEngine:

    def test_refresh_replaces_stale_versions(self, deps):
        engine = MergeEngine()
        result = engine.refresh(
            deps,
            [dependency("com.adobe.aem", "aem-sdk-api", "v2")],
            dependency_predicate,
            anchor=coordinates_anchor(group_id="com.adobe.aem"),
            stale=[coordinates("dependency", "com.adobe.aem", "uber-jar")],
        )
        assert result.changed
        assert [e.child_text("artifactId") for e in result.removed] == ["uber-jar"]
        assert gav(deps) == [("com.test", "otherdep", "v1"), ("com.adobe.aem", "aem-sdk-api", "v2")]

    def test_refresh_upgrade_keeps_anchor_grouping(self):
        doc = parse(
            "<p><dependencies>"
            "<dependency><groupId>com.adobe.aem</groupId><artifactId>aem-sdk-api</artifactId></dependency>"
            "<dependency><groupId>com.adobe.cq</groupId><artifactId>core.wcm.components.core</artifactId>"
            "<version>2.20.0</version></dependency>"
            "<dependency><groupId>x</groupId><artifactId>y</artifactId></dependency>"
            "</dependencies></p>"
        )
        section = find_section(doc, "dependencies")
        engine = MergeEngine()
        candidates = [dependency("com.adobe.cq", "core.wcm.components.core", "2.22.0")]
        anchor = coordinates_anchor("com.adobe.aem", "aem-sdk-api")

        engine.refresh(section, candidates, dependency_predicate, anchor=anchor)
        once = gav(section)
        engine.refresh(section, candidates, dependency_predicate, anchor=anchor)

        assert once == [
            ("com.adobe.aem", "aem-sdk-api", None),
            ("com.adobe.cq", "core.wcm.components.core", "2.22.0"),
            ("x", "y", None),
        ]
        assert gav(section) == once

    def test_embedded_list_refresh(self, sample_document):
        plugin = find_section(sample_document, "build", "plugins").entries[0]
        embeddeds = find_section(plugin, "configuration", "embeddeds")
        fresh = Element("embedded", children=[
            leaf("groupId", "com.test"), leaf("artifactId", "test.core"), leaf("target", "/apps/new/install"),
        ])
        MergeEngine().refresh(embeddeds, [fresh], embedded_predicate)
        assert len(embeddeds) == 1
        assert embeddeds.entries[0].child_text("target") == "/apps/new/install"

    def test_refresh_with_separate_removal_predicates(self, deps_document, deps):
        engine = MergeEngine()
        sdk = dependency("com.adobe.aem", "aem-sdk-api", "v2")
        result = engine.refresh(
            deps, [sdk], dependency_predicate,
            anchor=coordinates_anchor(group_id="com.adobe.aem"),
            remove_predicates=[artifact_id_in("uber-jar", "aem-sdk-api")],
        )
        assert [e.child_text("artifactId") for e in result.removed] == ["uber-jar"]
        assert gav(deps) == [("com.test", "otherdep", "v1"), ("com.adobe.aem", "aem-sdk-api", "v2")]

        once = build(deps_document)
        engine.refresh(deps, [sdk], dependency_predicate,
                       anchor=coordinates_anchor(group_id="com.adobe.aem"),
                       remove_predicates=artifact_id_in("uber-jar", "aem-sdk-api"))
        assert build(deps_document) == once

    def test_result_without_changes(self, deps):
        result = MergeEngine().refresh(deps, [], dependency_predicate)
        assert not result.changed
