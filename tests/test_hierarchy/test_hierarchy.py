"""
Tests para TreeBuilder.build_from_hierarchy (vistas multinivel).

Cubre:
- Niveles de propiedad (escalares, listas, valores ausentes)
- Niveles de tag (key, contexto de tag anidado, multi-depth, key exacta)
- Política de partial matches
- Intercalado de niveles virtuales
- Filtrado por tag raíz
- Equivalencia entre el fast path y el build nivel por nivel
"""

import pytest
from conftest import child, file_paths, names

from tagtree.config import HierarchyConfig, PropertyLevel, TagLevel, ViewState
from tagtree.tree import NodeKind, PropertyGroupNode, TreeNode, uses_fast_path


def view(*levels, **kwargs) -> HierarchyConfig:
    return HierarchyConfig(name="Test", levels=list(levels), **kwargs)


def shape(node: TreeNode) -> tuple:
    """Nombres, ubicación de archivos y conteos de un subárbol, sin ids."""
    return (
        node.name,
        node.file_count,
        tuple(shape(c) if not c.is_file else ("file", c.document.path) for c in node.children),
    )


# ── Tests: Property levels ───────────────────────────────────────────────


class TestPropertyLevels:
    def test_groups_by_value(self, vault):
        vault.add("a.md", status="active")
        vault.add("b.md", status="done")
        vault.add("c.md", status="active")

        tree = vault.builder().build_from_hierarchy(view(PropertyLevel(key="status")))

        assert names(tree) == ["active", "done"]
        assert file_paths(child(tree, "active")) == ["a.md", "c.md"]
        assert child(tree, "active").file_count == 2

    def test_non_decimal_digit_values(self, vault):
        vault.add("a.md", status="፩")
        vault.add("b.md", status="2")

        tree = vault.builder().build_from_hierarchy(view(PropertyLevel(key="status")))

        assert names(tree) == ["2", "፩"]

    def test_missing_property_excluded(self, vault):
        vault.add("a.md", status="active")
        vault.add("b.md", priority="high")
        vault.add("c.md", status=None)
        vault.add("d.md", status=[])

        tree = vault.builder().build_from_hierarchy(view(PropertyLevel(key="status")))

        assert names(tree) == ["active"]
        assert tree.file_count == 1

    def test_list_values_split(self, vault):
        vault.add("a.md", topics=["ml", "nlp"])
        vault.add("b.md", topics=["ml"])

        tree = vault.builder().build_from_hierarchy(view(PropertyLevel(key="topics")))

        assert names(tree) == ["ml", "nlp"]
        assert file_paths(child(tree, "ml")) == ["a.md", "b.md"]
        assert file_paths(child(tree, "nlp")) == ["a.md"]

    def test_list_values_joined(self, vault):
        vault.add("a.md", topics=["ml", "nlp"])

        tree = vault.builder().build_from_hierarchy(
            view(PropertyLevel(key="topics", separate_list_values=False))
        )

        assert names(tree) == ["[ml, nlp]"]

    def test_property_name_in_label(self, vault):
        vault.add("a.md", year=2024)

        tree = vault.builder().build_from_hierarchy(
            view(PropertyLevel(key="year", label="Year", show_property_name=True))
        )

        node = tree.children[0]
        assert isinstance(node, PropertyGroupNode)
        assert node.name == "Year = 2024"
        assert node.property_key == "year"
        assert node.property_value == "2024"
        assert node.id == "root/prop:year:2024"

    def test_two_property_levels(self, vault):
        vault.add("a.md", status="active", priority="high")
        vault.add("b.md", status="active", priority="low")

        tree = vault.builder().build_from_hierarchy(
            view(PropertyLevel(key="status"), PropertyLevel(key="priority"))
        )

        active = child(tree, "active")
        assert names(active) == ["high", "low"]
        assert child(active, "high").id == "root/prop:status:active/prop:priority:high"
        assert child(active, "high").depth == 2


# ── Tests: Tag levels ────────────────────────────────────────────────────


class TestTagLevels:
    def test_empty_key_groups_by_first_segment(self, vault):
        vault.add("a.md", ["project/alpha"])
        vault.add("b.md", ["personal"])

        tree = vault.builder().build_from_hierarchy(view(TagLevel()))

        assert names(tree) == ["personal", "project"]
        assert file_paths(child(tree, "project")) == ["a.md"]

    def test_key_groups_children_of_key(self, vault):
        vault.add("a.md", ["project/alpha/api"])
        vault.add("b.md", ["project/beta"])
        vault.add("c.md", ["personal"])

        tree = vault.builder().build_from_hierarchy(view(TagLevel(key="project")))

        assert names(tree) == ["alpha", "beta"]
        assert file_paths(child(tree, "alpha")) == ["a.md"]

    def test_exact_key_forms_own_group(self, vault):
        vault.add("a.md", ["project"])
        vault.add("b.md", ["project/alpha"])

        tree = vault.builder().build_from_hierarchy(view(TagLevel(key="project")))

        assert names(tree) == ["alpha", "project"]
        assert file_paths(child(tree, "project")) == ["a.md"]

    def test_exact_key_ignored_when_deeper_label_present(self, vault):
        vault.add("a.md", ["project", "project/alpha"])

        tree = vault.builder().build_from_hierarchy(view(TagLevel(key="project")))

        assert names(tree) == ["alpha"]

    def test_nested_tag_context(self, vault):
        vault.add("a.md", ["project/alpha"])
        vault.add("b.md", ["project/beta"])

        tree = vault.builder().build_from_hierarchy(view(TagLevel(), TagLevel()))

        project = child(tree, "project")
        assert names(project) == ["alpha", "beta"]
        assert child(project, "alpha").id == "root/tag:project/tag:project/alpha"

    def test_multi_depth(self, vault):
        vault.add("a.md", ["project/alpha/api/v2"])

        tree = vault.builder().build_from_hierarchy(view(TagLevel(key="project", depth=2)))

        alpha = child(tree, "alpha")
        api = child(alpha, "api")
        assert file_paths(api) == ["a.md"]
        assert api.depth == 2
        assert api.level_index == 0

    def test_shallow_document_ends_at_deepest_match(self, vault):
        vault.add("a.md", ["project/alpha/api"])
        vault.add("b.md", ["project/alpha"])

        tree = vault.builder().build_from_hierarchy(view(TagLevel(key="project", depth=3)))

        alpha = child(tree, "alpha")
        assert file_paths(alpha) == ["b.md"]
        assert file_paths(child(alpha, "api")) == ["a.md"]

    def test_label_and_full_path(self, vault):
        vault.add("a.md", ["project/alpha"])

        tree = vault.builder().build_from_hierarchy(
            view(TagLevel(key="project", label="Project", show_full_path=True))
        )

        assert names(tree) == ["Project: project/alpha"]

    def test_document_under_each_sibling_label(self, vault):
        vault.add("a.md", ["project/alpha", "project/beta"])

        tree = vault.builder().build_from_hierarchy(view(TagLevel(key="project")))

        assert file_paths(child(tree, "alpha")) == ["a.md"]
        assert file_paths(child(tree, "beta")) == ["a.md"]
        assert tree.file_count == 2


# ── Tests: Mixed levels and partial matches ──────────────────────────────


class TestMixedLevels:
    @pytest.fixture
    def status_then_project(self):
        return [PropertyLevel(key="status"), TagLevel(key="project", depth=2)]

    def test_full_match_nesting(self, vault, status_then_project):
        vault.add("a.md", ["project/alpha/api"], status="active")

        tree = vault.builder().build_from_hierarchy(view(*status_then_project))

        active = child(tree, "active")
        alpha = child(active, "alpha")
        api = child(alpha, "api")
        assert file_paths(api) == ["a.md"]
        assert [n.kind for n in (active, alpha, api)] == [
            NodeKind.PROPERTY_GROUP,
            NodeKind.TAG,
            NodeKind.TAG,
        ]

    def test_partial_match_excluded_by_default(self, vault, status_then_project):
        vault.add("a.md", status="active")

        tree = vault.builder().build_from_hierarchy(view(*status_then_project))

        assert tree.children == []
        assert tree.file_count == 0

    def test_partial_match_shown_when_enabled(self, vault, status_then_project):
        vault.add("a.md", status="active")
        vault.add("b.md", ["project/alpha/api"], status="active")

        tree = vault.builder().build_from_hierarchy(
            view(*status_then_project, show_partial_matches=True)
        )

        active = child(tree, "active")
        assert file_paths(active) == ["a.md"]
        assert active.file_count == 2

    def test_first_level_misses_never_shown(self, vault, status_then_project):
        vault.add("a.md", ["project/alpha/api"])

        tree = vault.builder().build_from_hierarchy(
            view(*status_then_project, show_partial_matches=True)
        )

        assert tree.file_count == 0

    def test_tag_then_property(self, vault):
        vault.add("a.md", ["project/alpha"], status="active")
        vault.add("b.md", ["project/alpha"])

        tree = vault.builder().build_from_hierarchy(
            view(TagLevel(key="project"), PropertyLevel(key="status"))
        )

        alpha = child(tree, "alpha")
        assert names(alpha) == ["active"]
        assert file_paths(child(alpha, "active")) == ["a.md"]

    def test_root_tag_filters_documents(self, vault):
        vault.add("a.md", ["project/alpha"], status="active")
        vault.add("b.md", ["personal"], status="active")

        tree = vault.builder().build_from_hierarchy(
            view(PropertyLevel(key="status"), root_tag="project")
        )

        assert file_paths(child(tree, "active")) == ["a.md"]


# ── Tests: Virtual levels ────────────────────────────────────────────────


class TestVirtualLevels:
    @pytest.fixture
    def documents(self, vault):
        vault.add("a.md", ["project/alpha/api"], status="active")
        vault.add("b.md", ["project/alpha/web"])
        vault.add("c.md", ["project/beta/cli"], status="done")
        return vault

    def test_next_level_interleaved(self, documents):
        config = view(
            TagLevel(key="project", depth=2, virtual=True),
            PropertyLevel(key="status"),
        )

        tree = documents.builder().build_from_hierarchy(config)

        alpha = child(tree, "alpha")
        active = child(alpha, "active")
        assert active.level_index == 1
        assert file_paths(child(active, "api")) == ["a.md"]
        assert file_paths(child(child(tree, "beta"), "done")) == []
        assert file_paths(child(child(child(tree, "beta"), "done"), "cli")) == ["c.md"]

    def test_non_matching_documents_continue(self, documents):
        config = view(
            TagLevel(key="project", depth=2, virtual=True),
            PropertyLevel(key="status"),
            show_partial_matches=True,
        )

        tree = documents.builder().build_from_hierarchy(config)

        alpha = child(tree, "alpha")
        assert names(alpha) == ["active", "web"]
        assert file_paths(child(alpha, "web")) == ["b.md"]

    def test_without_virtual_property_comes_after(self, documents):
        config = view(TagLevel(key="project", depth=2), PropertyLevel(key="status"))

        tree = documents.builder().build_from_hierarchy(config)

        api = child(child(tree, "alpha"), "api")
        assert file_paths(child(api, "active")) == ["a.md"]
        assert names(child(tree, "alpha")) == ["api"]


# ── Tests: Sorting in views ──────────────────────────────────────────────


class TestViewSorting:
    def test_level_sort_override(self, vault):
        vault.add("a.md", status="active")
        vault.add("b.md", status="blocked")
        vault.add("c.md", status="blocked")

        tree = vault.builder().build_from_hierarchy(
            view(PropertyLevel(key="status", sort_by="count-desc"))
        )

        assert names(tree) == ["blocked", "active"]

    def test_count_ties_break_alphabetically(self, vault):
        vault.add("a.md", status="zeta")
        vault.add("b.md", status="alpha")

        tree = vault.builder().build_from_hierarchy(
            view(PropertyLevel(key="status"), default_node_sort_mode="count-asc")
        )

        assert names(tree) == ["alpha", "zeta"]

    def test_view_state_file_sort(self, vault):
        vault.add("small.md", size=10, status="x")
        vault.add("big.md", size=99, status="x")

        tree = vault.builder().build_from_hierarchy(
            view(PropertyLevel(key="status")),
            ViewState(file_sort_mode="size-desc"),
        )

        assert file_paths(child(tree, "x")) == ["big.md", "small.md"]

    def test_none_keeps_insertion_order(self, vault):
        vault.add("a.md", status="zeta")
        vault.add("b.md", status="alpha")

        tree = vault.builder().build_from_hierarchy(
            view(PropertyLevel(key="status"), default_node_sort_mode="none")
        )

        assert names(tree) == ["zeta", "alpha"]


# ── Tests: Fast path equivalence ─────────────────────────────────────────


class TestFastPathEquivalence:
    def test_fast_path_selection(self):
        assert uses_fast_path(view(TagLevel(depth=-1)))
        assert not uses_fast_path(view(TagLevel(depth=3)))
        assert not uses_fast_path(view(TagLevel(key="project", depth=-1)))
        assert not uses_fast_path(view(TagLevel(depth=-1, virtual=True)))
        assert not uses_fast_path(view(TagLevel(depth=-1), PropertyLevel(key="status")))

    def test_same_tree_both_ways(self, vault):
        vault.add("a.md", ["project/alpha/api", "project/beta"])
        vault.add("b.md", ["project", "personal/health"])
        vault.add("c.md", ["project/alpha"])
        vault.add("d.md", ["item10", "item2"])
        vault.add("e.md", ["test", "testing/unit"])
        config = view(TagLevel(depth=-1))
        builder = vault.builder()

        fast = builder.build_from_hierarchy(config)
        general = builder.build_general(config)

        assert shape(fast) == shape(general)
        assert [n.id for n in fast.walk()] == [n.id for n in general.walk()]
