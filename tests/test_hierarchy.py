"""
Tests for organization hierarchy construction.
"""

from services.visualization.hierarchy import build_forest
from services.visualization.models import PersonNode


def _person(node_id, manager_id=None, **fields):
    return {"id": node_id, "managerId": manager_id, "name": fields.pop("name", node_id.upper()), **fields}


class TestBuildForest:
    """Test forest construction from manager ids."""

    def test_chain(self):
        forest = build_forest([_person("a"), _person("b", "a"), _person("c", "b")])

        assert [root.id for root in forest.roots] == ["a"]
        a = forest.roots[0]
        assert [child.id for child in a.children] == ["b"]
        assert [child.id for child in a.children[0].children] == ["c"]
        assert a.children[0].children[0].children == []
        assert [n.depth for n in forest.walk()] == [0, 1, 2]

    def test_unknown_manager_is_not_attached(self):
        forest = build_forest([_person("a"), _person("b", "a"), _person("c", "b"), _person("d", "zzz")])

        assert "d" not in [node.id for node in forest.walk()]
        assert [root.id for root in forest.roots] == ["a"]
        assert forest.unreachable == ["d"]

    def test_children_keep_input_order(self):
        forest = build_forest([_person("x", "r"), _person("r"), _person("y", "r"), _person("w", "r")])
        assert [child.id for child in forest.roots[0].children] == ["x", "y", "w"]

    def test_multiple_roots(self):
        forest = build_forest([_person("a"), _person("b", ""), _person("c", "b")])
        assert [root.id for root in forest.roots] == ["a", "b"]

    def test_empty_input(self):
        forest = build_forest([])
        assert forest.roots == []
        assert forest.unreachable == []
        assert build_forest(None).roots == []

    def test_manager_cycle_is_unreachable(self):
        forest = build_forest([_person("a"), _person("b", "c"), _person("c", "b"), _person("s", "s")])

        assert [node.id for node in forest.walk()] == ["a"]
        assert sorted(forest.unreachable) == ["b", "c", "s"]

    def test_duplicate_id_is_truncated(self):
        forest = build_forest([_person("a"), _person("b", "a"), _person("b", "a"), _person("c", "b")])

        a = forest.roots[0]
        assert [child.id for child in a.children] == ["b", "b"]
        first, second = a.children
        assert not first.truncated and [c.id for c in first.children] == ["c"]
        assert second.truncated and second.children == []
        assert forest.unreachable == []

    def test_each_id_placed_once_untruncated(self):
        forest = build_forest([_person("a"), _person("b", "a"), _person("a", "b")])
        placed = [node.id for node in forest.walk() if not node.truncated]
        assert len(placed) == len(set(placed))

    def test_accepts_person_nodes(self):
        nodes = [PersonNode(id="a"), PersonNode(id="b", manager_id="a")]
        forest = build_forest(nodes)
        assert forest.roots[0].children[0].person is nodes[1]

    def test_parent_ids_and_find(self):
        forest = build_forest([_person("a"), _person("b", "a"), _person("c", "a")])
        assert forest.parent_ids() == ["a"]
        assert forest.find("c").depth == 1
        assert forest.find("nobody") is None


class TestPersonNode:
    """Test defaults for malformed person records."""

    def test_missing_fields_default(self):
        node = PersonNode.from_record({"id": 7})
        assert node.id == "7"
        assert node.name == "Unknown"
        assert node.title == "No title"
        assert node.initial == "?"
        assert node.manager_id is None

    def test_role_used_as_title(self):
        node = PersonNode.from_record({"id": "a", "name": "alice", "role": "Lead", "manager_id": "b"})
        assert node.title == "Lead"
        assert node.initial == "A"
        assert node.manager_id == "b"

    def test_non_numeric_meeting_count(self):
        assert PersonNode.from_record({"id": "a", "meetingCount": "many"}).meeting_count == 0


class TestMalformedRecords:

    def test_non_mapping_records_skipped(self):
        forest = build_forest([_person("a"), "garbage", None, _person("b", "a")])
        assert [node.id for node in forest.walk()] == ["a", "b"]
