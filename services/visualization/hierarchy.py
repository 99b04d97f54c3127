"""
Organization hierarchy construction from flat manager relationships.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Set, Union
import logging

from .models import PersonNode

logger = logging.getLogger(__name__)


@dataclass
class HierarchyNode:
    """A person placed in the hierarchy, with their direct reports in input order."""
    person: PersonNode
    children: List["HierarchyNode"] = field(default_factory=list)
    depth: int = 0
    # Set when the person was already placed elsewhere in the tree
    truncated: bool = False

    @property
    def id(self) -> str:
        return self.person.id

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    def walk(self) -> Iterable["HierarchyNode"]:
        """Yield this node and every descendant, depth first in display order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


@dataclass
class HierarchyForest:
    roots: List[HierarchyNode] = field(default_factory=list)
    # Input ids that no root reaches (unknown manager or manager cycle)
    unreachable: List[str] = field(default_factory=list)

    def walk(self) -> Iterable[HierarchyNode]:
        for root in self.roots:
            yield from root.walk()

    def find(self, node_id: str) -> Union[HierarchyNode, None]:
        for node in self.walk():
            if node.id == node_id and not node.truncated:
                return node
        return None

    def parent_ids(self) -> List[str]:
        """Ids of placed nodes that have at least one child."""
        return [node.id for node in self.walk() if node.has_children]


def build_forest(nodes: Iterable[Union[PersonNode, Mapping[str, Any]]]) -> HierarchyForest:
    """
    Build the organization forest from flat person records.

    Roots are the people without a manager. Each node's children are the people
    whose manager id equals its id, in input order. A person whose id was already
    placed is emitted once more as a truncated leaf, so duplicate ids and manager
    cycles never repeat a subtree or loop.
    """
    people = []
    for node in nodes or []:
        if isinstance(node, PersonNode):
            people.append(node)
        elif isinstance(node, Mapping):
            people.append(PersonNode.from_record(node))
        else:
            logger.warning(f"Skipping malformed person record: {node!r}")

    reports: Dict[str, List[int]] = {}
    for index, person in enumerate(people):
        if person.manager_id is not None:
            reports.setdefault(person.manager_id, []).append(index)

    forest = HierarchyForest()
    placed_ids: Set[str] = set()
    placed_records: Set[int] = set()

    def place(index: int, depth: int) -> HierarchyNode:
        person = people[index]
        placed_records.add(index)
        if person.id in placed_ids:
            logger.warning(f"Person {person.id} already placed in hierarchy, truncating")
            return HierarchyNode(person=person, depth=depth, truncated=True)
        placed_ids.add(person.id)
        return HierarchyNode(person=person, depth=depth)

    for index, person in enumerate(people):
        if person.manager_id is not None:
            continue

        root = place(index, 0)
        forest.roots.append(root)

        pending = deque([root])
        while pending:
            parent = pending.popleft()
            if parent.truncated:
                continue
            for report_index in reports.get(parent.id, []):
                child = place(report_index, parent.depth + 1)
                parent.children.append(child)
                pending.append(child)

    forest.unreachable = [person.id for index, person in enumerate(people) if index not in placed_records]
    if forest.unreachable:
        logger.info(f"{len(forest.unreachable)} people not reachable from any root: {forest.unreachable}")

    return forest
