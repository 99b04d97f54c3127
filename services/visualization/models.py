"""
Data model for chat visualizations: descriptors, people and collaboration relationships.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional
import logging

logger = logging.getLogger(__name__)

RESULT_SET_FIELDS = ('meetings', 'people', 'relationships', 'departments', 'topics', 'timeline')

STRENGTH_TIERS = ('weak', 'medium', 'strong')


class VisualizationType(str, Enum):
    """Chart representations the chat surface knows how to render."""
    ORGANIZATION = "organization"
    COLLABORATION = "collaboration"
    TIMELINE = "timeline"
    DEPARTMENTS = "departments"
    TOPICS = "topics"


@dataclass(frozen=True)
class VisualizationDescriptor:
    """
    Instruction to render one chart.

    `data` is the result set the chart was selected from (the same object, not a copy).
    """
    type: VisualizationType
    title: str
    data: Any = field(default=None, compare=False, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "title": self.title}


def get_records(result_set: Optional[Mapping[str, Any]], name: str) -> List[Any]:
    """
    Return the records stored under `name` in a result set.

    Absent fields, None values and non-sequence values all read as empty.
    """
    if not isinstance(result_set, Mapping):
        return []
    value = result_set.get(name)
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def is_root_reference(manager_id: Any) -> bool:
    return manager_id is None or manager_id == ''


@dataclass(frozen=True)
class PersonNode:
    """A person in the organization, linked to a manager by id."""
    id: str
    name: str = "Unknown"
    title: str = "No title"
    department: str = ""
    manager_id: Optional[str] = None
    is_manager: bool = False
    meeting_count: int = 0

    @property
    def initial(self) -> str:
        """Avatar glyph: first letter of the name, '?' when the name is missing."""
        if self.name and self.name != "Unknown":
            return self.name[0].upper()
        return "?"

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "PersonNode":
        """Build a node from a raw person record, defaulting missing fields."""
        manager_id = record.get('managerId', record.get('manager_id'))
        meeting_count = record.get('meetingCount', record.get('meeting_count')) or 0
        try:
            meeting_count = int(meeting_count)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring non-numeric meeting count {meeting_count!r} for person {record.get('id')!r}")
            meeting_count = 0

        return cls(
            id=str(record.get('id', '')),
            name=record.get('name') or "Unknown",
            title=record.get('title') or record.get('role') or "No title",
            department=record.get('department') or "",
            manager_id=None if is_root_reference(manager_id) else str(manager_id),
            is_manager=bool(record.get('isManager', record.get('is_manager', False))),
            meeting_count=meeting_count,
        )


def strength_for_count(meeting_count: int) -> str:
    """Coarse strength tier for a number of shared meetings."""
    if meeting_count >= 10:
        return 'strong'
    if meeting_count >= 5:
        return 'medium'
    return 'weak'


@dataclass(frozen=True)
class Relationship:
    """Collaboration between two people."""
    person1: str
    person2: str
    meeting_count: int = 0
    strength: str = 'weak'

    def __post_init__(self):
        if self.strength not in STRENGTH_TIERS:
            raise ValueError(f"Unknown strength tier: {self.strength!r} (expected one of {', '.join(STRENGTH_TIERS)})")

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Relationship":
        """Parse a raw relationship, deriving the strength tier when it is missing or unknown."""
        try:
            meeting_count = int(record.get('meetingCount', record.get('meeting_count')) or 0)
        except (TypeError, ValueError):
            meeting_count = 0

        strength = record.get('strength')
        if strength not in STRENGTH_TIERS:
            if strength is not None:
                logger.warning(f"Unknown strength {strength!r} between {record.get('person1')} and {record.get('person2')}, deriving from meeting count")
            strength = strength_for_count(meeting_count)

        return cls(
            person1=str(record.get('person1', '')),
            person2=str(record.get('person2', '')),
            meeting_count=meeting_count,
            strength=strength,
        )


class NodeState(str, Enum):
    """Visibility of a hierarchy node's subtree."""
    VISIBLE = "visible"
    HIDDEN = "hidden"

    def toggled(self) -> "NodeState":
        return NodeState.HIDDEN if self is NodeState.VISIBLE else NodeState.VISIBLE

    @property
    def indicator(self) -> str:
        """Disclosure chevron orientation: down when expanded, right when collapsed."""
        return "expanded" if self is NodeState.VISIBLE else "collapsed"
