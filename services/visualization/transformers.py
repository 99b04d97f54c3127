"""
Data transformers that normalize raw query results into the shape each visualization consumes.
"""

from itertools import combinations
from typing import Any, Callable, Dict, List, Mapping
import logging

from .models import Relationship, VisualizationType, get_records, strength_for_count

logger = logging.getLogger(__name__)


def _first_present(raw: Mapping[str, Any], *names: str) -> List[Any]:
    """Records of the first non-empty field among `names`."""
    for name in names:
        records = get_records(raw, name)
        if records:
            return records
    return []


def _transform_organization(raw: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        'nodes': _first_present(raw, 'hierarchy', 'people'),
        'relationships': get_records(raw, 'relationships'),
        'departments': get_records(raw, 'departments'),
    }


def derive_relationships(meetings: List[Any]) -> List[Relationship]:
    """Count co-attendance between every pair of meeting participants."""
    pair_counts: Dict[tuple, int] = {}

    for meeting in meetings:
        if not isinstance(meeting, Mapping):
            continue
        names = []
        for participant in meeting.get('participants') or []:
            if isinstance(participant, Mapping):
                name = participant.get('name') or participant.get('email')
            else:
                name = participant
            if name and name not in names:
                names.append(str(name))

        for pair in combinations(sorted(names), 2):
            pair_counts[pair] = pair_counts.get(pair, 0) + 1

    return [
        Relationship(person1=p1, person2=p2, meeting_count=n, strength=strength_for_count(n))
        for (p1, p2), n in pair_counts.items()
    ]


def _transform_collaboration(raw: Mapping[str, Any]) -> Dict[str, Any]:
    records = _first_present(raw, 'collaborations', 'relationships')
    relationships = [Relationship.from_record(r) for r in records if isinstance(r, Mapping)]

    if not relationships:
        relationships = derive_relationships(get_records(raw, 'meetings'))

    return {
        'relationships': relationships,
        'nodes': _first_present(raw, 'participants', 'people'),
    }


def _transform_timeline(raw: Mapping[str, Any]) -> Dict[str, Any]:
    timeline = get_records(raw, 'timeline')
    if not timeline:
        timeline = [
            {
                'date': meeting.get('startTime') or meeting.get('date'),
                'count': meeting.get('count') or 1,
                'title': meeting.get('title'),
            }
            for meeting in get_records(raw, 'meetings')
            if isinstance(meeting, Mapping)
        ]
    return {'timeline': timeline}


def _transform_departments(raw: Mapping[str, Any]) -> Dict[str, Any]:
    return {'departments': _first_present(raw, 'departments', 'stats')}


def _transform_topics(raw: Mapping[str, Any]) -> Dict[str, Any]:
    return {'topics': _first_present(raw, 'topics', 'keywords')}


DATA_TRANSFORMERS: Dict[VisualizationType, Callable[[Mapping[str, Any]], Dict[str, Any]]] = {
    VisualizationType.ORGANIZATION: _transform_organization,
    VisualizationType.COLLABORATION: _transform_collaboration,
    VisualizationType.TIMELINE: _transform_timeline,
    VisualizationType.DEPARTMENTS: _transform_departments,
    VisualizationType.TOPICS: _transform_topics,
}


def transform_for_visualization(viz_type: Any, raw: Any) -> Any:
    """Transform raw result data for a visualization type; unknown types pass through unchanged."""
    try:
        transformer = DATA_TRANSFORMERS.get(VisualizationType(viz_type))
    except ValueError:
        transformer = None

    if transformer is None or not isinstance(raw, Mapping):
        return raw

    return transformer(raw)
