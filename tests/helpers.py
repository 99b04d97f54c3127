"""
Helpers for inspecting rendered Dash component trees.
"""


def iter_components(component):
    """Yield a component and every component nested in its children"""
    stack = [component]
    while stack:
        current = stack.pop()
        if isinstance(current, (list, tuple)):
            stack.extend(reversed(current))
            continue
        if current is None or isinstance(current, (str, int, float)):
            continue
        yield current
        stack.append(getattr(current, 'children', None))


def find_ids(component, id_type):
    """Dict ids of the given pattern type, in document order"""
    found = []
    for current in iter_components(component):
        component_id = getattr(current, 'id', None)
        if isinstance(component_id, dict) and component_id.get('type') == id_type:
            found.append(component_id)
    return found


def find_by_id(component, component_id):
    for current in iter_components(component):
        if getattr(current, 'id', None) == component_id:
            return current
    return None
