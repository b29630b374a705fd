class SimulationError(Exception):
    """Base class for every error raised by the simulation core."""


class RoutingError(SimulationError):
    pass


class RouteNotFound(RoutingError):
    def __init__(self, start_id: str, goal_id: str):
        super().__init__(f"No route from {start_id} to {goal_id}")
        self.start_id = start_id
        self.goal_id = goal_id


class DegenerateRequest(RoutingError):
    def __init__(self, node_id: str):
        super().__init__(f"Origin and destination are both {node_id}")
        self.node_id = node_id


class MissingGraphNode(SimulationError, KeyError):
    def __init__(self, node_id: str):
        super().__init__(node_id)
        self.node_id = node_id

    def __str__(self):
        return f"Intersection {self.node_id} is not in the road network"


class InvalidPath(SimulationError, ValueError):
    """A hand-built path that is too short or crosses a missing road."""
