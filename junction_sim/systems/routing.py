import networkx as nx
from typing import List
from junction_sim.domain.graph import RoadNetwork
from junction_sim.domain.errors import DegenerateRequest, MissingGraphNode, RouteNotFound

class Router:
    """A* between intersections.

    Straight-line distance between the current node positions is used both as
    the edge cost and as the heuristic. Every road is a straight segment, so the
    heuristic never overestimates and the returned path is a shortest one.
    """

    def __init__(self, road_network: RoadNetwork):
        self.road_network = road_network

    def find_path(self, start_id: str, goal_id: str) -> List[str]:
        for node_id in (start_id, goal_id):
            if not self.road_network.has_intersection(node_id):
                raise MissingGraphNode(node_id)
        if start_id == goal_id:
            raise DegenerateRequest(start_id)

        try:
            return nx.astar_path(
                self.road_network.graph,
                start_id,
                goal_id,
                heuristic=self.road_network.distance,
                weight=self._edge_cost,
            )
        except nx.NetworkXNoPath:
            raise RouteNotFound(start_id, goal_id) from None

    def _edge_cost(self, u: str, v: str, data) -> float:
        return self.road_network.distance(u, v)

    def path_length(self, path: List[str]) -> float:
        return sum(self.road_network.distance(a, b) for a, b in zip(path, path[1:]))
