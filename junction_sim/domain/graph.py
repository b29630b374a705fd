import itertools
import math
import networkx as nx
from typing import List, Optional, Tuple

from junction_sim.domain import config
from junction_sim.domain.errors import MissingGraphNode
from junction_sim.domain.models import Intersection, Point, Road

class RoadNetwork:
    """Intersections and directed roads, stored in a networkx DiGraph.

    Each node carries its ``Intersection`` model under the ``intersection``
    attribute and each edge its ``Road`` under ``road``. Connecting two
    intersections always adds both directions.
    """

    def __init__(self):
        self.graph = nx.DiGraph()
        self._intersection_ids = itertools.count(101)
        self._road_ids = itertools.count(1)

    def add_intersection(self, point: Point) -> Intersection:
        intersection = Intersection(id=f"I-{next(self._intersection_ids)}", x=point.x, y=point.y)
        self.graph.add_node(intersection.id, intersection=intersection)
        return intersection

    def connect(self, a_id: str, b_id: str) -> Optional[Tuple[Road, Road]]:
        a = self.get_intersection(a_id)
        b = self.get_intersection(b_id)
        if a.id == b.id:
            return None

        road = self._add_road(a, b)
        reverse = self._add_road(b, a)
        a.connected.append(b.id)
        b.connected.append(a.id)
        return road, reverse

    def _add_road(self, source: Intersection, target: Intersection) -> Road:
        length = math.hypot(target.x - source.x, target.y - source.y)
        road = Road(id=f"R-{next(self._road_ids)}", source=source.id, target=target.id, length=length)
        self.graph.add_edge(source.id, target.id, road=road, length=length)
        return road

    def has_intersection(self, intersection_id: str) -> bool:
        return self.graph.has_node(intersection_id)

    def get_intersection(self, intersection_id: str) -> Intersection:
        if intersection_id not in self.graph:
            raise MissingGraphNode(intersection_id)
        return self.graph.nodes[intersection_id]["intersection"]

    def get_road(self, source_id: str, target_id: str) -> Optional[Road]:
        data = self.graph.get_edge_data(source_id, target_id)
        if data is None:
            return None
        return data["road"]

    def intersections(self) -> List[Intersection]:
        return [data["intersection"] for _, data in self.graph.nodes(data=True)]

    def roads(self) -> List[Road]:
        return [data["road"] for _, _, data in self.graph.edges(data=True)]

    def find_intersection_at(self, point: Point, radius: float = config.PICK_RADIUS) -> Optional[Intersection]:
        for intersection in self.intersections():
            if math.hypot(intersection.x - point.x, intersection.y - point.y) < radius:
                return intersection
        return None

    def move_intersection(self, intersection_id: str, point: Point) -> Intersection:
        # Road lengths keep the value measured at creation.
        intersection = self.get_intersection(intersection_id)
        intersection.x = point.x
        intersection.y = point.y
        return intersection

    def distance(self, a_id: str, b_id: str) -> float:
        a = self.get_intersection(a_id)
        b = self.get_intersection(b_id)
        return math.hypot(b.x - a.x, b.y - a.y)

    def clear(self):
        self.graph.clear()
