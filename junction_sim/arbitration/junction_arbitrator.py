import math
from enum import Enum
from typing import Dict, List, Optional, Tuple
from junction_sim.domain.models import Vehicle, RightOfWayPolicy
from junction_sim.domain.graph import RoadNetwork
from junction_sim.domain.errors import MissingGraphNode
from junction_sim.domain import config
from junction_sim.arbitration.occupancy import OccupancyTable

class YieldReason(str, Enum):
    OCCUPIED = "OCCUPIED"
    RIGHT_OF_WAY = "RIGHT_OF_WAY"

class ApproachIndex:
    """Junction id -> vehicles currently driving toward it, in update order."""

    def __init__(self):
        self._by_target: Dict[str, List[Vehicle]] = {}
        self._directions: Dict[Tuple[str, str], Tuple[float, float]] = {}

    def rebuild(self, vehicles: List[Vehicle]):
        self._by_target = {}
        self._directions = {}
        for v in vehicles:
            if v.arrived: continue
            if v.target_id not in self._by_target:
                self._by_target[v.target_id] = []
            self._by_target[v.target_id].append(v)

    def approaching(self, junction_id: str) -> List[Vehicle]:
        return self._by_target.get(junction_id, [])

    def direction(self, road_network: RoadNetwork, from_id: str, to_id: str) -> Tuple[float, float]:
        """Unit vector of a road, computed once per rebuild."""
        key = (from_id, to_id)
        if key not in self._directions:
            self._directions[key] = approach_direction(road_network, from_id, to_id)
        return self._directions[key]

    def move(self, vehicle: Vehicle, old_target: Optional[str]):
        self._discard(vehicle, old_target)
        if not vehicle.arrived:
            self._by_target.setdefault(vehicle.target_id, []).append(vehicle)

    def remove(self, vehicle: Vehicle):
        self._discard(vehicle, vehicle.target_id)

    def _discard(self, vehicle: Vehicle, target_id: Optional[str]):
        group = self._by_target.get(target_id)
        if not group: return
        self._by_target[target_id] = [v for v in group if v.id != vehicle.id]

def approach_direction(road_network: RoadNetwork, from_id: str, to_id: str) -> Tuple[float, float]:
    a = road_network.get_intersection(from_id)
    b = road_network.get_intersection(to_id)
    length = max(math.hypot(b.x - a.x, b.y - a.y), config.MIN_LENGTH)
    return (b.x - a.x) / length, (b.y - a.y) / length

def signed_angle(mine: Tuple[float, float], theirs: Tuple[float, float]) -> float:
    # Screen coordinates (y down): clockwise turns are negative.
    cross = mine[0] * theirs[1] - mine[1] * theirs[0]
    dot = mine[0] * theirs[0] + mine[1] * theirs[1]
    return math.atan2(cross, dot)

class JunctionArbitrator:
    """Decides whether a vehicle must yield at the junction it is approaching.

    Two rules are combined. Occupancy: a junction held by another vehicle
    blocks everyone else unconditionally. Right-of-way: while the junction is
    free, a vehicle gives way to any vehicle approaching the same junction from
    its right whose estimated arrival is not clearly later than its own.
    A vehicle that has been held at the stop line by the right-hand rule for
    longer than ``policy.patience`` stops deferring to it, which breaks the
    circular wait of a symmetric four-arm arrival. Occupancy is never waived.
    """

    def __init__(self, road_network: RoadNetwork, occupancy: OccupancyTable, policy: RightOfWayPolicy):
        self.road_network = road_network
        self.occupancy = occupancy
        self.policy = policy
        self.index = ApproachIndex()

    def assess(self, vehicle: Vehicle, remaining: float) -> Tuple[Optional[YieldReason], Optional[Vehicle]]:
        """Returns why the vehicle must yield (or None) and the vehicle it yields to, if known."""
        target = self.road_network.get_intersection(vehicle.target_id)
        if not target.is_junction:
            return None, None
        if vehicle.held_junction == target.id:
            return None, None
        if self.occupancy.is_held_by_other(target.id, vehicle.id):
            return YieldReason.OCCUPIED, None
        if vehicle.wait_timer >= self.policy.patience:
            return None, None
        conflict = self.conflict_on_right(vehicle, remaining)
        if conflict is not None:
            return YieldReason.RIGHT_OF_WAY, conflict
        return None, None

    def yield_reason(self, vehicle: Vehicle, remaining: float) -> Optional[YieldReason]:
        return self.assess(vehicle, remaining)[0]

    def must_yield(self, vehicle: Vehicle, remaining: float) -> bool:
        return self.yield_reason(vehicle, remaining) is not None

    def conflict_on_right(self, vehicle: Vehicle, remaining: float) -> Optional[Vehicle]:
        target = self.road_network.get_intersection(vehicle.target_id)
        mine = self.index.direction(self.road_network, vehicle.origin_id, target.id)
        floor = self.policy.eta_speed_floor
        my_eta = remaining / max(vehicle.speed, floor)

        for other in self.index.approaching(target.id):
            if other.id == vehicle.id or other.target_id != target.id:
                continue
            try:
                theirs = self.index.direction(self.road_network, other.origin_id, target.id)
            except MissingGraphNode:
                # Its own update drops it.
                continue
            if not self.is_on_right(mine, theirs):
                continue
            other_distance = math.hypot(target.x - other.x, target.y - other.y)
            time_gap = my_eta - other_distance / max(other.speed, floor)
            if time_gap > -self.policy.time_gap_tolerance:
                return other
        return None

    def is_on_right(self, mine: Tuple[float, float], theirs: Tuple[float, float]) -> bool:
        # Clockwise cone, excluding near head-on approaches.
        angle = signed_angle(mine, theirs)
        return -(math.pi - self.policy.yield_angle) < angle < -self.policy.yield_angle

    def try_claim(self, vehicle: Vehicle, remaining: float, yielding: bool) -> bool:
        target_id = vehicle.target_id
        if vehicle.held_junction == target_id:
            return True
        if yielding or remaining >= config.CLAIM_THRESHOLD:
            return False
        if not self.road_network.get_intersection(target_id).is_junction:
            return False
        if not self.occupancy.claim(target_id, vehicle.id):
            return False

        # A vehicle holds one junction at a time.
        if vehicle.held_junction is not None:
            self.occupancy.release(vehicle.held_junction, vehicle.id)
        vehicle.held_junction = target_id
        vehicle.wait_timer = 0.0
        return True

    def release_if_cleared(self, vehicle: Vehicle):
        held = vehicle.held_junction
        if held is None or held == vehicle.target_id:
            return
        try:
            node = self.road_network.get_intersection(held)
        except MissingGraphNode:
            self.release(vehicle)
            return
        if math.hypot(vehicle.x - node.x, vehicle.y - node.y) > config.CLEARANCE_DISTANCE:
            self.release(vehicle)

    def release(self, vehicle: Vehicle):
        if vehicle.held_junction is None:
            return
        self.occupancy.release(vehicle.held_junction, vehicle.id)
        vehicle.held_junction = None
