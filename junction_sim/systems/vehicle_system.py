import math
from typing import Optional, Tuple
from junction_sim.domain.models import Vehicle
from junction_sim.domain.graph import RoadNetwork
from junction_sim.domain import config
from junction_sim.arbitration.junction_arbitrator import JunctionArbitrator, YieldReason

def lerp_angle(a: float, b: float, t: float) -> float:
    delta = (b - a + math.pi) % (2 * math.pi) - math.pi
    return a + delta * t

class VehicleSystem:
    """Per-tick car-following, braking and heading update along a vehicle's path."""

    def __init__(self, road_network: RoadNetwork, arbitrator: JunctionArbitrator):
        self.road_network = road_network
        self.arbitrator = arbitrator

    def update(self, vehicle: Vehicle, dt: float):
        if vehicle.arrived or dt <= 0:
            return

        origin = self.road_network.get_intersection(vehicle.origin_id)
        target = self.road_network.get_intersection(vehicle.target_id)
        seg_length = max(math.hypot(target.x - origin.x, target.y - origin.y), config.MIN_LENGTH)
        dir_x = (target.x - origin.x) / seg_length
        dir_y = (target.y - origin.y) / seg_length

        remaining = math.hypot(target.x - vehicle.x, target.y - vehicle.y)
        vehicle.heading = lerp_angle(vehicle.heading, math.atan2(dir_y, dir_x), config.HEADING_BLEND)

        # A. Junction arbitration
        reason, blocker = self.arbitrator.assess(vehicle, remaining)
        must_yield = reason is not None
        self.arbitrator.try_claim(vehicle, remaining, must_yield)

        braking_distance = vehicle.speed ** 2 / (2 * vehicle.decel) + config.BRAKING_MARGIN
        junction_ahead = target.is_junction and vehicle.held_junction != target.id
        brake_for_junction = junction_ahead and remaining < braking_distance

        # B. Car following
        leader = self.leader_ahead(vehicle, dir_x, dir_y)
        too_close = False
        if leader is not None:
            lead_vehicle, gap = leader
            follow_gap = max(config.MIN_FOLLOW_GAP, vehicle.speed * vehicle.reaction_time + config.FOLLOW_BUFFER)
            too_close = gap < config.MIN_FOLLOW_GAP or (gap < follow_gap and lead_vehicle.speed <= vehicle.speed)

        # C. Speed with reaction delay
        if brake_for_junction or must_yield or too_close:
            vehicle.reaction_timer += dt
            if vehicle.reaction_timer >= vehicle.reaction_time:
                vehicle.speed = max(0.0, vehicle.speed - vehicle.decel * dt)
        else:
            vehicle.reaction_timer = 0.0
            if vehicle.speed < vehicle.target_speed:
                vehicle.speed = vehicle.speed + vehicle.accel * dt
        vehicle.speed = min(max(vehicle.speed, 0.0), vehicle.target_speed)

        # D. Integrate, never past the stop line while yielding or into the leader
        step = vehicle.speed * dt
        limit = None
        if must_yield:
            limit = remaining - config.STOP_LINE
        if leader is not None:
            leader_limit = leader[1] - config.MIN_FOLLOW_GAP
            limit = leader_limit if limit is None else min(limit, leader_limit)
        if limit is not None and step > limit:
            step = max(0.0, limit)
            vehicle.speed = 0.0

        vehicle.x += dir_x * step
        vehicle.y += dir_y * step

        # Both standing still means nobody will give way.
        if reason == YieldReason.RIGHT_OF_WAY and vehicle.speed == 0.0 and blocker.speed == 0.0:
            vehicle.wait_timer += dt

        # E. Release a junction once it is cleared
        self.arbitrator.release_if_cleared(vehicle)

        # F. Advance to the next segment
        to_x = target.x - vehicle.x
        to_y = target.y - vehicle.y
        along = to_x * dir_x + to_y * dir_y
        if math.hypot(to_x, to_y) < config.ARRIVAL_THRESHOLD or along <= 0:
            self._advance(vehicle)

    def _advance(self, vehicle: Vehicle):
        old_target = vehicle.target_id
        vehicle.segment_index += 1
        vehicle.wait_timer = 0.0
        self.arbitrator.index.move(vehicle, old_target)

        if vehicle.arrived:
            self.arbitrator.release(vehicle)
            return

        following = self.road_network.get_intersection(vehicle.target_id)
        vehicle.heading = math.atan2(following.y - vehicle.y, following.x - vehicle.x)

    def leader_ahead(self, vehicle: Vehicle, dir_x: float, dir_y: float) -> Optional[Tuple[Vehicle, float]]:
        """Closest vehicle ahead on the same road, with its distance along the road.

        Vehicles at exactly the same spot (e.g. spawned together) are ordered
        by who entered the road first.
        """
        closest = None
        seen_self = False
        for other in self.arbitrator.index.approaching(vehicle.target_id):
            if other.id == vehicle.id:
                seen_self = True
                continue
            if other.origin_id != vehicle.origin_id or other.target_id != vehicle.target_id:
                continue

            dx = other.x - vehicle.x
            dy = other.y - vehicle.y
            projection = dx * dir_x + dy * dir_y
            lateral = abs(dx * dir_y - dy * dir_x)
            if lateral >= config.LANE_TOLERANCE:
                continue
            if projection < 0 or (projection == 0 and seen_self):
                continue
            if closest is None or projection < closest[1]:
                closest = (other, projection)
        return closest
