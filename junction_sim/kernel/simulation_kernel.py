import itertools
import logging
import math
import random
from typing import Dict, List, Optional, Sequence, Union

from junction_sim.domain.models import (
    Intersection, Road, Vehicle, Point, ParameterUpdate, SimulationSnapshot
)
from junction_sim.domain.state import SimulationState
from junction_sim.domain.errors import (
    DegenerateRequest, InvalidPath, MissingGraphNode, RouteNotFound, SimulationError
)
from junction_sim.systems.routing import Router
from junction_sim.systems.vehicle_system import VehicleSystem
from junction_sim.arbitration.junction_arbitrator import JunctionArbitrator
from junction_sim.kernel.command_queue import CommandQueue
from junction_sim.kernel.commands import Command
from junction_sim.kernel.snapshot_builder import SnapshotBuilder
from junction_sim.domain import config

logger = logging.getLogger(__name__)

class SimulationKernel:
    """Owns the simulation state and advances it one tick at a time.

    Vehicles are updated in list (spawn) order and every effect, including
    junction claims, is applied immediately, so a vehicle sees the claims made
    by vehicles updated before it in the same tick. Structural edits and
    parameter changes coming from outside are queued and applied at the start
    of the next tick.
    """

    def __init__(self):
        self.state = SimulationState()
        self.dt = config.TICK_DT
        self.command_queue = CommandQueue()
        self.snapshot_builder = SnapshotBuilder()
        self.rng = random.Random()
        self.initialized = False
        self._vehicle_ids = itertools.count(1)
        self._wire()

    def _wire(self):
        self.router = Router(self.state.road_network)
        self.arbitrator = JunctionArbitrator(self.state.road_network, self.state.occupancy, self.state.policy)
        self.vehicle_system = VehicleSystem(self.state.road_network, self.arbitrator)

    def initialize(self, seed: int = 42, sample_map: bool = True):
        self.state = SimulationState()
        self.command_queue.clear()
        self.rng = random.Random(seed)
        self._vehicle_ids = itertools.count(1)
        self._wire()
        if sample_map:
            self.load_sample_map()
        self.initialized = True
        logger.info("Simulation Kernel Initialized with Seed %s", seed)

    # Tick driver

    def queue_command(self, command: Command):
        self.command_queue.add(command)

    def process_commands(self):
        commands = self.command_queue.pop_all()
        while commands:
            cmd = commands.popleft()
            try:
                cmd.execute(self)
            except SimulationError as exc:
                logger.warning("Dropped %s: %s", type(cmd).__name__, exc)

    def run_tick(self):
        """Background loop hook: applies queued commands, advances only while playing."""
        if not self.initialized:
            self.initialize()
        if self.state.playing:
            self.tick(self.dt)
        else:
            self.process_commands()

    def tick(self, dt: float):
        self.process_commands()

        dt = min(max(dt, 0.0), config.MAX_DT)
        if dt == 0.0:
            return

        self.arbitrator.index.rebuild(self.state.vehicles)
        dropped = set()
        for v in self.state.vehicles:
            try:
                self.vehicle_system.update(v, dt)
            except MissingGraphNode as exc:
                logger.warning("Dropping vehicle %s: %s", v.id, exc)
                self.arbitrator.index.remove(v)
                self.arbitrator.release(v)
                dropped.add(v.id)

        active = []
        for v in self.state.vehicles:
            if v.arrived or v.id in dropped:
                self.arbitrator.release(v)
                continue
            active.append(v)
        self.state.vehicles = active

        self.state.time += dt
        self.state.tick_id += 1

    # Spawning

    def spawn_vehicle(self, path: Sequence[str]) -> str:
        path = tuple(path)
        if len(path) < 2:
            raise InvalidPath(f"A path needs at least two intersections, got {len(path)}")
        network = self.state.road_network
        for a_id, b_id in zip(path, path[1:]):
            if network.get_road(a_id, b_id) is None:
                for node_id in (a_id, b_id):
                    if not network.has_intersection(node_id):
                        raise MissingGraphNode(node_id)
                raise InvalidPath(f"No road from {a_id} to {b_id}")

        start = network.get_intersection(path[0])
        following = network.get_intersection(path[1])
        params = self.state.params
        vehicle = Vehicle(
            id=f"v-{next(self._vehicle_ids)}",
            path=path,
            x=start.x,
            y=start.y,
            heading=math.atan2(following.y - start.y, following.x - start.x),
            target_speed=params.target_speed,
            reaction_time=params.reaction,
            accel=params.accel,
            decel=params.decel,
        )
        self.state.vehicles.append(vehicle)
        return vehicle.id

    def spawn_vehicles(self, count: int) -> int:
        """Spawns up to ``count`` vehicles on random routes, returns how many were placed."""
        intersections = self.state.road_network.intersections()
        if len(intersections) < 2:
            return 0

        by_id = {i.id: i for i in intersections}
        origins = [by_id[i] for i in self.state.spawn_origins if i in by_id]
        start_pool = origins or intersections

        spawned = 0
        for _ in range(count):
            start = self.rng.choice(start_pool)
            end = self.rng.choice(intersections)
            guard = 0
            while end.id == start.id and guard < config.MAX_GOAL_ATTEMPTS:
                end = self.rng.choice(intersections)
                guard += 1
            try:
                path = self.router.find_path(start.id, end.id)
            except (DegenerateRequest, RouteNotFound) as exc:
                logger.debug("Skipped spawn: %s", exc)
                continue
            self.spawn_vehicle(path)
            spawned += 1
        return spawned

    # Parameters

    def set_parameters(self, updates: Union[ParameterUpdate, Dict[str, float]]):
        if not isinstance(updates, ParameterUpdate):
            updates = ParameterUpdate(**updates)
        changes = updates.model_dump(exclude_none=True)
        self.state.params = self.state.params.model_copy(update=changes)

        params = self.state.params
        for v in self.state.vehicles:
            v.reaction_time = params.reaction
            v.accel = params.accel
            v.decel = params.decel
            v.target_speed = params.target_speed
            if v.speed > v.target_speed:
                v.speed = v.target_speed

    def set_playing(self, playing: bool):
        self.state.playing = playing

    # Map editing

    def add_intersection(self, point: Point) -> Intersection:
        return self.state.road_network.add_intersection(point)

    def connect(self, a_id: str, b_id: str):
        return self.state.road_network.connect(a_id, b_id)

    def move_intersection(self, intersection_id: str, point: Point) -> Intersection:
        return self.state.road_network.move_intersection(intersection_id, point)

    def find_intersection_at(self, point: Point) -> Optional[Intersection]:
        return self.state.road_network.find_intersection_at(point)

    def reset_vehicles(self):
        self.state.vehicles = []
        self.state.occupancy.clear()

    def reset(self):
        self.state.road_network.clear()
        self.state.spawn_origins = []
        self.reset_vehicles()
        logger.info("Map reset")

    def load_sample_map(self):
        self.reset()
        nodes = {
            key: self.add_intersection(Point(x=x, y=y))
            for key, (x, y) in config.SAMPLE_LAYOUT.items()
        }
        for arm in ("north", "south", "west", "east"):
            self.connect(nodes[arm].id, nodes["center"].id)
        self.state.spawn_origins = [nodes[key].id for key in config.SAMPLE_ENTRANCES]
        logger.info("Sample map loaded: %d intersections", len(nodes))

    # Read-only accessors

    def get_state(self) -> SimulationSnapshot:
        return self.snapshot_builder.build(self.state)

    def intersections(self) -> List[Intersection]:
        return self.state.road_network.intersections()

    def roads(self) -> List[Road]:
        return self.state.road_network.roads()

    def vehicles(self) -> List[Vehicle]:
        return list(self.state.vehicles)
