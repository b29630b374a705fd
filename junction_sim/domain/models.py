from enum import Enum
from typing import List, Optional, Dict, Tuple
from pydantic import BaseModel, Field

from junction_sim.domain import config

class SignalState(str, Enum):
    RED = "RED"
    YELLOW = "YELLOW"
    GREEN = "GREEN"

class SignalPlan(BaseModel):
    # Reserved for traffic lights; the tick never evaluates it.
    ns_green_time: float = 10.0
    ew_green_time: float = 10.0
    yellow_time: float = 3.0
    initial_ns_state: SignalState = SignalState.GREEN

class Point(BaseModel):
    x: float
    y: float

class Intersection(BaseModel):
    id: str  # e.g., "I-101"
    x: float
    y: float
    connected: List[str] = []
    signal_plan: Optional[SignalPlan] = None

    @property
    def is_junction(self) -> bool:
        return len(self.connected) > 1

class Road(BaseModel):
    id: str  # e.g., "R-1"
    source: str
    target: str
    length: float # Measured once when the road is created
    lanes: int = 1
    width: float = config.ROAD_WIDTH

class Vehicle(BaseModel):
    id: str
    path: Tuple[str, ...]
    segment_index: int = 0
    x: float
    y: float
    heading: float
    speed: float = 0.0
    target_speed: float
    reaction_time: float
    accel: float
    decel: float
    reaction_timer: float = 0.0
    wait_timer: float = 0.0 # Time held at a stop line by the right-hand rule
    held_junction: Optional[str] = None

    @property
    def arrived(self) -> bool:
        return self.segment_index >= len(self.path) - 1

    @property
    def origin_id(self) -> Optional[str]:
        if self.arrived: return None
        return self.path[self.segment_index]

    @property
    def target_id(self) -> Optional[str]:
        if self.arrived: return None
        return self.path[self.segment_index + 1]

class SimulationParameters(BaseModel):
    reaction: float = Field(default=config.DEFAULT_REACTION, ge=0.0)
    accel: float = Field(default=config.DEFAULT_ACCEL, gt=0.0)
    decel: float = Field(default=config.DEFAULT_DECEL, gt=0.0)
    target_speed: float = Field(default=config.DEFAULT_TARGET_SPEED, gt=0.0)

class ParameterUpdate(BaseModel):
    reaction: Optional[float] = Field(default=None, ge=0.0)
    accel: Optional[float] = Field(default=None, gt=0.0)
    decel: Optional[float] = Field(default=None, gt=0.0)
    target_speed: Optional[float] = Field(default=None, gt=0.0)

class RightOfWayPolicy(BaseModel):
    yield_angle: float = config.YIELD_ANGLE
    time_gap_tolerance: float = config.TIME_GAP_TOLERANCE
    eta_speed_floor: float = Field(default=config.ETA_SPEED_FLOOR, gt=0.0)
    patience: float = config.PATIENCE

# API/Response Models

class IntersectionView(BaseModel):
    id: str
    x: float
    y: float
    connected: List[str]

class RoadView(BaseModel):
    id: str
    source: str
    target: str
    length: float

class VehicleView(BaseModel):
    id: str
    x: float
    y: float
    heading: float
    speed: float

class SimulationSnapshot(BaseModel):
    tick: int
    time: float
    playing: bool
    intersections: List[IntersectionView]
    roads: List[RoadView]
    vehicles: List[VehicleView]
    occupancy: Dict[str, str]

class ConnectRequest(BaseModel):
    a: str
    b: str

class SpawnRequest(BaseModel):
    count: int = Field(default=config.DEFAULT_SPAWN_BATCH, ge=0)

class SpawnResult(BaseModel):
    requested: int
    status: str

class PlaybackToggle(BaseModel):
    playing: bool
