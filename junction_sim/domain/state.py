from typing import List
from pydantic import BaseModel, ConfigDict, Field
from junction_sim.domain.models import Vehicle, SimulationParameters, RightOfWayPolicy
from junction_sim.domain.graph import RoadNetwork
from junction_sim.arbitration.occupancy import OccupancyTable

class SimulationState(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    tick_id: int = 0
    time: float = 0.0
    playing: bool = False
    params: SimulationParameters = Field(default_factory=SimulationParameters)
    policy: RightOfWayPolicy = Field(default_factory=RightOfWayPolicy)

    # Graph based structure
    road_network: RoadNetwork = Field(default_factory=RoadNetwork)
    vehicles: List[Vehicle] = []
    occupancy: OccupancyTable = Field(default_factory=OccupancyTable)
    spawn_origins: List[str] = [] # Entrance nodes; empty means any intersection
