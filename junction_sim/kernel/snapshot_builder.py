from junction_sim.domain.state import SimulationState
from junction_sim.domain.models import IntersectionView, RoadView, SimulationSnapshot, VehicleView

class SnapshotBuilder:
    def build(self, state: SimulationState) -> SimulationSnapshot:
        return SimulationSnapshot(
            tick=state.tick_id,
            time=state.time,
            playing=state.playing,
            intersections=[
                IntersectionView(id=i.id, x=i.x, y=i.y, connected=list(i.connected))
                for i in state.road_network.intersections()
            ],
            roads=[
                RoadView(id=r.id, source=r.source, target=r.target, length=r.length)
                for r in state.road_network.roads()
            ],
            vehicles=[
                VehicleView(id=v.id, x=v.x, y=v.y, heading=v.heading, speed=v.speed)
                for v in state.vehicles
            ],
            occupancy=state.occupancy.held(),
        )
