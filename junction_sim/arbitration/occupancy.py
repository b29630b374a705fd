from typing import Dict, Iterable, Optional
from junction_sim.domain.models import Vehicle

class OccupancyTable:
    """Junction id -> id of the single vehicle allowed inside the junction box."""

    def __init__(self):
        self._holders: Dict[str, Optional[str]] = {}

    def holder(self, junction_id: str) -> Optional[str]:
        return self._holders.get(junction_id)

    def is_free(self, junction_id: str) -> bool:
        return self._holders.get(junction_id) is None

    def is_held_by_other(self, junction_id: str, vehicle_id: str) -> bool:
        holder = self._holders.get(junction_id)
        return holder is not None and holder != vehicle_id

    def claim(self, junction_id: str, vehicle_id: str) -> bool:
        # Check-then-set; only ever called from the single tick loop.
        holder = self._holders.get(junction_id)
        if holder is not None:
            return holder == vehicle_id
        self._holders[junction_id] = vehicle_id
        return True

    def release(self, junction_id: str, vehicle_id: str) -> bool:
        if self._holders.get(junction_id) != vehicle_id:
            return False
        self._holders[junction_id] = None
        return True

    def held(self) -> Dict[str, str]:
        return {junction_id: holder for junction_id, holder in self._holders.items() if holder is not None}

    def clear(self):
        self._holders.clear()

    def assert_consistent(self, vehicles: Iterable[Vehicle]):
        """Every held junction must be mirrored by exactly one vehicle's marker."""
        markers: Dict[str, str] = {}
        for v in vehicles:
            if v.held_junction is None:
                continue
            assert v.held_junction not in markers, (
                f"{v.held_junction} marked by both {markers[v.held_junction]} and {v.id}"
            )
            markers[v.held_junction] = v.id
        assert markers == self.held(), f"occupancy {self.held()} does not match vehicle markers {markers}"
