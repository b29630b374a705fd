import unittest
from junction_sim.kernel.simulation_kernel import SimulationKernel
from junction_sim.arbitration.occupancy import OccupancyTable
from junction_sim.arbitration.junction_arbitrator import JunctionArbitrator, YieldReason
from junction_sim.domain.models import Point, RightOfWayPolicy
from junction_sim.domain import config

def four_way(kernel):
    """Center at (200, 200) with arms 100 units long. Screen coordinates: north is up (smaller y)."""
    nodes = {
        "center": kernel.add_intersection(Point(x=200.0, y=200.0)),
        "west": kernel.add_intersection(Point(x=100.0, y=200.0)),
        "east": kernel.add_intersection(Point(x=300.0, y=200.0)),
        "north": kernel.add_intersection(Point(x=200.0, y=100.0)),
        "south": kernel.add_intersection(Point(x=200.0, y=300.0)),
    }
    for arm in ("west", "east", "north", "south"):
        kernel.connect(nodes[arm].id, nodes["center"].id)
    return {key: node.id for key, node in nodes.items()}

def run_until_empty(test, kernel, junction_id, max_ticks=6000):
    """Ticks until every vehicle arrived, returning the order in which vehicles held the junction."""
    occupants = []
    for _ in range(max_ticks):
        kernel.tick(0.05)
        kernel.state.occupancy.assert_consistent(kernel.state.vehicles)
        holder = kernel.state.occupancy.holder(junction_id)
        if holder is not None and (not occupants or occupants[-1] != holder):
            occupants.append(holder)
        if not kernel.state.vehicles:
            break
    test.assertEqual(kernel.state.vehicles, [], "vehicles still waiting, junction deadlocked")
    return occupants

class TestOccupancyTable(unittest.TestCase):
    def test_single_holder(self):
        table = OccupancyTable()
        self.assertTrue(table.claim("I-101", "v-1"))
        self.assertFalse(table.claim("I-101", "v-2"))
        self.assertTrue(table.claim("I-101", "v-1"))
        self.assertEqual(table.holder("I-101"), "v-1")
        self.assertTrue(table.is_held_by_other("I-101", "v-2"))
        self.assertFalse(table.is_held_by_other("I-101", "v-1"))

    def test_release_only_by_holder(self):
        table = OccupancyTable()
        table.claim("I-101", "v-1")
        self.assertFalse(table.release("I-101", "v-2"))
        self.assertEqual(table.holder("I-101"), "v-1")
        self.assertTrue(table.release("I-101", "v-1"))
        self.assertTrue(table.is_free("I-101"))
        self.assertEqual(table.held(), {})

class TestRightOfWay(unittest.TestCase):
    def setUp(self):
        self.kernel = SimulationKernel()
        self.kernel.initialize(seed=3, sample_map=False)
        self.ids = four_way(self.kernel)
        self.arbitrator = JunctionArbitrator(
            self.kernel.state.road_network, OccupancyTable(), RightOfWayPolicy()
        )

    def test_on_right_cone(self):
        east, north = (1.0, 0.0), (0.0, -1.0)
        west, south = (-1.0, 0.0), (0.0, 1.0)
        # Driving east, traffic heading north comes from the right
        self.assertTrue(self.arbitrator.is_on_right(east, north))
        self.assertFalse(self.arbitrator.is_on_right(north, east))
        self.assertTrue(self.arbitrator.is_on_right(north, west))
        self.assertTrue(self.arbitrator.is_on_right(west, south))
        self.assertFalse(self.arbitrator.is_on_right(east, east))
        self.assertFalse(self.arbitrator.is_on_right(east, west))

    def test_perpendicular_arrival_yields_to_right(self):
        ids = self.ids
        from_west = self.kernel.spawn_vehicle([ids["west"], ids["center"], ids["east"]])
        from_south = self.kernel.spawn_vehicle([ids["south"], ids["center"], ids["north"]])
        vehicles = {v.id: v for v in self.kernel.state.vehicles}

        self.kernel.tick(0.05)
        arbitrator = self.kernel.arbitrator
        self.assertEqual(arbitrator.yield_reason(vehicles[from_west], 100.0), YieldReason.RIGHT_OF_WAY)
        self.assertIsNone(arbitrator.yield_reason(vehicles[from_south], 100.0))

        occupants = run_until_empty(self, self.kernel, ids["center"])
        self.assertEqual(occupants, [from_south, from_west])

    def test_resolution_does_not_depend_on_spawn_order(self):
        ids = self.ids
        from_south = self.kernel.spawn_vehicle([ids["south"], ids["center"], ids["north"]])
        from_west = self.kernel.spawn_vehicle([ids["west"], ids["center"], ids["east"]])

        occupants = run_until_empty(self, self.kernel, ids["center"])
        self.assertEqual(occupants, [from_south, from_west])

    def test_yielding_vehicle_proceeds_after_release(self):
        ids = self.ids
        self.kernel.spawn_vehicle([ids["west"], ids["center"], ids["east"]])
        self.kernel.spawn_vehicle([ids["south"], ids["center"], ids["north"]])
        west_vehicle, south_vehicle = self.kernel.state.vehicles

        south_held = False
        released_at = None
        for tick in range(4000):
            self.kernel.tick(0.05)
            if released_at is None:
                self.assertLessEqual(west_vehicle.x, 200.0 - config.STOP_LINE + 1e-9)
                if south_vehicle.held_junction == ids["center"]:
                    south_held = True
                elif south_held:
                    released_at = tick
            elif west_vehicle.speed > 0.0:
                break

        self.assertIsNotNone(released_at)
        self.assertGreater(west_vehicle.speed, 0.0)
        self.assertLessEqual(tick - released_at, 20)

    def test_four_way_circular_arrival_resolves(self):
        ids = self.ids
        spawned = [
            self.kernel.spawn_vehicle([ids["west"], ids["center"], ids["east"]]),
            self.kernel.spawn_vehicle([ids["south"], ids["center"], ids["north"]]),
            self.kernel.spawn_vehicle([ids["east"], ids["center"], ids["west"]]),
            self.kernel.spawn_vehicle([ids["north"], ids["center"], ids["south"]]),
        ]

        # Every arm has traffic on its right, so everybody waits at first
        self.kernel.tick(0.05)
        for v in self.kernel.state.vehicles:
            self.assertEqual(self.kernel.arbitrator.yield_reason(v, 100.0), YieldReason.RIGHT_OF_WAY)

        occupants = run_until_empty(self, self.kernel, ids["center"])
        self.assertEqual(sorted(occupants), sorted(spawned))

    def test_occupied_junction_blocks_everyone_else(self):
        ids = self.ids
        self.kernel.spawn_vehicle([ids["south"], ids["center"], ids["north"]])
        vehicle = self.kernel.state.vehicles[0]
        self.kernel.state.occupancy.claim(ids["center"], "v-other")
        self.assertEqual(self.kernel.arbitrator.yield_reason(vehicle, 50.0), YieldReason.OCCUPIED)

    def test_holder_is_exempt(self):
        ids = self.ids
        self.kernel.spawn_vehicle([ids["west"], ids["center"], ids["east"]])
        self.kernel.spawn_vehicle([ids["south"], ids["center"], ids["north"]])
        west_vehicle = self.kernel.state.vehicles[0]
        self.kernel.arbitrator.index.rebuild(self.kernel.state.vehicles)

        self.assertTrue(self.kernel.arbitrator.must_yield(west_vehicle, 100.0))
        self.kernel.state.occupancy.claim(ids["center"], west_vehicle.id)
        west_vehicle.held_junction = ids["center"]
        self.assertFalse(self.kernel.arbitrator.must_yield(west_vehicle, 100.0))

    def test_claim_requires_threshold(self):
        ids = self.ids
        self.kernel.spawn_vehicle([ids["north"], ids["center"], ids["south"]])
        vehicle = self.kernel.state.vehicles[0]
        arbitrator = self.kernel.arbitrator

        self.assertFalse(arbitrator.try_claim(vehicle, config.CLAIM_THRESHOLD + 1.0, False))
        self.assertFalse(arbitrator.try_claim(vehicle, 5.0, True))
        self.assertTrue(arbitrator.try_claim(vehicle, 5.0, False))
        self.assertEqual(vehicle.held_junction, ids["center"])
        self.assertEqual(self.kernel.state.occupancy.holder(ids["center"]), vehicle.id)

    def test_road_directions_cached_per_tick(self):
        ids = self.ids
        index = self.kernel.arbitrator.index
        network = self.kernel.state.road_network
        self.assertEqual(index.direction(network, ids["west"], ids["center"]), (1.0, 0.0))

        self.kernel.move_intersection(ids["west"], Point(x=200.0, y=100.0))
        self.assertEqual(index.direction(network, ids["west"], ids["center"]), (1.0, 0.0))

        index.rebuild([])
        self.assertEqual(index.direction(network, ids["west"], ids["center"]), (0.0, 1.0))

    def test_dead_end_never_yields(self):
        ids = self.ids
        self.kernel.spawn_vehicle([ids["center"], ids["east"]])
        vehicle = self.kernel.state.vehicles[0]
        self.kernel.state.occupancy.claim(ids["east"], "v-other")
        self.assertFalse(self.kernel.arbitrator.must_yield(vehicle, 50.0))

class TestOccupancyUnderLoad(unittest.TestCase):
    def test_sample_map_keeps_mutual_exclusion(self):
        kernel = SimulationKernel()
        kernel.initialize(seed=11)
        kernel.spawn_vehicles(60)
        for i in range(3000):
            kernel.tick(0.05)
            kernel.state.occupancy.assert_consistent(kernel.state.vehicles)
            holders = [v.held_junction for v in kernel.state.vehicles if v.held_junction]
            self.assertEqual(len(holders), len(set(holders)))
            if i % 400 == 0:
                kernel.spawn_vehicles(10)

if __name__ == '__main__':
    unittest.main()
