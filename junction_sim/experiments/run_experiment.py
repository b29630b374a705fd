import json
import logging
import time
from junction_sim.kernel.simulation_kernel import SimulationKernel

logger = logging.getLogger(__name__)

def run_headless_experiment(output_path: str, seed: int = 42, duration_ticks: int = 1200, spawn_count: int = 20):
    """Runs the sample map without a UI and writes per-tick metrics as JSON."""
    kernel = SimulationKernel()
    kernel.initialize(seed=seed)
    spawned = kernel.spawn_vehicles(spawn_count)

    results = []

    start_time = time.time()
    for i in range(duration_ticks):
        kernel.tick(kernel.dt)
        kernel.state.occupancy.assert_consistent(kernel.state.vehicles)
        vehicles = kernel.state.vehicles
        results.append({
            "tick": i,
            "vehicle_count": len(vehicles),
            "held_junctions": len(kernel.state.occupancy.held()),
            "mean_speed": sum(v.speed for v in vehicles) / len(vehicles) if vehicles else 0.0
        })

    end_time = time.time()
    logger.info("Experiment finished in %.4fs (%d vehicles spawned)", end_time - start_time, spawned)

    with open(output_path, 'w') as f:
        json.dump({"seed": seed, "spawned": spawned, "ticks": results}, f, indent=2)
    return results

if __name__ == "__main__":
    import sys
    logging.basicConfig(level=logging.INFO)
    if len(sys.argv) > 1:
        run_headless_experiment(sys.argv[1], seed=int(sys.argv[2]) if len(sys.argv) > 2 else 42)
    else:
        print("Usage: python -m junction_sim.experiments.run_experiment <output> [seed]")
