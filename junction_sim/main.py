import asyncio
import logging
import time
from fastapi import FastAPI, HTTPException
from typing import List
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from junction_sim.kernel.simulation_kernel import SimulationKernel
from junction_sim.kernel.commands import (
    AddIntersectionCommand, ConnectCommand, MoveIntersectionCommand, SpawnVehiclesCommand,
    SetParametersCommand, SetPlaybackCommand, ResetCommand, LoadSampleMapCommand
)
from junction_sim.domain.models import (
    SimulationSnapshot, IntersectionView, RoadView, VehicleView, Point, ConnectRequest,
    SpawnRequest, SpawnResult, ParameterUpdate, SimulationParameters, PlaybackToggle
)
from junction_sim.domain import config

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize Kernel
kernel = SimulationKernel()

# Background task for simulation loop
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Start the simulation loop
    kernel.initialize() # Deterministic seed
    loop_task = asyncio.create_task(run_simulation())
    yield
    # Shutdown
    loop_task.cancel()

app = FastAPI(lifespan=lifespan)

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

async def run_simulation():
    """Runs the simulation update loop at ~20Hz"""
    dt = 1.0 / config.TARGET_FPS

    while True:
        start_time = time.time()

        # Commands always apply; vehicles only move while playing
        kernel.run_tick()

        # Sleep to maintain frame rate
        elapsed = time.time() - start_time
        sleep_time = max(0.0, dt - elapsed)
        await asyncio.sleep(sleep_time)

def _require_intersection(intersection_id: str):
    if not kernel.state.road_network.has_intersection(intersection_id):
        raise HTTPException(status_code=404, detail=f"Intersection {intersection_id} not found")

@app.get("/api/state", response_model=SimulationSnapshot)
async def get_state():
    """Returns the full snapshot used for drawing"""
    return kernel.get_state()

@app.get("/api/intersections", response_model=List[IntersectionView])
async def get_intersections():
    return kernel.get_state().intersections

@app.get("/api/roads", response_model=List[RoadView])
async def get_roads():
    return kernel.get_state().roads

@app.get("/api/vehicles", response_model=List[VehicleView])
async def get_vehicles():
    return kernel.get_state().vehicles

@app.post("/api/intersections")
async def add_intersection(point: Point):
    """Queues a new intersection at the given point"""
    kernel.queue_command(AddIntersectionCommand(point))
    return {"status": "queued"}

@app.post("/api/intersections/{intersection_id}/move")
async def move_intersection(intersection_id: str, point: Point):
    _require_intersection(intersection_id)
    kernel.queue_command(MoveIntersectionCommand(intersection_id, point))
    return {"status": "queued"}

@app.post("/api/roads")
async def connect_intersections(request: ConnectRequest):
    """Queues a two-way road between two existing intersections"""
    _require_intersection(request.a)
    _require_intersection(request.b)
    kernel.queue_command(ConnectCommand(request.a, request.b))
    return {"status": "queued"}

@app.post("/api/vehicles/spawn", response_model=SpawnResult)
async def spawn_vehicles(request: SpawnRequest):
    kernel.queue_command(SpawnVehiclesCommand(request.count))
    return {"requested": request.count, "status": "queued"}

@app.get("/api/parameters", response_model=SimulationParameters)
async def get_parameters():
    return kernel.state.params

@app.post("/api/parameters")
async def update_parameters(updates: ParameterUpdate):
    """Applies new driver parameters to every vehicle on the next tick"""
    kernel.queue_command(SetParametersCommand(updates))
    return {"status": "Parameters Updated", "pending": updates.model_dump(exclude_none=True)}

@app.post("/api/playback")
async def set_playback(toggle: PlaybackToggle):
    kernel.queue_command(SetPlaybackCommand(toggle.playing))
    return {"status": "Playback Updated", "playing": toggle.playing}

@app.post("/api/reset")
async def reset_map():
    kernel.queue_command(ResetCommand())
    return {"status": "Map Reset"}

@app.post("/api/sample-map")
async def load_sample_map():
    kernel.queue_command(LoadSampleMapCommand())
    return {"status": "Sample Map Loaded"}

@app.get("/")
def read_root():
    return {"status": "Junction Simulation Backend Running (Deterministic Kernel)"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
