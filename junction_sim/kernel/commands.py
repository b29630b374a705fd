from abc import ABC, abstractmethod
from typing import Any
from junction_sim.domain.models import ParameterUpdate, Point

class Command(ABC):
    @abstractmethod
    def execute(self, kernel: Any):
        pass

class AddIntersectionCommand(Command):
    def __init__(self, point: Point):
        self.point = point

    def execute(self, kernel: Any):
        return kernel.add_intersection(self.point)

class ConnectCommand(Command):
    def __init__(self, a_id: str, b_id: str):
        self.a_id = a_id
        self.b_id = b_id

    def execute(self, kernel: Any):
        return kernel.connect(self.a_id, self.b_id)

class MoveIntersectionCommand(Command):
    def __init__(self, intersection_id: str, point: Point):
        self.intersection_id = intersection_id
        self.point = point

    def execute(self, kernel: Any):
        return kernel.move_intersection(self.intersection_id, self.point)

class SpawnVehiclesCommand(Command):
    def __init__(self, count: int):
        self.count = count

    def execute(self, kernel: Any):
        return kernel.spawn_vehicles(self.count)

class SetParametersCommand(Command):
    def __init__(self, updates: ParameterUpdate):
        self.updates = updates

    def execute(self, kernel: Any):
        kernel.set_parameters(self.updates)

class SetPlaybackCommand(Command):
    def __init__(self, playing: bool):
        self.playing = playing

    def execute(self, kernel: Any):
        kernel.set_playing(self.playing)

class ResetCommand(Command):
    def execute(self, kernel: Any):
        kernel.reset()

class LoadSampleMapCommand(Command):
    def execute(self, kernel: Any):
        kernel.load_sample_map()
