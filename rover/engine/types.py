from __future__ import annotations

from dataclasses import astuple, dataclass, field, fields
from typing import Sequence

WHEEL_COUNT = 4


@dataclass(frozen=True)
class VehicleState:
    # Body-frame linear velocity (m/s).
    u: float = 0.0
    v: float = 0.0
    w: float = 0.0
    # Body-frame angular rate (rad/s).
    p: float = 0.0
    q: float = 0.0
    r: float = 0.0
    # World-frame position (m), z down.
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    # Euler attitude (rad): roll, pitch, yaw.
    phi: float = 0.0
    theta: float = 0.0
    psi: float = 0.0

    def as_tuple(self) -> tuple[float, ...]:
        return astuple(self)

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "VehicleState":
        if len(values) != len(STATE_FIELDS):
            raise ValueError(f"VehicleState needs {len(STATE_FIELDS)} values, got {len(values)}")
        return cls(*(float(x) for x in values))

    def advanced(self, rate: "VehicleState", dt_s: float) -> "VehicleState":
        return VehicleState(*(a + b * dt_s for a, b in zip(astuple(self), astuple(rate))))


STATE_FIELDS = tuple(f.name for f in fields(VehicleState))


@dataclass(frozen=True)
class WheelState:
    current_a: tuple[float, ...] = (0.0,) * WHEEL_COUNT
    speed_rad_s: tuple[float, ...] = (0.0,) * WHEEL_COUNT

    def __post_init__(self):
        object.__setattr__(self, "current_a", wheel_vector(self.current_a, "current_a"))
        object.__setattr__(self, "speed_rad_s", wheel_vector(self.speed_rad_s, "speed_rad_s"))


@dataclass(frozen=True)
class DisturbanceLoad:
    heave_n: float = 0.0
    roll_nm: float = 0.0
    pitch_nm: float = 0.0

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "DisturbanceLoad":
        if isinstance(values, DisturbanceLoad):
            return values
        if len(values) != 3:
            raise ValueError(f"disturbance needs 3 values, got {len(values)}")
        return cls(float(values[0]), float(values[1]), float(values[2]))


@dataclass(frozen=True)
class MotorOutput:
    torque_nm: tuple[float, ...]
    current_rate: tuple[float, ...]
    speed_rate: tuple[float, ...]


@dataclass(frozen=True)
class StepRecord:
    time_s: float
    voltage_v: tuple[float, ...]
    torque_nm: tuple[float, ...]
    state: VehicleState
    state_rate: VehicleState
    current_a: tuple[float, ...]
    current_rate: tuple[float, ...]
    speed_rad_s: tuple[float, ...]
    speed_rate: tuple[float, ...]


@dataclass
class SimulationHistory:
    """Ordered per-step records; the first one is the t=0 seed row."""

    records: list[StepRecord] = field(default_factory=list)

    def append(self, record: StepRecord) -> None:
        self.records.append(record)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.records)

    def __getitem__(self, i: int) -> StepRecord:
        return self.records[i]

    def times(self) -> list[float]:
        return [rec.time_s for rec in self.records]

    def series(self, name: str) -> list[float]:
        if name not in STATE_FIELDS:
            raise KeyError(f"unknown state field: {name}")
        return [getattr(rec.state, name) for rec in self.records]

    def wheel_series(self, wheel: int) -> list[float]:
        return [rec.speed_rad_s[wheel] for rec in self.records]

    @property
    def final_state(self) -> VehicleState | None:
        if not self.records:
            return None
        return self.records[-1].state


def wheel_vector(values: Sequence[float], name: str = "wheel vector") -> tuple[float, ...]:
    if len(values) != WHEEL_COUNT:
        raise ValueError(f"{name} needs {WHEEL_COUNT} values, got {len(values)}")
    return tuple(float(x) for x in values)
