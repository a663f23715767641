from __future__ import annotations

from typing import Sequence

from .config import MotorParams, default_params
from .types import WHEEL_COUNT, MotorOutput, wheel_vector


class MotorModel:
    """Brushed DC motor per wheel: armature circuit plus rotor dynamics.

    The four wheels share one parameter set and are evaluated independently.
    Torque is scaled by a current-dependent efficiency ``alpha*I + gamma``
    and is not clamped.
    """

    def __init__(self, params: MotorParams):
        self.params = params

    def wheel(self, volts: float, current_a: float, speed_rad_s: float) -> tuple[float, float, float]:
        p = self.params

        current_rate = (volts - p.resistance_ohm * current_a - p.ke_v_s_per_rad * speed_rad_s) / p.inductance_h
        speed_rate = (
            p.kt_nm_per_a * current_a
            - p.viscous_friction_nms * speed_rad_s
            - p.base_friction_nms * speed_rad_s
        ) / p.rotor_inertia_kgm2

        efficiency = p.efficiency_slope_per_a * current_a + p.efficiency_offset
        torque = p.kt_nm_per_a * current_a * efficiency
        return torque, current_rate, speed_rate

    def evaluate(
        self,
        volts: Sequence[float],
        current_a: Sequence[float],
        speed_rad_s: Sequence[float],
    ) -> MotorOutput:
        volts = wheel_vector(volts, "voltage")
        current_a = wheel_vector(current_a, "current")
        speed_rad_s = wheel_vector(speed_rad_s, "speed")

        lanes = [self.wheel(volts[j], current_a[j], speed_rad_s[j]) for j in range(WHEEL_COUNT)]
        torque, current_rate, speed_rate = zip(*lanes)
        return MotorOutput(
            torque_nm=tuple(torque),
            current_rate=tuple(current_rate),
            speed_rate=tuple(speed_rate),
        )


def evaluate_motor(
    volts: Sequence[float],
    current_a: Sequence[float],
    speed_rad_s: Sequence[float],
    params: MotorParams | None = None,
) -> MotorOutput:
    if params is None:
        params = default_params()[0]
    return MotorModel(params).evaluate(volts, current_a, speed_rad_s)
