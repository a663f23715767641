from __future__ import annotations

import pytest

from rover.engine.config import MotorParams, VehicleParams


@pytest.fixture
def motor_params() -> MotorParams:
    return MotorParams(
        viscous_friction_nms=0.01,
        rotor_inertia_kgm2=0.01,
        kt_nm_per_a=0.1,
        ke_v_s_per_rad=0.1,
        inductance_h=0.01,
        resistance_ohm=1.0,
        efficiency_slope_per_a=-0.02,
        efficiency_offset=0.9,
        base_friction_nms=0.005,
    )


@pytest.fixture
def vehicle_params() -> VehicleParams:
    return VehicleParams(
        mass_kg=20.0,
        gravity_mps2=9.81,
        jx_kgm2=0.5,
        jy_kgm2=0.8,
        jz_kgm2=1.0,
        wheel_radius_m=0.1,
        moment_arm_m=0.2,
        damping_u=5.0,
        damping_v=20.0,
        damping_w=30.0,
        damping_p=2.0,
        damping_q=2.0,
        damping_r=3.0,
        air_drag_u=0.5,
    )
