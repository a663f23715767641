from __future__ import annotations

import math

import pytest

from rover.engine.diagnostics import summarize
from rover.engine.runner import SimulationConfig, run_simulation
from rover.engine.schedule import ConstantVoltage
from rover.engine.types import SimulationHistory, StepRecord, VehicleState


def _record(t: float, state: VehicleState) -> StepRecord:
    zeros = (0.0,) * 4
    return StepRecord(
        time_s=t,
        voltage_v=zeros,
        torque_nm=zeros,
        state=state,
        state_rate=VehicleState(),
        current_a=zeros,
        current_rate=zeros,
        speed_rad_s=(1.0, -3.0, 2.0, 0.0),
        speed_rate=zeros,
    )


def test_empty_history():
    summary = summarize(SimulationHistory())
    assert summary["steps"] == 0
    assert summary["diverged"] is False
    assert summary["issues"] == []


def test_peaks_and_final_state():
    history = SimulationHistory()
    history.append(_record(0.0, VehicleState()))
    history.append(_record(0.1, VehicleState(u=2.0, v=-0.5, r=-0.3)))
    history.append(_record(0.2, VehicleState(u=1.5, x=0.3)))

    summary = summarize(history)
    assert summary["steps"] == 2
    assert summary["duration_s"] == 0.2
    assert summary["max_abs_surge_mps"] == 2.0
    assert summary["max_abs_sway_mps"] == 0.5
    assert summary["max_abs_yaw_rate_rps"] == 0.3
    assert summary["max_wheel_speed_rad_s"] == 3.0
    assert summary["final_state"]["x"] == 0.3
    assert summary["diverged"] is False


def test_non_finite_state_is_flagged():
    history = SimulationHistory()
    history.append(_record(0.0, VehicleState(u=1.0)))
    history.append(_record(0.1, VehicleState(u=math.nan)))
    history.append(_record(0.2, VehicleState(u=math.inf)))

    summary = summarize(history)
    assert summary["diverged"] is True
    assert summary["first_non_finite_s"] == 0.1
    assert "non_finite_state" in summary["issues"]
    assert summary["max_abs_surge_mps"] == 1.0


def test_run_near_vertical_pitch_is_flagged(motor_params, vehicle_params):
    history = run_simulation(
        SimulationConfig(
            dt_s=0.001,
            duration_s=0.01,
            voltage_source=ConstantVoltage([0.0] * 4),
            initial_state=VehicleState(theta=0.5 * math.pi - 0.01),
            motor=motor_params,
            vehicle=vehicle_params,
        )
    )
    summary = summarize(history)
    assert "attitude_near_singularity" in summary["issues"]
    assert summary["max_abs_pitch_rad"] == pytest.approx(0.5 * math.pi - 0.01, abs=1e-3)


def test_clean_run_has_no_issues(motor_params, vehicle_params):
    history = run_simulation(
        SimulationConfig(
            dt_s=0.001,
            duration_s=0.5,
            voltage_source=ConstantVoltage([12.0] * 4),
            motor=motor_params,
            vehicle=vehicle_params,
        )
    )
    summary = summarize(history)
    assert summary["steps"] == 500
    assert summary["issues"] == []
    assert summary["max_abs_surge_mps"] > 0.0
