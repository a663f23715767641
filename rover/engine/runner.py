from __future__ import annotations

import argparse
import logging
import math
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Sequence, Union

from .config import (
    DEFAULT_CONFIG_DIR,
    ConfigManager,
    ConfigurationError,
    MotorParams,
    RunParams,
    VehicleParams,
    default_params,
)
from .diagnostics import summarize
from .motor import MotorModel
from .physics import DynamicsEngine
from .schedule import ConstantDisturbance, ConstantVoltage, VoltageSchedule
from .types import (
    DisturbanceLoad,
    STATE_FIELDS,
    SimulationHistory,
    StepRecord,
    VehicleState,
    WheelState,
    wheel_vector,
)

logger = logging.getLogger(__name__)

VoltageSource = Callable[[int, float, VehicleState], Sequence[float]]
DisturbanceSource = Callable[[int, float, VehicleState], Union[DisturbanceLoad, Sequence[float]]]
StopCondition = Callable[[int, float, VehicleState], bool]


def _default_motor() -> MotorParams:
    return default_params()[0]


def _default_vehicle() -> VehicleParams:
    return default_params()[1]


@dataclass
class SimulationConfig:
    dt_s: float
    duration_s: float
    voltage_source: VoltageSource
    disturbance_source: DisturbanceSource = field(default_factory=ConstantDisturbance)
    initial_state: VehicleState = field(default_factory=VehicleState)
    initial_wheel_state: WheelState = field(default_factory=WheelState)
    motor: MotorParams = field(default_factory=_default_motor)
    vehicle: VehicleParams = field(default_factory=_default_vehicle)
    log_every_s: float = 1.0
    should_stop: StopCondition | None = None

    def validate(self) -> None:
        RunParams(self.dt_s, self.duration_s, self.log_every_s).validate()
        self.motor.validate()
        self.vehicle.validate()
        for name, value in zip(STATE_FIELDS, self.initial_state.as_tuple()):
            if not math.isfinite(value):
                raise ConfigurationError(f"initial_state.{name} must be finite, got {value}")
        wheels = self.initial_wheel_state
        for name, values in (("current_a", wheels.current_a), ("speed_rad_s", wheels.speed_rad_s)):
            for j, value in enumerate(values):
                if not math.isfinite(value):
                    raise ConfigurationError(f"initial_wheel_state.{name}[{j}] must be finite, got {value}")
        if not callable(self.voltage_source):
            raise ConfigurationError("voltage_source must be callable")
        if not callable(self.disturbance_source):
            raise ConfigurationError("disturbance_source must be callable")


class Simulation:
    """Fixed-step explicit-Euler integration of the motor and body models.

    Owns the evolving vehicle state, the wheel currents and speeds, and the
    history. Records are taken after each update, so record ``n`` holds the
    state at ``n * dt`` together with the derivatives evaluated there.
    """

    def __init__(self, config: SimulationConfig):
        config.validate()
        self.config = config
        self.motor = MotorModel(config.motor)
        self.dyn = DynamicsEngine(config.vehicle)
        # Never step past duration_s; the epsilon keeps exact multiples whole.
        self.step_count = math.floor(config.duration_s / config.dt_s + 1e-9)

        self.history = SimulationHistory()
        self.state = config.initial_state
        self.current_a = config.initial_wheel_state.current_a
        self.speed_rad_s = config.initial_wheel_state.speed_rad_s
        self.step_index = 0

    def _evaluate(self, step: int) -> StepRecord:
        cfg = self.config
        t = step * cfg.dt_s

        volts = wheel_vector(cfg.voltage_source(step, t, self.state), "voltage")
        disturbance = DisturbanceLoad.from_sequence(cfg.disturbance_source(step, t, self.state))

        motor_out = self.motor.evaluate(volts, self.current_a, self.speed_rad_s)
        rate, wrapped = self.dyn.evaluate(self.state, motor_out.torque_nm, disturbance, t)
        self.state = wrapped

        record = StepRecord(
            time_s=t,
            voltage_v=volts,
            torque_nm=motor_out.torque_nm,
            state=wrapped,
            state_rate=rate,
            current_a=self.current_a,
            current_rate=motor_out.current_rate,
            speed_rad_s=self.speed_rad_s,
            speed_rate=motor_out.speed_rate,
        )
        self.history.append(record)
        return record

    def _integrate(self, record: StepRecord) -> None:
        dt = self.config.dt_s
        self.state = record.state.advanced(record.state_rate, dt)
        self.current_a = tuple(i + di * dt for i, di in zip(record.current_a, record.current_rate))
        self.speed_rad_s = tuple(w + dw * dt for w, dw in zip(record.speed_rad_s, record.speed_rate))

    def run(self) -> SimulationHistory:
        cfg = self.config
        logger.info(
            "Starting simulation: dt=%.6gs duration=%.6gs steps=%d",
            cfg.dt_s,
            cfg.duration_s,
            self.step_count,
        )
        log_every = max(1, round(cfg.log_every_s / cfg.dt_s)) if cfg.log_every_s > 0 else 0

        record = self._evaluate(0)
        while self.step_index < self.step_count:
            self.step_index += 1
            self._integrate(record)
            record = self._evaluate(self.step_index)

            if log_every and self.step_index % log_every == 0:
                s = record.state
                logger.debug(
                    "t=%.3fs [%s] u=%.4f v=%.4f r=%.4f x=%.3f y=%.3f psi=%.4f",
                    record.time_s,
                    _source_label(cfg.voltage_source, record.time_s),
                    s.u,
                    s.v,
                    s.r,
                    s.x,
                    s.y,
                    s.psi,
                )
            if cfg.should_stop is not None and cfg.should_stop(self.step_index, record.time_s, record.state):
                logger.info("Stop requested at t=%.6gs (step %d)", record.time_s, self.step_index)
                break

        logger.info("Simulation finished: %d records", len(self.history))
        return self.history


def _source_label(source: VoltageSource, time_s: float) -> str:
    if isinstance(source, VoltageSchedule):
        return source.current_label(time_s)
    return type(source).__name__


def run_simulation(config: SimulationConfig) -> SimulationHistory:
    return Simulation(config).run()


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Open-loop four-wheel rover dynamics simulator")
    p.add_argument("--config-dir", default=str(DEFAULT_CONFIG_DIR), type=str)
    p.add_argument("--scenario", default=None, type=str, help="YAML voltage schedule")
    p.add_argument("--volts", default=None, type=float, nargs="+", help="Constant voltage, one value or four")
    p.add_argument("--duration", default=None, type=float)
    p.add_argument("--dt", default=None, type=float)
    p.add_argument("--verbose", "-v", action="store_true")
    return p


def main(argv: Sequence[str] | None = None) -> None:
    args = _build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        motor, vehicle, run = ConfigManager(Path(args.config_dir)).load_all()
        duration_s = args.duration if args.duration is not None else run.duration_s
        if args.scenario:
            source: VoltageSource = VoltageSchedule.from_yaml(Path(args.scenario))
            if args.duration is None:
                duration_s = source.duration_s
        else:
            volts = args.volts or [12.0]
            if len(volts) == 1:
                volts = volts * 4
            source = ConstantVoltage(volts)

        config = SimulationConfig(
            dt_s=args.dt if args.dt is not None else run.dt_s,
            duration_s=duration_s,
            voltage_source=source,
            motor=motor,
            vehicle=vehicle,
            log_every_s=run.log_every_s,
        )
        sim_start = time.perf_counter()
        history = run_simulation(config)
    except ValueError as exc:
        raise SystemExit(f"error: {exc}") from exc

    sim_elapsed = time.perf_counter() - sim_start
    summary = summarize(history)
    final = summary["final_state"]

    print(f"Simulation complete in {sim_elapsed:.3f}s (sim time {summary['duration_s']:.3f}s, {summary['steps']} steps)")
    print(
        f"final pose: x={final['x']:.3f} m, y={final['y']:.3f} m, z={final['z']:.3f} m, "
        f"psi={final['psi']:.4f} rad"
    )
    print(f"final surge: {final['u']:.4f} m/s, peak |surge|: {summary['max_abs_surge_mps']:.4f} m/s")
    print(f"peak yaw rate: {summary['max_abs_yaw_rate_rps']:.4f} rad/s")
    print(f"peak wheel speed: {summary['max_wheel_speed_rad_s']:.3f} rad/s")
    if summary["issues"]:
        print(f"issues: {summary['issues']}")


if __name__ == "__main__":
    main()
