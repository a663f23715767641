from __future__ import annotations

import math
from dataclasses import dataclass, fields
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


class ConfigurationError(ValueError):
    """Invalid run or physical parameters, raised before any stepping."""


@dataclass(frozen=True)
class MotorParams:
    viscous_friction_nms: float
    rotor_inertia_kgm2: float
    kt_nm_per_a: float
    ke_v_s_per_rad: float
    inductance_h: float
    resistance_ohm: float
    efficiency_slope_per_a: float
    efficiency_offset: float
    base_friction_nms: float

    def validate(self) -> None:
        _require_finite(self)
        _require_positive(self, "rotor_inertia_kgm2", "inductance_h")


@dataclass(frozen=True)
class VehicleParams:
    mass_kg: float
    gravity_mps2: float
    jx_kgm2: float
    jy_kgm2: float
    jz_kgm2: float
    wheel_radius_m: float
    moment_arm_m: float
    damping_u: float
    damping_v: float
    damping_w: float
    damping_p: float
    damping_q: float
    damping_r: float
    air_drag_u: float

    def validate(self) -> None:
        _require_finite(self)
        _require_positive(self, "mass_kg", "jx_kgm2", "jy_kgm2", "jz_kgm2", "wheel_radius_m")


@dataclass(frozen=True)
class RunParams:
    dt_s: float
    duration_s: float
    log_every_s: float = 1.0

    def validate(self) -> None:
        _require_finite(self)
        if self.dt_s <= 0.0:
            raise ConfigurationError(f"dt_s must be positive, got {self.dt_s}")
        if self.duration_s < self.dt_s:
            raise ConfigurationError(
                f"duration_s ({self.duration_s}) must be at least dt_s ({self.dt_s})"
            )


class ConfigManager:
    def __init__(self, config_dir: Path = DEFAULT_CONFIG_DIR):
        self.config_dir = Path(config_dir)
        self.paths = {
            "motor": self.config_dir / "motor.yaml",
            "vehicle": self.config_dir / "vehicle.yaml",
            "run": self.config_dir / "run.yaml",
        }

    def load_all(self) -> tuple[MotorParams, VehicleParams, RunParams]:
        motor = _build(MotorParams, self._load_yaml("motor"), self.paths["motor"])
        vehicle = _build(VehicleParams, self._load_yaml("vehicle"), self.paths["vehicle"])
        run = _build(RunParams, self._load_yaml("run"), self.paths["run"])
        motor.validate()
        vehicle.validate()
        run.validate()
        return motor, vehicle, run

    def _load_yaml(self, name: str) -> dict[str, Any]:
        path = self.paths[name]
        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except OSError as exc:
            raise ConfigurationError(f"Cannot read config {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Config {path} is not valid YAML: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config {path} is not a mapping")
        return data


@lru_cache(maxsize=None)
def default_params() -> tuple[MotorParams, VehicleParams, RunParams]:
    return ConfigManager(DEFAULT_CONFIG_DIR).load_all()


def _build(cls, raw: dict[str, Any], path: Path):
    names = {f.name for f in fields(cls)}
    unknown = sorted(set(raw) - names)
    if unknown:
        raise ConfigurationError(f"Config {path} has unknown keys: {', '.join(unknown)}")
    try:
        return cls(**{k: float(v) for k, v in raw.items()})
    except TypeError as exc:
        raise ConfigurationError(f"Config {path} is incomplete: {exc}") from exc
    except ValueError as exc:
        raise ConfigurationError(f"Config {path} has a non-numeric value: {exc}") from exc


def _require_finite(params) -> None:
    for f in fields(params):
        value = getattr(params, f.name)
        if not math.isfinite(value):
            raise ConfigurationError(f"{type(params).__name__}.{f.name} must be finite, got {value}")


def _require_positive(params, *names: str) -> None:
    for name in names:
        value = getattr(params, name)
        if value <= 0.0:
            raise ConfigurationError(f"{type(params).__name__}.{name} must be positive, got {value}")
