from __future__ import annotations

import bisect
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import yaml

from .config import ConfigurationError
from .types import WHEEL_COUNT, DisturbanceLoad, VehicleState, wheel_vector


@dataclass(frozen=True)
class Segment:
    duration_s: float
    volts: tuple[float, ...]
    label: str = ""


class ConstantVoltage:
    def __init__(self, volts: Sequence[float]):
        self.volts = wheel_vector(volts, "voltage")

    def __call__(self, step: int, time_s: float, state: VehicleState) -> tuple[float, ...]:
        return self.volts


class ConstantDisturbance:
    def __init__(self, load: DisturbanceLoad | Sequence[float] = DisturbanceLoad()):
        self.load = DisturbanceLoad.from_sequence(load)

    def __call__(self, step: int, time_s: float, state: VehicleState) -> DisturbanceLoad:
        return self.load


class VoltageSchedule:
    """Piecewise-constant wheel voltages, looked up by simulation time.

    Each segment covers ``[start, start + duration_s)``. After the last
    segment every wheel gets 0 V.
    """

    def __init__(self, segments: list[Segment]):
        if not segments:
            raise ConfigurationError("voltage schedule needs at least one segment")
        for i, seg in enumerate(segments):
            if seg.duration_s <= 0.0:
                raise ConfigurationError(f"segment {i + 1} has non-positive duration {seg.duration_s}")
        self.segments = segments

        self._ends: list[float] = []
        t = 0.0
        for seg in segments:
            t += seg.duration_s
            self._ends.append(t)

    @classmethod
    def from_yaml(cls, path: Path) -> "VoltageSchedule":
        try:
            with Path(path).open("r", encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        except OSError as exc:
            raise ConfigurationError(f"Cannot read scenario file {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Scenario file {path} is not valid YAML: {exc}") from exc

        if not isinstance(raw, dict) or not isinstance(raw.get("segments"), list):
            raise ConfigurationError(f"Invalid scenario file: {path}")

        segs: list[Segment] = []
        for item in raw["segments"]:
            if not isinstance(item, dict):
                raise ConfigurationError(f"segment entry must be a mapping in {path}")
            try:
                volts = item["volts"]
                if not isinstance(volts, list):
                    volts = [volts] * WHEEL_COUNT
                segs.append(
                    Segment(
                        duration_s=float(item["duration_s"]),
                        volts=wheel_vector(volts, "volts"),
                        label=str(item.get("label", "")),
                    )
                )
            except (KeyError, TypeError, ValueError) as exc:
                raise ConfigurationError(f"Invalid segment in {path}: {exc}") from exc
        return cls(segs)

    @property
    def duration_s(self) -> float:
        return self._ends[-1]

    def segment_index(self, time_s: float) -> int | None:
        i = bisect.bisect_right(self._ends, time_s)
        if i >= len(self.segments):
            return None
        return i

    def current_label(self, time_s: float) -> str:
        i = self.segment_index(time_s)
        if i is None:
            return "DONE"
        return self.segments[i].label or f"SEGMENT_{i + 1}"

    def __call__(self, step: int, time_s: float, state: VehicleState) -> tuple[float, ...]:
        i = self.segment_index(time_s)
        if i is None:
            return (0.0,) * WHEEL_COUNT
        return self.segments[i].volts
