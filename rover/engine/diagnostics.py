from __future__ import annotations

import math

from .types import STATE_FIELDS, SimulationHistory

SINGULARITY_MARGIN_RAD = math.radians(5.0)


def summarize(
    history: SimulationHistory,
    singularity_margin_rad: float = SINGULARITY_MARGIN_RAD,
) -> dict[str, object]:
    """Peak values and numerical health of a finished run.

    Non-finite state is reported through ``diverged`` and ``issues`` rather
    than raised; the Euler loop itself never checks for it.
    """
    if not history.records:
        return {
            "steps": 0,
            "duration_s": 0.0,
            "final_state": {name: 0.0 for name in STATE_FIELDS},
            "max_abs_surge_mps": 0.0,
            "max_abs_sway_mps": 0.0,
            "max_abs_yaw_rate_rps": 0.0,
            "max_wheel_speed_rad_s": 0.0,
            "max_abs_pitch_rad": 0.0,
            "diverged": False,
            "first_non_finite_s": None,
            "issues": [],
        }

    max_surge = 0.0
    max_sway = 0.0
    max_yaw_rate = 0.0
    max_wheel = 0.0
    max_pitch = 0.0
    first_bad: float | None = None

    for rec in history:
        s = rec.state
        if not all(math.isfinite(x) for x in s.as_tuple()):
            first_bad = rec.time_s
            break

        max_surge = max(max_surge, abs(s.u))
        max_sway = max(max_sway, abs(s.v))
        max_yaw_rate = max(max_yaw_rate, abs(s.r))
        max_pitch = max(max_pitch, abs(s.theta))
        max_wheel = max(max_wheel, max(abs(w) for w in rec.speed_rad_s))

    issues: list[str] = []
    if first_bad is not None:
        issues.append("non_finite_state")
    if max_pitch > 0.5 * math.pi - singularity_margin_rad:
        issues.append("attitude_near_singularity")

    final = history.records[-1]
    return {
        "steps": len(history) - 1,
        "duration_s": final.time_s,
        "final_state": dict(zip(STATE_FIELDS, final.state.as_tuple())),
        "max_abs_surge_mps": max_surge,
        "max_abs_sway_mps": max_sway,
        "max_abs_yaw_rate_rps": max_yaw_rate,
        "max_wheel_speed_rad_s": max_wheel,
        "max_abs_pitch_rad": max_pitch,
        "diverged": first_bad is not None,
        "first_non_finite_s": first_bad,
        "issues": issues,
    }
