from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Sequence

from .config import VehicleParams, default_params
from .types import DisturbanceLoad, VehicleState, wheel_vector


@dataclass(frozen=True)
class BodyLoads:
    fx_n: float
    fy_n: float
    fz_n: float
    mx_nm: float
    my_nm: float
    mz_nm: float


def wrap_yaw(psi: float) -> float:
    # One correction per call.
    if psi >= math.pi:
        return psi - 2.0 * math.pi
    if psi < -math.pi:
        return psi + 2.0 * math.pi
    return psi


def slip_angle(u: float, v: float) -> float:
    speed = math.sqrt(u * u + v * v)
    if speed == 0.0:
        return 0.0
    beta = math.asin(v / speed)
    if abs(beta) > math.pi:
        beta = 0.0
    return beta


class DynamicsEngine:
    """Six-degree-of-freedom rigid body driven by four wheel torques.

    Body axes are forward/right/down; world axes are north/east/down. Pure:
    ``evaluate`` never mutates its inputs and returns the state derivative
    together with the yaw-wrapped copy of the input state.

    The Euler-rate transform divides by ``cos(theta)`` and is singular at
    ``theta = +-pi/2``. That case is not guarded.
    """

    def __init__(self, params: VehicleParams):
        self.params = params

    def evaluate(
        self,
        state: VehicleState,
        torque_nm: Sequence[float],
        disturbance: DisturbanceLoad | Sequence[float],
        time_s: float = 0.0,
    ) -> tuple[VehicleState, VehicleState]:
        p = self.params
        torque_nm = wheel_vector(torque_nm, "torque")
        disturbance = DisturbanceLoad.from_sequence(disturbance)

        state = replace(state, psi=wrap_yaw(state.psi))

        propulsion = self._propulsion(state, torque_nm, disturbance)
        damping = self._damping(state)
        gravity = self._gravity(state)

        fx = propulsion.fx_n - damping.fx_n + gravity.fx_n
        fy = propulsion.fy_n - damping.fy_n + gravity.fy_n
        fz = propulsion.fz_n - damping.fz_n + gravity.fz_n
        mx = propulsion.mx_nm - damping.mx_nm
        my = propulsion.my_nm - damping.my_nm
        mz = propulsion.mz_nm - damping.mz_nm

        u, v, w = state.u, state.v, state.w
        pr, qr, rr = state.p, state.q, state.r

        u_dot = fx / p.mass_kg + v * rr - w * qr
        v_dot = fy / p.mass_kg + w * pr - u * rr
        w_dot = fz / p.mass_kg + u * qr - v * pr

        p_dot = (mx + (p.jy_kgm2 - p.jz_kgm2) * qr * rr) / p.jx_kgm2
        q_dot = (my + (p.jz_kgm2 - p.jx_kgm2) * rr * pr) / p.jy_kgm2
        r_dot = (mz + (p.jx_kgm2 - p.jy_kgm2) * pr * qr) / p.jz_kgm2

        x_dot, y_dot, z_dot = self._position_rate(state)
        phi_dot, theta_dot, psi_dot = self._attitude_rate(state)

        rate = VehicleState(
            u=u_dot,
            v=v_dot,
            w=w_dot,
            p=p_dot,
            q=q_dot,
            r=r_dot,
            x=x_dot,
            y=y_dot,
            z=z_dot,
            phi=phi_dot,
            theta=theta_dot,
            psi=psi_dot,
        )
        return rate, state

    def _propulsion(
        self,
        state: VehicleState,
        torque_nm: tuple[float, ...],
        disturbance: DisturbanceLoad,
    ) -> BodyLoads:
        p = self.params
        wheel_force = [t / p.wheel_radius_m for t in torque_nm]
        left = wheel_force[0] + wheel_force[1]
        right = wheel_force[2] + wheel_force[3]
        total = left + right

        beta = slip_angle(state.u, state.v)
        return BodyLoads(
            fx_n=total * math.cos(beta),
            fy_n=total * math.sin(beta),
            fz_n=disturbance.heave_n,
            mx_nm=disturbance.roll_nm,
            my_nm=disturbance.pitch_nm,
            mz_nm=(left - right) * p.moment_arm_m,
        )

    def _damping(self, state: VehicleState) -> BodyLoads:
        p = self.params
        return BodyLoads(
            fx_n=p.damping_u * state.u + p.air_drag_u * state.u * abs(state.u),
            fy_n=p.damping_v * state.v,
            fz_n=p.damping_w * state.w,
            mx_nm=p.damping_p * state.p,
            my_nm=p.damping_q * state.q,
            mz_nm=p.damping_r * state.r,
        )

    def _gravity(self, state: VehicleState) -> BodyLoads:
        p = self.params
        weight = p.mass_kg * p.gravity_mps2
        c_theta = math.cos(state.theta)
        return BodyLoads(
            fx_n=-weight * math.sin(state.theta),
            fy_n=weight * c_theta * math.sin(state.phi),
            fz_n=weight * c_theta * math.cos(state.phi),
            mx_nm=0.0,
            my_nm=0.0,
            mz_nm=0.0,
        )

    @staticmethod
    def _position_rate(state: VehicleState) -> tuple[float, float, float]:
        # Z-Y-X (yaw, pitch, roll) body-to-world rotation.
        c_phi, s_phi = math.cos(state.phi), math.sin(state.phi)
        c_th, s_th = math.cos(state.theta), math.sin(state.theta)
        c_psi, s_psi = math.cos(state.psi), math.sin(state.psi)
        u, v, w = state.u, state.v, state.w

        x_dot = (
            c_psi * c_th * u
            + (c_psi * s_th * s_phi - s_psi * c_phi) * v
            + (c_psi * s_th * c_phi + s_psi * s_phi) * w
        )
        y_dot = (
            s_psi * c_th * u
            + (s_psi * s_th * s_phi + c_psi * c_phi) * v
            + (s_psi * s_th * c_phi - c_psi * s_phi) * w
        )
        z_dot = -s_th * u + c_th * s_phi * v + c_th * c_phi * w
        return x_dot, y_dot, z_dot

    @staticmethod
    def _attitude_rate(state: VehicleState) -> tuple[float, float, float]:
        c_phi, s_phi = math.cos(state.phi), math.sin(state.phi)
        c_th = math.cos(state.theta)
        t_th = math.tan(state.theta)
        q, r = state.q, state.r

        phi_dot = state.p + s_phi * t_th * q + c_phi * t_th * r
        theta_dot = c_phi * q - s_phi * r
        psi_dot = s_phi / c_th * q + c_phi / c_th * r
        return phi_dot, theta_dot, psi_dot


def evaluate_rigid_body(
    state: VehicleState | Sequence[float],
    torque_nm: Sequence[float],
    disturbance: DisturbanceLoad | Sequence[float],
    time_s: float = 0.0,
    params: VehicleParams | None = None,
) -> tuple[VehicleState, VehicleState]:
    if params is None:
        params = default_params()[1]
    if not isinstance(state, VehicleState):
        state = VehicleState.from_sequence(state)
    return DynamicsEngine(params).evaluate(state, torque_nm, disturbance, time_s)
