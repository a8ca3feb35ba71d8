#!/usr/bin/env python3
"""Middleware-free core of the initial pose publisher.

PoseReinitializer keeps the last EKF pose, the last NDT score and the
arm state, and decides when a randomized initial pose goes out.
"""
import logging
from enum import Enum

import numpy as np

# row-major 6x6 pose covariance: x, y, yaw
COVARIANCE_TEMPLATE = {0: 0.25, 7: 0.25, 35: 0.06853891909122467}


def covariance_template():
    cov = np.zeros(36, dtype=np.float64)
    for idx, value in COVARIANCE_TEMPLATE.items():
        cov[idx] = value
    return cov


def check_timer_period(period):
    if period <= 0.0:
        raise ValueError(f"timer_period must be > 0, got {period}")
    return float(period)


class AuthorityCommand(Enum):
    ARM = "DMP"
    ACTIVATE = "TSUKUBA"

    @classmethod
    def parse(cls, token):
        """Return the matching command, or None for any other token."""
        try:
            return cls(token)
        except ValueError:
            return None


class ArmState(Enum):
    UNARMED = "unarmed"
    ARMED = "armed"


class PoseEstimate:
    def __init__(self, x=0.0, y=0.0, z=0.0,
                 orientation=(0.0, 0.0, 0.0, 1.0),
                 stamp=(0, 0), frame_id=""):
        self.x, self.y, self.z = float(x), float(y), float(z)
        # quaternion as (x, y, z, w)
        self.orientation = tuple(float(q) for q in orientation)
        self.stamp = stamp
        self.frame_id = frame_id

    def __repr__(self):
        return (f"PoseEstimate(x={self.x}, y={self.y}, z={self.z}, "
                f"orientation={self.orientation}, frame_id={self.frame_id!r})")


class RandomizedPose:
    def __init__(self, x, y, z, orientation, covariance, frame_id):
        self.x, self.y, self.z = x, y, z
        self.orientation = orientation
        self.covariance = covariance
        self.frame_id = frame_id


class PoseReinitializer:
    """Arms on "DMP", emits a perturbed copy of the last pose on "TSUKUBA".

    - publish: callable receiving each RandomizedPose
    - request_shutdown: callable without arguments, fired on the shutdown button
    - rng: numpy Generator used for the x/y offsets
    """

    def __init__(self, publish, request_shutdown, rng=None,
                 min_offset: float = -2.0, max_offset: float = 2.0,
                 shutdown_button: int = 1, frame_id: str = "map",
                 score_gate: bool = False, score_threshold: float = 2.3,
                 logger=None, talk: bool = True):
        if min_offset > max_offset:
            raise ValueError(f"min_offset ({min_offset}) > max_offset ({max_offset})")
        if shutdown_button < 0:
            raise ValueError(f"shutdown_button must be >= 0, got {shutdown_button}")

        self._publish = publish
        self._request_shutdown = request_shutdown
        self.rng = rng if rng is not None else np.random.default_rng()
        self.min_offset = float(min_offset)
        self.max_offset = float(max_offset)
        self.shutdown_button = shutdown_button
        self.frame_id = frame_id
        self.score_gate = score_gate
        self.score_threshold = score_threshold
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self.talk = talk

        # --- State ---
        self.pose = PoseEstimate()
        self.score = np.float32(0.0)
        self.state = ArmState.UNARMED
        self.shutdown_requested = False

    @property
    def armed(self):
        return self.state is ArmState.ARMED

    def on_pose_update(self, pose: PoseEstimate):
        self.pose = pose
        if self.talk:
            self.logger.info(f"Received ekf_pose: [{pose.x:.2f}, {pose.y:.2f}]")

    def on_score_update(self, score):
        self.score = np.float32(score)
        if self.talk:
            self.logger.info(f"Received score: {self.score:.2f}")

    def on_authority_command(self, token):
        self.logger.info(f"Received authority message: {token}")
        command = AuthorityCommand.parse(token)

        if command is AuthorityCommand.ARM:
            self.state = ArmState.ARMED
            self.logger.info("DMP mode activated. Waiting for activation...")
        elif command is AuthorityCommand.ACTIVATE:
            if not self.armed:
                self.logger.info("TSUKUBA received before DMP, ignoring")
                return None
            if self.score_gate and self.score >= self.score_threshold:
                self.logger.info(
                    f"Score {self.score:.2f} >= {self.score_threshold:.2f}, "
                    "localization still trusted, not reseeding")
                return None
            self.logger.info("TSUKUBA mode activated. Publishing random initialpose...")
            return self.emit_randomized_pose()
        return None

    def on_controller_input(self, buttons) -> bool:
        idx = self.shutdown_button
        if idx < len(buttons) and buttons[idx]:
            if self.shutdown_requested:
                return False
            self.shutdown_requested = True
            self.logger.info(f"Button {idx} was pressed! Shutting down...")
            self._request_shutdown()
            return True
        return False

    def on_timer_tick(self):
        if not self.armed:
            self.logger.info("Waiting for DMP message...")
        # armed: periodic republication not enabled

    def random_offset(self):
        # uniform on [min_offset, max_offset)
        return float(self.rng.uniform(self.min_offset, self.max_offset))

    def emit_randomized_pose(self):
        x = self.pose.x + self.random_offset()
        y = self.pose.y + self.random_offset()
        out = RandomizedPose(
            x=x, y=y, z=0.0,
            orientation=self.pose.orientation,
            covariance=covariance_template(),
            frame_id=self.frame_id,
        )
        self._publish(out)
        self.logger.info(f"Published initial pose: [{x:.2f}, {y:.2f}]")
        return out
