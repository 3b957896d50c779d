"""Rotator angle conversions for a camera field rotator.

Angles handled here
-------------------
- Rotator angle (A): the rotator's mechanical angle in circular mode,
  [0, 360) counter-clockwise.
- Camera position angle (PA): the camera orientation on the sky,
  (-180, 180] counter-clockwise.
- Offset angle: the calibration offset between the two, also in PA form.

Relations (mount not flipped):
    A      = range360(PA - offset)
    PA     = range_pa(unwrap(A) + offset)
    offset = range_pa(PA - unwrap(A))

After a meridian flip the tube is rotated by 180 degrees relative to the
rotator, so the relations pick up a 180 degree term whenever the current
pier side differs from the pier side recorded at calibration time.

Session model
-------------
``RotatorSession`` holds the state for one observing session: the offset,
the calibration pier side, the image pier side and the flipped-mount flag.
Collaborators are injected:

- ``settings``: a ``SettingsStore`` (offset and calibration pier side).
- ``mount_resolver``: a ``MountResolver`` mapping the configuration id to a
  mount handle that reports its pier side and pier-side changes.

The mount calls ``on_mount_pier_side_changed`` on every change; the session
recomputes the flipped flag and forwards the new side to its own listeners.
"""

from __future__ import annotations

import logging
import threading
from typing import List, Optional

from solaris_alignment.align_core.angles import range360, range_pa, unwrap_circular
from solaris_alignment.align_core.model import (
    Mount,
    MountResolver,
    PierSide,
    PierSideListener,
    SettingsStore,
)

logger = logging.getLogger(__name__)


class SessionNotInitializedError(RuntimeError):
    """Raised when a session is used before ``initialize`` or after ``release``."""


def smallest_angle_difference(diff_deg: float) -> float:
    """Fold a [0, 360) difference onto the shorter arc (350 -> 10)."""
    if diff_deg > 180.0:
        return 360.0 - diff_deg
    return diff_deg


class RotatorSession:
    def __init__(
        self, settings: SettingsStore, mount_resolver: MountResolver
    ) -> None:
        self._settings = settings
        self._mount_resolver = mount_resolver
        self._lock = threading.RLock()
        self._listeners: List[PierSideListener] = []
        self._reset()

    def _reset(self) -> None:
        self._configuration_id: Optional[str] = None
        self._mount: Optional[Mount] = None
        self._offset = 0.0
        self._flipped_mount = False
        self._calibration_pier_side = PierSide.UNKNOWN
        self._image_pier_side = PierSide.UNKNOWN
        self._initialized = False

    # ----- lifecycle -----

    def initialize(self, configuration_id: str) -> None:
        """Load settings for ``configuration_id`` and attach to its mount.

        Re-initializing an active session releases it first.
        """
        if self._initialized:
            self.release()
        offset = float(self._settings.get_offset(configuration_id))
        cal_side = PierSide.parse(
            self._settings.get_calibration_pier_side(configuration_id)
        )
        mount = self._mount_resolver.get_mount(configuration_id)
        with self._lock:
            self._configuration_id = configuration_id
            self._offset = offset
            self._calibration_pier_side = cal_side
            self._mount = mount
            self._initialized = True
            if mount is not None:
                self._flipped_mount = self._is_flipped(PierSide.parse(mount.pier_side))
        if mount is not None:
            mount.subscribe_pier_side(self.on_mount_pier_side_changed)
        else:
            logger.warning(
                "No mount resolved for '%s'; pier side is unknown and no flip "
                "compensation will be applied",
                configuration_id,
            )
        logger.info(
            "Rotator session '%s' initialized: offset=%.2f deg, calibration "
            "pier side=%s, flipped=%s",
            configuration_id,
            offset,
            cal_side.value,
            self._flipped_mount,
        )

    def release(self) -> None:
        """Detach from the mount and drop all derived state and listeners."""
        with self._lock:
            mount = self._mount
            configuration_id = self._configuration_id
            self._reset()
            self._listeners = []
        if mount is not None:
            mount.unsubscribe_pier_side(self.on_mount_pier_side_changed)
        if configuration_id is not None:
            logger.info("Rotator session '%s' released", configuration_id)

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise SessionNotInitializedError(
                "RotatorSession used before initialize() or after release()"
            )

    # ----- pier side -----

    def _is_flipped(self, side: PierSide) -> bool:
        if side is PierSide.UNKNOWN:
            return False
        return side != self._calibration_pier_side

    def on_mount_pier_side_changed(self, side: PierSide) -> None:
        """Entry point for the mount observer on every pier-side change."""
        side = PierSide.parse(side)
        with self._lock:
            if not self._initialized:
                logger.debug("Ignoring pier side %s on a released session", side)
                return
            self._flipped_mount = self._is_flipped(side)
            flipped = self._flipped_mount
            listeners = list(self._listeners)
        logger.info("Mount pier side changed to %s (flipped=%s)", side.value, flipped)
        for listener in listeners:
            listener(side)

    def subscribe(self, listener: PierSideListener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def unsubscribe(self, listener: PierSideListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    @property
    def mount_pier_side(self) -> PierSide:
        """Current mount pier side, UNKNOWN while no mount is resolved."""
        mount = self._mount
        if mount is None:
            return PierSide.UNKNOWN
        return PierSide.parse(mount.pier_side)

    @property
    def image_pier_side(self) -> PierSide:
        return self._image_pier_side

    @image_pier_side.setter
    def image_pier_side(self, side: PierSide) -> None:
        with self._lock:
            self._image_pier_side = PierSide.parse(side)

    @property
    def calibration_pier_side(self) -> PierSide:
        return self._calibration_pier_side

    @property
    def flipped_mount(self) -> bool:
        return self._flipped_mount

    @property
    def offset(self) -> float:
        return self._offset

    @property
    def configuration_id(self) -> Optional[str]:
        return self._configuration_id

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    # ----- angle conversions -----

    def rotator_angle_from_position(self, position_angle: float) -> float:
        """Rotator angle in [0, 360) that gives the camera ``position_angle``."""
        self._require_initialized()
        with self._lock:
            flipped, offset = self._flipped_mount, self._offset
        if flipped:
            position_angle += 180.0
        return range360(position_angle - offset)

    def position_angle_from_rotator(
        self, rotator_angle: float, image_flipped: bool = False
    ) -> float:
        """Camera position angle in (-180, 180] for a rotator angle.

        When exactly one of mount and image is flipped, the image orientation
        is turned by 180 degrees relative to the mechanical rotation.
        """
        self._require_initialized()
        with self._lock:
            flipped, offset = self._flipped_mount, self._offset
        position_angle = unwrap_circular(rotator_angle) + offset
        if flipped != bool(image_flipped):
            if position_angle > 0:
                position_angle -= 180.0
            else:
                position_angle += 180.0
        return range_pa(position_angle)

    def offset_angle_from_rotator_and_position(
        self, rotator_angle: float, position_angle: float
    ) -> float:
        """Calibration offset implied by a measured rotator / camera PA pair."""
        self._require_initialized()
        with self._lock:
            flipped = self._flipped_mount
        offset = position_angle - unwrap_circular(rotator_angle)
        if flipped:
            offset -= 180.0
        return range_pa(offset)

    def set_offset(self, offset_deg: float) -> None:
        """Store a new calibration offset and persist it."""
        self._require_initialized()
        with self._lock:
            self._offset = float(offset_deg)
            configuration_id = self._configuration_id
        self._settings.set_offset(configuration_id, float(offset_deg))
        logger.info(
            "Rotator offset for '%s' set to %.2f deg", configuration_id, offset_deg
        )

    def detect_image_flip(self) -> bool:
        """Whether a captured image needs an extra 180 degree compensation.

        True when exactly one of "mount flipped" and "image taken on the
        calibration pier side" holds. Always False while the image pier side
        is unknown.
        """
        with self._lock:
            image_side = self._image_pier_side
            flipped = self._flipped_mount
            cal_side = self._calibration_pier_side
        if image_side is PierSide.UNKNOWN:
            return False
        return flipped != (image_side == cal_side)

    smallest_angle_difference = staticmethod(smallest_angle_difference)


__all__ = [
    "RotatorSession",
    "SessionNotInitializedError",
    "smallest_angle_difference",
]
