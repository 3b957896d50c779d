#!/usr/bin/env python3
"""Polar-axis and rotator-angle helper.

-------------------------------------------------------------------------------
Available subcommands
-------------------------------------------------------------------------------
pole      Mount rotation axis from three (or 3*N) hour-angle/dec samples.
rotator   Rotator angle that gives a requested camera position angle.
camera    Camera position angle for a given rotator angle.
offset    Calibration offset from a measured rotator angle / camera PA pair.

-------------------------------------------------------------------------------
Command-line usage examples
-------------------------------------------------------------------------------
1. Pole axis from three samples given inline (degrees):

   python scripts/polar_align_cli.py pole \
       --point 330 40 --point 0 40 --point 30 40 --north

2. Pole axes from a sample file (every three rows form one estimate):

   python scripts/polar_align_cli.py pole --samples samples/run1.tsv

3. Rotator angle for camera PA 45 with a stored offset, mount on the east:

   python scripts/polar_align_cli.py rotator --pa 45 \
       --settings rotator.toml --train "Main Scope" --pier-side east

4. Calibrate: rotator reads 10, plate solve says PA 5, store the offset:

   python scripts/polar_align_cli.py offset --rotator 10 --pa 5 \
       --settings rotator.toml --train "Main Scope" --save

-------------------------------------------------------------------------------
Exit status
-------------------------------------------------------------------------------
0 on success, 2 when a pole-axis estimate is degenerate (collinear samples),
1 on input errors.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from datetime import datetime, timezone
from typing import List, Optional

from solaris_alignment.align_core.model import PierSide, SkyPoint
from solaris_alignment.align_core.settings import (
    InMemorySettingsStore,
    TomlSettingsStore,
)
from solaris_alignment.align_io.samples import read_samples_tsv, sample_triples
from solaris_alignment.geometry.pole_axis import (
    is_degenerate,
    north_pole_axis,
    pole_axis,
    to_spherical,
)
from solaris_alignment.rotator.rotator_utils import RotatorSession
from solaris_alignment.rotator.static_mount import StaticMount, StaticMountResolver

logger = logging.getLogger("polar_align_cli")

EXIT_DEGENERATE = 2

_PIER_CHOICES = [s.value for s in PierSide]


def _add_session_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--settings", help="TOML settings file with stored offsets.")
    p.add_argument(
        "--train", default="default", help="Equipment configuration id."
    )
    p.add_argument(
        "--offset",
        type=float,
        help="Offset angle in degrees (overrides --settings).",
    )
    p.add_argument(
        "--pier-side",
        choices=_PIER_CHOICES,
        default="unknown",
        help="Current mount pier side.",
    )
    p.add_argument(
        "--calibration-pier-side",
        choices=_PIER_CHOICES,
        default="west",
        help="Pier side at calibration time (used with --offset).",
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="polar_align_cli",
        description="Pole-axis estimation and rotator angle conversions.",
    )
    p.add_argument("--verbose", action="store_true", help="Debug logging.")
    p.add_argument(
        "--log-dir",
        default=None,
        help="Directory where a run log will be created.",
    )
    sub = p.add_subparsers(dest="command", required=True)

    pp = sub.add_parser("pole", help="Estimate the mount rotation axis.")
    src = pp.add_mutually_exclusive_group(required=True)
    src.add_argument(
        "--point",
        nargs=2,
        type=float,
        action="append",
        metavar=("HA_DEG", "DEC_DEG"),
        help="One sample (repeat three times).",
    )
    src.add_argument("--samples", help="Sample file (TSV, see align_io.samples).")
    pp.add_argument(
        "--north",
        action="store_true",
        help="Report the axis pointing to the northern hemisphere.",
    )

    pr = sub.add_parser("rotator", help="Rotator angle for a camera PA.")
    pr.add_argument("--pa", type=float, required=True, help="Camera PA (deg).")
    _add_session_args(pr)

    pc = sub.add_parser("camera", help="Camera PA for a rotator angle.")
    pc.add_argument("--rotator", type=float, required=True, help="Rotator (deg).")
    pc.add_argument(
        "--image-pier-side",
        choices=_PIER_CHOICES,
        default="unknown",
        help="Pier side the image was taken on (detects image flips).",
    )
    pc.add_argument(
        "--image-flipped",
        action="store_true",
        help="Force the image-flipped flag instead of detecting it.",
    )
    _add_session_args(pc)

    po = sub.add_parser("offset", help="Calibration offset from A and PA.")
    po.add_argument("--rotator", type=float, required=True, help="Rotator (deg).")
    po.add_argument("--pa", type=float, required=True, help="Camera PA (deg).")
    po.add_argument(
        "--save",
        action="store_true",
        help="Persist the computed offset into --settings.",
    )
    _add_session_args(po)
    return p


def _init_logging(
    verbose: bool, log_dir: Optional[str]
) -> Optional[logging.FileHandler]:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    if not log_dir:
        return None
    os.makedirs(log_dir, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%SZ")
    path = os.path.join(log_dir, f"run_{stamp}.log")
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.INFO)
    handler.setFormatter(
        logging.Formatter("[%(asctime)s] %(levelname)s %(name)s: %(message)s")
    )
    logging.getLogger().addHandler(handler)
    return handler


def _open_session(args: argparse.Namespace) -> RotatorSession:
    if args.offset is not None:
        settings = InMemorySettingsStore(
            {args.train: args.offset},
            {args.train: PierSide.parse(args.calibration_pier_side)},
        )
    elif args.settings:
        settings = TomlSettingsStore(args.settings)
    else:
        settings = InMemorySettingsStore()
    resolver = StaticMountResolver({args.train: StaticMount(args.pier_side)})
    session = RotatorSession(settings, resolver)
    session.initialize(args.train)
    return session


def _cmd_pole(args: argparse.Namespace) -> int:
    if args.samples:
        points = read_samples_tsv(args.samples)
    else:
        points = [SkyPoint(ha, dec) for ha, dec in args.point]
    triples = sample_triples(points)
    print(f"Samples: {len(points)} ({len(triples)} estimate(s))")

    status = 0
    for i, (p1, p2, p3) in enumerate(triples, 1):
        axis = pole_axis(p1, p2, p3)
        if is_degenerate(axis):
            print(f"[{i}] degenerate: samples are collinear or coincident")
            status = EXIT_DEGENERATE
            continue
        if args.north:
            axis = north_pole_axis(axis)
        ha, dec = to_spherical(axis)
        print(
            f"[{i}] axis x={axis.x:+.6f} y={axis.y:+.6f} z={axis.z:+.6f}  "
            f"ha={ha:.4f} deg  dec={dec:+.4f} deg  "
            f"pole error={90.0 - abs(dec):.4f} deg"
        )
    return status


def _cmd_rotator(args: argparse.Namespace) -> int:
    session = _open_session(args)
    try:
        angle = session.rotator_angle_from_position(args.pa)
    finally:
        session.release()
    print(f"rotator={angle:.4f}")
    return 0


def _cmd_camera(args: argparse.Namespace) -> int:
    session = _open_session(args)
    try:
        session.image_pier_side = PierSide.parse(args.image_pier_side)
        image_flipped = args.image_flipped or session.detect_image_flip()
        pa = session.position_angle_from_rotator(args.rotator, image_flipped)
    finally:
        session.release()
    print(f"pa={pa:.4f}")
    return 0


def _cmd_offset(args: argparse.Namespace) -> int:
    if args.save and (not args.settings or args.offset is not None):
        raise ValueError("--save requires --settings and cannot be used with --offset")
    session = _open_session(args)
    try:
        offset = session.offset_angle_from_rotator_and_position(
            args.rotator, args.pa
        )
        if args.save:
            session.set_offset(offset)
            print(f"Saved offset for '{args.train}' to {args.settings}")
    finally:
        session.release()
    print(f"offset={offset:.4f}")
    return 0


_COMMANDS = {
    "pole": _cmd_pole,
    "rotator": _cmd_rotator,
    "camera": _cmd_camera,
    "offset": _cmd_offset,
}


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    root = logging.getLogger()
    saved_level = root.level
    handler = _init_logging(args.verbose, args.log_dir)
    if handler is not None:
        print(f"Log file: {handler.baseFilename}")
        root.setLevel(min(saved_level, logging.INFO))
    logger.info("Command: %s", " ".join(argv if argv is not None else sys.argv[1:]))
    try:
        return _COMMANDS[args.command](args)
    except (ValueError, FileNotFoundError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        logger.error("%s", e)
        return 1
    finally:
        if handler is not None:
            root.removeHandler(handler)
            handler.close()
            root.setLevel(saved_level)


if __name__ == "__main__":
    raise SystemExit(main())
