"""
Command-line entry point.

Examples
--------
# Random keys within MTSKeyboard.dat bounds, 1 packet/s to localhost
fakemts

# 500 packets/s, blob only, to another host
fakemts -r 500 -n -s 192.168.1.4

# Re-send a captured packet log with debug output
fakemts -p capture.txt -d
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from typing import Optional

import numpy as np

from .analysis.rate import SendRateMonitor
from .config.runtime import EmulatorConfig, load_config
from .core.loop import PacingLoop
from .core.packet import DEFAULT_HEADER_SIZE, PacketEncoder
from .core.pacing import MAX_RATE_HZ, PACING_MODES, Pacer
from .dataio.replay_reader import ReplayReader
from .remote.udp_sender import UdpTransport
from .sensors.calibration import load_calibration
from .sensors.generator import RandomKeyGenerator
from .tools.debug import debug_enabled

logger = logging.getLogger("fakemts")

LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


def _positive_float(text: str) -> float:
    try:
        value = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {text!r}") from None
    if not value > 0.0:
        raise argparse.ArgumentTypeError(f"rate must be positive, got {text!r}")
    return value


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="fakemts",
        description="Pretend to be the MTS keyboard: send 88-key sensor packets over UDP.",
    )
    ap.add_argument(
        "-n",
        "--no-header",
        action="store_true",
        default=None,
        help="No SuperCollider header, key blob only (header is sent by default).",
    )
    ap.add_argument(
        "-p",
        "--packet-file",
        type=str,
        default=None,
        help="Replay packets from this capture log; random keys are the default.",
    )
    ap.add_argument(
        "-r",
        "--rate",
        type=_positive_float,
        default=None,
        help=f"Packets per second (default 1; max {MAX_RATE_HZ:.0f}).",
    )
    ap.add_argument(
        "-s",
        "--server",
        type=str,
        default=None,
        help="Destination host (default 127.0.0.1).",
    )
    ap.add_argument("-d", "--debug", action="store_true", default=None, help="Turn debug output on.")
    ap.add_argument("-c", "--config", type=str, default=None, help="YAML file with defaults.")
    ap.add_argument(
        "--calibration",
        type=str,
        default=None,
        help="Calibration file (default MTSKeyboard.dat).",
    )
    ap.add_argument(
        "--pacing",
        choices=PACING_MODES,
        default=None,
        help="'spin' busy-waits for tight timing (default); 'sleep' saves CPU.",
    )
    ap.add_argument("--count", type=int, default=None, help="Stop after this many packets.")
    ap.add_argument("extra", nargs="*", help=argparse.SUPPRESS)
    return ap


def resolve_config(args: argparse.Namespace) -> EmulatorConfig:
    """Merge config-file values with explicit command-line flags."""
    base = load_config(args.config)
    if args.rate is not None and args.rate > MAX_RATE_HZ:
        logger.warning("Upper limit of rate is %.0f; clamping %g", MAX_RATE_HZ, args.rate)
    return base.with_overrides(
        rate_hz=args.rate,
        host=args.server,
        headerless=args.no_header,
        packet_file=args.packet_file,
        calibration_file=args.calibration,
        pacing=args.pacing,
        debug=True if (args.debug or debug_enabled()) else None,
        count=args.count,
    )


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )


def build_generator(cfg: EmulatorConfig) -> RandomKeyGenerator:
    table = load_calibration(cfg.calibration_file)
    bad = table.invalid_keys()
    if bad:
        logger.warning("Calibration bounds are inverted for keys %s", bad)
    rng = np.random.default_rng(cfg.seed)
    return RandomKeyGenerator(table, rng=rng, max_attempts=cfg.max_attempts)


def run(cfg: EmulatorConfig) -> int:
    """Open the transport (and replay log) and run the send loop."""
    try:
        transport = UdpTransport(cfg.host, cfg.port)
    except OSError as exc:
        logger.error("Cannot send to %s: %s", cfg.host, exc)
        return 1

    with transport:
        encoder = PacketEncoder(0 if cfg.headerless else DEFAULT_HEADER_SIZE)
        pacer = Pacer(cfg.rate_hz, cfg.pacing)
        monitor = SendRateMonitor(window_size=max(2, int(cfg.rate_hz) * 2))

        if not cfg.replay:
            generator = build_generator(cfg)
            loop = PacingLoop(
                encoder,
                transport,
                pacer,
                generator=generator,
                rate_monitor=monitor,
                dump_packets=cfg.debug,
            )
            loop.run(cfg.count)
            return 0

        try:
            fh = open(cfg.packet_file, "r", encoding="utf-8", errors="replace")
        except OSError as exc:
            logger.error("Cannot open %s as packet file input: %s", cfg.packet_file, exc)
            return 1
        with fh:
            reader = ReplayReader(fh, framing_tokens=cfg.framing_tokens)
            loop = PacingLoop(
                encoder,
                transport,
                pacer,
                replay=reader,
                rate_monitor=monitor,
                dump_packets=cfg.debug,
            )
            loop.run(cfg.count)
        return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    configure_logging(bool(args.debug) or debug_enabled())
    for extra in args.extra:
        logger.warning("Ignoring extra argument: %s", extra)

    try:
        cfg = resolve_config(args)
    except ValueError as exc:
        ap.error(str(exc))

    configure_logging(cfg.debug)
    if cfg.debug:
        logger.debug("Debug mode requested: %s", cfg)

    try:
        return run(cfg)
    except KeyboardInterrupt:
        logger.info("Interrupted; stopping")
        return 0
    except (ValueError, RuntimeError) as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
