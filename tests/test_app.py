from __future__ import annotations

import socket
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import pytest

from fakemts.app import build_parser, main, resolve_config


@contextmanager
def _receiver(tmp_path: Path) -> Iterator[tuple[socket.socket, Path]]:
    """Bind a local UDP socket and write a config pointing the emulator at it."""
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as rx:
        rx.bind(("127.0.0.1", 0))
        rx.settimeout(2.0)
        config = tmp_path / "fakemts.yaml"
        config.write_text(f"port: {rx.getsockname()[1]}\nseed: 3\n", encoding="utf-8")
        yield rx, config


def _calibration_text(first_x: tuple[int, int]) -> str:
    lines = ["Tue May 26 10:41:07 2020"]
    for key in range(1, 89):
        x_west, x_east = first_x if key == 1 else (0x20, 0xE0)
        lines += [str(key), f"{x_west:x} {x_east:x}", "f0 e8", f"{x_west:x} {x_east:x}", "10 1c"]
    return "\n".join(lines) + "\n"


def _capture(*payloads: list[int]) -> str:
    blocks = []
    for n, payload in enumerate(payloads):
        values = [0xEE] * 42 + payload
        rows = [", ".join(f"0x{v:02x}" for v in values[i : i + 16]) + "," for i in range(0, len(values), 16)]
        blocks.append(f"static const unsigned char pkt{n}[590] = {{\n" + "\n".join(rows) + "\n};\n")
    return "Frame 1: 632 bytes on wire\n" + "".join(blocks)


def test_parser_flags() -> None:
    args = build_parser().parse_args(["-n", "-r", "100", "-s", "10.0.0.9", "-d", "-p", "cap.txt"])
    cfg = resolve_config(args)
    assert cfg.headerless is True
    assert cfg.rate_hz == 100.0
    assert cfg.host == "10.0.0.9"
    assert cfg.debug is True
    assert cfg.packet_file == "cap.txt"


def test_rate_above_limit_is_clamped() -> None:
    cfg = resolve_config(build_parser().parse_args(["-r", "900"]))
    assert cfg.rate_hz == 500.0


def test_unknown_flag_exits_non_zero() -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["-x"])
    assert excinfo.value.code != 0


def test_non_positive_rate_is_an_argument_error() -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["-r", "0"])
    assert excinfo.value.code == 2


def test_missing_packet_file_is_fatal(tmp_path: Path) -> None:
    assert main(["-p", str(tmp_path / "missing.txt"), "--count", "1"]) == 1


def test_generate_run_sends_requested_packets(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)  # no MTSKeyboard.dat here: zero bounds
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as rx:
        rx.bind(("127.0.0.1", 0))
        rx.settimeout(2.0)
        port = rx.getsockname()[1]
        config = tmp_path / "fakemts.yaml"
        config.write_text(f"port: {port}\nseed: 3\n", encoding="utf-8")

        rc = main(["-c", str(config), "-r", "500", "--pacing", "sleep", "--count", "2", "-n"])

        assert rc == 0
        packets = [rx.recvfrom(2048)[0] for _ in range(2)]
    assert all(len(p) == 528 for p in packets)
    assert packets[0][:6] == bytes([1, 0, 0, 1, 1, 1])


def test_missing_config_file_is_an_argument_error(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["-c", str(tmp_path / "nope.yaml"), "--count", "1"])
    assert excinfo.value.code == 2


def test_malformed_calibration_file_is_fatal(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "MTSKeyboard.dat").write_text("Tue May 26 10:41:07 2020\n1\n10 20\n", encoding="utf-8")
    with _receiver(tmp_path) as (rx, config):
        rc = main(["-c", str(config), "-r", "500", "--pacing", "sleep", "--count", "1"])
        rx.settimeout(0.2)
        with pytest.raises(socket.timeout):
            rx.recvfrom(2048)
    assert rc == 1


def test_inverted_calibration_bounds_are_fatal(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "MTSKeyboard.dat").write_text(_calibration_text((0x80, 0x10)), encoding="utf-8")
    with _receiver(tmp_path) as (rx, config):
        rc = main(["-c", str(config), "-r", "500", "--pacing", "sleep", "--count", "1"])
        rx.settimeout(0.2)
        with pytest.raises(socket.timeout):
            rx.recvfrom(2048)
    assert rc == 1


def test_replay_run_stops_cleanly_when_log_runs_out(tmp_path: Path) -> None:
    first = [1] * 528
    second = [2] * 528
    log = tmp_path / "capture.txt"
    log.write_text(_capture(first, second), encoding="utf-8")
    with _receiver(tmp_path) as (rx, config):
        rc = main(["-c", str(config), "-r", "500", "--pacing", "sleep", "-p", str(log)])
        packets = [rx.recvfrom(2048)[0] for _ in range(2)]
        rx.settimeout(0.2)
        with pytest.raises(socket.timeout):
            rx.recvfrom(2048)
    assert rc == 0
    assert [len(p) for p in packets] == [548, 548]
    assert packets[0][20:] == bytes(first)
    assert packets[1][20:] == bytes(second)
