"""Wireless remote packet decoding and the command panel fed by it."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field, fields

from quadctrl.enums import UserCommand
from quadctrl.mathtools import kill_zero_offset
from quadctrl.messages import CmdPanel

__all__ = ["KeySwitch", "RockerBtnData", "WirelessHandle"]

_BUTTONS = (
    "r1", "l1", "start", "select", "r2", "l2", "f1", "f2",
    "a", "b", "x", "y", "up", "right", "down", "left",
)

_PACKET = struct.Struct("<2sH5f16s")
PACKET_SIZE = _PACKET.size

_DEAD_ZONE = 0.08


@dataclass(frozen=True)
class KeySwitch:
    """State of the sixteen remote buttons; bit 0 is R1, bit 15 is left."""

    r1: bool = False
    l1: bool = False
    start: bool = False
    select: bool = False
    r2: bool = False
    l2: bool = False
    f1: bool = False
    f2: bool = False
    a: bool = False
    b: bool = False
    x: bool = False
    y: bool = False
    up: bool = False
    right: bool = False
    down: bool = False
    left: bool = False

    @classmethod
    def from_value(cls, value: int) -> KeySwitch:
        """Decode a 16-bit button word."""
        return cls(**{name: bool(value >> bit & 1) for bit, name in enumerate(_BUTTONS)})

    @property
    def value(self) -> int:
        """Encode back into a 16-bit button word."""
        return sum(1 << bit for bit, f in enumerate(fields(self)) if getattr(self, f.name))


@dataclass(frozen=True)
class RockerBtnData:
    """One 40-byte remote packet: buttons and five analog axes."""

    btn: KeySwitch = field(default_factory=KeySwitch)
    lx: float = 0.0
    rx: float = 0.0
    ry: float = 0.0
    l2: float = 0.0
    ly: float = 0.0
    head: bytes = b"\x00\x00"
    idle: bytes = bytes(16)

    @classmethod
    def from_bytes(cls, data: bytes) -> RockerBtnData:
        """Decode the first 40 bytes of ``data``."""
        data = bytes(data)
        if len(data) < PACKET_SIZE:
            raise ValueError(f"remote packet needs {PACKET_SIZE} bytes, got {len(data)}")
        head, btn, lx, rx, ry, l2, ly, idle = _PACKET.unpack_from(data)
        return cls(KeySwitch.from_value(btn), lx, rx, ry, l2, ly, head, idle)

    def to_bytes(self) -> bytes:
        return _PACKET.pack(
            self.head, self.btn.value, self.lx, self.rx, self.ry, self.l2, self.ly, self.idle
        )


_COMBOS = (
    ("l2", "b", UserCommand.L2_B),
    ("l2", "a", UserCommand.L2_A),
    ("l2", "x", UserCommand.L2_X),
    ("l2", "y", UserCommand.L2_Y),
    ("l1", "x", UserCommand.L1_X),
    ("l1", "a", UserCommand.L1_A),
    ("l1", "y", UserCommand.L1_Y),
)


@dataclass
class WirelessHandle(CmdPanel):
    """Command panel driven by the robot's wireless remote."""

    key_data: RockerBtnData = field(default_factory=RockerBtnData)

    def receive_handle(self, remote: bytes | RockerBtnData) -> None:
        """Update the command and stick values from a remote packet."""
        data = remote if isinstance(remote, RockerBtnData) else RockerBtnData.from_bytes(remote)
        self.key_data = data
        btn = data.btn
        for modifier, button, command in _COMBOS:
            if getattr(btn, modifier) and getattr(btn, button):
                self.user_cmd = command
                break
        else:
            if btn.start:
                self.user_cmd = UserCommand.START

        value = self.user_value
        value.l2 = kill_zero_offset(data.l2, _DEAD_ZONE)
        value.lx = kill_zero_offset(data.lx, _DEAD_ZONE)
        value.ly = kill_zero_offset(data.ly, _DEAD_ZONE)
        value.rx = kill_zero_offset(data.rx, _DEAD_ZONE)
        value.ry = kill_zero_offset(data.ry, _DEAD_ZONE)