"""Deterministic display colours derived from team or player names."""

from __future__ import annotations

from assisttracker.models import PlayerRecord


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value >= (1 << 31) else value


def _utf16_units(text: str) -> list[int]:
    data = text.encode("utf-16-le")
    return [int.from_bytes(data[idx : idx + 2], "little") for idx in range(0, len(data), 2)]


def string_to_color(text: str) -> str:
    """Map ``text`` to an HSL colour; equal strings always get the same hue."""

    hashed = 0
    for unit in _utf16_units(text):
        hashed = unit + (_to_int32(_to_int32(hashed) << 5) - hashed)
    hue = abs(hashed) % 360
    return f"hsl({hue}, 65%, 40%)"


def display_color(player: PlayerRecord) -> str:
    return string_to_color(player.team or player.name)
