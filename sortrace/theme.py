from __future__ import annotations

from typing import NamedTuple

from .errors import InvalidConfigurationError
from .model import ElementState


class Palette(NamedTuple):
    default: tuple
    comparing: tuple
    swapping: tuple
    sorted: tuple

    def color_for(self, state: ElementState) -> tuple:
        return getattr(self, state.value)


def _rgb(hex_color: str) -> tuple:
    hex_color = hex_color.lstrip("#")
    return tuple(int(hex_color[i:i + 2], 16) for i in (0, 2, 4))


def _palette(default, comparing, swapping, done) -> Palette:
    return Palette(_rgb(default), _rgb(comparing), _rgb(swapping), _rgb(done))


THEMES = {
    "dark":     _palette("#7dd3fc", "#c084fc", "#4ade80", "#4ade80"),
    "midnight": _palette("#6366f1", "#f472b6", "#fbbf24", "#34d399"),
    "ocean":    _palette("#0ea5e9", "#f97316", "#22d3ee", "#10b981"),
    "forest":   _palette("#22c55e", "#facc15", "#f97316", "#86efac"),
    "sunset":   _palette("#f97316", "#ec4899", "#fbbf24", "#fb7185"),
    "neon":     _palette("#e879f9", "#22d3ee", "#a3e635", "#4ade80"),
    "retro":    _palette("#fbbf24", "#ef4444", "#22c55e", "#f59e0b"),
    "light":    _palette("#3b82f6", "#ec4899", "#22c55e", "#10b981"),
}


class ThemeManager:
    """Resolves element states to colors for one front end."""

    def __init__(self, name: str = "dark"):
        self.current = "dark"
        self.set_theme(name)

    @property
    def names(self) -> tuple:
        return tuple(THEMES)

    def set_theme(self, name: str):
        if name not in THEMES:
            raise InvalidConfigurationError(f"Unknown theme '{name}'. Expected one of {self.names}.")
        self.current = name

    def cycle(self) -> str:
        names = self.names
        self.set_theme(names[(names.index(self.current) + 1) % len(names)])
        return self.current

    def current_colors(self) -> Palette:
        return THEMES[self.current]
