from __future__ import annotations

import pygame

from .config import BACKGROUND_COLOR, BAR_SPACING, LABEL_COLOR


class BarRenderer:
    """
    Render collaborator for one panel: bars on a pygame surface.

    Bar height is value/100 of the panel; color comes from the highlight
    (swapping wins over comparing) or else from the element's state through
    the theme. Drawing never flips the display; the front end does that
    once per frame.
    """

    LABEL_HEIGHT = 28

    def __init__(self, surface, theme, label="", font=None):
        self.surface = surface
        self.theme = theme
        self.label = label
        self.status = ""
        self.font = font
        self.frames = 0
        self._last = None

    def refresh(self):
        """Redraw the last frame, e.g. after the status text changed."""
        if self._last is not None:
            self.draw(*self._last)

    def draw(self, sequence, comparing=(), swapping=()):
        self._last = (sequence, comparing, swapping)
        s = self.surface
        s.fill(BACKGROUND_COLOR)
        w, h = s.get_size()
        n = len(sequence)
        top = self.LABEL_HEIGHT if self.font else 0
        palette = self.theme.current_colors()
        if n:
            bw = w / n
            gap = BAR_SPACING if bw > 3 else 0
            for i, e in enumerate(sequence):
                if i in swapping:
                    c = palette.swapping
                elif i in comparing:
                    c = palette.comparing
                else:
                    c = palette.color_for(e.state)
                bh = (e.value / 100) * (h - top)
                pygame.draw.rect(s, c, (int(i * bw), int(h - bh), max(1, int(bw) - gap), int(bh)))
        if self.font and (self.label or self.status):
            text = f"{self.label}   {self.status}".strip()
            s.blit(self.font.render(text, True, LABEL_COLOR), (8, 6))
        self.frames += 1
