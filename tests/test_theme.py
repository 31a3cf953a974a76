import pytest

from sortrace.errors import InvalidConfigurationError
from sortrace.model import ElementState
from sortrace.theme import THEMES, ThemeManager


def test_default_theme_and_colors():
    themes = ThemeManager()
    palette = themes.current_colors()

    assert themes.current == "dark"
    assert palette.default == (0x7D, 0xD3, 0xFC)
    assert palette.color_for(ElementState.SORTED) == palette.sorted
    assert palette.color_for(ElementState.COMPARING) == palette.comparing


def test_eight_themes_cycle_in_order():
    themes = ThemeManager()
    assert len(themes.names) == 8
    seen = [themes.cycle() for _ in range(len(THEMES))]
    assert seen[-1] == "dark"
    assert seen[0] == themes.names[1]


def test_unknown_theme_is_rejected_and_current_kept():
    themes = ThemeManager("ocean")
    with pytest.raises(InvalidConfigurationError):
        themes.set_theme("vaporwave")
    assert themes.current == "ocean"


def test_separate_managers_do_not_share_state():
    a, b = ThemeManager(), ThemeManager()
    a.set_theme("neon")
    assert b.current == "dark"
