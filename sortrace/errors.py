"""Exception types raised at the SortRace control surface."""


class SortRaceError(Exception):
    """Base class for every error raised by sortrace."""


class InvalidConfigurationError(SortRaceError, ValueError):
    """Rejected setting: bad size, speed, algorithm id, preset, theme..."""


class InvalidInputError(SortRaceError, ValueError):
    """User-supplied values that cannot become a sequence."""
