"""Canvas editing errors.

None of these are fatal. The pure helpers raise them; store, controller and
renderer code catch them, log, and keep the previous valid state.
"""


class CanvasError(Exception):
    """Base class for canvas errors."""
    pass


class InvalidColorFormat(CanvasError, ValueError):
    """Hex string is not six hex digits."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Invalid hex color: {value!r}")


class DegenerateGradient(CanvasError):
    """Operation would leave a gradient with fewer than two stops."""
    pass


class OutOfRangeValue(CanvasError):
    """Numeric value outside its allowed range (normally clamped instead)."""
    pass


class MissingTarget(CanvasError, KeyError):
    """Referenced point or stop id does not exist."""
    pass
