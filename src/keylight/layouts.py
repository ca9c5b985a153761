"""Key names of the supported keyboard layouts."""

EN_US_ROWS: tuple[tuple[str, ...], ...] = (
    ("esc", "f1", "f2", "f3", "f4", "f5", "f6", "f7", "f8", "f9", "f10", "f11", "f12"),
    ("`", "1", "2", "3", "4", "5", "6", "7", "8", "9", "0", "-", "=", "backspace"),
    ("tab", "q", "w", "e", "r", "t", "y", "u", "i", "o", "p", "[", "]", "\\"),
    ("capslock", "a", "s", "d", "f", "g", "h", "j", "k", "l", ";", "'", "enter"),
    ("lshift", "z", "x", "c", "v", "b", "n", "m", ",", ".", "/", "rshift"),
    ("lctrl", "lwin", "lalt", "space", "ralt", "fn", "menu", "rctrl"),
    ("left", "up", "down", "right"),
)

LAYOUTS: dict[str, tuple[str, ...]] = {
    "en-US": tuple(key for row in EN_US_ROWS for key in row),
}


def keys_for_layout(layout: str) -> tuple[str, ...]:
    """All key names of ``layout`` (empty for an unknown layout)."""
    return LAYOUTS.get(layout, ())
