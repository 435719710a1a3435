"""Color option parsing."""

NAMED_COLORS = {
    "black": (0, 0, 0),
    "white": (255, 255, 255),
    "red": (255, 0, 0),
    "green": (0, 128, 0),
    "blue": (0, 0, 255),
    "yellow": (255, 255, 0),
    "cyan": (0, 255, 255),
    "magenta": (255, 0, 255),
    "gray": (128, 128, 128),
    "grey": (128, 128, 128),
    "darkgray": (169, 169, 169),
    "darkgrey": (169, 169, 169),
    "lightgray": (211, 211, 211),
    "lightgrey": (211, 211, 211),
}


def parse_color(value: str) -> tuple[int, int, int]:
    """Parse an 'R,G,B' string or a basic color name.

    Raises:
        ValueError: If the value is neither a color name nor three 0-255 components.
    """
    text = value.strip().lower()
    if text in NAMED_COLORS:
        return NAMED_COLORS[text]

    parts = [p.strip() for p in text.split(",")]
    if len(parts) != 3:
        raise ValueError(f"Invalid color {value!r}: expected 'R,G,B' or a color name")
    try:
        components = tuple(int(p) for p in parts)
    except ValueError:
        raise ValueError(f"Invalid color {value!r}: components must be integers")
    if any(c < 0 or c > 255 for c in components):
        raise ValueError(f"Invalid color {value!r}: components must be within 0-255")
    return components  # type: ignore[return-value]
