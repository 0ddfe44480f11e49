"""
SVG rendering for captcha challenges.

The output depends only on the text and the random source passed in, so a
seeded generator always yields the same image.
"""

import random
from xml.sax.saxutils import escape

BACKGROUND = "#f5f5f5"

# Channel range for muted colours; dark enough to read on the background
COLOR_CHANNEL_MIN = 30
COLOR_CHANNEL_MAX = 130

CHAR_JITTER_Y = 3
CHAR_ROTATION_DEGREES = 15
FONT_SIZE_MIN = 20
FONT_SIZE_MAX = 26


def random_color(rng: random.Random) -> str:
    r = rng.randint(COLOR_CHANNEL_MIN, COLOR_CHANNEL_MAX)
    g = rng.randint(COLOR_CHANNEL_MIN, COLOR_CHANNEL_MAX)
    b = rng.randint(COLOR_CHANNEL_MIN, COLOR_CHANNEL_MAX)
    return f"rgb({r},{g},{b})"


def _noise_lines(rng: random.Random, width: int, height: int, count: int) -> list[str]:
    lines = []
    for _ in range(count):
        x1, y1 = rng.randint(0, width), rng.randint(0, height)
        x2, y2 = rng.randint(0, width), rng.randint(0, height)
        lines.append(
            f'<line x1="{x1}" y1="{y1}" x2="{x2}" y2="{y2}" '
            f'stroke="{random_color(rng)}" stroke-width="1" opacity="0.4"/>'
        )
    return lines


def _noise_dots(rng: random.Random, width: int, height: int, count: int) -> list[str]:
    return [
        f'<circle cx="{rng.randint(0, width)}" cy="{rng.randint(0, height)}" r="1" '
        f'fill="{random_color(rng)}" opacity="0.3"/>'
        for _ in range(count)
    ]


def _jittered_chars(rng: random.Random, text: str, width: int, height: int) -> list[str]:
    slot = width / (len(text) + 1)
    elements = []
    for i, char in enumerate(text):
        x = round(slot * (i + 0.5), 2)
        y = height / 2 + rng.randint(-CHAR_JITTER_Y, CHAR_JITTER_Y)
        rotate = rng.randint(-CHAR_ROTATION_DEGREES, CHAR_ROTATION_DEGREES)
        font_size = rng.randint(FONT_SIZE_MIN, FONT_SIZE_MAX)
        elements.append(
            f'<text x="{x:g}" y="{y:g}" font-family="monospace" font-size="{font_size}" '
            f'font-weight="bold" fill="{random_color(rng)}" text-anchor="middle" '
            f'dominant-baseline="central" transform="rotate({rotate},{x:g},{y:g})">'
            f"{escape(char)}</text>"
        )
    return elements


def render_captcha_svg(
    text: str,
    rng: random.Random,
    *,
    width: int = 150,
    height: int = 48,
    line_count: int = 5,
    dot_count: int = 30,
) -> str:
    """
    Render text as an inline SVG with noise lines, scatter dots and per-character
    jitter in position, rotation, size and colour.
    """
    body = (
        _noise_lines(rng, width, height, line_count)
        + _noise_dots(rng, width, height, dot_count)
        + _jittered_chars(rng, text, width, height)
    )
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}">\n'
        f'<rect width="{width}" height="{height}" fill="{BACKGROUND}"/>\n'
        f"{''.join(body)}\n"
        "</svg>"
    )
