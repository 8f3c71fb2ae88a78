import pytest

from trojango.golog import colorful
from trojango.golog.buffer import Buffer
from trojango.golog.colorful import ColorBuffer


def test_color_buffer():
    expected = Buffer()
    for color in (
        colorful.COLOR_RED,
        colorful.COLOR_GREEN,
        colorful.COLOR_ORANGE,
        colorful.COLOR_BLUE,
        colorful.COLOR_PURPLE,
        colorful.COLOR_CYAN,
        colorful.COLOR_GRAY,
        colorful.COLOR_OFF,
    ):
        expected.append(color)

    cb = ColorBuffer()
    cb.red()
    cb.green()
    cb.orange()
    cb.blue()
    cb.purple()
    cb.cyan()
    cb.gray()
    cb.off()
    assert cb.to_bytes() == expected.to_bytes()


@pytest.mark.parametrize(
    "mixer, color",
    [
        (colorful.red, colorful.COLOR_RED),
        (colorful.green, colorful.COLOR_GREEN),
        (colorful.orange, colorful.COLOR_ORANGE),
        (colorful.blue, colorful.COLOR_BLUE),
        (colorful.purple, colorful.COLOR_PURPLE),
        (colorful.cyan, colorful.COLOR_CYAN),
        (colorful.gray, colorful.COLOR_GRAY),
    ],
)
def test_color_mixer(mixer, color):
    data = b"Hello"
    expected = Buffer()
    expected.append(color)
    expected.append(data)
    expected.append(colorful.COLOR_OFF)
    assert mixer(data) == expected.to_bytes()


def test_mixer_keeps_data_between_codes():
    result = colorful.red(b"[ERROR] ")
    assert result.startswith(colorful.COLOR_RED)
    assert result.endswith(colorful.COLOR_OFF)
    assert b"[ERROR] " in result