'''
Pytest configuration and shared fixtures for the page recognition tests.

Corners and pages are laid out synthetically in image coordinates (y axis pointing down):
a corner is described by its vertex and the direction of its right arm, its left arm
being a quarter turn clockwise on screen from the right one.
'''

import math
from typing import List, Sequence, Tuple

import pytest

from papertalk.model.color import DEFAULT_PALETTE, DotColor
from papertalk.model.corner import Corner, Dot
from papertalk.model.geom import Circle, Point2D
from papertalk.model.page import Page, PageRegistry
from papertalk.utils.typing import RGBColor

# Two demo pages, corners listed as ulhc, urhc, lrhc, llhc
PAGE1: Tuple[str, str, str, str] = ('ygybr', 'brgry', 'gbgyg', 'bgryy')
PAGE2: Tuple[str, str, str, str] = ('yggyg', 'rgyrb', 'bybbg', 'brgrg')

# Arm length of the corners used in the matching tests
ARM = 76.


def quarter(v: Point2D) -> Point2D:
    ''' Quarter turn clockwise on screen. '''
    return Point2D(x=-v.y, y=v.x)


def corner_positions(vertex: Point2D, right: Point2D, arm: float = ARM) -> List[Point2D]:
    ''' Positions of the dots ll, l, m, r, rr of an ideal corner. '''

    left = quarter(right)
    half = arm / 2
    return [vertex + left * arm, vertex + left * half, vertex, vertex + right * half, vertex + right * arm]


def make_corner(shorthand: str, vertex: Point2D, right: Point2D, arm: float = ARM) -> Corner:
    ''' An ideal corner with classified dots. '''

    dots = [
        Dot(position=p, color=DotColor.from_char(c))
        for p, c in zip(corner_positions(vertex, right, arm), shorthand)
    ]
    return Corner(*dots)


def corner_circles(
    shorthand: str,
    vertex: Point2D,
    right: Point2D,
    arm: float = ARM,
    palette: Sequence[RGBColor] = DEFAULT_PALETTE
) -> List[Circle]:
    ''' The circle candidates of an ideal corner, sampled with the palette colors. '''

    return [
        Circle(position=p, radius=5., color=palette[DotColor.from_char(c)])
        for p, c in zip(corner_positions(vertex, right, arm), shorthand)
    ]


def page_layout(
    origin: Point2D,
    size: Tuple[float, float],
    angle: float = 0.
) -> List[Tuple[Point2D, Point2D]]:
    ''' Vertex and right arm direction of the corners ulhc, urhc, lrhc, llhc of a page rotated clockwise by the angle. '''

    w, h = size
    right = Point2D(x=math.cos(angle), y=math.sin(angle))
    down = quarter(right)

    vertices = [origin, origin + right * w, origin + right * w + down * h, origin + down * h]
    rights = [right, down, quarter(down), quarter(quarter(down))]

    return list(zip(vertices, rights))


def page_corners(
    shorthands: Sequence[str],
    origin: Point2D = Point2D(x=40., y=40.),
    size: Tuple[float, float] = (300., 220.),
    arm: float = 58.,
    angle: float = 0.
) -> List[Corner]:
    ''' The ideal corners of a page ordered as ulhc, urhc, lrhc, llhc. '''

    return [
        make_corner(shorthand, vertex, right, arm)
        for shorthand, (vertex, right) in zip(shorthands, page_layout(origin, size, angle))
    ]


def page_circles(
    shorthands: Sequence[str],
    origin: Point2D = Point2D(x=40., y=40.),
    size: Tuple[float, float] = (300., 220.),
    arm: float = 58.,
    angle: float = 0.
) -> List[Circle]:
    ''' The circle candidates of the ideal corners of a page. '''

    return [
        circle
        for shorthand, (vertex, right) in zip(shorthands, page_layout(origin, size, angle))
        for circle in corner_circles(shorthand, vertex, right, arm)
    ]


@pytest.fixture
def registry() -> PageRegistry:
    ''' Registry with the two demo pages. '''

    return PageRegistry.from_definitions([(*PAGE1, 'page1'), (*PAGE2, 'page2')])


@pytest.fixture
def page1() -> Page:
    return Page.from_shorthand(*PAGE1, payload='page1')


@pytest.fixture
def page2() -> Page:
    return Page.from_shorthand(*PAGE2, payload='page2')
