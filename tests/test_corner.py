'''
Tests for the corner identity and the detection of a corner among circle candidates.
'''

import math

import pytest

from papertalk.model.color import DotColor
from papertalk.model.corner import CornerMatcher, corner_from_shorthand, decode_corner_id
from papertalk.model.geom import Circle, Point2D

from conftest import corner_circles, make_corner

R, G, B, Y = DotColor.RED, DotColor.GREEN, DotColor.BLUE, DotColor.YELLOW


class TestCornerIdentity:

    def test_id_packs_colors_high_to_low(self):
        # r g b y r -> 00 01 10 11 00
        assert corner_from_shorthand('rgbyr').id == 0b0001101100

    def test_id_extremes(self):
        assert corner_from_shorthand('rrrrr').id == 0
        assert corner_from_shorthand('yyyyy').id == (1 << 10) - 1

    def test_shorthand_colors(self):
        corner = corner_from_shorthand('ygybr')

        assert corner.colors == [Y, G, Y, B, R]
        assert corner.shorthand == 'ygybr'

    @pytest.mark.parametrize('corner_id', [0, 1, 108, 517, 1023])
    def test_decode_corner_id(self, corner_id):
        colors = decode_corner_id(corner_id)
        shorthand = ''.join(c.char for c in colors)

        assert corner_from_shorthand(shorthand).id == corner_id

    def test_decode_invalid_corner_id(self):
        with pytest.raises(ValueError):
            decode_corner_id(1 << 10)

    @pytest.mark.parametrize('shorthand', ['ygyb', 'ygybrr', 'ygybx', ''])
    def test_malformed_shorthand(self, shorthand):
        with pytest.raises(ValueError):
            corner_from_shorthand(shorthand)

    def test_with_colors_keeps_positions(self):
        corner = make_corner('ygybr', vertex=Point2D(x=100., y=100.), right=Point2D(x=1., y=0.))
        recolored = corner.with_colors([R, G, B, Y, R])

        assert recolored.shorthand == 'rgbyr'
        assert [d.position for d in recolored.dots] == [d.position for d in corner.dots]

    def test_placeholder_is_inferred(self):
        corner = make_corner('ygybr', vertex=Point2D(x=0., y=0.), right=Point2D(x=1., y=0.))
        placeholder = corner.placeholder(position=Point2D(x=5., y=6.))

        assert placeholder.inferred
        assert placeholder.vertex == Point2D(x=5., y=6.)


class TestCornerMatcher:

    @pytest.mark.parametrize('angle', [0., 0.3, math.pi / 2, 2.5, math.pi, 4.2, 5.9])
    def test_detects_rotated_corner(self, angle):
        right = Point2D(x=math.cos(angle), y=math.sin(angle))
        circles = corner_circles('ygybr', vertex=Point2D(x=200., y=200.), right=right)

        corner, warning = CornerMatcher()(circles)

        assert corner is not None, warning
        assert warning == ''
        assert corner.colors == [Y, G, Y, B, R]
        assert corner.vertex == Point2D(x=200., y=200.)

    def test_detection_is_independent_of_circle_order(self):
        circles = corner_circles('ygybr', vertex=Point2D(x=100., y=100.), right=Point2D(x=1., y=0.))

        corner, _ = CornerMatcher()(circles[::-1])

        assert corner is not None
        assert corner.shorthand == 'ygybr'

    def test_arm_ends(self):
        # Right arm along x, left arm along y: ll is below the vertex, rr on its right
        circles = corner_circles('ygybr', vertex=Point2D(x=100., y=100.), right=Point2D(x=1., y=0.))

        corner, _ = CornerMatcher()(circles)

        assert corner.rr.position == Point2D(x=176., y=100.)
        assert corner.ll.position == Point2D(x=100., y=176.)

    def test_mirrored_corner_reverses_the_colors(self):
        # Swapping the arms makes the former right arm the left one
        vertex = Point2D(x=100., y=100.)
        circles = corner_circles('ygybr', vertex=vertex, right=Point2D(x=1., y=0.))
        ll, l, m, r, rr = circles
        mirrored = [
            Circle(position=Point2D(x=100., y=24.), radius=ll.radius, color=ll.color),
            Circle(position=Point2D(x=100., y=62.), radius=l.radius,  color=l.color),
            m, r, rr
        ]

        corner, _ = CornerMatcher()(mirrored)

        assert corner is not None
        assert corner.shorthand == 'rbygy'

    def test_long_armed_corner_needs_a_wider_margin(self):
        # Arm midpoints at 50 pixels, ends at 100: the centroid distances differ by about 6.4 pixels,
        # more than the default margin of 6, so this layout is only accepted with a wider margin
        circles = corner_circles('ygybr', vertex=Point2D(x=100., y=100.), right=Point2D(x=1., y=0.), arm=100.)

        corner, warning = CornerMatcher()(circles)
        assert corner is None
        assert 'geometry' in warning

        corner, warning = CornerMatcher(radius_margin=8.)(circles)
        assert corner is not None, warning

    def test_rejects_perturbed_arm_end(self):
        circles = corner_circles('ygybr', vertex=Point2D(x=100., y=100.), right=Point2D(x=1., y=0.))
        rr = circles[4]
        circles[4] = Circle(position=rr.position + Point2D(x=20., y=0.), radius=rr.radius, color=rr.color)

        corner, warning = CornerMatcher()(circles)

        assert corner is None
        assert warning

    def test_rejects_too_few_circles(self):
        circles = corner_circles('ygybr', vertex=Point2D(x=100., y=100.), right=Point2D(x=1., y=0.))

        corner, warning = CornerMatcher()(circles[:4])

        assert corner is None
        assert warning

    def test_rejects_straight_line(self):
        circles = [
            Circle(position=Point2D(x=float(x), y=0.), radius=5., color=(245, 34, 45))
            for x in range(0, 200, 40)
        ]

        corner, warning = CornerMatcher()(circles)

        assert corner is None
        assert warning

    def test_rejects_empty_bucket(self):
        corner, warning = CornerMatcher()([])

        assert corner is None
        assert warning

    def test_params(self):
        matcher = CornerMatcher(distance_bucket=12.)

        assert matcher.params['distance bucket'] == 12.
        assert 'CornerMatcher' in str(matcher)
