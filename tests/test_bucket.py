'''
Tests for the grouping of circle candidates into overlapping buckets.
'''

import pytest

from papertalk.model.bucket import CircleBucketer
from papertalk.model.geom import Bucket, Circle, Point2D

from conftest import page_circles, PAGE1


def circle(x: float, y: float) -> Circle:
    return Circle(position=Point2D(x=x, y=y), radius=3., color=(0, 0, 0))


class TestCircleBucketer:

    @pytest.mark.parametrize('window, stride', [(100, 0), (100, -5), (100, 101)])
    def test_invalid_grid(self, window, stride):
        with pytest.raises(ValueError):
            CircleBucketer(window=window, stride=stride)

    def test_grid(self):
        buckets = CircleBucketer(window=130, stride=65).buckets(size=(200, 100))

        # Origins at x in 0, 65, 130, 195 and y in 0, 65
        assert len(buckets) == 8
        assert Bucket(x0=195, y0=65, x1=325, y1=195) in buckets

    def test_coverage(self):
        assert CircleBucketer(window=130, stride=65).coverage == 65

    def test_empty_frame(self):
        assert CircleBucketer()([]) == {}

    def test_only_non_empty_buckets(self):
        partition = CircleBucketer(window=130, stride=65)([circle(70., 10.)], size=(300, 300))

        assert set(partition) == {Bucket(x0=0, y0=0, x1=130, y1=130), Bucket(x0=65, y0=0, x1=195, y1=130)}

    def test_circle_in_every_overlapping_bucket(self):
        partition = CircleBucketer(window=130, stride=65)([circle(100., 100.)], size=(300, 300))

        assert len(partition) == 4
        assert all(len(inside) == 1 for inside in partition.values())

    def test_size_inferred_from_circles(self):
        circles = [circle(10., 10.), circle(140., 20.)]

        assert CircleBucketer(window=130, stride=65)(circles) == CircleBucketer(window=130, stride=65)(circles, size=(141, 21))

    def test_corners_fall_within_one_bucket(self):
        # Each corner of the page spans less than the bucket coverage
        bucketer = CircleBucketer()
        circles = page_circles(PAGE1)

        full = [inside for inside in bucketer(circles).values() if len(inside) == 5]

        assert len(full) >= 4
