'''
Tests for the calibration data and the hand-off records.
'''

import pytest

from papertalk.model.calibration import Calibration, identity
from papertalk.model.color import DEFAULT_PALETTE, DotColor
from papertalk.model.geom import Point2D

from conftest import PAGE1, page_corners


class TestCalibration:

    def test_trivial(self):
        calibration = Calibration.trivial_calibration()

        assert calibration.palette == list(DEFAULT_PALETTE)
        assert calibration.transform(Point2D(x=3., y=4.)) == Point2D(x=3., y=4.)

    def test_palette_must_have_four_colors(self):
        with pytest.raises(ValueError):
            Calibration(palette=[(0, 0, 0)] * 3)

    def test_classifier_uses_palette(self):
        palette = [(255, 0, 0), (0, 255, 0), (0, 0, 255), (255, 255, 0)]
        classifier = Calibration(palette=palette).classifier(use_heuristics=False)

        assert classifier((250, 250, 10)) == DotColor.YELLOW

    def test_displacement_without_ratio(self):
        calibration = Calibration.from_displacement(
            palette=DEFAULT_PALETTE, displacement=Point2D(x=5., y=-5.), ratio=0, projector_size=(200, 100)
        )

        assert calibration.transform(Point2D(x=10., y=10.)) == Point2D(x=15., y=5.)

    def test_displacement_with_ratio(self):
        calibration = Calibration.from_displacement(
            palette=DEFAULT_PALETTE, displacement=Point2D(x=90., y=40.), ratio=0.5, projector_size=(200, 100)
        )

        # The projector midpoint is fixed, other points move away from it twice as far
        assert calibration.transform(Point2D(x=10., y=10.)) == Point2D(x=100., y=50.)
        assert calibration.transform(Point2D(x=20., y=10.)) == Point2D(x=120., y=50.)

    def test_pickle(self, tmp_path):
        calibration = Calibration.from_displacement(
            palette=DEFAULT_PALETTE, displacement=Point2D(x=1., y=2.), ratio=0.8, projector_size=(640, 480)
        )
        path = str(tmp_path / 'calibration.pkl')

        calibration.to_pickle(path=path)
        loaded = Calibration.from_pickle(path=path)

        assert loaded.palette == calibration.palette
        assert loaded.transform(Point2D(x=7., y=9.)) == calibration.transform(Point2D(x=7., y=9.))

    def test_missing_pickle(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Calibration.from_pickle(path=str(tmp_path / 'missing.pkl'))


class TestRecord:

    def test_record(self, page1):
        page = page1.positioned(corners=page_corners(PAGE1), angle=0.5)

        record = page.to_record()

        assert record['id'] == page1.id
        assert record['ulhc'] == (40., 40.)
        assert record['lrhc'] == (340., 260.)
        assert record['angle'] == 0.5
        assert record['payload'] == 'page1'

    def test_record_transform(self, page1):
        page = page1.positioned(corners=page_corners(PAGE1), angle=0.)

        record = page.to_record(transform=lambda p: p * 2)

        assert record['urhc'] == (680., 80.)

    def test_identity(self):
        assert identity(Point2D(x=1., y=2.)) == Point2D(x=1., y=2.)
