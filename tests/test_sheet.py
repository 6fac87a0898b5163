'''
Tests for the printable page sheets.
'''

import cv2 as cv
import numpy as np
import pytest

from papertalk.model.color import CIELAB_GREEN, CIELAB_YELLOW
from papertalk.model.geom import Point2D
from papertalk.model.page import PageRegistry
from papertalk.model.sheet import PageSheet


@pytest.fixture
def sheet() -> PageSheet:
    return PageSheet(size=(400, 300), radius=10)


class TestLayout:

    def test_upper_left_hand_corner(self, sheet, page1):
        ulhc = sheet.layout(page=page1)[0]

        # Vertex one and a half radius from the borders, dots two and a half radius apart
        assert ulhc.vertex == Point2D(x=15., y=15.)
        assert ulhc.r.position  == Point2D(x=40., y=15.)
        assert ulhc.rr.position == Point2D(x=65., y=15.)
        assert ulhc.l.position  == Point2D(x=15., y=40.)
        assert ulhc.ll.position == Point2D(x=15., y=65.)

    def test_corner_vertices(self, sheet, page1):
        vertices = [c.vertex for c in sheet.layout(page=page1)]

        assert vertices == [Point2D(x=15., y=15.), Point2D(x=385., y=15.), Point2D(x=385., y=285.), Point2D(x=15., y=285.)]

    def test_template_colors(self, sheet, page1):
        assert [c.shorthand for c in sheet.layout(page=page1)] == page1.shorthands

    def test_scale(self, sheet, page1):
        ulhc = sheet.layout(page=page1, scale=0.5)[0]

        assert ulhc.rr.position == Point2D(x=32.5, y=7.5)

    def test_candidates(self, sheet, page1):
        circles = sheet.candidates(page=page1)

        assert len(circles) == 20
        assert circles[2].color == CIELAB_YELLOW  # vertex of 'ygybr'

    def test_too_small(self):
        with pytest.raises(ValueError):
            PageSheet(size=(100, 100), radius=20)


class TestRender:

    def test_render(self, sheet, page1):
        img = sheet.render(page=page1)

        assert img.shape == (300, 400, 3)
        assert tuple(img[15, 15]) == CIELAB_YELLOW
        assert tuple(img[40, 15]) == CIELAB_GREEN  # left arm midpoint, rows first
        assert tuple(img[150, 200]) == (255, 255, 255)

    def test_save(self, tmp_path, sheet, page1):
        path = tmp_path / 'sheet.png'

        sheet.save(page=page1, path=str(path))

        saved = cv.cvtColor(cv.imread(str(path)), cv.COLOR_BGR2RGB)
        assert np.array_equal(saved, sheet.render(page=page1))

    def test_save_wrong_extension(self, tmp_path, sheet, page1):
        with pytest.raises(ValueError):
            sheet.save(page=page1, path=str(tmp_path / 'sheet.txt'))

    def test_save_missing_directory(self, tmp_path, sheet, page1):
        with pytest.raises(FileNotFoundError):
            sheet.save(page=page1, path=str(tmp_path / 'missing' / 'sheet.png'))


class TestGeneration:

    def test_generate_registers_the_page(self):
        registry = PageRegistry()

        page = PageSheet.generate(registry=registry, payload='new', rng=np.random.default_rng(0))

        assert page is not None
        assert page.id in registry
        assert registry.lookup(page.id).payload == 'new'

    def test_generated_pages_do_not_collide(self, registry):
        rng = np.random.default_rng(42)

        pages = [PageSheet.generate(registry=registry, rng=rng) for _ in range(5)]

        assert all(page is not None for page in pages)
        assert len(registry) == 7

    def test_no_attempts(self, registry):
        assert PageSheet.generate(registry=registry, max_attempts=0) is None
        assert len(registry) == 2

    def test_random_shorthands(self):
        shorthands = PageSheet.random_shorthands(rng=np.random.default_rng(1))

        assert len(shorthands) == 4
        assert all(len(s) == 5 and set(s) <= set('rgby') for s in shorthands)
