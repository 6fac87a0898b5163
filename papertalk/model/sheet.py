'''
This file implements the printable sheets of the pages.
A sheet is an A4 page at 300 dpi with a corner fiducial in each of its four corners,
each dot printed as a filled circle in the reference color of the dot.
'''

from __future__ import annotations

from typing import List, Sequence, Tuple, TypeVar

import cv2 as cv
import numpy as np

from papertalk.model.color import ALPHABET, DEFAULT_PALETTE, DotColor
from papertalk.model.corner import Corner, Dot
from papertalk.model.geom import Circle, Point2D
from papertalk.model.page import Page, PageRegistry
from papertalk.utils.io_ import BaseLogger, InputSanitizationUtils as ISUtils, SilentLogger
from papertalk.utils.typing import Frame, RGBColor, Shorthand, Size2D

_P = TypeVar('_P')

A4_300DPI : Size2D = (2480, 3508)  # 21 x 29.7 cm, 1 cm is about 118 pixels
DOT_RADIUS: int    = 118           # 1 cm

# Directions (right arm, left arm) of the corners in clockwise order from the upper left hand corner.
# The left arm of each corner points back to the previous corner, its right arm to the next one.
ARM_DIRECTIONS: List[Tuple[Point2D, Point2D]] = [
	(Point2D(x= 1., y= 0.), Point2D(x= 0., y= 1.)),  # ulhc
	(Point2D(x= 0., y= 1.), Point2D(x=-1., y= 0.)),  # urhc
	(Point2D(x=-1., y= 0.), Point2D(x= 0., y=-1.)),  # lrhc
	(Point2D(x= 0., y=-1.), Point2D(x= 1., y= 0.)),  # llhc
]


class PageSheet:
	'''
	Class to lay out the corner fiducials of a page on a printable sheet.
	Dots have a fixed radius and are half a radius apart, the vertex dots half a radius away from the sheet borders.
	'''

	def __init__(
		self,
		size    : Size2D                   = A4_300DPI,
		radius  : int                      = DOT_RADIUS,
		palette : Sequence[RGBColor] | None = None
	):
		'''
		:param size: The sheet size in pixels (width, height).
		:param radius: The radius of the printed dots in pixels.
		:param palette: The printed colors ordered as red, green, blue, yellow. Defaults to the CIELAB reference colors.
		'''

		palette_ = list(palette) if palette is not None else list(DEFAULT_PALETTE)
		if len(palette_) != len(DotColor): 
			raise ValueError(f'Palette must have {len(DotColor)} colors, got {len(palette_)}. ')

		w, h = size
		if min(w, h) < 2 * (self._margin(radius) + self._spacing(radius)): 
			raise ValueError(f'Sheet of size {size} is too small for dots of radius {radius}. ')

		self._size    : Size2D         = size
		self._radius  : int            = radius
		self._palette : List[RGBColor] = palette_

	def __str__ (self) -> str: return f'{self.__class__.__name__}[size: {self._size}; radius: {self._radius}]'
	def __repr__(self) -> str: return str(self)

	@staticmethod
	def _margin(radius: int) -> int: return radius // 2 + radius
	''' Distance of a vertex dot center from the sheet borders. '''

	@staticmethod
	def _spacing(radius: int) -> int: return radius // 2 + 2 * radius
	''' Distance between the centers of two consecutive dots of an arm. '''

	@property
	def size(self) -> Size2D: return self._size

	@property
	def spacing(self) -> int: return self._spacing(self._radius)

	# --- LAYOUT ---

	def layout(self, page: Page, scale: float = 1.) -> List[Corner]:
		'''
		The corners of the page as printed on the sheet: the template dot colors at their sheet positions,
		ordered as ulhc, urhc, lrhc, llhc.

		:param scale: Scale factor of the positions, to simulate the sheet as seen by a camera.
		'''

		w, h = self._size
		o = self._margin(self._radius)
		s = self.spacing

		vertices = [Point2D(x=o, y=o), Point2D(x=w - o, y=o), Point2D(x=w - o, y=h - o), Point2D(x=o, y=h - o)]

		corners: List[Corner] = []

		for template, vertex, (right, left) in zip(page.corners, vertices, ARM_DIRECTIONS):

			positions = [vertex + left * (2 * s), vertex + left * s, vertex, vertex + right * s, vertex + right * (2 * s)]
			dots = [Dot(position=p * scale, color=color) for p, color in zip(positions, template.colors)]
			corners.append(Corner(*dots))

		return corners

	def candidates(self, page: Page, scale: float = 1.) -> List[Circle]:
		''' The circle candidates an ideal detector would find on the sheet, with the printed colors as sampled colors. '''

		return [
			Circle(position=dot.position, radius=self._radius * scale, color=self._palette[dot.color])
			for corner in self.layout(page=page, scale=scale) for dot in corner.dots
		]

	# --- RENDER ---

	def render(self, page: Page) -> Frame:
		''' Render the sheet of the page as an RGB image on a white background. '''

		w, h = self._size
		img = np.full((h, w, 3), 255, dtype=np.uint8)

		for circle in self.candidates(page=page):
			circle.position.draw_circle(frame=img, radius=self._radius, color=circle.color, fill=True)

		return img

	def save(self, page: Page, path: str, logger: BaseLogger = SilentLogger()):
		''' Render the sheet of the page and save it as an image file. '''

		ISUtils.check_output   (path=path, logger=logger)
		ISUtils.check_extension(path=path, logger=logger, ext={'png', 'jpg', 'jpeg'})

		logger.info(msg=f'Saving sheet of page {page.id} to {path}')

		cv.imwrite(path, cv.cvtColor(self.render(page=page), cv.COLOR_RGB2BGR))  # NOTE: OpenCV writes images in BGR format

	# --- GENERATION ---

	@staticmethod
	def random_shorthands(rng: np.random.Generator) -> Tuple[Shorthand, Shorthand, Shorthand, Shorthand]:
		''' Four random corner shorthands. '''

		ulhc, urhc, lrhc, llhc = [''.join(ALPHABET[i] for i in rng.integers(0, len(ALPHABET), size=5)) for _ in range(4)]
		return ulhc, urhc, lrhc, llhc

	@staticmethod
	def generate(
		registry     : PageRegistry[_P],
		payload      : _P | None                  = None,
		rng          : np.random.Generator | None = None,
		max_attempts : int                        = 100,
		logger       : BaseLogger                 = SilentLogger()
	) -> Page[_P] | None:
		'''
		Generate a random page and register it, retrying until none of its partial ids collides with the registered pages.

		:param registry: The registry to add the page to.
		:param payload: The payload attached to the new page.
		:param rng: The random generator, a fresh unseeded one if not given.
		:param max_attempts: Number of random pages to try before giving up.
		:return: The registered page, None if every attempt collided.
		'''

		rng_ = rng if rng is not None else np.random.default_rng()

		for attempt in range(max_attempts):

			ulhc, urhc, lrhc, llhc = PageSheet.random_shorthands(rng=rng_)
			page: Page[_P] = Page.from_shorthand(ulhc=ulhc, urhc=urhc, lrhc=lrhc, llhc=llhc, payload=payload)

			if registry.register(page):
				logger.info(msg=f'Generated {page} after {attempt + 1} attempts. ')
				return page

		logger.warning(msg=f'Unable to generate a new page after {max_attempts} attempts. ')
		return None
