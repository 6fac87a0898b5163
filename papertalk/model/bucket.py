'''
This file implements the grouping of the circle candidates of a frame into overlapping spatial buckets.
Buckets are square windows laid on a grid with a stride smaller than the window,
so that every corner whose dots span at most `window - stride` pixels falls entirely within at least one bucket.
'''

from __future__ import annotations

import math
from typing import Dict, List, Sequence

from papertalk.model.geom import Bucket, Circle
from papertalk.utils.settings import BUCKET_STRIDE, BUCKET_WINDOW
from papertalk.utils.typing import Size2D


class CircleBucketer:
	''' Class to partition circle candidates into overlapping square buckets. '''

	def __init__(self, window: int = BUCKET_WINDOW, stride: int = BUCKET_STRIDE):
		'''
		:param window: Side of a bucket in pixels.
		:param stride: Step between two consecutive buckets in pixels, it must not exceed the window.
		'''

		if not 0 < stride <= window: raise ValueError(f'Invalid bucket grid: stride {stride} must be positive and not exceed window {window}. ')

		self._window : int = window
		self._stride : int = stride

	def __str__ (self) -> str: return f'{self.__class__.__name__}[window: {self._window}; stride: {self._stride}]'
	def __repr__(self) -> str: return str(self)

	@property
	def coverage(self) -> int: return self._window - self._stride
	''' Max extent in pixels of a set of points guaranteed to fall together within one bucket. '''

	def buckets(self, size: Size2D) -> List[Bucket]:
		''' The grid of buckets covering a frame of the given size (width, height). '''

		w, h = size

		return [
			Bucket(x0=x, y0=y, x1=x + self._window, y1=y + self._window)
			for x in range(0, max(w, 1), self._stride)
			for y in range(0, max(h, 1), self._stride)
		]

	def __call__(self, circles: Sequence[Circle], size: Size2D | None = None) -> Dict[Bucket, List[Circle]]:
		'''
		Assign each circle to every bucket containing its center, returning only non-empty buckets.

		:param circles: The circle candidates of the frame.
		:param size: The frame size (width, height). If not given, it is the smallest size containing all the circle centers.
		'''

		if not circles: return {}

		if size is None:
			size = (
				math.floor(max(c.position.x for c in circles)) + 1,
				math.floor(max(c.position.y for c in circles)) + 1
			)

		partition: Dict[Bucket, List[Circle]] = {}

		for bucket in self.buckets(size=size):
			inside = [c for c in circles if c.position in bucket]
			if inside: partition[bucket] = inside

		return partition
