'''
This file contains auxiliary geometric classes used in the project.
	- Geometric primitives such as points, with vector operations in image coordinates (y axis pointing down).
	- Circles, the raw candidates produced by the external circle detector.
	- Buckets, the rectangular spatial windows used to group circle candidates.
'''

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, Sequence, Tuple

import cv2 as cv
import numpy as np

from papertalk.utils.typing import Frame, RGBColor


# __________________________________ GEOMETRIC PRIMITIVES __________________________________ #

Points2D = Sequence['Point2D']

@dataclass
class Point2D:
	''' Class representing a 2D point in pixel coordinates, also used as a 2D vector. '''

	x: float
	y: float

	def __str__ (self) -> str             : return f'{self.__class__.__name__}({self.x:.1f}, {self.y:.1f})'
	def __repr__(self) -> str             : return str(self)
	def __iter__(self) -> Iterator[float] : return iter([self.x, self.y])

	def __add__(self, other: Point2D) -> Point2D: return Point2D(x=self.x + other.x, y=self.y + other.y)
	def __sub__(self, other: Point2D) -> Point2D: return Point2D(x=self.x - other.x, y=self.y - other.y)
	def __mul__(self, k: float)       -> Point2D: return Point2D(x=self.x * k,       y=self.y * k      )

	@classmethod
	def from_tuple(cls, xy: Tuple[float, float]) -> Point2D:
		x, y = xy
		return cls(x=float(x), y=float(y))

	@property
	def pixel(self) -> Tuple[int, int]: return int(round(self.x)), int(round(self.y))
	''' Integer pixel coordinates, as required by OpenCV drawing functions. '''

	def norm(self) -> float: return math.hypot(self.x, self.y)

	def distance(self, other: Point2D) -> float: return (self - other).norm()

	# --- FRAME OPERATIONS ---

	def draw_circle(
		self,
		frame     : Frame,
		radius    : int      = 3,
		color     : RGBColor = (255, 0, 0),
		thickness : int      = 5,
		fill      : bool     = False,
		**kwargs
	) -> Frame:
		'''
		Draw the point as a circle on the frame.
		NOTE: The drawing is in-place on the frame, points out of the frame are clipped by OpenCV.
		'''

		if fill: thickness = -1
		cv.circle(frame, self.pixel, radius=radius, color=color, thickness=thickness, **kwargs)

		return frame

	@staticmethod
	def draw_line(
		frame     : Frame,
		point1    : Point2D,
		point2    : Point2D,
		color     : RGBColor = (255, 0, 0),
		thickness : int      = 2,
		**kwargs
	) -> Frame:
		'''
		Draw a line between two points on the frame. 
		NOTE: The drawing is in-place on the frame.
		'''

		cv.line(img=frame, pt1=point1.pixel, pt2=point2.pixel, color=color, thickness=thickness, **kwargs)

		return frame


def rotate_around(pivot: Point2D, point: Point2D, radians: float) -> Point2D:
	'''
	Rotate a point around a pivot by the given angle.
	The rotation is counterclockwise as seen on screen, where the y axis points down:
		a quarter turn maps the offset (dx, dy) to (dy, -dx).
	'''

	s = math.sin(-radians)
	c = math.cos(-radians)

	x, y = point - pivot

	return Point2D(x=c * x - s * y + pivot.x, y=s * x + c * y + pivot.y)

def angle_between(u: Point2D, v: Point2D) -> float:
	''' Unsigned angle in radians between two non-zero vectors, in [0, pi]. '''

	norms = u.norm() * v.norm()
	if norms == 0: raise ValueError(f'Angle is undefined for zero-length vectors {u} and {v}. ')

	cos = (u.x * v.x + u.y * v.y) / norms

	# NOTE: Clipping avoids NaN when rounding pushes the cosine slightly outside [-1, 1]
	return float(np.arccos(np.clip(cos, -1., 1.)))

def centroid(points: Points2D) -> Point2D:
	''' Mean point of a non-empty set of points. '''

	return Point2D.from_tuple(np.mean(np.array([tuple(p) for p in points], dtype=np.float64), axis=0))

# __________________________________ CIRCLES __________________________________ #

@dataclass
class Circle:
	''' 
	A circle candidate found by the external detector in a frame:
	its center in pixels, its radius and the color sampled at its center.
	'''

	position : Point2D
	radius   : float
	color    : RGBColor

	def __str__ (self) -> str: return f'{self.__class__.__name__}[{self.position}; r={self.radius:.1f}; rgb={self.color}]'
	def __repr__(self) -> str: return str(self)

	@classmethod
	def from_tuple(cls, xyr: Tuple[float, float, float], color: RGBColor) -> Circle:
		''' Create a circle from the (x, y, radius) triple as returned by a Hough circle transform. '''

		x, y, r = xyr
		return cls(position=Point2D(x=float(x), y=float(y)), radius=float(r), color=color)

# __________________________________ BUCKETS __________________________________ #

@dataclass(frozen=True)
class Bucket:
	''' 
	Rectangular spatial bucket of a frame in pixel coordinates. 
	The bucket is half-open: it contains the points with x0 <= x < x1 and y0 <= y < y1.
	NOTE: The dataclass is frozen so that buckets can index the per-frame mapping of circles.
	'''

	x0: int
	y0: int
	x1: int
	y1: int

	def __str__ (self) -> str: return f'{self.__class__.__name__}[({self.x0}, {self.y0}) - ({self.x1}, {self.y1})]'
	def __repr__(self) -> str: return str(self)

	def __contains__(self, point: Point2D) -> bool:
		return self.x0 <= point.x < self.x1 and self.y0 <= point.y < self.y1

	def draw(self, frame: Frame, color: RGBColor = (255, 0, 0), thickness: int = 2) -> Frame:
		''' Draw the bucket rectangle on the frame in-place. '''

		cv.rectangle(frame, (self.x0, self.y0), (self.x1, self.y1), color=color, thickness=thickness)

		return frame
