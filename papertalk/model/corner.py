'''
This file implements the corner fiducial and its detection logic.
	- The `Dot` and `Corner` classes describe a corner fiducial: five colored dots shaped as a right-angle arrow,
		whose colors pack into a 10-bit corner identity.
	- The `CornerMatcher` class decides whether the circle candidates of a spatial bucket form exactly one valid corner,
		checking the arrow geometry and classifying the dot colors.
'''

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

import numpy as np

from papertalk.model.color import ColorClassifier, DotColor
from papertalk.model.geom import Circle, Point2D, angle_between, centroid, rotate_around
from papertalk.utils.settings import (
	COLLINEAR_TOLERANCE, DISTANCE_BUCKET, RADIUS_MARGIN,
	RATIO_MARGIN, ROTATION_TOLERANCE, SHORT_RADIUS_MARGIN
)
from papertalk.utils.typing import Frame, RGBColor, Shorthand

# __________________________________ CORNER __________________________________

DISPLAY_COLORS: Dict[DotColor, RGBColor] = {
	DotColor.RED    : (255,   0,   0),
	DotColor.GREEN  : (  0, 255,   0),
	DotColor.BLUE   : (  0,   0, 255),
	DotColor.YELLOW : (255, 255,   0),
}
''' Saturated colors used to draw classified dots in debug views. '''

@dataclass
class Dot:
	''' A classified dot: its position in pixels and its color. '''

	position : Point2D
	color    : DotColor

	def __str__ (self) -> str: return f'{self.__class__.__name__}[{self.position}; {self.color}]'
	def __repr__(self) -> str: return str(self)


@dataclass
class Corner:
	'''
	A corner fiducial as an ordered 5-tuple of dots with `m` at the vertex of the arrow.
	`ll` and `rr` are the arm ends, `l` and `r` the arm midpoints.

	To define left and right under rotation: the left arm can make a quarter of counterclockwise turn
	around `m` and end up on top of the right arm, closing the corner.
	'''

	ll : Dot
	l  : Dot
	m  : Dot
	r  : Dot
	rr : Dot

	# NOTE: An inferred corner is synthesized from the other three corners of a page: only its vertex position is meaningful.
	inferred : bool = False

	@classmethod
	def placeholder(cls, position: Point2D) -> Corner:
		''' An inferred corner with all its dots at the given vertex position. '''

		return cls(*[Dot(position=position, color=DotColor.RED) for _ in range(5)], inferred=True)

	# --- MAGIC METHODS ---

	def __str__ (self) -> str: return f'{self.__class__.__name__}[{self.shorthand}; m={self.m.position}{"; inferred" if self.inferred else ""}]'
	def __repr__(self) -> str: return str(self)

	# --- PROPERTIES ---

	@property
	def dots(self) -> List[Dot]: return [self.ll, self.l, self.m, self.r, self.rr]

	@property
	def colors(self) -> List[DotColor]: return [dot.color for dot in self.dots]

	@property
	def vertex(self) -> Point2D: return self.m.position

	@property
	def id(self) -> int:
		'''
		Each dot color stores 2 bits of information, one corner therefore has 10 bits.
		Colors are packed `ll, l, m, r, rr` from the highest to the lowest bits.
		'''

		out = 0
		for color in self.colors: out = (out << 2) | int(color)
		return out

	@property
	def shorthand(self) -> Shorthand: return ''.join(color.char for color in self.colors)

	# --- COLORS ---

	def with_colors(self, colors: Sequence[DotColor]) -> Corner:
		''' A copy of the corner keeping the dot positions and replacing the dot colors. '''

		if len(colors) != 5: raise ValueError(f'A corner has 5 dot colors, got {len(colors)}. ')

		dots = [Dot(position=dot.position, color=DotColor(color)) for dot, color in zip(self.dots, colors)]

		return Corner(*dots, inferred=self.inferred)

	# --- DRAW ---

	def draw(self, frame: Frame, radius: int = 8, arm_color: RGBColor = (0, 0, 255)) -> Frame:
		''' Draw the corner arms and its classified dots on the frame in-place. '''

		if not self.inferred:
			Point2D.draw_line(frame=frame, point1=self.m.position, point2=self.ll.position, color=arm_color, thickness=2)
			Point2D.draw_line(frame=frame, point1=self.m.position, point2=self.rr.position, color=arm_color, thickness=2)

		for dot in self.dots:
			dot.position.draw_circle(frame=frame, radius=radius, color=DISPLAY_COLORS[dot.color], fill=True)

		return frame


def decode_corner_id(corner_id: int) -> List[DotColor]:
	''' Unpack a 10-bit corner identity into the 5 dot colors `ll, l, m, r, rr`. '''

	if not 0 <= corner_id < 1 << 10: raise ValueError(f'Invalid corner id {corner_id}: expected a 10-bit value. ')

	return [DotColor((corner_id >> shift) & 0b11) for shift in range(8, -1, -2)]

def corner_from_shorthand(shorthand: Shorthand) -> Corner:
	'''
	Create a corner template from its shorthand: 5 characters over the alphabet `rgby`, listing `ll, l, m, r, rr`.
	Templates carry no position: all the dots are at the origin.
	'''

	if len(shorthand) != 5: raise ValueError(f'Invalid corner shorthand {shorthand!r}: expected 5 characters, got {len(shorthand)}. ')

	origin = Point2D(x=0., y=0.)
	return Corner(*[Dot(position=origin, color=DotColor.from_char(char)) for char in shorthand])

# __________________________________ DETECTION __________________________________

Line = Tuple[int, int, int]
''' Indexes of three collinear circles (end, midpoint, end). '''

class CornerMatcher:
	'''
	Class to detect a single corner among the circle candidates of a spatial bucket.
	The detection is parametrized with the empirical tolerances of the arrow geometry:
		- the coarse distance bucket and the collinearity tolerance to find the two arms as lines of three dots;
		- the margins on the distances of the five dots from their centroid (three at a short radius, two at twice it);
		- the tolerance of the quarter-turn test telling the left arm from the right one.
	'''

	def __init__(
		self,
		classifier          : ColorClassifier | None = None,
		distance_bucket     : float                  = DISTANCE_BUCKET,
		collinear_tolerance : float                  = COLLINEAR_TOLERANCE,
		short_radius_margin : float                  = SHORT_RADIUS_MARGIN,
		radius_margin       : float                  = RADIUS_MARGIN,
		ratio_margin        : float                  = RATIO_MARGIN,
		rotation_tolerance  : float                  = ROTATION_TOLERANCE,
	):
		'''
		:param classifier: The classifier of the sampled dot colors. Defaults to the printed reference palette.
		:param distance_bucket: Width in pixels of the buckets grouping distances between circles.
		:param collinear_tolerance: Max deviation in radians from a straight angle for three circles to form a line.
		:param short_radius_margin: Margin between the two smallest centroid distances.
		:param radius_margin: Margin between the other pairs of centroid distances at the same radius.
		:param ratio_margin: Margin between twice the mean short radius and the mean long radius.
		:param rotation_tolerance: Max distance in pixels between a rotated arm end and the other arm end.
		'''

		self._classifier          : ColorClassifier = classifier if classifier is not None else ColorClassifier()
		self._distance_bucket     : float           = distance_bucket
		self._collinear_tolerance : float           = collinear_tolerance
		self._short_radius_margin : float           = short_radius_margin
		self._radius_margin       : float           = radius_margin
		self._ratio_margin        : float           = ratio_margin
		self._rotation_tolerance  : float           = rotation_tolerance

	# --- MAGIC METHODS ---

	def __str__ (self) -> str : return f'{self.__class__.__name__}[{"; ".join([f"{k}: {v}" for k, v in self.params.items()])}]'
	def __repr__(self) -> str : return str(self)

	@property
	def params(self) -> Dict[str, float]: return {
		'distance bucket'     : self._distance_bucket,
		'collinear tolerance' : self._collinear_tolerance,
		'short radius margin' : self._short_radius_margin,
		'radius margin'       : self._radius_margin,
		'ratio margin'        : self._ratio_margin,
		'rotation tolerance'  : self._rotation_tolerance,
	}

	@property
	def classifier(self) -> ColorClassifier: return self._classifier

	@classifier.setter
	def classifier(self, classifier: ColorClassifier): self._classifier = classifier

	# --- DETECTION ---

	'''
	The detection is broken up in three steps:
		1) Find the two arms as lines of three equidistant collinear circles sharing one end, the vertex.
		2) Check the distances of the five circles from their centroid.
		3) Tell the left arm from the right one.
	Each step returns a warning message if it fails, an empty string otherwise.
	'''

	@staticmethod
	def _equal_with_margin(x: float, y: float, margin: float) -> bool: return abs(x - y) <= margin

	def _find_lines(self, circles: Sequence[Circle]) -> List[Line]:
		'''
		For each circle, look for another pair of circles at the same coarse distance from it
		and on opposite sides of it, making the circle the midpoint of a line of three.
		'''

		lines: List[Line] = []

		for i, c in enumerate(circles):

			# Group the other circles by coarse distance from the current one
			buckets: Dict[int, List[int]] = defaultdict(list)
			for j, o in enumerate(circles):
				if i == j: continue
				dist = c.position.distance(o.position)
				if dist == 0: continue  # Skip duplicated candidates
				buckets[int(dist / self._distance_bucket)].append(j)

			for key in sorted(buckets):

				candidates = buckets[key]
				if len(candidates) != 2: continue

				a, b = candidates
				angle = angle_between(circles[a].position - c.position, circles[b].position - c.position)

				if abs(angle - math.pi) < self._collinear_tolerance:
					lines.append((a, i, b))
					break

		return lines

	@staticmethod
	def _join_lines(lines: List[Line]) -> Tuple[Tuple[int, int, int, int, int] | None, str]:
		''' Join two lines sharing exactly one end into the arrow (end1, mid1, top, mid2, end2). '''

		if len(lines) != 2: return None, f'Expected 2 lines of dots, found {len(lines)}. '

		(a1, mid1, b1), (a2, mid2, b2) = lines
		shared = {a1, b1} & {a2, b2}

		if len(shared) != 1: return None, f'Lines of dots share {len(shared)} ends, expected 1. '

		top  = shared.pop()
		end1 = b1 if a1 == top else a1
		end2 = b2 if a2 == top else a2

		arrow = (end1, mid1, top, mid2, end2)
		if len(set(arrow)) != 5: return None, f'Lines of dots do not form an arrow of five distinct dots. '

		return arrow, ''

	def _check_radii(self, points: Sequence[Point2D]) -> str:
		''' 
		Check the distances of the five points from their centroid.
		The three smallest are roughly equal (the vertex and the arm midpoints), 
		the two largest are roughly equal to twice them (the arm ends).
		'''

		center = centroid(points)
		d = np.sort([p.distance(center) for p in points])

		short_radius = float(np.mean(d[:3]))
		long_radius  = float(np.mean(d[3:]))

		checks = [
			(2 * short_radius, long_radius, self._ratio_margin,        'long radius is not twice the short one'),
			(d[0],             d[1],        self._short_radius_margin, 'short radii 0 and 1 differ'            ),
			(d[0],             d[2],        self._radius_margin,       'short radii 0 and 2 differ'            ),
			(d[1],             d[2],        self._radius_margin,       'short radii 1 and 2 differ'            ),
			(d[3],             d[4],        self._radius_margin,       'long radii differ'                     ),
		]

		for x, y, margin, reason in checks:
			if not self._equal_with_margin(x, y, margin): return f'Invalid arrow geometry: {reason} ({x:.2f} vs {y:.2f}). '

		return ''

	def __call__(self, circles: Sequence[Circle]) -> Tuple[Corner | None, str]:
		'''
		Detect a corner among the circle candidates.

		:param circles: The circle candidates of a spatial bucket.
		:return: A tuple of
			- The detected corner if found, None otherwise.
			- The warning message if the corner is not detected, empty string otherwise.
		'''

		# 1. Find the two arms
		lines = self._find_lines(circles)
		arrow, warning = self._join_lines(lines)
		if arrow is None: return None, warning

		end1, mid1, top, mid2, end2 = [circles[i] for i in arrow]

		# 2. Check the distances from the centroid
		warning = self._check_radii([c.position for c in (end1, mid1, top, mid2, end2)])
		if warning: return None, warning

		# 3. Rotate both ends around the top by a quarter: the one ending on top of the other is the left one
		rot1 = rotate_around(pivot=top.position, point=end1.position, radians=math.pi / 2)
		rot2 = rotate_around(pivot=top.position, point=end2.position, radians=math.pi / 2)

		if   rot1.distance(end2.position) < self._rotation_tolerance: left, left_mid, right_mid, right = end1, mid1, mid2, end2
		elif rot2.distance(end1.position) < self._rotation_tolerance: left, left_mid, right_mid, right = end2, mid2, mid1, end1
		else: return None, f'Arms are not a quarter turn apart. '

		dots = [
			Dot(position=c.position, color=self._classifier(c.color))
			for c in (left, left_mid, top, right_mid, right)
		]

		return Corner(*dots), ''
