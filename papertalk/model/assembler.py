'''
This file implements the assembly of the corners detected in a frame into pages.
The corners of a frame are kept in a flat list and referred to by index:
	1. Each corner is linked to its clockwise successor, the nearest corner its right arm points to
		and whose left arm points back.
	2. Chains of successors are traced from each corner: a closed cycle of four corners is a full page,
		an open chain of three corners is a page with one corner covered.
	3. Chains are resolved against the page registry, canonicalized to the template corner order,
		and error-corrected by taking the dot colors from the template.
'''

from __future__ import annotations

import math
from typing import Dict, Generic, List, Sequence, Tuple, TypeVar

from papertalk.model.corner import Corner
from papertalk.model.geom import Point2D, angle_between
from papertalk.model.page import Page, PageRegistry
from papertalk.utils.settings import ADJACENCY_TOLERANCE

_P = TypeVar('_P')

Chain = List[int]
''' Indexes of the corners of a chain in clockwise order. '''


class CornerGraphAssembler(Generic[_P]):
	''' Class to assemble the corners of a frame into recognized pages. '''

	def __init__(self, registry: PageRegistry[_P], adjacency_tolerance: float = ADJACENCY_TOLERANCE):
		'''
		:param registry: The registry of the known pages.
		:param adjacency_tolerance: Max angle in radians between the arm of a corner and the direction to its neighbour.
		'''

		self._registry            : PageRegistry[_P] = registry
		self._adjacency_tolerance : float            = adjacency_tolerance

	def __str__ (self) -> str: return f'{self.__class__.__name__}[{self._registry}; adjacency tolerance: {self._adjacency_tolerance}]'
	def __repr__(self) -> str: return str(self)

	@property
	def registry(self) -> PageRegistry[_P]: return self._registry

	# --- ADJACENCY ---

	def successors(self, corners: Sequence[Corner]) -> List[int | None]:
		'''
		For each corner find its clockwise successor, if any.
		A corner `o` succeeds `c` if the right arm of `c` points to the vertex of `o` 
		and the left arm of `o` points back to the vertex of `c`. Among multiple candidates, the nearest is kept.
		'''

		successors: List[int | None] = [None] * len(corners)

		for i, c in enumerate(corners):

			right = c.rr.position - c.vertex
			if right.norm() == 0: continue  # Degenerate corner with no right arm

			best_dist = math.inf

			for j, o in enumerate(corners):

				to_o = o.vertex - c.vertex
				if i == j or to_o.norm() == 0: continue

				if angle_between(right, to_o) > self._adjacency_tolerance: continue

				left = o.ll.position - o.vertex
				if left.norm() == 0: continue

				if angle_between(left, c.vertex - o.vertex) > self._adjacency_tolerance: continue

				# Keep the nearest candidate
				dist = to_o.norm()
				if dist < best_dist: successors[i], best_dist = j, dist

		return successors

	@staticmethod
	def trace(start: int, successors: List[int | None]) -> Chain | None:
		'''
		Follow the successors from a starting corner up to four hops.
		Only two shapes are pages:
			- three distinct corners and no fourth, a page with a covered corner;
			- four distinct corners with the fifth hop back to the first, a full page.
		'''

		chain: Chain = [start]
		current = start

		for _ in range(4):
			following = successors[current]
			if following is None: break
			chain.append(following)
			current = following

		if len(chain) == 3 and len(set(chain)) == 3:                         return chain
		if len(chain) == 5 and chain[4] == chain[0] and len(set(chain)) == 4: return chain[:4]

		return None

	# --- RESOLUTION ---

	@staticmethod
	def page_angle(ulhc: Corner, urhc: Corner) -> float:
		''' 
		Angle of the page in [0, 2pi) as the angle of the right arm of its upper left hand corner w.r.t. the x axis,
		growing clockwise on screen. For an inferred upper left hand corner, the direction to the next corner is used.
		'''

		arm = ulhc.rr.position - ulhc.vertex if not ulhc.inferred else urhc.vertex - ulhc.vertex
		angle = angle_between(arm, Point2D(x=100., y=0.))

		if arm.y < 0: angle = 2 * math.pi - angle

		return angle

	def resolve(self, chain: Sequence[Corner]) -> Page[_P] | None:
		'''
		Resolve a chain of three or four corners in clockwise order against the registry.
		The recognized page has the detected positions and the template dot colors, so that a misclassified dot
		does not corrupt the identity of the corner in the following frames.
		'''

		located: Tuple[Page[_P], int] | None = None
		chain_ = list(chain)

		match len(chain_):

			# Three corners: look up by their partial id and synthesize the missing vertex as the parallelogram completion
			case 3:
				located = self._registry.locate(*chain_)
				if located is None: return None

				a, b, c = chain_
				missing = c.vertex + (a.vertex - b.vertex)
				chain_.append(Corner.placeholder(position=missing))

			# Four corners: one of them may be misclassified, try the partial ids of all four rotations
			case 4:
				for _ in range(4):
					located = self._registry.locate(*chain_[:3])
					if located is not None: break
					chain_ = chain_[1:] + chain_[:1]

				if located is None: return None

			case _: raise ValueError(f'Expected a chain of 3 or 4 corners, got {len(chain_)}. ')

		template, first = located

		# Canonicalize: the i-th corner of the chain is the (first + i)-th template corner
		positioned: List[Corner] = [None] * 4  # type: ignore - filled below
		for i, corner in enumerate(chain_):
			k = (first + i) % 4
			positioned[k] = corner.with_colors(template.corners[k].colors)

		return template.positioned(corners=positioned, angle=self.page_angle(ulhc=positioned[0], urhc=positioned[1]))

	def __call__(self, corners: Sequence[Corner]) -> Dict[int, Page[_P]]:
		'''
		Assemble the corners of a frame into pages.

		:param corners: The corners detected in the frame.
		:return: The recognized pages indexed by page identity. When a page is resolved more than once, the first one is kept.
		'''

		successors = self.successors(corners)

		pages  : Dict[int, Page[_P]] = {}
		claimed: List[bool]          = [False] * len(corners)

		for start in range(len(corners)):

			if claimed[start]: continue

			chain = self.trace(start=start, successors=successors)
			if chain is None: continue

			page = self.resolve(chain=[corners[i] for i in chain])
			if page is None: continue

			for i in chain: claimed[i] = True

			if page.id in pages: continue
			pages[page.id] = page

		return pages
