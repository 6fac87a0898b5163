'''
This file implements the tracking of recognized pages across frames.
Per-frame corner detection is flaky: a dot may be misclassified or a corner missed for a few frames.
The `PageTracker` buffers the corners of recognized pages for a number of frames (their time-to-live),
and snaps the colors of freshly detected corners to the colors of a persisted corner found at the same place.
'''

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Generic, List, Sequence, TypeVar

from papertalk.model.assembler import CornerGraphAssembler
from papertalk.model.corner import Corner
from papertalk.model.geom import Point2D
from papertalk.model.page import Page
from papertalk.utils.settings import PERSIST_DISTANCE, PERSIST_TTL

_P = TypeVar('_P')


@dataclass
class PersistEntry:
	''' A corner of a recognized page buffered across frames, with the page it belongs to and its remaining frames. '''

	key     : int
	corner  : Corner
	page_id : int
	ttl     : int

	def __str__ (self) -> str: return f'{self.__class__.__name__}[key={self.key}; {self.corner}; page={self.page_id}; ttl={self.ttl}]'
	def __repr__(self) -> str: return str(self)


class PageTracker(Generic[_P]):
	'''
	Class to recognize pages frame by frame, persisting their corners across frames.
	Persisted corners are indexed by integer keys and matched to new detections by vertex distance.
	NOTE: The tracker state is updated once per frame; frames must be processed strictly in sequence.
	'''

	def __init__(
		self,
		assembler        : CornerGraphAssembler[_P],
		persist_distance : float = PERSIST_DISTANCE,
		ttl              : int   = PERSIST_TTL
	):
		'''
		:param assembler: The assembler of the frame corners into pages.
		:param persist_distance: Max vertex distance in pixels to match a detected corner with a persisted one.
		:param ttl: Number of frames a persisted corner survives without being re-matched.
		'''

		if ttl <= 0: raise ValueError(f'Time to live must be positive, got {ttl}. ')

		self._assembler        : CornerGraphAssembler[_P] = assembler
		self._persist_distance : float                    = persist_distance
		self._ttl              : int                      = ttl

		self._persisted : Dict[int, PersistEntry] = {}
		self._next_key  : int                     = 0

	def __str__ (self) -> str: return f'{self.__class__.__name__}[persisted: {len(self._persisted)}; distance: {self._persist_distance}; ttl: {self._ttl}]'
	def __repr__(self) -> str: return str(self)

	# --- PROPERTIES ---

	@property
	def persisted(self) -> Dict[int, PersistEntry]: return dict(self._persisted)

	@property
	def assembler(self) -> CornerGraphAssembler[_P]: return self._assembler

	def reset(self):
		''' Forget every persisted corner. '''

		self._persisted.clear()

	# --- PERSISTENCE ---

	def _nearest(self, position: Point2D) -> PersistEntry | None:
		''' Nearest persisted corner whose vertex is within the persistence distance from the position. '''

		best: PersistEntry | None = None
		best_dist = self._persist_distance

		for entry in self._persisted.values():
			dist = entry.corner.vertex.distance(position)
			if dist < best_dist: best, best_dist = entry, dist

		return best

	def expire(self):
		'''
		Remove the persisted corners whose time to live already reached zero and decrement the others.
		A corner persisted with time to live N is still available for smoothing N frames later.
		'''

		for key, entry in list(self._persisted.items()):
			if entry.ttl == 0: del self._persisted[key]
			else:              entry.ttl -= 1

	def smooth(self, corners: Sequence[Corner]) -> List[Corner]:
		''' Snap the dot colors, not the positions, of each corner to the persisted corner at the same place, if any. '''

		smoothed: List[Corner] = []

		for corner in corners:
			entry = self._nearest(position=corner.vertex)
			smoothed.append(corner if entry is None else corner.with_colors(entry.corner.colors))

		return smoothed

	def persist(self, pages: Dict[int, Page[_P]]):
		''' Insert or refresh the corners of the recognized pages with the full time to live. '''

		for page in pages.values():
			for corner in page.corners:

				entry = self._nearest(position=corner.vertex)

				if entry is None:
					entry = PersistEntry(key=self._next_key, corner=corner, page_id=page.id, ttl=self._ttl)
					self._persisted[entry.key] = entry
					self._next_key += 1
				else:
					entry.corner, entry.page_id, entry.ttl = corner, page.id, self._ttl

	# --- TRACKING ---

	def __call__(self, corners: Sequence[Corner]) -> Dict[int, Page[_P]]:
		'''
		Recognize the pages of a frame.

		:param corners: The corners detected in the frame.
		:return: The recognized pages indexed by page identity.
		'''

		self.expire()

		pages = self._assembler(self.smooth(corners))

		self.persist(pages)

		return pages
