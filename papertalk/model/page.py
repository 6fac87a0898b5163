'''
This file implements pages and the registry of known pages.
	- A `Page` is identified by its four corners, packed into a 40-bit page identity.
	- The `PageRegistry` stores page templates under each of their four 30-bit partial identities,
		so that a page can be recognized from any three consecutive corners when the fourth is covered.
'''

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Generic, Iterable, Iterator, List, Tuple, TypeVar

from papertalk.model.corner import Corner, corner_from_shorthand
from papertalk.model.geom import Point2D
from papertalk.utils.io_ import BaseLogger, InputSanitizationUtils as ISUtils, SilentLogger
from papertalk.utils.typing import Frame, RGBColor, Shorthand

_P = TypeVar('_P')

CORNER_NAMES = ['ulhc', 'urhc', 'lrhc', 'llhc']
''' Page corners in clockwise order from the upper left hand corner. '''

# __________________________________ IDENTITIES __________________________________

def page_id(ulhc: int, urhc: int, lrhc: int, llhc: int) -> int:
	'''
	One page has 4 corners of 10 bits each, therefore a 40-bit identity,
	packed in clockwise order from the upper left hand corner, from the highest to the lowest bits.
	'''

	return (ulhc << 30) | (urhc << 20) | (lrhc << 10) | llhc

def partial_id(x: int, y: int, z: int) -> int:
	'''
	Identity of three consecutive corners, packed in 30 bits.
	NOTE: Each page has 4 of them and each has to be unique in the registry, so that a page is still recognized
		when one of its corners is covered. This takes 2 bits out of the space of page identities.
	'''

	return (x << 20) | (y << 10) | z

def decode_page_id(pid: int) -> Tuple[int, int, int, int]:
	''' Unpack a page identity into its four corner identities `ulhc, urhc, lrhc, llhc`. '''

	if not 0 <= pid < 1 << 40: raise ValueError(f'Invalid page id {pid}: expected a 40-bit value. ')

	mask = (1 << 10) - 1
	return (pid >> 30) & mask, (pid >> 20) & mask, (pid >> 10) & mask, pid & mask

# __________________________________ PAGE __________________________________

@dataclass
class Page(Generic[_P]):
	'''
	Dataclass representing a page with its four corners in clockwise order and the payload attached to it.
	As a registered template, the corners only carry dot colors; as a recognized page,
	they carry the detected positions and the angle of the page in the frame.
	'''

	id      : int
	ulhc    : Corner
	urhc    : Corner
	lrhc    : Corner
	llhc    : Corner
	angle   : float = 0.
	payload : _P | None = field(default=None)

	@classmethod
	def template(cls, ulhc: Corner, urhc: Corner, lrhc: Corner, llhc: Corner, payload: _P | None = None) -> Page[_P]:
		''' Create a page template computing its identity from the corners. '''

		return cls(
			id=page_id(ulhc.id, urhc.id, lrhc.id, llhc.id),
			ulhc=ulhc, urhc=urhc, lrhc=lrhc, llhc=llhc,
			payload=payload
		)

	@classmethod
	def from_shorthand(cls, ulhc: Shorthand, urhc: Shorthand, lrhc: Shorthand, llhc: Shorthand, payload: _P | None = None) -> Page[_P]:
		''' 
		Create a page template from the shorthands of its corners.
		NOTE: It raises a ValueError for malformed shorthands.
		'''

		corners = [corner_from_shorthand(shorthand) for shorthand in (ulhc, urhc, lrhc, llhc)]

		return cls.template(*corners, payload=payload)

	# --- MAGIC METHODS ---

	def __str__(self) -> str:
		corners_str = '; '.join([f'{name}={corner.shorthand}' for name, corner in zip(CORNER_NAMES, self.corners)])
		return f'{self.__class__.__name__}[id={self.id}; {corners_str}; angle={self.angle:.2f}]'

	def __repr__(self) -> str: return str(self)

	def __getitem__(self, index: int) -> Corner: return self.corners[index]

	# --- PROPERTIES ---

	@property
	def corners(self) -> List[Corner]: return [self.ulhc, self.urhc, self.lrhc, self.llhc]

	@property
	def shorthands(self) -> List[Shorthand]: return [corner.shorthand for corner in self.corners]

	@property
	def vertices(self) -> List[Point2D]: return [corner.vertex for corner in self.corners]

	@property
	def partial_ids(self) -> List[int]:
		''' The 4 partial identities, the k-th one starting from the k-th corner in clockwise order. '''

		ids = [corner.id for corner in self.corners]
		return [partial_id(ids[k], ids[(k + 1) % 4], ids[(k + 2) % 4]) for k in range(4)]

	@property
	def center(self) -> Point2D:
		x = sum(v.x for v in self.vertices) / 4
		y = sum(v.y for v in self.vertices) / 4
		return Point2D(x=x, y=y)

	# --- OUTPUT ---

	def positioned(self, corners: List[Corner], angle: float) -> Page[_P]:
		''' A copy of the page with the given positioned corners (ulhc, urhc, lrhc, llhc) and angle. '''

		ulhc, urhc, lrhc, llhc = corners
		return replace(self, ulhc=ulhc, urhc=urhc, lrhc=lrhc, llhc=llhc, angle=angle)

	def to_record(self, transform: Callable[[Point2D], Point2D] | None = None) -> Dict[str, Any]:
		'''
		Record handed off to the downstream rule engine: the page identity, the vertex positions of its corners
		optionally mapped to projector space by the calibration transform, its angle and payload.
		'''

		transform_ = transform if transform is not None else (lambda p: p)

		return {
			'id'      : self.id,
			**{name: tuple(transform_(corner.vertex)) for name, corner in zip(CORNER_NAMES, self.corners)},
			'angle'   : self.angle,
			'payload' : self.payload,
		}

	def draw(self, frame: Frame, color: RGBColor = (0, 255, 0), thickness: int = 2) -> Frame:
		''' Draw the page outline through its corner vertices and its corners on the frame in-place. '''

		vertices = self.vertices

		for i in range(4):
			Point2D.draw_line(frame=frame, point1=vertices[i], point2=vertices[(i + 1) % 4], color=color, thickness=thickness)

		for corner in self.corners: corner.draw(frame=frame)

		return frame

# __________________________________ REGISTRY __________________________________

class PageRegistry(Generic[_P]):
	'''
	Store of the known page templates, indexed by each of their four partial identities and by their page identity.
	The registry is filled at startup and only read while recognizing frames.
	'''

	def __init__(self, logger: BaseLogger = SilentLogger()):

		self._logger     : BaseLogger                          = logger
		self._by_partial : Dict[int, Tuple[Page[_P], int]]     = {}  # Partial id -> (page, index of the first corner of the partial id)
		self._by_id      : Dict[int, Page[_P]]                 = {}

	@classmethod
	def from_definitions(
		cls, 
		definitions : Iterable[Tuple[Shorthand, Shorthand, Shorthand, Shorthand, _P]],
		logger      : BaseLogger = SilentLogger()
	) -> PageRegistry[_P]:
		''' Create a registry from tuples (ulhc, urhc, lrhc, llhc, payload) of corner shorthands. '''

		registry: PageRegistry[_P] = cls(logger=logger)

		for ulhc, urhc, lrhc, llhc, payload in definitions:
			registry.register_shorthand(ulhc=ulhc, urhc=urhc, lrhc=lrhc, llhc=llhc, payload=payload)

		return registry

	@classmethod
	def from_json(cls, path: str, logger: BaseLogger = SilentLogger()) -> PageRegistry:
		''' Create a registry from a JSON file with a list of objects with keys `ulhc`, `urhc`, `lrhc`, `llhc` and `payload`. '''

		ISUtils.check_input    (path=path, logger=logger)
		ISUtils.check_extension(path=path, logger=logger, ext='json')

		logger.info(msg=f'Loading page definitions from {path}')

		with open(path, 'r') as f: definitions = json.load(f)

		if not isinstance(definitions, list): 
			logger.handle_error(msg=f'Invalid page definitions in {path}: expected a list of pages. ', exception=ValueError)

		try:
			entries = [(d['ulhc'], d['urhc'], d['lrhc'], d['llhc'], d.get('payload', None)) for d in definitions]
		except (KeyError, TypeError) as e:
			logger.handle_error(msg=f'Invalid page definition in {path}: {e}', exception=ValueError)

		return cls.from_definitions(definitions=entries, logger=logger)

	# --- MAGIC METHODS ---

	def __str__     (self)          -> str                : return f'{self.__class__.__name__}[pages: {len(self)}]'
	def __repr__    (self)          -> str                : return str(self)
	def __len__     (self)          -> int                : return len(self._by_id)
	def __iter__    (self)          -> Iterator[Page[_P]] : return iter(self._by_id.values())
	def __contains__(self, pid: int) -> bool              : return pid in self._by_id

	# --- REGISTRATION ---

	def register(self, page: Page[_P]) -> bool:
		'''
		Register a page template under its four partial identities and its page identity.
		If any of the partial identities is already taken, or the page partial identities are not distinct,
		the registry is left unchanged and False is returned.
		'''

		partial_ids = page.partial_ids

		if len(set(partial_ids)) != len(partial_ids):
			self._logger.warning(msg=f'Cannot register {page}: its partial ids are not distinct. ')
			return False

		taken = [pid for pid in partial_ids if pid in self._by_partial]
		if taken:
			others = {self._by_partial[pid][0].id for pid in taken}
			self._logger.warning(msg=f'Cannot register {page}: partial ids collide with pages {sorted(others)}. ')
			return False

		for k, pid in enumerate(partial_ids): self._by_partial[pid] = (page, k)
		self._by_id[page.id] = page

		self._logger.info(msg=f'Registered {page}')

		return True

	def register_shorthand(self, ulhc: Shorthand, urhc: Shorthand, lrhc: Shorthand, llhc: Shorthand, payload: _P | None = None) -> bool:
		''' Register a page from the shorthands of its corners. Malformed shorthands are a registration failure. '''

		try:
			page: Page[_P] = Page.from_shorthand(ulhc=ulhc, urhc=urhc, lrhc=lrhc, llhc=llhc, payload=payload)
		except ValueError as e:
			self._logger.warning(msg=f'Cannot register page ({ulhc}, {urhc}, {lrhc}, {llhc}): {e}')
			return False

		return self.register(page)

	# --- LOOKUP ---

	def lookup(self, pid: int) -> Page[_P] | None: return self._by_id.get(pid, None)
	''' Get a page template by its page identity. '''

	def locate(self, a: Corner, b: Corner, c: Corner) -> Tuple[Page[_P], int] | None:
		''' 
		Get the page template owning the three consecutive corners, 
		together with the index (0 for ulhc to 3 for llhc) of the template corner the first one corresponds to.
		'''

		return self._by_partial.get(partial_id(a.id, b.id, c.id), None)

	def lookup_by_partial(self, a: Corner, b: Corner, c: Corner) -> Page[_P] | None:
		''' Get the page template owning the three consecutive corners. '''

		located = self.locate(a, b, c)
		return located[0] if located is not None else None
