'''
This file implements the recognition of pages frame by frame from the circle candidates of an external detector.
	- The `PageRecognizer` class chains the steps of the recognition of a single frame:
		spatial bucketing, corner matching per bucket, de-duplication of the corners found in overlapping buckets,
		and page assembly with tracking across frames.
	- The `PageRecognitionStream` class runs the recognizer over a recorded sequence of frames,
		logging the recognized pages and collecting the recognition results.
'''

from __future__ import annotations

import pickle
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Iterator, List, Sequence, Tuple, TypeVar

import numpy as np

from papertalk.model.assembler import CornerGraphAssembler
from papertalk.model.bucket import CircleBucketer
from papertalk.model.calibration import Calibration
from papertalk.model.corner import Corner, CornerMatcher
from papertalk.model.geom import Bucket, Circle
from papertalk.model.page import Page, PageRegistry
from papertalk.model.tracker import PageTracker
from papertalk.utils.io_ import BaseLogger, InputSanitizationUtils as ISUtils, SilentLogger
from papertalk.utils.misc import generate_palette
from papertalk.utils.settings import ADJACENCY_TOLERANCE, DEDUP_DISTANCE, PERSIST_DISTANCE, PERSIST_TTL
from papertalk.utils.stream import Stream
from papertalk.utils.typing import Frame, Size2D, Views

_P = TypeVar('_P')

# __________________________________ FRAMES __________________________________

@dataclass
class CandidateFrame:
	'''
	The input of the recognition for one frame: the circle candidates found by the external detector,
	optionally with the camera image (RGB) they were found in, and the frame size (width, height).
	'''

	circles : List[Circle]
	image   : Frame  | None = None
	size    : Size2D | None = None

	def __str__ (self) -> str: return f'{self.__class__.__name__}[circles: {len(self.circles)}; size: {self.frame_size}]'
	def __repr__(self) -> str: return str(self)

	@property
	def frame_size(self) -> Size2D:
		''' The frame size, from the explicit size, the image, or the extent of the circle centers in this order. '''

		if self.size is not None: return self.size

		if self.image is not None:
			h, w, *_ = self.image.shape
			return w, h

		if not self.circles: return 1, 1

		return (
			int(max(c.position.x for c in self.circles)) + 1,
			int(max(c.position.y for c in self.circles)) + 1
		)

	def canvas(self) -> Frame:
		''' A copy of the image to draw on, or a black frame of the frame size when no image is available. '''

		if self.image is not None: return self.image.copy()

		w, h = self.frame_size
		return np.zeros((h, w, 3), dtype=np.uint8)


@dataclass
class FrameRecognition(Generic[_P]):
	''' The result of the recognition of one frame. '''

	pages    : Dict[int, Page[_P]]                       # Recognized pages indexed by page identity
	corners  : List[Corner]                              # Corners detected in the frame after de-duplication
	buckets  : List[Bucket]                              # Buckets where a corner was detected
	warnings : Dict[Bucket, str] = field(default_factory=dict)  # Warnings of the buckets with candidates but no corner

	def __str__ (self) -> str: return f'{self.__class__.__name__}[pages: {sorted(self.pages)}; corners: {len(self.corners)}]'
	def __repr__(self) -> str: return str(self)

	def draw(self, frame: Frame) -> Frame:
		''' Draw the matched buckets, the detected corners and the recognized pages on the frame in-place. '''

		for bucket in self.buckets: bucket.draw(frame=frame, color=(128, 128, 128), thickness=1)

		for corner in self.corners: corner.draw(frame=frame)

		# Each page gets its own outline color
		palette = generate_palette(n=len(self.pages))
		for page, color in zip(self.pages.values(), palette): page.draw(frame=frame, color=color, thickness=3)

		return frame

# __________________________________ RECOGNIZER __________________________________

class PageRecognizer(Generic[_P]):
	'''
	Class to recognize the pages of a sequence of frames.
	NOTE: The recognizer holds the tracking state; frames must be submitted strictly in sequence.
	'''

	def __init__(
		self,
		registry            : PageRegistry[_P],
		calibration         : Calibration            | None = None,
		matcher             : CornerMatcher          | None = None,
		bucketer            : CircleBucketer         | None = None,
		adjacency_tolerance : float                         = ADJACENCY_TOLERANCE,
		persist_distance    : float                         = PERSIST_DISTANCE,
		ttl                 : int                           = PERSIST_TTL,
		dedup_distance      : float                         = DEDUP_DISTANCE,
		logger              : BaseLogger                    = SilentLogger()
	):
		'''
		:param registry: The registry of the known pages.
		:param calibration: The calibration providing the reference colors and the projector transform.
			Defaults to the trivial calibration with the printed reference colors.
		:param matcher: The corner matcher with its geometric tolerances. Its classifier is replaced
			by the one of the calibration.
		:param bucketer: The spatial bucketing of the circle candidates.
		:param adjacency_tolerance: Max angle in radians between the arm of a corner and the direction to its neighbour.
		:param persist_distance: Max vertex distance in pixels to match a detected corner with a persisted one.
		:param ttl: Number of frames a persisted corner survives without being re-matched.
		:param dedup_distance: Max vertex distance in pixels for two corners of overlapping buckets to be the same.
		'''

		self._logger      : BaseLogger       = logger
		self._calibration : Calibration      = calibration if calibration is not None else Calibration.trivial_calibration()
		self._bucketer    : CircleBucketer   = bucketer    if bucketer    is not None else CircleBucketer()
		self._matcher     : CornerMatcher    = matcher     if matcher     is not None else CornerMatcher()
		self._matcher.classifier = self._calibration.classifier()

		self._dedup_distance : float            = dedup_distance
		self._tracker        : PageTracker[_P]  = PageTracker(
			assembler=CornerGraphAssembler(registry=registry, adjacency_tolerance=adjacency_tolerance),
			persist_distance=persist_distance,
			ttl=ttl
		)

	def __str__(self) -> str:
		return f'{self.__class__.__name__}[{self.registry}; {self._bucketer}; {self._matcher}; {self._tracker}; dedup distance: {self._dedup_distance}]'

	def __repr__(self) -> str: return str(self)

	# --- PROPERTIES ---

	@property
	def registry(self) -> PageRegistry[_P]: return self._tracker.assembler.registry

	@property
	def calibration(self) -> Calibration: return self._calibration

	@property
	def tracker(self) -> PageTracker[_P]: return self._tracker

	def reset(self):
		''' Forget the tracking state, to start a new sequence of frames. '''

		self._tracker.reset()

	# --- RECOGNITION ---

	def detect_corners(self, circles: Sequence[Circle], size: Size2D | None = None) -> Tuple[List[Corner], List[Bucket], Dict[Bucket, str]]:
		'''
		Detect the corners of a frame, at most one per bucket.
		A corner spanning the overlap of two buckets is found in both, only the first occurrence is kept.

		:return: A tuple of
			- The detected corners.
			- The buckets they were detected in.
			- The warnings of the buckets with candidates but no corner.
		'''

		corners  : List[Corner]      = []
		buckets  : List[Bucket]      = []
		warnings : Dict[Bucket, str] = {}

		for bucket, inside in self._bucketer(circles=circles, size=size).items():

			corner, warning = self._matcher(inside)

			if corner is None:
				warnings[bucket] = warning
				continue

			if any(corner.vertex.distance(other.vertex) < self._dedup_distance for other in corners): continue

			corners.append(corner)
			buckets.append(bucket)

		return corners, buckets, warnings

	def __call__(self, circles: Sequence[Circle], size: Size2D | None = None) -> FrameRecognition[_P]:
		'''
		Recognize the pages of the next frame of the sequence.

		:param circles: The circle candidates of the frame.
		:param size: The frame size (width, height), if not given it is inferred from the circles.
		'''

		corners, buckets, warnings = self.detect_corners(circles=circles, size=size)

		pages = self._tracker(corners)

		return FrameRecognition(pages=pages, corners=corners, buckets=buckets, warnings=warnings)

	def records(self, recognition: FrameRecognition[_P]) -> List[Dict[str, Any]]:
		''' The records of the recognized pages, with the vertices mapped to projector space by the calibration. '''

		return [page.to_record(transform=self._calibration.transform) for page in recognition.pages.values()]

# __________________________________ STREAM __________________________________

class PageRecognitionStream(Stream, Generic[_P]):
	'''
	Stream recognizing the pages of a recorded sequence of candidate frames.
	It produces a single view `pages` with the detected corners and recognized pages drawn on the frame.
	'''

	def __init__(
		self,
		frames     : Sequence[CandidateFrame],
		recognizer : PageRecognizer[_P],
		name       : str        = 'recognition',
		logger     : BaseLogger = SilentLogger()
	):

		super().__init__(name=name, logger=logger)

		self._frames     : List[CandidateFrame] = list(frames)
		self._recognizer : PageRecognizer[_P]   = recognizer

		# We save the recognition of each processed frame, the number of frames with a page and the total number of frames
		self._results : Dict[int, FrameRecognition[_P]] = {}
		self._success : int = -1
		self._total   : int = -1

	@classmethod
	def from_pickle(cls, path: str, recognizer: PageRecognizer[_P], name: str = 'recognition', logger: BaseLogger = SilentLogger()) -> PageRecognitionStream[_P]:
		''' Load a recorded sequence of candidate frames from a pickle file. '''

		ISUtils.check_input    (path=path, logger=logger)
		ISUtils.check_extension(path=path, logger=logger, ext='pkl')

		logger.info(msg=f"Loading candidate frames from {path}")

		with open(path, 'rb') as f: frames = pickle.load(f)

		return cls(frames=frames, recognizer=recognizer, name=name, logger=logger)

	# --- PROPERTIES ---

	@property
	def views(self) -> List[str]: return ['pages']

	@property
	def _default_window_size(self) -> Size2D:

		if not self._frames: return 640, 480
		return self._frames[0].frame_size

	@property
	def results(self) -> Dict[int, FrameRecognition[_P]]: return dict(self._results)

	@property
	def recognition_results(self) -> Tuple[int, int]:
		''' Number of frames with at least a recognized page and total number of processed frames. '''

		if self._success == -1 or self._total == -1: raise ValueError(f'No results available. ')

		return self._success, self._total

	# --- STREAM ---

	def __len__(self) -> int: return len(self._frames)

	def __getitem__(self, idx: int) -> Views:
		'''
		Process a single frame.
		NOTE: The frame goes through the tracker of the recognizer, accessing frames out of sequence affects the tracking.
		'''

		return self._process_frame(frame_id=idx)

	def iter_range(self, start: int, end: int, step: int = 1) -> Iterator[Tuple[int, Views]]:

		for frame_id in range(start, min(end, len(self)), step):
			yield frame_id, self._process_frame(frame_id=frame_id)

	def _process_frame(self, frame_id: int) -> Views:
		''' Recognize the pages of the frame and log them. '''

		frame = self._frames[frame_id]

		recognition = self._recognizer(circles=frame.circles, size=frame.frame_size)
		self._results[frame_id] = recognition

		if self._total != -1: self._total += 1

		if recognition.pages:
			if self._success != -1: self._success += 1
			for page in recognition.pages.values(): self._logger.info(f'[{self.name}] Frame {frame_id} - Found {page}')
		else:
			self._logger.warning(f'[{self.name}] No page in frame {frame_id} - {len(recognition.corners)} corners detected')

		return {'pages': recognition.draw(frame=frame.canvas())}

	def _reset_results(self):

		self._results = {}
		self._success = 0
		self._total   = 0

	def _log_results(self):

		success, total = self.recognition_results

		if total == 0:           info_msg = f'No frames were processed. '
		elif success == total:   info_msg = f'Pages were recognized in all frames. '
		else:                    info_msg = f'Pages were recognized in {success} out of {total} frames. ({success / total:.2%}) '

		self._logger.info(msg=info_msg)

	def run(self, start: int = 0, end: int | None = None, step: int = 1) -> Dict[int, FrameRecognition[_P]]:
		''' Recognize the pages of a range of frames without displaying them, returning the recognition of each frame. '''

		end_ = len(self) if end is None else end
		self._check_range(start=start, end=end_)

		self._reset_results()

		for _ in self.iter_range(start=start, end=end_, step=step): pass

		self._log_results()

		return self.results

	def play(
		self,
		start        : int                               = 0,
		end          : int                        | None = None,
		skip_frames  : int                               = 1,
		window_size  : Dict[str, Size2D] | Size2D | None = None,
		exclude_views: List[str]                  | None = None,
		delay        : int                        | None = None
	):

		self._reset_results()

		super().play(
			start=start,
			end=end,
			skip_frames=skip_frames,
			window_size=window_size,
			exclude_views=exclude_views,
			delay=delay
		)

		self._log_results()
