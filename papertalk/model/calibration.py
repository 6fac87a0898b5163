'''
This file contains the calibration data the recognition consumes.
Calibration itself happens outside this project: it provides
	- the reference colors of the four dots as seen by the camera, used to classify sampled colors;
	- a transform from frame coordinates to projector coordinates, used when handing pages off.
'''

from __future__ import annotations

import pickle
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from papertalk.model.color import DEFAULT_PALETTE, ColorClassifier
from papertalk.model.geom import Point2D
from papertalk.utils.io_ import BaseLogger, InputSanitizationUtils as ISUtils, SilentLogger
from papertalk.utils.typing import RGBColor, Size2D

Transform = Callable[[Point2D], Point2D]
''' Mapping from frame coordinates to projector coordinates. '''

def identity(point: Point2D) -> Point2D: return point


@dataclass
class DisplacementTransform:
	'''
	Transform from frame to projector coordinates of a camera looking at the projection:
		1. translate the point by the displacement between the camera and projector midpoints;
		2. scale it away from the projector midpoint to compensate the display ratio.
	NOTE: It is a dataclass instead of a closure so that calibrations can be pickled.
	'''

	displacement   : Point2D
	ratio          : float   # Display ratio of the projection as seen by the camera, 0 to disable scaling
	projector_size : Size2D

	def __call__(self, point: Point2D) -> Point2D:

		w, h = self.projector_size
		projector_mid = Point2D(x=w / 2, y=h / 2)
		factor = (1. / self.ratio) - 1. if self.ratio != 0 else 0.

		q = point + self.displacement
		return q + (q - projector_mid) * factor


@dataclass
class Calibration:
	''' 
	Dataclass to store the calibration of a session, read-only for the recognition.

	The calibration can be instantiated in two ways:
		- Trivial calibration with the printed reference colors and no coordinate mapping.
		- From the displacement and display ratio between the camera and the projector.
	'''

	palette   : List[RGBColor]                                   # Reference colors ordered as red, green, blue, yellow
	transform : Transform      = identity                        # Frame to projector coordinates
	info      : Dict[str, Any] = field(default_factory=dict)     # General purpose info dictionary about the calibration

	def __post_init__(self):
		if len(self.palette) != 4: raise ValueError(f'Calibration palette must have 4 reference colors, got {len(self.palette)}. ')

	# --- INITIALIZERS ---

	@classmethod
	def trivial_calibration(cls) -> Calibration:
		''' Calibration with the printed reference colors and identity transform. '''

		return cls(palette=list(DEFAULT_PALETTE), info={'method': 'trivial'})

	@classmethod
	def from_displacement(cls, palette: List[RGBColor], displacement: Point2D, ratio: float, projector_size: Size2D) -> Calibration:
		'''
		Calibration mapping frame points to projector points by
			1. translating them by the displacement between the camera and projector midpoints;
			2. scaling them away from the projector midpoint to compensate the display ratio.

		:param palette: The reference colors ordered as red, green, blue, yellow.
		:param displacement: The displacement from the camera to the projector midpoint.
		:param ratio: The display ratio of the projection as seen by the camera, 0 to disable scaling.
		:param projector_size: The projector resolution (width, height).
		'''

		return cls(
			palette=palette, 
			transform=DisplacementTransform(displacement=displacement, ratio=ratio, projector_size=projector_size), 
			info={'method': 'displacement', 'displacement': tuple(displacement), 'ratio': ratio, 'projector_size': projector_size}
		)

	# --- MAGIC METHODS ---

	def __str__ (self) -> str: return f'{self.__class__.__name__}[palette: {self.palette}; {"; ".join(f"{k}: {v}" for k, v in self.info.items())}]'
	def __repr__(self) -> str: return str(self)

	# --- UTILITIES ---

	def classifier(self, use_heuristics: bool = True) -> ColorClassifier:
		''' Color classifier using the calibrated reference colors. '''

		return ColorClassifier(palette=self.palette, use_heuristics=use_heuristics)

	# --- PERSISTENCE ---

	@classmethod
	def from_pickle(cls, path: str, logger: BaseLogger = SilentLogger()) -> Calibration:
		''' Load a calibration from a pickle file. '''

		ISUtils.check_input(path=path, logger=logger)

		logger.info(msg=f"Loading calibration from {path}")

		with open(path, 'rb') as f: return pickle.load(f)

	def to_pickle(self, path: str, logger: BaseLogger = SilentLogger()):
		''' Save the calibration to a pickle file. '''

		ISUtils.check_output(path=path, logger=logger)

		logger.info(msg=f"Saving calibration to {path}")

		with open(path, 'wb') as f: pickle.dump(self, f)
