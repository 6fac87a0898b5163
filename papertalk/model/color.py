'''
This file implements the classification of sampled dot colors.
	- `DotColor` enumerates the four dot colors, each carrying two bits of a corner identity.
	- `ColorClassifier` maps a sampled RGB color to the nearest color of a reference palette,
		with a raw-RGB heuristic that takes over when lighting makes the palette drift.
'''

from __future__ import annotations

from enum import IntEnum
from typing import List, Sequence

from papertalk.utils.typing import RGBColor

# __________________________________ DOT COLORS __________________________________

class DotColor(IntEnum):
	''' The four dot colors. The value is the 2-bit code of the color and its index in the palette. '''

	RED    = 0
	GREEN  = 1
	BLUE   = 2
	YELLOW = 3

	def __str__ (self) -> str: return self.name.lower()
	def __repr__(self) -> str: return str(self)

	@property
	def char(self) -> str: return ALPHABET[self.value]
	''' The shorthand character of the color. '''

	@classmethod
	def from_char(cls, char: str) -> DotColor:
		''' Parse a shorthand character of the alphabet `rgby`. '''

		if len(char) != 1 or char not in ALPHABET:
			raise ValueError(f'Invalid dot color {char!r}: expected one character of {ALPHABET!r}. ')

		return cls(ALPHABET.index(char))

ALPHABET = 'rgby'
''' Shorthand characters of the dot colors, ordered as their values. '''


# NOTE: Reference colors of the printed dots, picked in CIELAB (red6, green7, purple8, orange6).
#       They are used as default palette when no calibrated one is available.
CIELAB_RED    : RGBColor = (245,  34,  45)
CIELAB_GREEN  : RGBColor = ( 56, 158,  13)
CIELAB_BLUE   : RGBColor = ( 57,  16, 133)
CIELAB_YELLOW : RGBColor = (250, 140,  22)

DEFAULT_PALETTE: List[RGBColor] = [CIELAB_RED, CIELAB_GREEN, CIELAB_BLUE, CIELAB_YELLOW]
''' Reference colors ordered as `DotColor` values. '''

# __________________________________ CLASSIFIER __________________________________

class ColorClassifier:
	'''
	Classify a sampled color against an ordered palette of four reference colors.

	The color is first assigned to the reference at minimum squared euclidean distance in RGB space
	(ties go to the first reference in palette order). Then, if enabled, a raw-RGB heuristic
	overrides the palette decision whenever one of its rules fires:
		- dark samples are blue;
		- green-dominant samples are green;
		- red-dominant samples with a mid green component are yellow;
		- strongly red samples are red.
	'''

	def __init__(self, palette: Sequence[RGBColor] | None = None, use_heuristics: bool = True):
		'''
		:param palette: Reference colors ordered as red, green, blue, yellow. Defaults to the printed CIELAB colors.
		:param use_heuristics: Whether the raw-RGB rules take precedence over the palette distance.
		'''

		palette_ = list(palette) if palette is not None else DEFAULT_PALETTE
		if len(palette_) != len(DotColor): 
			raise ValueError(f'Palette must have {len(DotColor)} reference colors, got {len(palette_)}. ')

		self._palette        : List[RGBColor] = palette_
		self._use_heuristics : bool           = use_heuristics

	def __str__ (self) -> str: return f'{self.__class__.__name__}[palette: {self._palette}; heuristics: {self._use_heuristics}]'
	def __repr__(self) -> str: return str(self)

	@property
	def palette(self) -> List[RGBColor]: return self._palette

	@staticmethod
	def color_distance(sample: RGBColor, reference: RGBColor) -> float:
		''' Squared euclidean distance between two colors in RGB space. '''

		return float(sum((int(s) - int(r)) ** 2 for s, r in zip(sample[:3], reference[:3])))

	def nearest(self, sample: RGBColor) -> DotColor:
		''' Palette color at minimum distance from the sample. '''

		best, best_dist = DotColor.RED, float('inf')

		for color, reference in zip(DotColor, self._palette):
			dist = self.color_distance(sample, reference)
			if dist < best_dist: best, best_dist = color, dist

		return best

	@staticmethod
	def heuristic(sample: RGBColor) -> DotColor | None:
		''' Raw-RGB threshold rules, None if no rule fires. '''

		r, g, b = (int(c) for c in sample[:3])

		if r < 80 and g < 80 and b < 80 : return DotColor.BLUE
		if g > r and g > b               : return DotColor.GREEN
		if r > 2 * g and g > b + 20      : return DotColor.YELLOW
		if r > 2 * g and r > 3 * b       : return DotColor.RED

		return None

	def __call__(self, sample: RGBColor) -> DotColor:
		''' Classify the sampled color. '''

		color = self.nearest(sample)

		if self._use_heuristics:
			override = self.heuristic(sample)
			if override is not None: color = override

		return color
