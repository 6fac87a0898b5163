'''
This file contains typing utils and aliases used throughout the project.
'''

from typing import Dict, Tuple, TypeVar

import cv2

# ____________________________________ GENERICS ____________________________________

_T = TypeVar('_T')
_D = TypeVar('_D')

def default(var : _T | None, val : _D) -> _T | _D: return val if var is None else var
''' Get the default value if the variable is None. '''

# ____________________________________ ALIASES ____________________________________

Size2D = Tuple[int, int]
'''
Represents a 2D size as a tuple of integers for width and height. This is used for frame sizes and bucket windows.
'''

RGBColor = Tuple[int, int, int]
'''
Represents an RGB color as a tuple of three integers, each in the range [0, 255].
It is used both for sampled circle colors and for the reference palette.
'''

Frame = cv2.typing.MatLike
'''
Represents a frame as a 2D matrix (grayscale) or a 3D tensor (color image) of pixels.
'''

Views = Dict[str, Frame]
'''
Represents different frame views of a stream, indexed by string keys.
'''

Shorthand = str
'''
Represents a corner as a 5-character string over the alphabet `rgby`, listing the dot colors `ll, l, m, r, rr`.
'''
