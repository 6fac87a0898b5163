'''
This file contains utility functions for miscellaneous tasks.
'''

import time
from typing import List

import matplotlib

from papertalk.utils.typing import RGBColor

# _______________________________ TIME _______________________________

class Timer:
    ''' Timer class to measure the time elapsed since its creation. '''

    def __init__(self): self.reset()

    def __str__ (self) -> str: 

        time = self()
        hh = int(time // 3600)
        mm = int((time % 3600) // 60)
        ss = time % 60
        
        if hh > 0: return f'{hh} hour{"s" if hh>1 else ""}, {mm} min, {int(ss)} sec'
        if mm > 0: return f'{mm} min, {int(ss)} sec'
        return f'{ss:.2f} sec'
    
    def __repr__(self) -> str   : return str(self)
    def __call__(self) -> float : return time.time() - self.start

    def reset(self): self.start = time.time()

# _______________________________ COLOR _______________________________

def generate_palette(n: int, palette_type: str = "hsv") -> List[RGBColor]:
    ''' Generate a palette of n colors using the specified matplotlib colormap, used to tell pages apart in debug views. '''

    if palette_type in matplotlib.colormaps:

        colormap = matplotlib.colormaps[palette_type]

        palette: List[RGBColor] = [
            tuple(int(c * 255) for c in colormap(i / max(n, 1))[:3]) 
            for i in range(n)
        ]  # type: ignore - tuple has exact length three
        return palette
    
    raise ValueError(
        f"Invalid palette_type '{palette_type}'. " 
        f"Available options are: {', '.join(list(matplotlib.colormaps)[:10])} ... "
    )
