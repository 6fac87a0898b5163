'''
This file contains the abstraction of a stream of frames.
A stream yields, for each frame, a set of named views (for example the different steps of the frame processing)
that can be displayed simultaneously in different windows.
'''

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Iterator, List, Tuple

import cv2 as cv

from papertalk.utils.io_ import BaseLogger, SilentLogger
from papertalk.utils.typing import Size2D, Views, default


class Stream(ABC):
    '''
    Abstract class representing a stream of frames. 
    A stream allows for multiple views of the stream content that can be displayed simultaneously in different windows.
    '''

    EXIT_KEY = 'q'
    ''' Key to exit the stream playback. '''

    def __init__(self, name: str, logger: BaseLogger = SilentLogger()):
        ''' The stream is initialized with a name to identify it and a logger to log messages. '''

        self._name   : str        = name
        self._logger : BaseLogger = logger

    # --- PROPERTIES ---
    
    @property
    def name(self) -> str: return self._name

    @name.setter
    def name(self, value: str) -> None: self._name = value

    @property
    def delay(self) -> int: return 1
    ''' Delay between frames in milliseconds. '''

    @property
    def views(self) -> List[str]: return []
    ''' List of views available in the stream. '''

    # --- MAGIC METHODS ---

    def __str__(self)  -> str: return f'{self.__class__.__name__}[{self.name}; frames: {len(self)}]'
    def __repr__(self) -> str: return str(self)

    def __iter__(self) -> Iterator[Tuple[int, Views]]: return self.iter_range(start=0, end=len(self), step=1)
    ''' Iterate over all couples (frame-id, frame views) in the stream. '''

    # --- ABSTRACT METHODS ---

    @abstractmethod
    def __len__(self) -> int: pass
    ''' Return the number of frames in the stream. '''

    @abstractmethod
    def iter_range(self, start: int, end: int, step: int = 1) -> Iterator[Tuple[int, Views]]: pass
    ''' 
    Logic to iterate over a specific range of frame views in the stream. 
    The iterator returns a tuple with the frame index and the views of the frame.
    '''

    @abstractmethod
    def __getitem__(self, idx: int) -> Views: pass
    ''' Get a specific frame from the stream. '''

    @property
    @abstractmethod
    def _default_window_size(self) -> Size2D: pass
    ''' Default window size for the stream. '''

    # --- STREAM PLAY ---

    def _check_range(self, start: int, end: int):
        ''' Check the range of frames to process is valid. '''

        if start < 0:
            self._logger.handle_error(msg=f"Start frame {start} is less than 0.", exception=ValueError)

        if start > end:
            self._logger.handle_error(msg=f"Start frame {start} is greater than end frame {end}.", exception=ValueError)

        if end > len(self): 
            self._logger.handle_error(msg=f"End frame {end} is greater than the number of frames {len(self)}.", exception=ValueError)

    def play(
        self, 
        start        : int                               = 0,
        end          : int                        | None = None, 
        skip_frames  : int                               = 1,
        window_size  : Dict[str, Size2D] | Size2D | None = None,
        exclude_views: List[str]                  | None = None,
        delay        : int                        | None = None
    ):
        ''' 
        Play the stream specifying the start and end frame, the number of frames to skip.
        Each view is displayed in its own window.

        :param start:        Index of the first frame to display, defaults to the first frame of the stream.
        :param end:          Index of the last frame to display, if None the last frame of the stream is used.
        :param skip_frames:  Number of frames to skip between each frame displayed, defaults to 1 meaning no frames are skipped.
        :param window_size:  Size of the window to display the stream, either a dictionary with the size for each view 
            or a single size for all views. Defaults to the default size of the stream.
        :param exclude_views: List of views to exclude from the stream display.
        :param delay:        Delay between frames in milliseconds, defaults to the stream delay.
        '''

        # Defaults
        delay_         : int       = default(delay, self.delay)
        end_           : int       = default(end, len(self))
        exclude_views_ : List[str] = default(exclude_views, [])

        self._check_range(start=start, end=end_)

        window_size_ = default(window_size, self._default_window_size)
        sizes: Dict[str, Size2D] = window_size_ if isinstance(window_size_, dict) else {view: window_size_ for view in self.views}

        active_views = [view for view in self.views if view not in exclude_views_]

        for view in active_views:
            cv.namedWindow (view, cv.WINDOW_NORMAL)
            cv.resizeWindow(view, *sizes.get(view, self._default_window_size))

        # The playing logic is implemented in a try-catch block to handle any possible exceptions and close all windows
        try:

            self._logger.info(msg=f'Stream started. Press {self.EXIT_KEY} to exit.')

            for _, views in self.iter_range(start=start, end=end_, step=skip_frames):

                for view in active_views:
                    cv.imshow(view, cv.cvtColor(views[view], cv.COLOR_RGB2BGR))  # NOTE: OpenCV displays images in BGR format

                if chr(cv.waitKey(delay_) & 0xFF) == self.EXIT_KEY:
                    self._logger.info(msg="Exiting stream playback.")
                    break

            cv.destroyAllWindows()

        # Handle any exception occurred during playback
        except Exception as e:
            cv.destroyAllWindows()
            self._logger.handle_error(msg=f"Error occurred during stream playback: {e}", exception=type(e))
