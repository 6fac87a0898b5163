'''
This file contains the implementation of i/o utilities for:
    - Logging operation for different channels (info, warning, error).
    - Path manipulation for files and directories.
    - Input sanitization for file existence and extension.
'''

from __future__ import annotations

import os
import logging
from abc import abstractmethod
from typing import Callable, Set, Type

from loguru import logger as loguru_logger


# _______________________________ LOGGER _______________________________

class BaseLogger(logging.Logger):
    ''' 
    Abstract class for logging in three different channels: info, warning and error channels.
    It provides a formatter function to format the log messages.
    '''

    def __init__(self, name: str):
        ''' Initialize the logger with a name. '''

        super().__init__(name=name)

        # The default formatter is the identity function
        self._formatter: Callable[[str], str] = lambda x: x

    # --- FORMATTER ---

    @property
    def formatter(self) -> Callable[[str], str]: return self._formatter

    @formatter.setter
    def formatter(self, prefix: Callable[[str], str]): self._formatter = prefix

    def reset_formatter(self): self._formatter = lambda x: x

    # --- LOGGING CHANNELS ---

    ''' The pubic methods are predefined with the formatter function and end-line splitting. '''
    def info   (self, msg: str): [self._info   (self.formatter(msg_)) for msg_ in msg.split("\n")]
    def warning(self, msg: str): [self._warning(self.formatter(msg_)) for msg_ in msg.split("\n")]
    def error  (self, msg: str): [self._error  (self.formatter(msg_)) for msg_ in msg.split("\n")]

    ''' The private methods are abstract and must be implemented by the subclasses. '''

    @abstractmethod
    def _info   (self, msg: str): raise NotImplementedError

    @abstractmethod
    def _warning(self, msg: str): raise NotImplementedError

    @abstractmethod
    def _error  (self, msg: str): raise NotImplementedError

    # --- ERROR HANDLING ---

    def handle_error(self, msg: str, exception: Type[Exception]):
        ''' Log the error message and raise an exception. '''

        self.error(msg)
        raise exception(msg)

class SilentLogger(BaseLogger):
    ''' Logger implemented as a no-op. '''

    def __init__(self): super().__init__(name='SilentLogger')

    def _info   (self, msg): pass
    def _warning(self, msg): pass
    def _error  (self, msg): pass


class PrintLogger(BaseLogger):
    ''' Logger that prints messages to the console. '''

    def __init__(self): super().__init__(name='PrintLogger')

    def _info   (self, msg): print(f"INFO:  {msg}")
    def _warning(self, msg): print(f"WARN:  {msg}")
    def _error  (self, msg): print(f"ERROR: {msg}")


class FileLogger(BaseLogger):
    ''' Logger that writes messages to a .log file. '''

    def __init__(self, file: str, level=logging.INFO, overwrite: bool = True):
        '''
        Initialize the logging by adding a file handler.

        :param file:      The path to the log file.
        :param level:     The logging level (default: INFO).
        :param overwrite: Whether to overwrite the log file if it exists (default: True).
        '''

        super().__init__(name='FileLogger')

        # Check the file extension
        InputSanitizationUtils.check_extension(path=file, ext='log')

        # Clear the log file by opening it in write mode
        if overwrite and os.path.exists(file): os.remove(file)

        # Add the file handler
        self._handler_id: int = loguru_logger.add(file, level=level)
        self._logger = loguru_logger

    def _info   (self, msg): self._logger.info   (msg)
    def _warning(self, msg): self._logger.warning(msg)
    def _error  (self, msg): self._logger.error  (msg)

    def close(self): self._logger.remove(self._handler_id)
    ''' Detach the file handler, flushing the log file. '''


# _______________________________ CONTAINER UTILS CLASSES _______________________________

class PathUtils:
    ''' Class container to handle path manipulation. '''

    @staticmethod
    def get_folder_path(path: str) -> str: return os.path.dirname(path)
    ''' Get the folder path of the file (e.g. /path/to/file.txt -> /path/to). '''

    @staticmethod
    def get_file(path: str) -> str: return os.path.basename(path)
    ''' Get the file from the path (e.g. /path/to/file.txt -> file.txt). '''

    @staticmethod
    def get_file_ext(path: str) -> str:
        ''' Get the file extension from the path (e.g. /path/to/file.txt -> txt). '''

        file, ext = os.path.splitext(PathUtils.get_file(path))
        return ext[1:].lower() # Remove the dot
    
class IOUtils:
    ''' Class container to handle input/output operations. '''

    @staticmethod
    def make_dir(path: str, logger: BaseLogger = SilentLogger()):
        ''' Create a directory if it does not exist. '''

        if not os.path.exists(path): 
            os.makedirs(path)
            logger.info(msg=f"Directory created at: {path}")
        else:
            logger.info(msg=f"Directory already found at: {path}")


class InputSanitizationUtils:
    ''' Class container to handle input file sanitization. '''

    @staticmethod
    def check_input(path: str, logger: BaseLogger = SilentLogger()):
        ''' Check if input file exists. '''

        if not os.path.exists(path):  
            logger.handle_error(
                msg=f"Input file not found: {path}", 
                exception=FileNotFoundError
            )

    @staticmethod
    def check_output(path: str, logger: BaseLogger = SilentLogger()):
        ''' Check if the directory of the output file exists. '''

        out_dir = PathUtils.get_folder_path(path)

        if out_dir and not os.path.exists(out_dir): 
            logger.handle_error(
                msg=f"Output directory not found: {out_dir}", 
                exception=FileNotFoundError
            )

    @staticmethod
    def check_extension(path: str, ext: str | Set[str], logger: BaseLogger = SilentLogger()):
        ''' Check if any of the extensions in the list match the file extension. '''

        if type(ext) == str: ext = {ext}  # Convert to singleton set if a string is provided

        if PathUtils.get_file_ext(path) not in ext:

            logger.handle_error(
                msg=f"Invalid file extension: {path}. Expected one of {ext} extensions.", 
                exception=ValueError
            )
