'''
Tests for the loggers and the input sanitization utilities.
'''

import pytest

from papertalk.utils.io_ import FileLogger, InputSanitizationUtils as ISUtils, PathUtils, PrintLogger, SilentLogger


class TestLoggers:

    def test_print_logger(self, capsys):
        logger = PrintLogger()
        logger.info('first line\nsecond line')

        out = capsys.readouterr().out
        assert 'INFO:  first line' in out
        assert 'INFO:  second line' in out

    def test_formatter(self, capsys):
        logger = PrintLogger()
        logger.formatter = lambda msg: f'[stream] {msg}'
        logger.warning('page lost')

        assert 'WARN:  [stream] page lost' in capsys.readouterr().out

    def test_handle_error_raises(self):
        with pytest.raises(KeyError):
            SilentLogger().handle_error(msg='missing', exception=KeyError)

    def test_file_logger(self, tmp_path):
        path = tmp_path / 'recognition.log'

        logger = FileLogger(file=str(path))
        logger.info('Found page')
        logger.close()

        assert 'Found page' in path.read_text()

    def test_file_logger_extension(self, tmp_path):
        with pytest.raises(ValueError):
            FileLogger(file=str(tmp_path / 'recognition.txt'))


class TestPaths:

    def test_path_parts(self):
        path = '/data/session1/pages.JSON'

        assert PathUtils.get_folder_path(path) == '/data/session1'
        assert PathUtils.get_file(path) == 'pages.JSON'
        assert PathUtils.get_file_ext(path) == 'json'

    def test_check_extension(self):
        ISUtils.check_extension(path='frames.pkl', ext='pkl')
        ISUtils.check_extension(path='sheet.png', ext={'png', 'jpg'})

        with pytest.raises(ValueError):
            ISUtils.check_extension(path='sheet.gif', ext={'png', 'jpg'})

    def test_check_input(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ISUtils.check_input(path=str(tmp_path / 'missing.json'))
