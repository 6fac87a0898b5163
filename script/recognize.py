import os
import pickle
from dotenv import load_dotenv

from papertalk.model.calibration import Calibration
from papertalk.model.page import PageRegistry
from papertalk.model.recognition import PageRecognitionStream, PageRecognizer
from papertalk.utils.misc import Timer
from papertalk.utils.io_ import IOUtils, FileLogger

load_dotenv()

DATA_DIR = os.getenv('DATA_DIR', '.')
OUT_DIR  = os.getenv('OUT_DIR', '.')

EXP_NAME     = 'session1'

PAGES_FILE   = os.path.join(DATA_DIR, EXP_NAME, 'pages.json')
FRAMES_FILE  = os.path.join(DATA_DIR, EXP_NAME, 'frames.pkl')
CALIBRATION  = None  # Path to a pickled calibration, None for the printed reference colors

RECOGNITION_DIR = os.path.join(OUT_DIR, EXP_NAME, 'recognition')
RESULTS_FILE    = os.path.join(RECOGNITION_DIR, 'results.pkl')

PLAY        = False  # Display the recognition while running
WINDOW_SIZE = (640, 480)
SKIP_FRAMES = 1

if __name__ == "__main__":

    # Output directory
    IOUtils.make_dir(path=RECOGNITION_DIR)
    logger = FileLogger(file=os.path.join(RECOGNITION_DIR, f'recognition.log'))
    logger.info(msg=f'Saving page recognition for experiment {EXP_NAME} to {RECOGNITION_DIR} . ')
    logger.info(msg=f'')

    # Registry and calibration
    logger.info(msg='LOADING RECOGNITION OBJECTS')
    registry = PageRegistry.from_json(path=PAGES_FILE, logger=logger)
    logger.info(msg=str(registry))

    calibration = Calibration.from_pickle(path=CALIBRATION, logger=logger) if CALIBRATION else Calibration.trivial_calibration()
    logger.info(msg=str(calibration))

    recognizer = PageRecognizer(registry=registry, calibration=calibration)
    logger.info(msg=str(recognizer))
    logger.info(msg='')

    # Stream
    logger.info(msg='PREPARING RECOGNITION STREAM')
    stream = PageRecognitionStream.from_pickle(path=FRAMES_FILE, recognizer=recognizer, logger=logger)
    logger.info(msg=str(stream))
    logger.info(msg='')

    # Performing recognition
    timer = Timer()
    logger.info(msg='RUNNING RECOGNITION STREAM')
    if PLAY: stream.play(window_size=WINDOW_SIZE, skip_frames=SKIP_FRAMES)
    else:    stream.run (step=SKIP_FRAMES)
    logger.info(msg=f'Completed in {timer}. ')
    logger.info(msg='')

    # Saving results
    results = {frame_id: recognizer.records(recognition) for frame_id, recognition in stream.results.items()}

    logger.info(f'Saving recognized pages to {RESULTS_FILE}. ')
    with open(RESULTS_FILE, 'wb') as file: pickle.dump(results, file)
    logger.info(msg='')
