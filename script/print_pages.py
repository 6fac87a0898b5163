import json
import os
import numpy as np
from dotenv import load_dotenv

from papertalk.model.page import PageRegistry
from papertalk.model.sheet import PageSheet
from papertalk.utils.misc import Timer
from papertalk.utils.io_ import IOUtils, FileLogger

load_dotenv()

DATA_DIR = os.getenv('DATA_DIR', '.')
OUT_DIR  = os.getenv('OUT_DIR', '.')

EXP_NAME    = 'session1'

PAGES_FILE  = os.path.join(DATA_DIR, EXP_NAME, 'pages.json')
SHEETS_DIR  = os.path.join(OUT_DIR,  EXP_NAME, 'sheets')

NEW_PAGES   = 2     # Number of random pages to add to the registered ones
SEED        = None  # Random seed for the new pages, None for a random one

if __name__ == "__main__":

    # Output directory
    IOUtils.make_dir(path=SHEETS_DIR)
    logger = FileLogger(file=os.path.join(SHEETS_DIR, f'print_pages.log'))
    logger.info(msg=f'Saving page sheets for experiment {EXP_NAME} to {SHEETS_DIR} . ')
    logger.info(msg=f'')

    # Registry
    timer = Timer()
    logger.info(msg='LOADING PAGE REGISTRY')
    if os.path.exists(PAGES_FILE): registry = PageRegistry.from_json(path=PAGES_FILE, logger=logger)
    else:
        logger.info(msg=f'No page definitions found at {PAGES_FILE}. Starting from an empty registry. ')
        registry = PageRegistry(logger=logger)
    logger.info(msg=str(registry))
    logger.info(msg='')

    # Generation of new pages
    logger.info(msg='GENERATING NEW PAGES')
    rng = np.random.default_rng(SEED)
    for _ in range(NEW_PAGES):
        page = PageSheet.generate(registry=registry, payload=f'page-{len(registry)}', rng=rng, logger=logger)
        if page is None: break
    logger.info(msg='')

    # Sheets
    logger.info(msg='SAVING PAGE SHEETS')
    sheet = PageSheet()
    logger.info(msg=str(sheet))
    for page in registry:
        sheet.save(page=page, path=os.path.join(SHEETS_DIR, f'{page.id}.png'), logger=logger)
    logger.info(msg=f'Completed in {timer}. ')
    logger.info(msg='')

    # Updated page definitions
    out_file = os.path.join(SHEETS_DIR, 'pages.json')
    logger.info(msg=f'Saving page definitions to {out_file}. ')
    definitions = [
        dict(zip(['ulhc', 'urhc', 'lrhc', 'llhc'], page.shorthands), payload=page.payload)
        for page in registry
    ]
    with open(out_file, 'w') as f: json.dump(definitions, f, indent=4)
    logger.info(msg='')
