'''
This file loads the environment variables from the .env file as macros.
They are the empirically tuned tolerances of the recognition pipeline; every component
takes them as default values of its constructor parameters, so they can also be overridden per instance.
'''

import os
from dotenv import load_dotenv

load_dotenv(r'.env', override=True)

# ________________ Corner matching ________________

DISTANCE_BUCKET     : float = float(os.getenv('DISTANCE_BUCKET',     10.0))  # Width in pixels of the coarse distance buckets used to find dot lines
COLLINEAR_TOLERANCE : float = float(os.getenv('COLLINEAR_TOLERANCE', 0.2))   # Max deviation in radians from a straight angle for three dots to form a line
SHORT_RADIUS_MARGIN : float = float(os.getenv('SHORT_RADIUS_MARGIN', 3.0))   # Margin between the two smallest centroid distances
RADIUS_MARGIN       : float = float(os.getenv('RADIUS_MARGIN',       6.0))   # Margin between the remaining same-radius centroid distances
RATIO_MARGIN        : float = float(os.getenv('RATIO_MARGIN',        5.0))   # Margin between twice the short radius and the long radius
ROTATION_TOLERANCE  : float = float(os.getenv('ROTATION_TOLERANCE',  10.0))  # Max distance in pixels between a rotated arm end and the other arm end

# ________________ Page assembly and tracking ________________

ADJACENCY_TOLERANCE : float = float(os.getenv('ADJACENCY_TOLERANCE', 0.05))  # Max angle in radians between an arm and the direction to the neighbouring corner
PERSIST_DISTANCE    : float = float(os.getenv('PERSIST_DISTANCE',    5.0))   # Max vertex distance in pixels to snap a corner to a persisted one
PERSIST_TTL         : int   = int  (os.getenv('PERSIST_TTL',         10))    # Number of frames a persisted corner survives without being re-matched

# ________________ Spatial buckets ________________

BUCKET_WINDOW       : int   = int  (os.getenv('BUCKET_WINDOW',       130))   # Side in pixels of a square bucket
BUCKET_STRIDE       : int   = int  (os.getenv('BUCKET_STRIDE',       65))    # Step in pixels between two consecutive buckets
DEDUP_DISTANCE      : float = float(os.getenv('DEDUP_DISTANCE',      1.0))   # Max vertex distance in pixels for two corners from overlapping buckets to be the same
