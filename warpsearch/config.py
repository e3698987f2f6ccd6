"""Global configuration for warpsearch."""

import os
from pathlib import Path

# Path settings
# Resolve the project root relative to this config file (warpsearch/config.py -> warpsearch/ -> root)
BASE_DIR = Path(__file__).resolve().parent.parent
DATABASE_DIR = Path(os.environ.get("WARPSEARCH_DATABASE_DIR", BASE_DIR / "dtwDatabase"))
DATABASE_FILENAME = "dtw.txt"

# Persistence format
DATABASE_MAGIC = "warpsearch-db"
DATABASE_VERSION = 1
FLOAT_FORMAT = "%.17g"  # enough digits for float64 to round-trip exactly

# DTW settings
DEFAULT_BAND_RANGE = 0.5    # fraction of the query length used as band half-width
DEFAULT_METRIC = 'banded_ssd'
EARLY_ABANDON = True
USE_Z_NORMALIZE = False

# Search settings
SEARCH_DEADLINE_S = None    # seconds, None disables the deadline

# Audio feature settings (for building databases from recordings)
SAMPLE_RATE = 16000
N_MFCC = 13
N_FFT = 1024
HOP_LENGTH = 512

# Template loader settings
SEQUENCE_EXTENSIONS = ('.npy',)
AUDIO_EXTENSIONS = ('.wav', '.flac', '.ogg')
SKIP_DIRS = {"__pycache__", ".git", "raw", "temp"}
