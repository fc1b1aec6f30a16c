# -*- coding: utf-8 -*-
__license__ = "MIT"
__version__ = "0.1.0"

import numpy as np
import warnings

from . import settings
from . import utils
from .settings import verbosity, log_directory
from .grid import Grid, nodata_value
from .projection import Projection, Web_mercator, Mollweide, get_projection
from .numpy_utils.interp2d import (
    Interpolator, Nearest, Bilinear, Bicubic, get_interpolator
)
from .core import Geo_bbox, Tile_placement, Reprojection, project
from .storage import Raster_descriptor, open_grid, create_raster
from .api import reproject, DATA_FORMATS
from .log import set_log_handlers

# Disable numpy warnings
if verbosity < 3:
    np.seterr(all="ignore")
    warnings.filterwarnings(
        action="ignore",
        message="invalid value encountered in"
    )
