# -*- coding: utf-8 -*-
import logging

import numpy as np

import rasterproj.storage as rpstorage
from rasterproj.core import Geo_bbox, Tile_placement, project
from rasterproj.projection import get_projection, projections
from rasterproj.numpy_utils.interp2d import get_interpolator


logger = logging.getLogger(__name__)


DATA_FORMATS = {
    "float32": np.float32,
    "float64": np.float64,
}
"""Supported raster element types, by data format name"""


def get_dtype(data_format):
    """ Resolves a data format name to a numpy dtype """
    try:
        return np.dtype(DATA_FORMATS[data_format.lower()])
    except (KeyError, AttributeError):
        raise ValueError(
            f"Unknown data format: {data_format!r}, expected one of "
            f"{tuple(DATA_FORMATS.keys())}"
        )


def reproject(source, source_bbox, target, tile_placement, projection_id,
              data_format="float64", method="bilinear"):
    """
    Reprojects a lat / lng raster into a tile of a projected world image.

    Parameters
    ----------
    source: `rasterproj.storage.Raster_descriptor`
        The geographic source raster (opened read-only)
    source_bbox: 4-uplet of floats | `rasterproj.core.Geo_bbox`
        (lat_south, lat_north, lng_west, lng_east) extent of the source, in
        degrees
    target: `rasterproj.storage.Raster_descriptor`
        The target tile raster (opened read-write, shall exist)
    tile_placement: 4-uplet of ints | `rasterproj.core.Tile_placement`
        (x_origin, y_origin, x_total, y_total): the target is the window
        at (x_origin, y_origin) of a x_total by y_total projected image
    projection_id: str
        "epsg:3857" (Web Mercator) | "mollweide"
    data_format: "float64" | "float32"
        Element type of both rasters
    method: "bilinear" | "nearest" | "bicubic"
        The interpolation method

    Returns
    -------
    success: bool
        False if the projection identifier is not recognized (nothing
        is done), True otherwise

    Notes
    -----
    Other configuration errors (unknown data format or method, invalid
    geometry) raise a ValueError before any output pixel is written.
    """
    projection = get_projection(projection_id)
    if projection is None:
        logger.error(
            f"Unknown projection identifier: {projection_id!r}, known "
            f"identifiers: {tuple(projections.keys())}"
        )
        return False

    dtype = get_dtype(data_format)
    interpolator = get_interpolator(method)
    bbox = Geo_bbox(*source_bbox).check()
    x_origin, y_origin, x_total, y_total = Tile_placement(*tile_placement)

    logger.info(
        f"Reprojecting {source} -> {target} ({projection_id}, "
        f"{data_format}, {method})"
    )
    source_grid = rpstorage.open_grid(source, dtype, mode="r")
    target_grid = rpstorage.open_grid(target, dtype, mode="r+")

    project(
        projection, interpolator, source_grid,
        bbox.lat_south, bbox.lat_north, bbox.lng_west, bbox.lng_east,
        target_grid, x_origin, x_total, y_origin, y_total
    )
    rpstorage.flush(target_grid)
    return True
