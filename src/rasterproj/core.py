# -*- coding: utf-8 -*-
import functools
import numbers
import logging
import textwrap
import typing

import numba

import rasterproj as rp
import rasterproj.settings
import rasterproj.utils
from rasterproj.grid import Grid
from rasterproj.projection import Projection, projections
from rasterproj.numpy_utils.interp2d import Interpolator
from rasterproj.mthreading import Multithreading_iterator


logger = logging.getLogger(__name__)


class Geo_bbox(typing.NamedTuple):
    """
    Geographic extent (degrees) covered by the source grid sample points,
    assuming an equirectangular sampling: row 0 is the northern edge, column
    0 the western edge.
    """
    lat_south: float
    lat_north: float
    lng_west: float
    lng_east: float

    def check(self):
        """ Raise a ValueError for a degenerate or inverted box """
        if not (self.lat_north > self.lat_south):
            raise ValueError(
                "Invalid bounding box, expected lat_north > lat_south, given: "
                f"lat_south={self.lat_south}, lat_north={self.lat_north}"
            )
        if not (self.lng_east > self.lng_west):
            raise ValueError(
                "Invalid bounding box, expected lng_east > lng_west, given: "
                f"lng_west={self.lng_west}, lng_east={self.lng_east}"
            )
        return self


class Tile_placement(typing.NamedTuple):
    """
    Position of the target grid as a window inside the full projected image
    of size x_total x y_total pixels, with top-left corner at
    (x_origin, y_origin).
    """
    x_origin: int
    y_origin: int
    x_total: int
    y_total: int

    def check(self, target):
        """ Validates the placement for a target `Grid` """
        for name in ("x_total", "y_total"):
            rp.utils.check_positive_int(name, getattr(self, name))
        for name in ("x_origin", "y_origin"):
            val = getattr(self, name)
            if not isinstance(val, numbers.Integral) or isinstance(val, bool):
                raise ValueError(f"{name} shall be an integer, given: {val!r}")

        x_end = self.x_origin + target.cols
        y_end = self.y_origin + target.rows
        if (
            (self.x_origin < 0) or (self.y_origin < 0)
            or (x_end > self.x_total) or (y_end > self.y_total)
        ):
            msg = (
                f"Tile [{self.x_origin}:{x_end}] x [{self.y_origin}:{y_end}] "
                f"exceeds the full image {self.x_total} x {self.y_total}"
            )
            if rp.settings.strict_placement:
                raise ValueError(msg)
            logger.warning(msg + " - out-of-image pixels still computed")
        return self


class Reprojection:
    def __init__(self, projection, interpolator, source, bbox, target,
                 placement):
        """
    A single reprojection pass of a source lat / lng grid into a target tile.

    Parameters
    ----------
    projection: `rasterproj.projection.Projection`
        The target projection (reverse mapping)
    interpolator: `rasterproj.numpy_utils.interp2d.Interpolator`
        The interpolation strategy used to sample the source grid
    source: `rasterproj.grid.Grid`
        The source data, read-only
    bbox: `Geo_bbox`
        The geographic extent of the source grid
    target: `rasterproj.grid.Grid`
        The target tile, written in place
    placement: `Tile_placement`
        The position of the tile in the full projected image

    Notes
    -----
    The flat target index space [0, rows * cols) is traversed in
    column-major order (col = i // rows, row = i % rows) and split in
    contiguous chunks of ``rasterproj.settings.chunk_size`` pixels. Each
    target cell belongs to exactly one chunk.
    """
        if not isinstance(projection, Projection):
            raise ValueError(
                f"A Projection instance is expected, given: {projection!r}"
            )
        if not isinstance(interpolator, Interpolator):
            raise ValueError(
                f"An Interpolator instance is expected, given: {interpolator!r}"
            )
        for name, grid in (("source", source), ("target", target)):
            if not isinstance(grid, Grid):
                raise ValueError(f"{name} shall be a Grid, given: {grid!r}")
        if not target.arr.flags.writeable:
            raise ValueError("target Grid is read-only")
        rp.utils.check_positive_int("chunk_size", rp.settings.chunk_size)

        self.projection = projection
        self.interpolator = interpolator
        self.source = source
        self.bbox = Geo_bbox(*bbox).check()
        self.target = target
        self.placement = Tile_placement(*placement).check(target)
        self.nodata = float(target.nodata)

    @property
    def npts(self):
        return self.target.rows * self.target.cols

    def chunk_slices(self):
        """
        Generator function
        Yields the chunks spans (begin, end) of the flat target index range
        """
        chunk_size = rp.settings.chunk_size
        for begin in range(0, self.npts, chunk_size):
            yield (begin, min(begin + chunk_size, self.npts))

    @property
    def chunks_count(self):
        """ Return the total number of chunks for the current target """
        (c, r) = divmod(self.npts, rp.settings.chunk_size)
        if r != 0:
            c += 1
        return c

    def chunk_rank(self, chunk_slice):
        """ Return the generator yield index for chunk_slice """
        return chunk_slice[0] // rp.settings.chunk_size

    def run(self):
        """ Fills the whole target grid """
        logger.info(self.info_str())
        logger.debug(
            f"Target split in {self.chunks_count} chunks of "
            f"{rp.settings.chunk_size} pixels"
        )
        self.kernel = get_kernel(
            self.projection.reverse_impl, self.interpolator.impl
        )
        self.project_chunks()
        logger.debug("Reprojection pass: done")

    @Multithreading_iterator(
        iterable_attr="chunk_slices", iter_kwargs="chunk_slice"
    )
    def project_chunks(self, chunk_slice):
        begin, end = chunk_slice
        bbox = self.bbox
        placement = self.placement
        self.kernel(
            begin, end,
            self.source.arr,
            float(bbox.lat_south), float(bbox.lat_north),
            float(bbox.lng_west), float(bbox.lng_east),
            self.target.arr,
            int(placement.x_origin), int(placement.x_total),
            int(placement.y_origin), int(placement.y_total),
            self.nodata
        )

    def info_str(self):
        bbox = self.bbox
        placement = self.placement
        return textwrap.dedent(f"""\
            Reprojection with {self.projection.__class__.__name__} /
              {self.interpolator.__class__.__name__} interpolation
              source: {self.source}
                lat [{bbox.lat_south}, {bbox.lat_north}]
                lng [{bbox.lng_west}, {bbox.lng_east}]
              target: {self.target}
                origin ({placement.x_origin}, {placement.y_origin}) in full
                image {placement.x_total} x {placement.y_total}""")


@functools.lru_cache(maxsize=None)
def get_kernel(reverse, sample):
    """
    Returns the numba compiled kernel processing a chunk of target pixels,
    for a given reverse projection and sampling implementation.
    Compiled once per (projection, interpolator) pair.
    """

    @numba.njit(nogil=True, fastmath=False)
    def numba_impl(begin, end, src, lat_south, lat_north, lng_west, lng_east,
                   tgt, x_origin, x_total, y_origin, y_total, nodata):
        src_rows, src_cols = src.shape
        tgt_rows = tgt.shape[0]
        dlat = lat_north - lat_south
        dlng = lng_east - lng_west

        for i in range(begin, end):
            col = i // tgt_rows
            row = i % tgt_rows

            x_norm = (col + x_origin) / x_total
            y_norm = (row + y_origin) / y_total
            lng, lat = reverse(x_norm, y_norm)

            src_x_norm = (lng - lng_west) / dlng
            src_y_norm = 1. - (lat - lat_south) / dlat

            # NaN positions (undefined projection) fail the tests
            if (
                (src_x_norm >= 0.) and (src_x_norm < 1.)
                and (src_y_norm >= 0.) and (src_y_norm < 1.)
            ):
                tgt[row, col] = sample(
                    src, src_x_norm * src_cols, src_y_norm * src_rows
                )
            else:
                tgt[row, col] = nodata

    return numba_impl


def project(projection, interpolator, source_grid,
            lat_south, lat_north, lng_west, lng_east,
            target_grid, x_origin, x_total, y_origin, y_total):
    """
    Reprojects a geographic (lat / lng) source grid into a tile of the
    given projection.

    Every target pixel (row, col) is reverse-projected from its normalized
    position in the full image ``((col + x_origin) / x_total,
    (row + y_origin) / y_total)`` to (lng, lat), then sampled from the source
    grid if inside the source bounding box. Pixels outside the box are set to
    the no-data value (most negative representable value of the target
    element type).

    Parameters
    ----------
    projection: `rasterproj.projection.Projection` | None
        The target projection. None (unresolved identifier) raises a
        ValueError before any pixel is written.
    interpolator: `rasterproj.numpy_utils.interp2d.Interpolator`
        The sampling strategy
    source_grid: `rasterproj.grid.Grid`
        The source data, covering [lat_south, lat_north] x
        [lng_west, lng_east] degrees
    lat_south, lat_north, lng_west, lng_east: floats
        The source bounding box
    target_grid: `rasterproj.grid.Grid`
        The target tile, written in place
    x_origin, x_total, y_origin, y_total: ints
        The tile is the window starting at (x_origin, y_origin) of a full
        projected image of size x_total x y_total
    """
    if projection is None:
        raise ValueError(
            "No projection given (unresolved projection identifier ?), "
            "known identifiers: "
            f"{tuple(projections.keys())}"
        )
    reprojection = Reprojection(
        projection,
        interpolator,
        source_grid,
        Geo_bbox(lat_south, lat_north, lng_west, lng_east),
        target_grid,
        Tile_placement(x_origin, y_origin, x_total, y_total)
    )
    reprojection.run()
    return target_grid
