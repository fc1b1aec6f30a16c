# -*- coding: utf-8 -*-
import math
import inspect

import numpy as np
import numba

"""
This module implements interpolation routines inside a regular 2d grid.

Coordinates are given in fractional (column, row) units: grid point (r, c) is
located at x = c, y = r. Neighbours beyond the last column / row are replaced
by the last column / row (replicate-edge policy).
"""


class Interpolator:
    """
    Base class for the interpolation strategies.

    Derived classes shall implement `make_impl`, which defines the numba
    jitted function ``self.impl`` with signature:

        impl(arr, x, y) -> float

    where ``arr`` is a 2d array (row, col) and x, y the fractional column
    and row coordinates, with 0 <= x < arr.shape[1] and 0 <= y < arr.shape[0]
    """
    def __init__(self):
        self.make_impl()

    @property
    def init_kwargs(self):
        """ Return a dict of parameters used during __init__ call"""
        init_kwargs = {}
        for (
            p_name, param
        ) in inspect.signature(self.__init__).parameters.items():
            init_kwargs[p_name] = getattr(self, p_name)
        return init_kwargs

    def __eq__(self, other):
        return (
            other.__class__ == self.__class__
            and other.init_kwargs == self.init_kwargs
        )

    def __hash__(self):
        return hash(self.__class__)

    def make_impl(self):
        raise NotImplementedError("Derived classes shall implement")

    def sample(self, grid, x, y):
        """
        Interpolates the grid at fractional coordinates x (column), y (row)

        Parameters
        ----------
        grid: `rasterproj.grid.Grid`
            The source grid
        x: float
            column coordinate, 0 <= x < grid.cols
        y: float
            row coordinate, 0 <= y < grid.rows
        """
        return self.impl(grid.arr, float(x), float(y))

    def __call__(self, grid, pts_x, pts_y, pts_res=None):
        """
        Interpolates at pts_x, pts_y

        Parameters:
        ----------
        grid: `rasterproj.grid.Grid`
            The source grid
        pts_x: 1d-array
            column coord of interpolating point location
        pts_y: 1d-array
            row coord of interpolating point location
        pts_res: 1d-array, Optionnal
            Out array handle - if not provided, will be created.
        """
        pts_x = np.asarray(pts_x, dtype=np.float64)
        pts_y = np.asarray(pts_y, dtype=np.float64)
        assert np.ndim(pts_x) == 1
        if pts_res is None:
            pts_res = np.empty_like(pts_x)
        interpolate_pts(self.impl, grid.arr, pts_x, pts_y, pts_res)
        return pts_res


#==============================================================================
class Nearest(Interpolator):
    def __init__(self):
        """ Nearest-neighbour interpolation: the value of the closest grid
        point (ties rounded up) """
        super().__init__()

    def make_impl(self):
        self.impl = nearest_impl


@numba.njit(nogil=True, fastmath=False)
def nearest_impl(arr, x, y):
    nrows, ncols = arr.shape
    ix = min(np.intp(math.floor(x + 0.5)), ncols - 1)
    iy = min(np.intp(math.floor(y + 0.5)), nrows - 1)
    return arr[iy, ix]


#==============================================================================
class Bilinear(Interpolator):
    def __init__(self):
        """
        Bilinear interpolation, weighted average of the 4 surrounding
        grid points:

        .. math::

            f = (1-f_x)(1-f_y) G_{00} + f_x (1-f_y) G_{10}
                + (1-f_x) f_y G_{01} + f_x f_y G_{11}

        Exact at grid points.
        """
        super().__init__()

    def make_impl(self):
        self.impl = bilinear_impl


@numba.njit(nogil=True, fastmath=False)
def bilinear_impl(arr, x, y):
    nrows, ncols = arr.shape
    x0 = min(np.intp(math.floor(x)), ncols - 1)
    y0 = min(np.intp(math.floor(y)), nrows - 1)
    x1 = min(x0 + 1, ncols - 1)
    y1 = min(y0 + 1, nrows - 1)

    fx = x - x0
    fy = y - y0
    cx0 = 1. - fx
    cy0 = 1. - fy

    return (
        (cx0 * cy0 * arr[y0, x0])
        + (fx * cy0 * arr[y0, x1])
        + (cx0 * fy * arr[y1, x0])
        + (fx * fy * arr[y1, x1])
    )


#==============================================================================
class Bicubic(Interpolator):
    def __init__(self):
        """
        Bicubic interpolation by cubic convolution (Keys kernel, a = -0.5)
        over the 4 x 4 surrounding grid points. Exact at grid points, and
        reproduces linear fields away from the edges.
        """
        super().__init__()

    def make_impl(self):
        self.impl = bicubic_impl


@numba.njit(nogil=True, fastmath=False)
def cubic_weights(t):
    """ Keys cubic convolution weights for offsets -1, 0, 1, 2 """
    a = -0.5
    t2 = t * t
    t3 = t2 * t
    w0 = a * (t3 - 2. * t2 + t)
    w1 = (a + 2.) * t3 - (a + 3.) * t2 + 1.
    w2 = -(a + 2.) * t3 + (2. * a + 3.) * t2 - a * t
    w3 = a * (t2 - t3)
    return w0, w1, w2, w3


@numba.njit(nogil=True, fastmath=False)
def bicubic_impl(arr, x, y):
    nrows, ncols = arr.shape
    x0 = min(np.intp(math.floor(x)), ncols - 1)
    y0 = min(np.intp(math.floor(y)), nrows - 1)

    wx = cubic_weights(x - x0)
    wy = cubic_weights(y - y0)

    res = 0.
    for j in range(4):
        iy = min(max(y0 + j - 1, 0), nrows - 1)
        row_val = 0.
        for i in range(4):
            ix = min(max(x0 + i - 1, 0), ncols - 1)
            row_val += wx[i] * arr[iy, ix]
        res += wy[j] * row_val
    return res


#==============================================================================
@numba.njit(nogil=True, parallel=False)
def interpolate_pts(impl, arr, pts_x, pts_y, pts_res):
    """ In place filling of pts_res array
    """
    for mi in range(pts_res.shape[0]):
        pts_res[mi] = impl(arr, pts_x[mi], pts_y[mi])


interpolators = {
    "nearest": Nearest,
    "bilinear": Bilinear,
    "bicubic": Bicubic,
}


def get_interpolator(method):
    """
    Returns a new interpolator instance from its method name.

    Parameters
    ----------
    method: "nearest" | "bilinear" | "bicubic"
        The interpolation method name
    """
    try:
        return interpolators[method.lower()]()
    except (KeyError, AttributeError):
        raise ValueError(
            f"Unknown interpolation method: {method!r}, expected one of "
            f"{tuple(interpolators.keys())}"
        )
