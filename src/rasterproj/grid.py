# -*- coding: utf-8 -*-
import numpy as np

import rasterproj.utils as rputils


class Grid:
    def __init__(self, buffer, stride, rows, cols):
        """
    A Grid is a non-owning 2d view over a flat numeric buffer.

    Element (row, col) is stored at the linear offset ``row * stride + col``
    of the buffer. The Grid never copies nor frees the buffer: reads and
    writes go directly to the backing memory, which shall outlive the Grid.

    Parameters
    ----------
    buffer: 1d numpy.ndarray
        The backing memory, C-contiguous (in-memory array or numpy.memmap).
        Element type shall be float32 or float64.
    stride: int
        Number of elements between the start of 2 consecutive rows, shall be
        >= cols (extra elements are row padding, never touched)
    rows: int
        Number of rows of the grid
    cols: int
        Number of columns of the grid

    Notes
    -----
    The strided 2d view is exposed as ``grid.arr`` ; this is the object
    passed to the numba-compiled resampling kernels.
    """
        rows = rputils.check_positive_int("rows", rows)
        cols = rputils.check_positive_int("cols", cols)
        stride = rputils.check_positive_int("stride", stride)
        if stride < cols:
            raise ValueError(
                f"Grid stride shall be >= cols, given: stride={stride}, "
                f"cols={cols}"
            )

        buffer = np.asarray(buffer)
        if buffer.ndim != 1:
            raise ValueError(
                f"Grid buffer shall be 1d, given: ndim={buffer.ndim}"
            )
        if not buffer.flags.c_contiguous:
            raise ValueError("Grid buffer shall be contiguous")
        rputils.check_floating_dtype(buffer.dtype)

        required = (rows - 1) * stride + cols
        if buffer.size < required:
            raise ValueError(
                f"Grid buffer too small: {buffer.size} elements for "
                f"{rows} x {cols} grid with stride {stride} "
                f"(needs {required})"
            )

        itemsize = buffer.dtype.itemsize
        self.buffer = buffer
        self._stride = stride
        self.arr = np.lib.stride_tricks.as_strided(
            buffer,
            shape=(rows, cols),
            strides=(stride * itemsize, itemsize),
            writeable=buffer.flags.writeable
        )

    @classmethod
    def from_array(cls, arr):
        """ Wraps an existing 2d array with contiguous rows (the array may be
        a column-slice of a larger array, the extra columns being the row
        padding).
        """
        arr = np.asarray(arr)
        if arr.ndim != 2:
            raise ValueError(f"2d array expected, given: ndim={arr.ndim}")
        itemsize = arr.dtype.itemsize
        row_step, col_step = arr.strides
        if (col_step != itemsize) or (row_step % itemsize != 0):
            raise ValueError(
                f"Array rows shall be contiguous, given strides: {arr.strides}"
            )
        rows, cols = arr.shape
        stride = row_step // itemsize
        # flat view starting at arr[0, 0], covering all the rows
        flat = np.lib.stride_tricks.as_strided(
            arr,
            shape=((rows - 1) * stride + cols,),
            strides=(itemsize,),
            writeable=arr.flags.writeable
        )
        return cls(flat, stride, rows, cols)

    @property
    def rows(self):
        return self.arr.shape[0]

    @property
    def cols(self):
        return self.arr.shape[1]

    @property
    def stride(self):
        return self._stride

    @property
    def dtype(self):
        return self.arr.dtype

    @property
    def nodata(self):
        """ The sentinel no-data value: most negative representable value
        for this grid element type """
        return nodata_value(self.dtype)

    def offset(self, row, col):
        """ Linear offset of element (row, col) in the backing buffer """
        return row * self._stride + col

    def at(self, row, col):
        """ Returns the element at (row, col) """
        return self.arr[row, col]

    def __getitem__(self, key):
        row, col = key
        return self.arr[row, col]

    def __setitem__(self, key, value):
        row, col = key
        self.arr[row, col] = value

    def __repr__(self):
        return (
            f"{self.__class__.__name__}(rows={self.rows}, cols={self.cols}, "
            f"stride={self.stride}, dtype={self.dtype})"
        )


def nodata_value(dtype):
    """ Most negative representable value of a floating point dtype """
    return -np.finfo(rputils.check_floating_dtype(dtype)).max
