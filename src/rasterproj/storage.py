# -*- coding: utf-8 -*-
"""
Backing storage for the rasters: memory-mapped raw binary files (row-major,
native byte order, no header) or numpy ``.npy`` files, and in-memory buffers.
"""
import os
import logging

import numpy as np
from numpy.lib.format import open_memmap

import rasterproj.utils as rputils
from rasterproj.grid import Grid


logger = logging.getLogger(__name__)


class Raster_descriptor:
    def __init__(self, path, stride, rows, cols):
        """
    Describes a raster buffer: its location and its 2d geometry.

    Parameters
    ----------
    path: str | os.PathLike | numpy.ndarray
        Either the path of the backing file (raw binary or ``.npy``), or an
        in-memory 1d buffer (handle) used as is
    stride: int
        Number of elements between the start of 2 consecutive rows
    rows: int
        Number of rows
    cols: int
        Number of columns
    """
        self.path = path
        self.stride = rputils.check_positive_int("stride", stride)
        self.rows = rputils.check_positive_int("rows", rows)
        self.cols = rputils.check_positive_int("cols", cols)
        if self.stride < self.cols:
            raise ValueError(
                f"stride shall be >= cols, given: stride={stride}, cols={cols}"
            )

    @property
    def size(self):
        """ Minimal number of elements of the backing buffer """
        return (self.rows - 1) * self.stride + self.cols

    @property
    def is_handle(self):
        return isinstance(self.path, np.ndarray)

    def __repr__(self):
        path = "<in-memory>" if self.is_handle else os.fspath(self.path)
        return (
            f"{self.__class__.__name__}({path}, stride={self.stride}, "
            f"rows={self.rows}, cols={self.cols})"
        )


def open_buffer(descriptor, dtype, mode="r"):
    """
    Returns the 1d buffer backing a raster

    Parameters
    ----------
    descriptor: `Raster_descriptor`
        The raster
    dtype: numpy dtype
        Element type - float32 or float64
    mode: "r" | "r+"
        Read-only or read-write access
    """
    dtype = rputils.check_floating_dtype(dtype)
    if mode not in ("r", "r+"):
        raise ValueError(f"Unsupported mode: {mode}")

    if descriptor.is_handle:
        buffer = descriptor.path
        if buffer.dtype != dtype:
            raise ValueError(
                f"In-memory buffer dtype {buffer.dtype} does not match the "
                f"requested data format {dtype}"
            )
        if not buffer.flags.c_contiguous:
            raise ValueError("In-memory buffer shall be contiguous")
        if mode == "r":
            buffer = buffer.view()
            buffer.flags.writeable = False
        return buffer.reshape(-1)

    path = os.fspath(descriptor.path)
    ext = os.path.splitext(path)[1]
    if ext == ".npy":
        mmap = open_memmap(filename=path, mode=mode)
        if mmap.dtype != dtype:
            raise ValueError(
                f"Incompatible dtype for {path}: {mmap.dtype}, expected "
                f"{dtype}"
            )
        # Flattening a Fortran-ordered array would copy it, writes would
        # never reach the file
        if not mmap.flags.c_contiguous:
            raise ValueError(
                f"{path} is not stored in C order (fortran_order=True), "
                "cannot be memory-mapped as a flat raster buffer"
            )
        buffer = mmap.reshape(-1)
    else:
        file_size = os.path.getsize(path)
        n_items = file_size // dtype.itemsize
        if n_items < descriptor.size:
            raise ValueError(
                f"File too small for {descriptor}: {file_size} bytes, needs "
                f"{descriptor.size * dtype.itemsize} bytes as {dtype}"
            )
        buffer = np.memmap(path, dtype=dtype, mode=mode, shape=(n_items,))
    logger.debug(f"Memory-mapped {path} ({mode}): {buffer.size} items")
    return buffer


def open_grid(descriptor, dtype, mode="r"):
    """ Returns a `rasterproj.grid.Grid` view on the raster storage """
    buffer = open_buffer(descriptor, dtype, mode)
    return Grid(buffer, descriptor.stride, descriptor.rows, descriptor.cols)


def flush(grid):
    """ Flushes the memory-map backing a grid to disk (if any) """
    base = grid.buffer
    while base is not None:
        if isinstance(base, np.memmap):
            base.flush()
            return
        base = base.base


def create_raster(path, stride, rows, cols, dtype=np.float64, fill=0.):
    """
    Allocates a new raster file and returns its descriptor.

    Parameters
    ----------
    path: str | os.PathLike
        Path of the new file: a ``.npy`` extension creates a numpy file,
        otherwise a raw binary buffer
    stride, rows, cols: int
        The raster geometry
    dtype: numpy dtype
        Element type - float32 or float64
    fill: float
        Initial value of all elements
    """
    descriptor = Raster_descriptor(path, stride, rows, cols)
    dtype = rputils.check_floating_dtype(dtype)
    path = os.fspath(path)
    dirname = os.path.dirname(path)
    if dirname:
        rputils.mkdir_p(dirname)

    if os.path.splitext(path)[1] == ".npy":
        mmap = open_memmap(
            filename=path,
            mode='w+',
            dtype=dtype,
            shape=(descriptor.size,),
            fortran_order=False,
            version=None
        )
    else:
        mmap = np.memmap(
            path, dtype=dtype, mode="w+", shape=(descriptor.size,)
        )
    mmap[:] = fill
    mmap.flush()
    del mmap
    logger.debug(f"Created raster file {path}")
    return descriptor
