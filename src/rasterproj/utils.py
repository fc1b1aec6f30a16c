# -*- coding: utf-8 -*-
import os
import errno
import numbers

import numpy as np


def mkdir_p(path):
    """ Creates directory ; if exists does nothing """
    try:
        os.makedirs(path)
    except OSError as exc:
        if exc.errno == errno.EEXIST and os.path.isdir(path):
            pass
        else:
            raise exc


def check_positive_int(name, value):
    """ Raise a ValueError unless `value` is an integer >= 1 """
    if not isinstance(value, numbers.Integral) or isinstance(value, bool):
        raise ValueError(f"{name} shall be an integer, given: {value!r}")
    if value < 1:
        raise ValueError(f"{name} shall be >= 1, given: {value}")
    return int(value)


def check_floating_dtype(dtype):
    """ Return the numpy dtype if supported as a raster element type
    (float32 | float64), raise a ValueError otherwise """
    dtype = np.dtype(dtype)
    if dtype not in (np.dtype(np.float32), np.dtype(np.float64)):
        raise ValueError(
            f"Unsupported raster element type: {dtype}, "
            "expected float32 or float64"
        )
    return dtype
