# -*- coding: utf-8 -*-
import inspect
import logging
import math

import numpy as np
import numba


logger = logging.getLogger(__name__)


class Projection:
    """
    A Projection defines the reverse mapping from the output image to the
    geographic coordinates.

    Output image positions are normalized over the *whole* projected world
    image (not the tile being computed):

    .. math::

        (x, y) \\in [0, 1) \\times [0, 1)

    with x increasing eastward and y increasing downward (row order).
    The reverse mapping returns the longitude and latitude in degrees:

    .. math::

        (\\lambda, \\varphi) = f^{-1}(x, y)

    Derived classes shall implement the actual :math:`f^{-1}` function as a
    numba jitted function, through `make_impl`. It shall be pure: no side
    effects, no dependency on any mutable state.
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
            # By contract, __init__ params shall be stored as instance attrib.
            init_kwargs[p_name] = getattr(self, p_name)
        return init_kwargs

    def __eq__(self, other):
        """
        2 `Projections` are equal if:

            - they are instances from the same subclass
            - they have been created with the same init_kwargs
        """
        return (
            other.__class__ == self.__class__
            and other.init_kwargs == self.init_kwargs
        )

    def __hash__(self):
        return hash(self.__class__)

    def make_impl(self):
        """ Defines self.reverse_impl: (x, y) -> (lng, lat) numba function"""
        raise NotImplementedError("Derived classes shall implement")

    def reverse(self, x, y):
        """
        Reverse-projects a normalized position of the full output image

        Parameters
        ----------
        x: float
            normalized column position, in [0, 1)
        y: float
            normalized row position, in [0, 1)

        Returns
        -------
        lng, lat: floats
            geographic coordinates in degrees (NaN where the projection is
            not defined)
        """
        return self.reverse_impl(float(x), float(y))


#==============================================================================
class Web_mercator(Projection):
    def __init__(self):
        """
        The spherical Web Mercator projection (EPSG:3857):

        .. math::

            \\lambda &= 360 x - 180 \\\\
            \\varphi &= \\arctan(\\sinh(\\pi (1 - 2 y)))

        The poles are approached but never reached as y -> 0 or 1
        (latitude range ~ +/- 85.05 degrees).
        """
        super().__init__()

    def make_impl(self):
        self.reverse_impl = web_mercator_numba_impl


@numba.njit(nogil=True, fastmath=False)
def web_mercator_numba_impl(x, y):
    lng = x * 360. - 180.
    lat_rad = math.atan(math.sinh(math.pi * (1. - 2. * y)))
    return lng, lat_rad * 180. / math.pi


#==============================================================================
class Mollweide(Projection):
    def __init__(self):
        """
        The Mollweide equal-area pseudo-cylindrical projection, for a unit
        sphere (R = 1) and central meridian :math:`\\lambda_0 = 0`.

        The normalized x, y are both rescaled to the projected plane span
        :math:`[-2 R \\sqrt{2}, 2 R \\sqrt{2}]`, then:

        .. math::

            \\theta &= \\arcsin \\left( \\frac{y'}{R \\sqrt{2}} \\right) \\\\
            \\varphi &= \\arcsin \\left(
                \\frac{2 \\theta + \\sin 2 \\theta}{\\pi} \\right) \\\\
            \\lambda &= \\lambda_0 + \\frac{\\pi x'}{2 R \\sqrt{2}
                \\cos \\theta}

        The returned latitude is :math:`- \\varphi`, as rows grow
        southward: the north pole is at y = 0.25, the south pole at
        y = 0.75. Outside of the ellipse the position is undefined
        (NaN latitude, or longitude beyond +/- 180).
        """
        super().__init__()

    def make_impl(self):
        self.reverse_impl = mollweide_numba_impl


@numba.njit(nogil=True, fastmath=False)
def mollweide_numba_impl(x, y):
    R = 1.
    lambda0 = 0.
    r_sqrt2 = R * math.sqrt(2.)
    xp = x * (4. * r_sqrt2) - 2. * r_sqrt2
    yp = y * (4. * r_sqrt2) - 2. * r_sqrt2

    # np.arcsin returns NaN out of [-1, 1] (out of the ellipse)
    theta = np.arcsin(yp / r_sqrt2)
    phi = np.arcsin((2. * theta + math.sin(2. * theta)) / math.pi)
    lam = lambda0 + (math.pi * xp) / (2. * r_sqrt2 * math.cos(theta))

    return lam * 180. / math.pi, phi * -180. / math.pi


#==============================================================================
projections = {
    "epsg:3857": Web_mercator,
    "mollweide": Mollweide,
    "esri:54009": Mollweide,
}


def get_projection(name):
    """
    Resolves a projection identifier.

    Parameters
    ----------
    name: str
        The projection identifier (case insensitive), one of:
        "epsg:3857", "mollweide", "esri:54009"

    Returns
    -------
    projection: `Projection` instance, or None if the identifier is unknown
    """
    try:
        projection_cls = projections[name.lower()]
    except (KeyError, AttributeError):
        logger.debug(f"Unknown projection identifier: {name!r}")
        return None
    return projection_cls()
