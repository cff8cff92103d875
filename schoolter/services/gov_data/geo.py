"""British National Grid to WGS84 conversion.

GIAS publishes OSGB36 easting/northing pairs; the frontend map wants WGS84
latitude/longitude.  The grid is inverted onto the Airy 1830 ellipsoid, then
moved to WGS84 through a seven-parameter Helmert transform, which is
accurate to a few metres.
"""

from __future__ import annotations

import math
from typing import NamedTuple


class Ellipsoid(NamedTuple):
    a: float  # semi-major axis (m)
    b: float  # semi-minor axis (m)

    @property
    def e2(self) -> float:
        """Eccentricity squared."""
        return 1.0 - (self.b * self.b) / (self.a * self.a)


AIRY_1830 = Ellipsoid(6_377_563.396, 6_356_256.909)
WGS84 = Ellipsoid(6_378_137.0, 6_356_752.3141)

# National Grid true origin and scale factor
_F0 = 0.9996012717
_LAT0 = math.radians(49.0)
_LON0 = math.radians(-2.0)
_E0 = 400_000.0
_N0 = -100_000.0

# OSGB36 -> WGS84: translation (m), scale (ppm), rotation (arc-seconds)
_TRANSLATION = (446.448, -125.157, 542.060)
_SCALE_PPM = -20.4894
_ROTATION_ARCSEC = (0.1502, 0.2470, 0.8421)


def _meridional_arc(lat: float) -> float:
    a, b = AIRY_1830
    n = (a - b) / (a + b)
    n2, n3 = n * n, n * n * n
    d, s = lat - _LAT0, lat + _LAT0
    return (
        b
        * _F0
        * (
            (1.0 + n + 1.25 * n2 + 1.25 * n3) * d
            - (3.0 * n + 3.0 * n2 + 2.625 * n3) * math.sin(d) * math.cos(s)
            + (1.875 * n2 + 1.875 * n3) * math.sin(2.0 * d) * math.cos(2.0 * s)
            - (35.0 / 24.0) * n3 * math.sin(3.0 * d) * math.cos(3.0 * s)
        )
    )


def grid_to_osgb36(easting: float, northing: float) -> tuple[float, float]:
    """Invert the National Grid projection; returns OSGB36 (lat, lon) in radians."""
    a, e2 = AIRY_1830.a, AIRY_1830.e2

    lat, arc = _LAT0, 0.0
    while True:
        lat += (northing - _N0 - arc) / (a * _F0)
        arc = _meridional_arc(lat)
        if abs(northing - _N0 - arc) < 1e-5:
            break

    sin_lat, tan_lat = math.sin(lat), math.tan(lat)
    sec_lat = 1.0 / math.cos(lat)
    nu = a * _F0 / math.sqrt(1.0 - e2 * sin_lat * sin_lat)
    rho = a * _F0 * (1.0 - e2) / (1.0 - e2 * sin_lat * sin_lat) ** 1.5
    eta2 = nu / rho - 1.0
    t2 = tan_lat * tan_lat
    t4 = t2 * t2
    t6 = t4 * t2

    vii = tan_lat / (2.0 * rho * nu)
    viii = tan_lat / (24.0 * rho * nu**3) * (5.0 + 3.0 * t2 + eta2 - 9.0 * t2 * eta2)
    ix = tan_lat / (720.0 * rho * nu**5) * (61.0 + 90.0 * t2 + 45.0 * t4)
    x = sec_lat / nu
    xi = sec_lat / (6.0 * nu**3) * (nu / rho + 2.0 * t2)
    xii = sec_lat / (120.0 * nu**5) * (5.0 + 28.0 * t2 + 24.0 * t4)
    xiia = sec_lat / (5040.0 * nu**7) * (61.0 + 662.0 * t2 + 1320.0 * t4 + 720.0 * t6)

    de = easting - _E0
    return (
        lat - vii * de**2 + viii * de**4 - ix * de**6,
        _LON0 + x * de - xi * de**3 + xii * de**5 - xiia * de**7,
    )


def _to_cartesian(lat: float, lon: float, ellipsoid: Ellipsoid) -> tuple[float, float, float]:
    nu = ellipsoid.a / math.sqrt(1.0 - ellipsoid.e2 * math.sin(lat) ** 2)
    return (
        nu * math.cos(lat) * math.cos(lon),
        nu * math.cos(lat) * math.sin(lon),
        (1.0 - ellipsoid.e2) * nu * math.sin(lat),
    )


def _helmert(x: float, y: float, z: float) -> tuple[float, float, float]:
    tx, ty, tz = _TRANSLATION
    rx, ry, rz = (math.radians(arcsec / 3600.0) for arcsec in _ROTATION_ARCSEC)
    k = 1.0 + _SCALE_PPM * 1e-6
    return (
        tx + k * x - rz * y + ry * z,
        ty + rz * x + k * y - rx * z,
        tz - ry * x + rx * y + k * z,
    )


def _from_cartesian(x: float, y: float, z: float, ellipsoid: Ellipsoid) -> tuple[float, float]:
    p = math.hypot(x, y)
    lat = math.atan2(z, p * (1.0 - ellipsoid.e2))
    for _ in range(10):
        nu = ellipsoid.a / math.sqrt(1.0 - ellipsoid.e2 * math.sin(lat) ** 2)
        lat = math.atan2(z + ellipsoid.e2 * nu * math.sin(lat), p)
    return lat, math.atan2(y, x)


def osgb36_to_wgs84(easting: float, northing: float) -> tuple[float, float]:
    """Convert a National Grid easting/northing to WGS84 (lat, lon) in degrees."""
    lat, lon = grid_to_osgb36(easting, northing)
    lat, lon = _from_cartesian(*_helmert(*_to_cartesian(lat, lon, AIRY_1830)), WGS84)
    return math.degrees(lat), math.degrees(lon)
