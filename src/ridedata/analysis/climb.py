"""
Total ascent / descent for an altitude series.

Two interpolation models:

  LINEAR  Altitude is assumed to change linearly between recorded points.
          ascent  = Σ max(0, alt[i+1] - alt[i])
          descent = Σ max(0, alt[i] - alt[i+1])

  SPLINE  A natural cubic spline (second derivative zero at both ends) is fit
          through the (distance, altitude) knots and resampled every
          `resolution_m` meters between consecutive knots; the resampled
          profile is then summed exactly like LINEAR.

The spline surfaces peaks and dips between knots that straight segments cut
off, so SPLINE totals usually exceed LINEAR totals on a non-monotone profile.
Every knot is part of the resampled grid, so SPLINE ascent and descent are
never smaller than LINEAR ones summed over the same knots. Samples sharing one
distance (rider stopped) are first merged into a single knot at their mean
altitude; the bound holds against the merged knots, and SPLINE can come out
below LINEAR over the raw samples when the altitude wobbles while stopped.
That gap is the expected difference between the two models, not an error to
reconcile.

A series with fewer than 2 altitude points returns zeros; this is the normal
state before a DEM fetch has completed.
"""
import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np
from scipy.interpolate import CubicSpline

from ridedata.analysis.timeseries import Series

DEFAULT_RESOLUTION_M = 5.0


class InterpolationMode(str, Enum):
    LINEAR = "linear"
    SPLINE = "spline"


@dataclass(frozen=True)
class ClimbResult:
    source_id: str
    interpolation_mode: InterpolationMode
    total_ascent: float    # meters, >= 0
    total_descent: float   # meters, >= 0


def linear_totals(altitudes: Sequence[float]) -> Tuple[float, float]:
    """(ascent, descent) summed over consecutive altitude pairs."""
    if len(altitudes) < 2:
        return 0.0, 0.0
    diffs = np.diff(np.asarray(altitudes, dtype=float))
    ascent = float(diffs[diffs > 0].sum())
    descent = float(-diffs[diffs < 0].sum())
    return ascent, descent


def _merge_duplicate_knots(x_m: np.ndarray, alt: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Collapse samples sharing the same distance (rider stopped) into one knot
    at their mean altitude; a spline needs strictly increasing x.
    """
    order = np.argsort(x_m, kind="stable")
    x_m, alt = x_m[order], alt[order]
    unique_x, inverse = np.unique(x_m, return_inverse=True)
    sums = np.bincount(inverse, weights=alt)
    counts = np.bincount(inverse)
    return unique_x, sums / counts


def spline_resample(
    distances_km: Sequence[float],
    altitudes: Sequence[float],
    resolution_m: float = DEFAULT_RESOLUTION_M,
) -> np.ndarray:
    """
    Resample a natural cubic spline through (distance, altitude) knots.

    Args:
        distances_km: knot positions (non-decreasing)
        altitudes: knot altitudes in meters
        resolution_m: maximum spacing of resampled points between two knots

    Returns:
        Resampled altitudes, knots included, in distance order. With fewer
        than 3 distinct distances the knots are returned unchanged.
    """
    if resolution_m <= 0:
        raise ValueError(f"resolution_m must be positive, got {resolution_m}")

    x_m, alt = _merge_duplicate_knots(
        np.asarray(distances_km, dtype=float) * 1000.0,
        np.asarray(altitudes, dtype=float),
    )
    if len(x_m) < 3:
        # A natural spline through two knots is the straight segment itself
        return alt

    spline = CubicSpline(x_m, alt, bc_type="natural")
    pieces: List[np.ndarray] = []
    for x0, x1 in zip(x_m[:-1], x_m[1:]):
        steps = max(1, math.ceil((x1 - x0) / resolution_m))
        pieces.append(np.linspace(x0, x1, steps, endpoint=False))
    pieces.append(x_m[-1:])
    grid = np.concatenate(pieces)

    resampled = spline(grid)
    # Pin the knots to their exact values so spline totals bound linear ones
    knot_idx = np.searchsorted(grid, x_m)
    resampled[knot_idx] = alt
    return resampled


def compute_climb(
    series: Series,
    mode: InterpolationMode = InterpolationMode.LINEAR,
    resolution_m: Optional[float] = None,
) -> ClimbResult:
    """
    Total ascent/descent of `series` under `mode`.

    Only samples carrying an altitude are used. No caching: series hold a few
    thousand points at most and are recomputed whenever the source or mode
    changes.
    """
    points = series.altitude_points()
    if len(points) < 2:
        return ClimbResult(series.source_id, mode, 0.0, 0.0)

    distances = [d for d, _ in points]
    altitudes = [a for _, a in points]

    if mode == InterpolationMode.SPLINE:
        profile = spline_resample(
            distances,
            altitudes,
            resolution_m if resolution_m is not None else DEFAULT_RESOLUTION_M,
        )
        if len(profile) < 2:
            # every sample at one distance: nothing to fit, fall back to raw pairs
            profile = np.asarray(altitudes, dtype=float)
        ascent, descent = linear_totals(profile)
    else:
        ascent, descent = linear_totals(altitudes)

    return ClimbResult(series.source_id, mode, ascent, descent)
