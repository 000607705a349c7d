"""
===============================================================================
QUATERNION CALCULATOR - Checked Quaternion Operations
===============================================================================
Opt-in strict layer over core.quaternion. The default Quaternion API never
raises: it substitutes fallback constants or ignores malformed input. The
functions here run exactly the same code paths and return the same values,
but wrap them in a QuaternionOutcome that records whether a fallback was
taken, so callers can tell a genuine result from a degraded one.

    outcome = checked_normalize(q)
    if not outcome.ok:
        ...
    unit_q = outcome.unwrap()   # raises DegenerateQuaternionError
===============================================================================
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence

import numpy as np

from core.constants import ZERO_TOLERANCE
from core.quaternion import Quaternion


class DegenerateQuaternionError(ValueError):
    """Raised by QuaternionOutcome.unwrap() when a fallback path was taken."""


@dataclass(frozen=True)
class QuaternionOutcome:
    """
    Result of a checked operation.

    Attributes
    ----------
    value : Any
        What the default (non-raising) API produced.
    degenerate : bool
        True when a fallback constant or a no-op was substituted.
    reason : str
        Short description of the degeneracy, empty when ok.
    """
    value: Any
    degenerate: bool = False
    reason: str = ''

    @property
    def ok(self) -> bool:
        return not self.degenerate

    def unwrap(self) -> Any:
        """Return the value, raising DegenerateQuaternionError if degenerate."""
        if self.degenerate:
            raise DegenerateQuaternionError(self.reason)
        return self.value


def _norm_squared(q: Quaternion) -> float:
    return q.dot(q)


def checked_normalize(q: Quaternion) -> QuaternionOutcome:
    """Unit-length copy of q; degenerate if |q| < ZERO_TOLERANCE."""
    result = q.normalized()
    if q.length() < ZERO_TOLERANCE:
        return QuaternionOutcome(result, True,
                                 f"cannot normalize quaternion of length {q.length():.2e}")
    return QuaternionOutcome(result)


def checked_inverse(q: Quaternion) -> QuaternionOutcome:
    """Inverse of q; degenerate if |q|^2 < ZERO_TOLERANCE."""
    result = q.inverse()
    if abs(_norm_squared(q)) < ZERO_TOLERANCE:
        return QuaternionOutcome(result, True, "cannot invert near-zero quaternion")
    return QuaternionOutcome(result)


def checked_divide(a: Quaternion, b: Quaternion) -> QuaternionOutcome:
    """a / b; degenerate if b is near zero."""
    result = a.divide_into(b)
    if abs(_norm_squared(b)) < ZERO_TOLERANCE:
        return QuaternionOutcome(result, True, "division by near-zero quaternion")
    return QuaternionOutcome(result)


def checked_divide_by_scalar(q: Quaternion, a: float) -> QuaternionOutcome:
    """q / a; degenerate if a is non-finite or |a| < ZERO_TOLERANCE."""
    result = q.divide_by_scalar_into(a)
    if not np.isfinite(a):
        return QuaternionOutcome(result, True, f"non-finite divisor {a}")
    if abs(a) < ZERO_TOLERANCE:
        return QuaternionOutcome(result, True, f"division by near-zero scalar {a:.2e}")
    return QuaternionOutcome(result)


def checked_from_array(values: Optional[Sequence[float]],
                       initial: Optional[Quaternion] = None) -> QuaternionOutcome:
    """
    Build a quaternion with from_array.

    Parameters
    ----------
    values : sequence of float
        Three or four components.
    initial : Quaternion, optional
        Starting value (identity by default); it is not modified.

    Returns
    -------
    QuaternionOutcome
        Degenerate if the array was too short or held non-finite values and
        was therefore ignored.
    """
    q = Quaternion() if initial is None else initial.clone()

    if values is None or len(values) < 3:
        n = 0 if values is None else len(values)
        return QuaternionOutcome(q, True, f"expected 3 or 4 values, got {n}")

    before = q.values
    q.from_array(values)
    expected = list(values[:4]) if len(values) > 3 else [1.0] + list(values[:3])

    try:
        finite = bool(np.all(np.isfinite(np.array(expected, dtype=np.float64))))
    except (TypeError, ValueError):
        finite = False

    if not finite:
        return QuaternionOutcome(q, True, f"non-finite components ignored, kept {before}")
    return QuaternionOutcome(q)


def checked_from_axis_rotation(axis: Sequence[float], angle: float) -> QuaternionOutcome:
    """
    Rotation of `angle` degrees about `axis`.

    Degenerate if the axis is not a 3-vector of magnitude at least
    ZERO_TOLERANCE (the default API then substitutes DEGENERATE_AXIS_SCALE),
    or if the angle is not finite (the identity is returned).
    """
    q = Quaternion()
    q.from_axis_rotation(axis, angle)

    axis = [] if axis is None else list(axis)
    if len(axis) != 3:
        return QuaternionOutcome(q, True, f"rotation axis must have 3 entries, got {len(axis)}")
    if float(np.linalg.norm(np.array(axis, dtype=np.float64))) < ZERO_TOLERANCE:
        return QuaternionOutcome(q, True, "rotation axis has near-zero magnitude")
    if not np.isfinite(angle):
        return QuaternionOutcome(q, True, f"non-finite rotation angle {angle}")
    return QuaternionOutcome(q)


def checked_to_rotation_matrix(q: Quaternion) -> QuaternionOutcome:
    """Rotation matrix of q; degenerate (empty matrix) if q is near zero."""
    m = q.to_rotation_matrix()
    if not m:
        return QuaternionOutcome(m, True, "no rotation matrix for near-zero quaternion")
    return QuaternionOutcome(m)
