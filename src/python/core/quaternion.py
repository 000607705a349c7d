"""
===============================================================================
QUATERNION CALCULATOR - Quaternion Algebra Library
===============================================================================

Mutable quaternion value type used by the calculator session and the command
line front end. Every algebraic operation comes in two forms:

    q.multiply(r)        # in place: q is overwritten by q * r
    s = q.multiply_into(r)   # new value: q is left untouched

The argument quaternion is never modified by either form.

Convention
----------
Components are stored in the order

    q = [w, i, j, k] = w + i*I + j*J + k*K

and exchanged with the outside world through the {w, i, j, k} mapping form
(`to_object` / `from_object`).

Degenerate input
----------------
The library never raises for numeric degeneracy. Near-zero denominators
(|d| < ZERO_TOLERANCE) are replaced by a fallback constant, malformed arrays
and matrices are ignored, and any mutation that would produce a non-finite
component is discarded so the receiver keeps its previous value. Callers who
need to know when a fallback was taken use the checked API in core.strict.

Two sign conventions are specific to this library and are reproduced exactly:

    - invert() yields (-w, -i, -j, k) / |q|^2, so q * q.inverse() is not the
      textbook identity.
    - the single-axis constructors place sin(a/2) in the axis slot and
      cos(a/2) in the k slot, e.g. from_x_rotation(a) = (sin, 0, 0, cos).

===============================================================================
"""

import logging
import numbers
from typing import Dict, List, Mapping, Optional, Sequence, Union

import numpy as np

from core.constants import (
    COMPARISON_TOLERANCE, COMPONENT_NAMES, DEG2RAD, DEGENERATE_AXIS_SCALE,
    SLERP_SIN_TOLERANCE, ZERO_TOLERANCE
)

logger = logging.getLogger(__name__)

Scalar = Union[int, float]


def _finite_or_none(value) -> Optional[float]:
    """Parse value as a finite float, or return None."""
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if not np.isfinite(result):
        return None
    return result


def _clamp_parameter(t: float) -> float:
    """Clamp an interpolation parameter to [0, 1]; NaN maps to 0."""
    t = float(t)
    if np.isnan(t):
        return 0.0
    return min(max(t, 0.0), 1.0)


class Quaternion:
    """
    Quaternion w + i*I + j*J + k*K with in-place and copying operations.

    A freshly constructed quaternion is the multiplicative identity
    (1, 0, 0, 0). Components may also be given positionally; a non-finite
    component leaves the identity in place.

    Attributes
    ----------
    w : float
        Real component.
    i, j, k : float
        Imaginary components.

    Examples
    --------
    >>> q = Quaternion()
    >>> q.from_array([1.0, 2.0, 3.0, 4.0])
    >>> r = q.multiply_into(Quaternion())
    >>> r.to_object()
    {'w': 1.0, 'i': 2.0, 'j': 3.0, 'k': 4.0}
    """

    def __init__(self, w: float = 1.0, i: float = 0.0, j: float = 0.0,
                 k: float = 0.0) -> None:
        self._q = np.array([1.0, 0.0, 0.0, 0.0], dtype=np.float64)
        self._commit([w, i, j, k])

    # =========================================================================
    # PROPERTIES - Read access to quaternion components
    # =========================================================================

    @property
    def w(self) -> float:
        """Real component."""
        return float(self._q[0])

    @property
    def i(self) -> float:
        return float(self._q[1])

    @property
    def j(self) -> float:
        return float(self._q[2])

    @property
    def k(self) -> float:
        return float(self._q[3])

    @property
    def values(self) -> List[float]:
        """
        Components as a list [w, i, j, k].

        Returns
        -------
        list of float
            A fresh list; modifying it does not affect the quaternion.
        """
        return [float(c) for c in self._q]

    @property
    def components(self) -> np.ndarray:
        """Copy of the internal [w, i, j, k] array."""
        return self._q.copy()

    # =========================================================================
    # INTERNAL HELPERS
    # =========================================================================

    def _commit(self, values) -> bool:
        """
        Replace the components with `values` if all four are finite.

        Every mutation funnels through here, which is what keeps the
        finite-components invariant.

        Returns
        -------
        bool
            True if the new values were stored, False if they were rejected
            and the previous components kept.
        """
        try:
            q = np.array(values, dtype=np.float64)
        except (TypeError, ValueError):
            logger.debug("Rejected non-numeric quaternion components %r", values)
            return False

        if q.shape != (4,) or not np.all(np.isfinite(q)):
            logger.debug("Rejected non-finite quaternion components %s", q)
            return False

        self._q = q
        return True

    # =========================================================================
    # CONSTRUCTION & CONVERSION
    # =========================================================================

    @staticmethod
    def identity() -> 'Quaternion':
        """Return a new identity quaternion (1, 0, 0, 0)."""
        return Quaternion()

    def from_array(self, values: Optional[Sequence[float]]) -> None:
        """
        Overwrite the quaternion from an ordered sequence.

        Parameters
        ----------
        values : sequence of float
            Four values are taken as (w, i, j, k). Three values are taken as
            the imaginary triple (i, j, k) and w is set to 1.0. Fewer than
            three values (or None) leave the quaternion unchanged. Only the
            first four entries of a longer sequence are used.
        """
        if values is None or len(values) < 3:
            return

        if len(values) == 3:
            self._commit([1.0, values[0], values[1], values[2]])
        else:
            self._commit([values[0], values[1], values[2], values[3]])

    def from_object(self, q: Mapping) -> None:
        """
        Sparse update from a {w, i, j, k} mapping.

        Each of the four fields present in the mapping is parsed as a real
        number (numeric strings are accepted). A field that is absent, does
        not parse, or is not finite leaves that component unchanged.

        Parameters
        ----------
        q : Mapping
            Mapping with any subset of the keys 'w', 'i', 'j', 'k'.
        """
        updated = self._q.copy()
        for index, name in enumerate(COMPONENT_NAMES):
            if name not in q:
                continue
            value = _finite_or_none(q[name])
            if value is not None:
                updated[index] = value

        self._commit(updated)

    def to_object(self) -> Dict[str, float]:
        """
        Mapping form of the quaternion.

        Returns
        -------
        dict
            New dict {'w': ..., 'i': ..., 'j': ..., 'k': ...}.
        """
        return dict(zip(COMPONENT_NAMES, self.values))

    def from_x_rotation(self, angle: float) -> None:
        """
        Set a rotation of `angle` radians about the x axis.

        The result is (sin(a/2), 0, 0, cos(a/2)). A non-finite angle is
        treated as zero.
        """
        a = 0.5 * (_finite_or_none(angle) or 0.0)
        self._commit([np.sin(a), 0.0, 0.0, np.cos(a)])

    def from_y_rotation(self, angle: float) -> None:
        """Set a rotation about the y axis: (0, sin(a/2), 0, cos(a/2))."""
        a = 0.5 * (_finite_or_none(angle) or 0.0)
        self._commit([0.0, np.sin(a), 0.0, np.cos(a)])

    def from_z_rotation(self, angle: float) -> None:
        """Set a rotation about the z axis: (0, 0, sin(a/2), cos(a/2))."""
        a = 0.5 * (_finite_or_none(angle) or 0.0)
        self._commit([0.0, 0.0, np.sin(a), np.cos(a)])

    def from_axis_rotation(self, axis: Sequence[float], angle: float) -> None:
        """
        Set a rotation of `angle` degrees about `axis`.

        The axis need not be normalized:

            q = [cos(h), sin(h) * n_x, sin(h) * n_y, sin(h) * n_z]

        with h = angle/2 (in radians) and n = axis / |axis|.

        Parameters
        ----------
        axis : sequence of float
            3-element rotation axis.
        angle : float
            Rotation angle in degrees.

        Notes
        -----
        No validation is performed on the axis. If it does not have exactly
        three entries, or its magnitude is below ZERO_TOLERANCE, 1/|axis| is
        replaced by DEGENERATE_AXIS_SCALE and a (degenerate) result is still
        produced. Missing entries read as zero.
        """
        axis = [] if axis is None else list(axis)
        length = 0.0
        if len(axis) == 3:
            length = float(np.sqrt(axis[0] * axis[0] + axis[1] * axis[1] + axis[2] * axis[2]))

        if abs(length) < ZERO_TOLERANCE:
            logger.debug("Degenerate rotation axis %r, using scale %g",
                         axis, DEGENERATE_AXIS_SCALE)
            d = DEGENERATE_AXIS_SCALE
        else:
            d = 1.0 / length

        padded = (axis + [0.0, 0.0, 0.0])[:3]

        half = 0.5 * angle * DEG2RAD
        c = np.cos(half)
        s = np.sin(half) * d

        self._commit([c, s * padded[0], s * padded[1], s * padded[2]])

    def from_rotation_matrix(self, m: Sequence[Sequence[float]]) -> None:
        """
        Set the quaternion equivalent to a 3x3 rotation matrix.

        This is the inverse of `to_rotation_matrix`. Anything that is not a
        3x3 numeric matrix is ignored.

        Parameters
        ----------
        m : sequence of sequences
            Rotation matrix as three rows of three numbers.

        Notes
        -----
        When the trace is positive the scalar part is recovered first.
        Otherwise the largest diagonal element m[u][u] picks the imaginary
        component to recover first, with (u, v, w) an even permutation of
        (0, 1, 2):

            r     = sqrt(1 + m[u][u] - m[v][v] - m[w][w])
            q_u   = r / 2
            q_v   = (m[v][u] + m[u][v]) / (2r)
            q_w   = (m[u][w] + m[w][u]) / (2r)
            w     = (m[v][w] - m[w][v]) / (2r)

        Choosing the largest term keeps r away from zero.

        q and -q describe the same rotation, so the sign is fixed by the
        component recovered first: w > 0 on the positive-trace branch and
        q_u > 0 on the largest-diagonal branch. Recovering w first when the
        trace is positive keeps its radicand 1 + trace above 1.
        """
        try:
            m = np.array(m, dtype=np.float64)
        except (TypeError, ValueError):
            return

        if m.shape != (3, 3):
            return

        trace = m[0, 0] + m[1, 1] + m[2, 2]

        if trace > 0.0:
            r = np.sqrt(1.0 + trace)
            q = [0.5 * r, 0.0, 0.0, 0.0]
            r = 0.5 / r
            q[1] = r * (m[1, 2] - m[2, 1])
            q[2] = r * (m[2, 0] - m[0, 2])
            q[3] = r * (m[0, 1] - m[1, 0])
            self._commit(q)
            return

        if m[0, 0] > m[1, 1] and m[0, 0] > m[2, 2]:
            u, v, w = 0, 1, 2
        elif m[1, 1] > m[0, 0] and m[1, 1] > m[2, 2]:
            u, v, w = 1, 2, 0
        else:
            u, v, w = 2, 0, 1

        radicand = 1.0 + m[u, u] - m[v, v] - m[w, w]
        if radicand < ZERO_TOLERANCE:
            logger.debug("Matrix is not a rotation (radicand %g), ignored", radicand)
            return

        r = np.sqrt(radicand)
        q = [0.0, 0.0, 0.0, 0.0]
        q[u + 1] = 0.5 * r

        r = 0.5 / r
        q[v + 1] = r * (m[v, u] + m[u, v])
        q[w + 1] = r * (m[u, w] + m[w, u])
        q[0] = r * (m[v, w] - m[w, v])

        self._commit(q)

    def to_rotation_matrix(self) -> List[List[float]]:
        """
        Rotation matrix of the (normalized) quaternion.

        Returns
        -------
        list of list of float
            3x3 matrix as nested lists, or an empty list if the squared
            norm is within ZERO_TOLERANCE of zero.

        Notes
        -----
        The matrix only depends on the direction of q, so components whose
        squares would overflow are scaled down by the largest magnitude
        first.
        """
        q = self._scaled_if_overflowing()
        qw, qx, qy, qz = (float(x) for x in q)

        ww = qw * qw
        xx = qx * qx
        yy = qy * qy
        zz = qz * qz
        wx = qw * qx
        wy = qw * qy
        wz = qw * qz
        xy = qx * qy
        xz = qx * qz
        yz = qy * qz

        d = ww + xx + yy + zz
        if abs(d) <= ZERO_TOLERANCE:
            return []

        d = 1.0 / d
        d2 = d + d

        return [
            [d * (ww + xx - yy - zz), d2 * (wz + xy),          d2 * (xz - wy)],
            [d2 * (xy - wz),          d * (ww - xx + yy - zz), d2 * (wx + yz)],
            [d2 * (wy + xz),          d2 * (yz - wx),          d * (ww - xx - yy + zz)],
        ]

    def clone(self) -> 'Quaternion':
        """Return an independent copy."""
        q = Quaternion()
        q._q = self._q.copy()
        return q

    # =========================================================================
    # NORM
    # =========================================================================

    def _scaled_if_overflowing(self) -> np.ndarray:
        """
        Components, divided by the largest magnitude when the squared norm
        overflows. Otherwise the stored array itself is returned.
        """
        with np.errstate(over='ignore'):
            squared = np.dot(self._q, self._q)
        if np.isfinite(squared):
            return self._q
        return self._q / np.max(np.abs(self._q))

    def length(self) -> float:
        """Euclidean norm sqrt(w^2 + i^2 + j^2 + k^2)."""
        q = self._scaled_if_overflowing()
        if q is self._q:
            return float(np.linalg.norm(q))
        return float(np.max(np.abs(self._q)) * np.linalg.norm(q))

    def normalize(self) -> None:
        """
        Scale the quaternion to unit length in place.

        A quaternion whose length is below ZERO_TOLERANCE is left unchanged
        (the scale factor falls back to 1.0). Components large enough for
        the squared norm to overflow are pre-scaled, so they still
        normalize to a unit quaternion.
        """
        q = self._scaled_if_overflowing()
        n = float(np.linalg.norm(q))
        d = 1.0 if abs(n) < ZERO_TOLERANCE else 1.0 / n
        self._commit(q * d)

    def normalized(self) -> 'Quaternion':
        """Unit-length copy; see normalize()."""
        q = self.clone()
        q.normalize()
        return q

    def dot(self, q: 'Quaternion') -> float:
        """4-D inner product with q."""
        return float(np.dot(self._q, q.components))

    # =========================================================================
    # QUATERNION ARITHMETIC
    # =========================================================================

    def add(self, q: 'Quaternion') -> None:
        """Overwrite self with self + q (componentwise)."""
        self._commit(self._q + q.components)

    def add_to(self, q: 'Quaternion') -> 'Quaternion':
        """Return self + q."""
        s = self.clone()
        s.add(q)
        return s

    def add_scalar(self, a: Scalar) -> None:
        """Add a scalar to the real part."""
        self._commit(self._q + np.array([a, 0.0, 0.0, 0.0]))

    def add_scalar_to(self, a: Scalar) -> 'Quaternion':
        s = self.clone()
        s.add_scalar(a)
        return s

    def subtract(self, q: 'Quaternion') -> None:
        """Overwrite self with self - q (componentwise)."""
        self._commit(self._q - q.components)

    def subtract_from(self, q: 'Quaternion') -> 'Quaternion':
        """Return self - q."""
        s = self.clone()
        s.subtract(q)
        return s

    def subtract_scalar(self, a: Scalar) -> None:
        """Subtract a scalar from the real part."""
        self._commit(self._q - np.array([a, 0.0, 0.0, 0.0]))

    def subtract_scalar_from(self, a: Scalar) -> 'Quaternion':
        s = self.clone()
        s.subtract_scalar(a)
        return s

    def multiply(self, q: 'Quaternion') -> None:
        """
        Overwrite self with the Hamilton product self * q.

        The product is not commutative:

            w = a_w*b_w - a_x*b_x - a_y*b_y - a_z*b_z
            x = a_w*b_x + a_x*b_w + a_y*b_z - a_z*b_y
            y = a_w*b_y - a_x*b_z + a_y*b_w + a_z*b_x
            z = a_w*b_z + a_x*b_y - a_y*b_x + a_z*b_w

        Parameters
        ----------
        q : Quaternion
            Right-hand operand; not modified.
        """
        a_w, a_x, a_y, a_z = self._q
        b_w, b_x, b_y, b_z = q.components

        self._commit([
            a_w * b_w - a_x * b_x - a_y * b_y - a_z * b_z,
            a_w * b_x + a_x * b_w + a_y * b_z - a_z * b_y,
            a_w * b_y - a_x * b_z + a_y * b_w + a_z * b_x,
            a_w * b_z + a_x * b_y - a_y * b_x + a_z * b_w,
        ])

    def multiply_into(self, q: 'Quaternion') -> 'Quaternion':
        """Return the Hamilton product self * q."""
        s = self.clone()
        s.multiply(q)
        return s

    def multiply_by_scalar(self, a: Scalar) -> None:
        """Scale all four components by a."""
        self._commit(self._q * a)

    def multiply_by_scalar_into(self, a: Scalar) -> 'Quaternion':
        s = self.clone()
        s.multiply_by_scalar(a)
        return s

    def divide(self, q: 'Quaternion') -> None:
        """Overwrite self with self * q.inverse()."""
        self.multiply(q.inverse())

    def divide_into(self, q: 'Quaternion') -> 'Quaternion':
        """Return self * q.inverse()."""
        s = self.clone()
        s.divide(q)
        return s

    def divide_by_scalar(self, a: Scalar) -> None:
        """
        Scale all four components by 1/a.

        If |a| < ZERO_TOLERANCE the factor falls back to 1.0 and the
        quaternion is unchanged. A non-finite divisor is ignored.
        """
        if not np.isfinite(a):
            return
        if abs(a) < ZERO_TOLERANCE:
            logger.debug("Division by near-zero scalar %g ignored", a)
            d = 1.0
        else:
            d = 1.0 / a
        self._commit(self._q * d)

    def divide_by_scalar_into(self, a: Scalar) -> 'Quaternion':
        s = self.clone()
        s.divide_by_scalar(a)
        return s

    def divide_scalar_by(self, a: Scalar) -> None:
        """
        Overwrite self with a / self.

        Uses the same inverse form as invert():

            a / q = (-a*w, -a*i, -a*j, a*k) / |q|^2

        with 1/|q|^2 replaced by 1.0 when |q|^2 < ZERO_TOLERANCE.
        """
        d = self._inverse_norm_squared()
        q0, q1, q2, q3 = self._q
        self._commit([-a * q0 * d, -a * q1 * d, -a * q2 * d, a * q3 * d])

    def divide_scalar_by_into(self, a: Scalar) -> 'Quaternion':
        s = self.clone()
        s.divide_scalar_by(a)
        return s

    def invert(self) -> None:
        """
        Overwrite self with its inverse.

        The inverse is (-w, -i, -j, k) / |q|^2. Note the sign pattern: the
        first three components are negated, the last is not. For
        |q|^2 < ZERO_TOLERANCE the division is skipped (factor 1.0).
        """
        d = self._inverse_norm_squared()
        q0, q1, q2, q3 = self._q
        self._commit([-q0 * d, -q1 * d, -q2 * d, q3 * d])

    def inverse(self) -> 'Quaternion':
        """Return the inverse; self is unchanged."""
        q = self.clone()
        q.invert()
        return q

    def _inverse_norm_squared(self) -> float:
        l = float(np.dot(self._q, self._q))
        if abs(l) < ZERO_TOLERANCE:
            logger.debug("Inverting near-zero quaternion %s, factor 1.0", self._q)
            return 1.0
        return 1.0 / l

    # =========================================================================
    # INTERPOLATION
    # =========================================================================

    def slerp(self, q: 'Quaternion', t: float) -> 'Quaternion':
        """
        Spherical linear interpolation from self (t=0) towards q (t=1).

        Parameters
        ----------
        q : Quaternion
            End point; not modified.
        t : float
            Interpolation parameter, clamped to [0, 1].

        Returns
        -------
        Quaternion
            New interpolated quaternion.

        Notes
        -----
        - cos(theta) is the 4-D dot product. If |cos(theta)| >= 1 the
          operands coincide (or are antipodal) and a copy of self is
          returned.
        - If cos(theta) < 0, q is negated so the short arc is taken.
        - If sin(theta) < SLERP_SIN_TOLERANCE the slerp weights approach
          0/0, so a linear blend (1-t)*self + t*q is used instead.
        - Otherwise the weights are sin((1-t)*theta)/sin(theta) and
          sin(t*theta)/sin(theta).
        """
        t = _clamp_parameter(t)
        result = self.clone()

        qa = self._q.copy()
        qb = q.components

        cos_theta = float(np.dot(qa, qb))

        if abs(cos_theta) >= 1.0:
            return result

        if cos_theta < 0.0:
            # short arc
            qb = -qb
            cos_theta = -cos_theta

        theta = np.arccos(cos_theta)
        sin_theta = np.sqrt(1.0 - cos_theta * cos_theta)

        if abs(sin_theta) < SLERP_SIN_TOLERANCE:
            result._commit(qa * (1.0 - t) + qb * t)
        else:
            r_a = np.sin((1.0 - t) * theta) / sin_theta
            r_b = np.sin(t * theta) / sin_theta
            result._commit(qa * r_a + qb * r_b)

        return result

    def nlerp(self, q: 'Quaternion', t: float) -> 'Quaternion':
        """
        Normalized linear interpolation from self towards q.

        Blends self*(1-t) + q*t and normalizes. When dot(q) < 0 the weight
        on q is negated to stay on the short path. Cheaper than slerp and
        commutative, but the angular velocity is not constant.

        Returns
        -------
        Quaternion
            New unit quaternion; neither operand is modified.
        """
        t = _clamp_parameter(t)
        t1 = 1.0 - t

        if self.dot(q) < 0.0:
            t = -t

        result = self.multiply_by_scalar_into(t1)
        result.add(q.multiply_by_scalar_into(t))
        result.normalize()

        return result

    # =========================================================================
    # OPERATOR OVERLOADS
    # =========================================================================

    def __add__(self, other: 'Quaternion') -> 'Quaternion':
        if isinstance(other, Quaternion):
            return self.add_to(other)
        return NotImplemented

    def __sub__(self, other: 'Quaternion') -> 'Quaternion':
        if isinstance(other, Quaternion):
            return self.subtract_from(other)
        return NotImplemented

    def __mul__(self, other: Union['Quaternion', Scalar]) -> 'Quaternion':
        """
        Multiplication operator.

        - Quaternion * Quaternion -> Hamilton product
        - Quaternion * scalar -> componentwise scaling
        """
        if isinstance(other, Quaternion):
            return self.multiply_into(other)
        if isinstance(other, numbers.Real):
            return self.multiply_by_scalar_into(other)
        return NotImplemented

    def __rmul__(self, other: Scalar) -> 'Quaternion':
        if isinstance(other, numbers.Real):
            return self.multiply_by_scalar_into(other)
        return NotImplemented

    def __truediv__(self, other: Union['Quaternion', Scalar]) -> 'Quaternion':
        if isinstance(other, Quaternion):
            return self.divide_into(other)
        if isinstance(other, numbers.Real):
            return self.divide_by_scalar_into(other)
        return NotImplemented

    def __rtruediv__(self, other: Scalar) -> 'Quaternion':
        if isinstance(other, numbers.Real):
            return self.divide_scalar_by_into(other)
        return NotImplemented

    def __neg__(self) -> 'Quaternion':
        return self.multiply_by_scalar_into(-1.0)

    def __eq__(self, other: object) -> bool:
        """Componentwise equality within COMPARISON_TOLERANCE."""
        if not isinstance(other, Quaternion):
            return NotImplemented
        return bool(np.all(np.abs(self._q - other._q) < COMPARISON_TOLERANCE))

    # Mutable, so not hashable.
    __hash__ = None

    def __repr__(self) -> str:
        return (f"Quaternion(w={self.w:+.8f}, i={self.i:+.8f}, "
                f"j={self.j:+.8f}, k={self.k:+.8f})")

    def __str__(self) -> str:
        return self.to_string()

    def to_string(self, precision: int = 6) -> str:
        """
        Human-readable form, e.g. '1.000000 + 0.000000i + 0.000000j + 0.000000k'.

        Parameters
        ----------
        precision : int
            Digits after the decimal point.
        """
        w, i, j, k = self.values
        return (f"{w:.{precision}f} {'-' if i < 0 else '+'} {abs(i):.{precision}f}i "
                f"{'-' if j < 0 else '+'} {abs(j):.{precision}f}j "
                f"{'-' if k < 0 else '+'} {abs(k):.{precision}f}k")
