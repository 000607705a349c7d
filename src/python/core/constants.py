"""
===============================================================================
QUATERNION CALCULATOR - Numerical Constants
===============================================================================
Central repository for the tolerances and fallback values used by the
quaternion library. Consuming code may depend on the exact fallback values,
so they are kept as named constants rather than derived per call.
===============================================================================
"""

import numpy as np


# =============================================================================
# MATHEMATICAL CONSTANTS
# =============================================================================
PI = np.pi
TWO_PI = 2.0 * np.pi
DEG2RAD = PI / 180.0
RAD2DEG = 180.0 / PI

# =============================================================================
# DEGENERACY GUARDS
# =============================================================================
# Denominators (norms, squared norms, scalar divisors) below this magnitude
# are replaced by a safe fallback instead of being divided by.
ZERO_TOLERANCE = 1e-10

# Normalization factor substituted for a zero-length (or malformed) rotation
# axis in from_axis_rotation.
DEGENERATE_AXIS_SCALE = 1e5

# Below this sin(theta) slerp switches to a linear blend of the operands.
SLERP_SIN_TOLERANCE = 1e-3

# Componentwise tolerance for Quaternion equality.
COMPARISON_TOLERANCE = 1e-9

# =============================================================================
# COMPONENT NAMES
# =============================================================================
# Canonical field names of the {w, i, j, k} mapping form.
COMPONENT_NAMES = ('w', 'i', 'j', 'k')
