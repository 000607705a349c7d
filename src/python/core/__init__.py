"""
===============================================================================
QUATERNION CALCULATOR - Core Library
===============================================================================
Quaternion algebra shared by the calculator session and the CLI.

Modules:
    constants   -- Tolerances and fallback constants
    quaternion  -- Quaternion value type (conversion, algebra, interpolation)
    strict      -- Checked operations reporting fallback paths
===============================================================================
"""
