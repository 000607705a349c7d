"""
===============================================================================
QUATERNION CALCULATOR - Calculator Subsystem
===============================================================================
Unidirectional data flow around the quaternion library: actions are
dispatched to a store, a pure reducer produces the next calculator state,
and the session recomputes the result from it.

Modules:
    actions  -- Action types, operand slot ids and the Operation enum
    state    -- Immutable calculator state and the reducer
    store    -- Dispatch / subscribe store
    session  -- Calculator session computing the result quaternion
===============================================================================
"""
