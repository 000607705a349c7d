"""
===============================================================================
QUATERNION CALCULATOR - Calculator State and Reducer
===============================================================================
The whole calculator is described by two operands, two memory slots, the
pending operation and the last action. Any state of the calculator can be
reproduced exactly from these values.

State is immutable: the reducer never modifies the state it is given, it
returns a new CalculatorState built from copies of the previous values.
===============================================================================
"""

import math
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional

from calculator.actions import Action, ActionType, Operation, Q1
from core.constants import COMPONENT_NAMES


def _parse_component(value: Any) -> float:
    """Parse a component value; anything non-numeric or non-finite is 0."""
    try:
        result = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(result):
        return 0.0
    return result


@dataclass(frozen=True)
class QuaternionValue:
    """
    Immutable {w, i, j, k} holder used to move quaternion data through the
    store. Components are always finite.
    """
    w: float = 0.0
    i: float = 0.0
    j: float = 0.0
    k: float = 0.0

    def __post_init__(self) -> None:
        for name in COMPONENT_NAMES:
            object.__setattr__(self, name, _parse_component(getattr(self, name)))

    @classmethod
    def from_mapping(cls, mapping: Mapping) -> 'QuaternionValue':
        """
        Build from a {w, i, j, k} mapping. Missing, non-numeric or
        non-finite fields become 0.
        """
        return cls(*(mapping.get(name) for name in COMPONENT_NAMES))

    @classmethod
    def coerce(cls, payload: Any) -> 'QuaternionValue':
        """Accept a QuaternionValue, anything with to_object(), or a mapping."""
        if isinstance(payload, cls):
            return payload
        if hasattr(payload, 'to_object'):
            return cls.from_mapping(payload.to_object())
        if isinstance(payload, Mapping):
            return cls.from_mapping(payload)
        raise TypeError(f"Cannot build a quaternion value from {type(payload).__name__}")

    def to_mapping(self) -> Dict[str, float]:
        return {'w': self.w, 'i': self.i, 'j': self.j, 'k': self.k}

    def as_list(self) -> list:
        return [self.w, self.i, self.j, self.k]


ZERO = QuaternionValue()


@dataclass(frozen=True)
class CalculatorState:
    """
    Snapshot of the calculator.

    Attributes
    ----------
    q1, q2 : QuaternionValue
        Current operands.
    q1m, q2m : QuaternionValue
        Memory slots for each operand.
    op : Operation
        Pending operation.
    action : ActionType
        Action that produced this state; subscribers switch on it.
    """
    q1: QuaternionValue = ZERO
    q2: QuaternionValue = ZERO
    q1m: QuaternionValue = ZERO
    q2m: QuaternionValue = ZERO
    op: Operation = Operation.NONE
    action: ActionType = ActionType.NONE

    @classmethod
    def cleared(cls, op: Operation = Operation.NONE,
                action: ActionType = ActionType.CLEAR) -> 'CalculatorState':
        """All operands and memory zero; the pending operation is kept."""
        return cls(op=op, action=action)


def _action_type(action: Action) -> Optional[ActionType]:
    try:
        return ActionType(action.type)
    except ValueError:
        return None


def reduce(state: Optional[CalculatorState], action: Action) -> CalculatorState:
    """
    Compute the next calculator state.

    Parameters
    ----------
    state : CalculatorState or None
        Previous state; None means the calculator has not been initialised
        and is treated as the cleared state.
    action : Action
        Dispatched action.

    Returns
    -------
    CalculatorState
        New state. Unrecognised actions clear the calculator (action NONE).

    Raises
    ------
    ValueError
        For an OP_CHANGE whose payload is not an operation.
    """
    if state is None:
        state = CalculatorState.cleared(action=ActionType.NONE)

    kind = _action_type(action)

    if kind is ActionType.Q1_CHANGE:
        return replace(state, q1=QuaternionValue.coerce(action.payload), action=kind)

    if kind is ActionType.Q2_CHANGE:
        return replace(state, q2=QuaternionValue.coerce(action.payload), action=kind)

    if kind is ActionType.M_ADD:
        if action.payload == Q1:
            return replace(state, q1m=state.q1, action=kind)
        return replace(state, q2m=state.q2, action=kind)

    if kind is ActionType.M_RECALL:
        # split into a slot-specific action for subscribers
        if action.payload == Q1:
            return replace(state, q1=state.q1m, action=ActionType.M_RECALL_1)
        return replace(state, q2=state.q2m, action=ActionType.M_RECALL_2)

    if kind is ActionType.OP_CHANGE:
        return replace(state, op=Operation.parse(action.payload), action=kind)

    if kind is ActionType.CLEAR:
        return CalculatorState.cleared(op=state.op, action=ActionType.CLEAR)

    return CalculatorState.cleared(op=state.op, action=ActionType.NONE)
