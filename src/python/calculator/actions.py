"""
===============================================================================
QUATERNION CALCULATOR - Actions
===============================================================================
Everything that can happen to the calculator is expressed as an Action and
dispatched to the store. Operand slots are addressed by the ids Q1 and Q2.
===============================================================================
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any


class ActionType(str, Enum):
    """Action identifiers understood by the reducer."""
    Q1_CHANGE = 'Q1'        # operand 1 edited
    Q2_CHANGE = 'Q2'        # operand 2 edited
    OP_CHANGE = 'OP'        # pending operation changed
    M_ADD = 'MADD'          # store an operand in its memory slot
    M_RECALL = 'MREC'       # recall an operand from memory
    M_RECALL_1 = 'MREC1'    # operand 1 recalled (reducer output only)
    M_RECALL_2 = 'MREC2'    # operand 2 recalled (reducer output only)
    CLEAR = 'CLEAR'
    NONE = 'NONE'


# Operand slot ids, used as the payload of memory actions
Q1 = 'Q_1'
Q2 = 'Q_2'


class Operation(IntEnum):
    """Binary operations offered by the calculator."""
    NONE = 0
    ADD = 1
    SUBTRACT = 2
    MULTIPLY = 3
    DIVIDE = 4

    @classmethod
    def parse(cls, value: Any) -> 'Operation':
        """
        Coerce an Operation, its name (case-insensitive) or its integer value.

        Raises
        ------
        ValueError
            If value does not name an operation.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown operation: {value!r}") from None
        return cls(value)


@dataclass(frozen=True)
class Action:
    """A dispatched action: a type plus an optional payload."""
    type: ActionType
    payload: Any = None
