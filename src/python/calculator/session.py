"""
===============================================================================
QUATERNION CALCULATOR - Calculator Session
===============================================================================
Headless counterpart of the calculator view. The session subscribes to the
store, keeps the editable operand displays in sync with recalled/cleared
state, and recomputes the result quaternion whenever an operand or the
pending operation changes.

The two working Quaternion instances are not part of the calculator state;
they only carry the arithmetic. The first one doubles as the result holder.
===============================================================================
"""

import logging
from typing import Any, Dict, Optional

from calculator.actions import Action, ActionType, Operation, Q1, Q2
from calculator.state import CalculatorState, QuaternionValue
from calculator.store import Store
from core.quaternion import Quaternion

logger = logging.getLogger(__name__)

RESULT_TITLE = "Result"


class QuaternionCalculator:
    """
    Two-operand quaternion calculator driven by a Store.

    Parameters
    ----------
    store : Store, optional
        Store to subscribe to; a new one is created if omitted.

    Attributes
    ----------
    result : dict
        Last computed {w, i, j, k} result (a copy is returned).
    result_title : str
        'Result' or 'Result: <OPERATION>' once an operation has run.
    operation : Operation
        Operation currently applied to the operands.
    """

    def __init__(self, store: Optional[Store] = None) -> None:
        self._store = store if store is not None else Store()

        self._q1 = Quaternion()
        self._q2 = Quaternion()

        # what the operand and result displays currently show
        self._displays: Dict[str, QuaternionValue] = {
            Q1: QuaternionValue(),
            Q2: QuaternionValue(),
        }
        self._result = QuaternionValue()
        self.result_title = RESULT_TITLE

        self._operation = Operation.NONE
        self._unsubscribe = self._store.subscribe(self._update)

    # =========================================================================
    # READ ACCESS
    # =========================================================================

    @property
    def store(self) -> Store:
        return self._store

    @property
    def operation(self) -> Operation:
        return self._operation

    @property
    def result(self) -> Dict[str, float]:
        return self._result.to_mapping()

    def operand(self, slot: str) -> Dict[str, float]:
        """Values shown in the operand display for slot Q1 or Q2."""
        return self._displays[slot].to_mapping()

    # =========================================================================
    # DISPATCHERS
    # =========================================================================

    def set_operand(self, slot: str, values: Any) -> CalculatorState:
        """
        Edit an operand.

        Parameters
        ----------
        slot : str
            Q1 or Q2.
        values : mapping, QuaternionValue or Quaternion
            New {w, i, j, k} values.
        """
        value = QuaternionValue.coerce(values)
        self._displays[slot] = value
        kind = ActionType.Q1_CHANGE if slot == Q1 else ActionType.Q2_CHANGE
        return self._store.dispatch(Action(kind, value))

    def select_operation(self, op: Any) -> CalculatorState:
        return self._store.dispatch(Action(ActionType.OP_CHANGE, Operation.parse(op)))

    def memory_add(self, slot: str) -> CalculatorState:
        return self._store.dispatch(Action(ActionType.M_ADD, slot))

    def memory_recall(self, slot: str) -> CalculatorState:
        return self._store.dispatch(Action(ActionType.M_RECALL, slot))

    def clear(self) -> CalculatorState:
        return self._store.dispatch(Action(ActionType.CLEAR))

    def close(self) -> None:
        """Stop listening to the store."""
        self._unsubscribe()

    # =========================================================================
    # STORE UPDATES
    # =========================================================================

    def _update(self, state: CalculatorState) -> None:
        self._q1.from_array(state.q1.as_list())
        self._q2.from_array(state.q2.as_list())

        action = state.action

        if action in (ActionType.Q1_CHANGE, ActionType.Q2_CHANGE):
            self._update_result()

        elif action is ActionType.OP_CHANGE:
            self._operation = state.op
            self._update_result()

        elif action is ActionType.M_RECALL_1:
            self._q1.from_array(state.q1m.as_list())
            self._displays[Q1] = state.q1m
            self._update_result()

        elif action is ActionType.M_RECALL_2:
            self._q2.from_array(state.q2m.as_list())
            self._displays[Q2] = state.q2m
            self._update_result()

        elif action is ActionType.CLEAR:
            self._displays[Q1] = state.q1
            self._displays[Q2] = state.q2
            self._result = state.q2
            self._operation = Operation.NONE
            self.result_title = RESULT_TITLE

    def _update_result(self) -> None:
        if self._operation is Operation.NONE:
            return

        if self._operation is Operation.ADD:
            self._q1.add(self._q2)
        elif self._operation is Operation.SUBTRACT:
            self._q1.subtract(self._q2)
        elif self._operation is Operation.MULTIPLY:
            self._q1.multiply(self._q2)
        elif self._operation is Operation.DIVIDE:
            self._q1.divide(self._q2)

        self.result_title = f"{RESULT_TITLE}: {self._operation.name}"
        self._result = QuaternionValue.from_mapping(self._q1.to_object())
        logger.debug("%s -> %s", self.result_title, self._q1)
