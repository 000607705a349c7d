"""
===============================================================================
QUATERNION CALCULATOR - Store
===============================================================================
Minimal unidirectional-data-flow store. Views dispatch actions, the reducer
computes the next state, and every subscriber is called with that state in
subscription order.
===============================================================================
"""

import logging
from typing import Callable, List, Optional

from calculator.actions import Action, ActionType
from calculator.state import CalculatorState, reduce

logger = logging.getLogger(__name__)

Reducer = Callable[[Optional[CalculatorState], Action], CalculatorState]
Listener = Callable[[CalculatorState], None]


class Store:
    """
    Holds the calculator state and notifies listeners on every dispatch.

    Parameters
    ----------
    reducer : callable, optional
        (state, action) -> state. Defaults to calculator.state.reduce.
    initial_state : CalculatorState, optional
        Starting state. An initial NONE action is dispatched through the
        reducer, so without one the calculator starts cleared.
    """

    def __init__(self, reducer: Reducer = reduce,
                 initial_state: Optional[CalculatorState] = None) -> None:
        self._reducer = reducer
        self._listeners: List[Listener] = []
        self._dispatching = False
        self._state = self._reducer(initial_state, Action(ActionType.NONE))

    @property
    def state(self) -> CalculatorState:
        return self._state

    def dispatch(self, action: Action) -> CalculatorState:
        """
        Run the reducer and notify listeners.

        Every listener receives the state produced by this action, even if an
        earlier listener dispatched in the meantime. Returns that state.

        Raises
        ------
        RuntimeError
            If called while the reducer is running.
        """
        if self._dispatching:
            raise RuntimeError("Reducers may not dispatch actions")

        logger.debug("dispatch %s payload=%r", action.type, action.payload)

        self._dispatching = True
        try:
            state = self._reducer(self._state, action)
            self._state = state
        finally:
            self._dispatching = False

        # a listener may dispatch; later listeners still receive this state
        for listener in list(self._listeners):
            listener(state)

        return state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener; it is called once immediately with the current
        state. Returns a callable that removes the listener.
        """
        self._listeners.append(listener)
        listener(self._state)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
