"""
===============================================================================
QUATERNION CALCULATOR - Calculator Test Suite
===============================================================================
Tests for the action/reducer state machine, the store, and the calculator
session that turns calculator state into a result quaternion.
===============================================================================
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import dataclasses

import pytest
from numpy.testing import assert_allclose

from calculator.actions import Action, ActionType, Operation, Q1, Q2
from calculator.session import QuaternionCalculator
from calculator.state import CalculatorState, QuaternionValue, reduce
from calculator.store import Store
from core.quaternion import Quaternion


A = {'w': 1.0, 'i': 2.0, 'j': 3.0, 'k': 4.0}
B = {'w': 5.0, 'i': 6.0, 'j': 7.0, 'k': 8.0}


@pytest.fixture
def state():
    """A state with both operands and a pending multiply."""
    return CalculatorState(q1=QuaternionValue(**A), q2=QuaternionValue(**B),
                           op=Operation.MULTIPLY, action=ActionType.OP_CHANGE)


@pytest.fixture
def calc():
    return QuaternionCalculator()


# =============================================================================
# Test: Actions
# =============================================================================

class TestOperation:
    """Tests for Operation parsing."""

    @pytest.mark.parametrize("value,expected", [
        (Operation.ADD, Operation.ADD),
        ('multiply', Operation.MULTIPLY),
        (' Divide ', Operation.DIVIDE),
        (2, Operation.SUBTRACT),
        (0, Operation.NONE),
    ])
    def test_parse(self, value, expected):
        assert Operation.parse(value) is expected

    @pytest.mark.parametrize("value", ['modulo', 9, None])
    def test_parse_invalid(self, value):
        with pytest.raises(ValueError):
            Operation.parse(value)

    def test_action_type_values(self):
        assert ActionType('Q1') is ActionType.Q1_CHANGE
        assert ActionType.M_RECALL.value == 'MREC'


# =============================================================================
# Test: Quaternion value holder
# =============================================================================

class TestQuaternionValue:
    """Tests for the immutable {w, i, j, k} holder."""

    def test_from_mapping(self):
        assert QuaternionValue.from_mapping(A).as_list() == [1.0, 2.0, 3.0, 4.0]

    def test_invalid_fields_become_zero(self):
        v = QuaternionValue.from_mapping({'w': '2', 'i': 'x', 'j': float('nan')})
        assert v.to_mapping() == {'w': 2.0, 'i': 0.0, 'j': 0.0, 'k': 0.0}

    def test_coerce_quaternion(self):
        v = QuaternionValue.coerce(Quaternion(1.0, 2.0, 3.0, 4.0))
        assert v == QuaternionValue(**A)

    def test_coerce_rejects_other_types(self):
        with pytest.raises(TypeError):
            QuaternionValue.coerce([1.0, 2.0, 3.0, 4.0])

    def test_is_immutable(self):
        v = QuaternionValue(**A)
        with pytest.raises(dataclasses.FrozenInstanceError):
            v.w = 10.0


# =============================================================================
# Test: Reducer
# =============================================================================

class TestReducer:
    """Tests for the calculator reducer."""

    def test_initial_state(self):
        s = reduce(None, Action(ActionType.NONE))
        assert s == CalculatorState(action=ActionType.NONE)
        assert s.q1.as_list() == [0.0, 0.0, 0.0, 0.0]
        assert s.op is Operation.NONE

    def test_q1_change(self, state):
        s = reduce(state, Action(ActionType.Q1_CHANGE, {'w': '9', 'i': 'bad', 'j': 1, 'k': 2}))
        assert s.q1.as_list() == [9.0, 0.0, 1.0, 2.0]
        assert s.q2 == state.q2
        assert s.action is ActionType.Q1_CHANGE

    def test_q2_change(self, state):
        s = reduce(state, Action('Q2', A))
        assert s.q2 == QuaternionValue(**A)
        assert s.action is ActionType.Q2_CHANGE

    def test_previous_state_untouched(self, state):
        before = dataclasses.replace(state)
        reduce(state, Action(ActionType.Q1_CHANGE, B))
        assert state == before

    def test_memory_add(self, state):
        s = reduce(state, Action(ActionType.M_ADD, Q1))
        assert s.q1m == state.q1
        assert s.q2m == QuaternionValue()

        s = reduce(s, Action(ActionType.M_ADD, Q2))
        assert s.q2m == state.q2
        assert s.action is ActionType.M_ADD

    def test_memory_recall(self, state):
        s = reduce(state, Action(ActionType.M_ADD, Q1))
        s = reduce(s, Action(ActionType.Q1_CHANGE, B))
        s = reduce(s, Action(ActionType.M_RECALL, Q1))
        assert s.q1 == QuaternionValue(**A)
        assert s.action is ActionType.M_RECALL_1

    def test_memory_recall_2(self, state):
        s = reduce(state, Action(ActionType.M_RECALL, Q2))
        assert s.q2 == QuaternionValue()
        assert s.action is ActionType.M_RECALL_2

    def test_op_change(self, state):
        s = reduce(state, Action(ActionType.OP_CHANGE, 'add'))
        assert s.op is Operation.ADD
        assert s.q1 == state.q1

    def test_op_change_invalid(self, state):
        with pytest.raises(ValueError):
            reduce(state, Action(ActionType.OP_CHANGE, 'power'))

    def test_clear_keeps_operation(self, state):
        s = reduce(state, Action(ActionType.CLEAR))
        assert s == CalculatorState(op=Operation.MULTIPLY, action=ActionType.CLEAR)

    def test_unknown_action_clears(self, state):
        s = reduce(state, Action('BOGUS'))
        assert s == CalculatorState(op=Operation.MULTIPLY, action=ActionType.NONE)


# =============================================================================
# Test: Store
# =============================================================================

class TestStore:
    """Tests for dispatch/subscribe."""

    def test_initial_state_is_cleared(self):
        assert Store().state == CalculatorState(action=ActionType.NONE)

    def test_initial_state_argument(self, state):
        # the init action clears operands but keeps the operation
        assert Store(initial_state=state).state.op is Operation.MULTIPLY

    def test_subscribe_receives_current_and_updates(self):
        store = Store()
        seen = []
        store.subscribe(lambda s: seen.append(s.action))
        store.dispatch(Action(ActionType.Q1_CHANGE, A))
        store.dispatch(Action(ActionType.OP_CHANGE, Operation.ADD))
        assert seen == [ActionType.NONE, ActionType.Q1_CHANGE, ActionType.OP_CHANGE]

    def test_listeners_called_in_order(self):
        store = Store()
        calls = []
        store.subscribe(lambda s: calls.append('first'))
        store.subscribe(lambda s: calls.append('second'))
        calls.clear()
        store.dispatch(Action(ActionType.CLEAR))
        assert calls == ['first', 'second']

    def test_listener_dispatch_does_not_hide_outer_state(self):
        store = Store()
        seen = []

        def follow_up(s):
            if s.action is ActionType.Q1_CHANGE:
                store.dispatch(Action(ActionType.M_ADD, Q1))

        store.subscribe(follow_up)
        store.subscribe(lambda s: seen.append(s.action))
        returned = store.dispatch(Action(ActionType.Q1_CHANGE, A))

        assert seen == [ActionType.NONE, ActionType.M_ADD, ActionType.Q1_CHANGE]
        assert returned.action is ActionType.Q1_CHANGE
        assert store.state.action is ActionType.M_ADD

    def test_unsubscribe(self):
        store = Store()
        seen = []
        unsubscribe = store.subscribe(seen.append)
        unsubscribe()
        unsubscribe()
        store.dispatch(Action(ActionType.CLEAR))
        assert len(seen) == 1

    def test_dispatch_returns_state(self):
        store = Store()
        s = store.dispatch(Action(ActionType.Q2_CHANGE, B))
        assert s is store.state
        assert s.q2 == QuaternionValue(**B)

    def test_custom_reducer(self):
        calls = []

        def counting_reducer(state, action):
            calls.append(action.type)
            return reduce(state, action)

        store = Store(reducer=counting_reducer)
        store.dispatch(Action(ActionType.CLEAR))
        assert calls == [ActionType.NONE, ActionType.CLEAR]


# =============================================================================
# Test: Calculator session
# =============================================================================

class TestCalculatorSession:
    """Tests for result computation in QuaternionCalculator."""

    def test_starts_empty(self, calc):
        assert calc.result == {'w': 0.0, 'i': 0.0, 'j': 0.0, 'k': 0.0}
        assert calc.result_title == "Result"
        assert calc.operation is Operation.NONE

    def test_no_result_without_operation(self, calc):
        calc.set_operand(Q1, A)
        calc.set_operand(Q2, B)
        assert calc.result == {'w': 0.0, 'i': 0.0, 'j': 0.0, 'k': 0.0}

    @pytest.mark.parametrize("op,expected", [
        ('add', [6.0, 8.0, 10.0, 12.0]),
        ('subtract', [-4.0, -4.0, -4.0, -4.0]),
        ('multiply', [-60.0, 12.0, 30.0, 24.0]),
    ])
    def test_operations(self, calc, op, expected):
        calc.set_operand(Q1, A)
        calc.set_operand(Q2, B)
        calc.select_operation(op)
        assert list(calc.result.values()) == expected
        assert calc.result_title == f"Result: {op.upper()}"

    def test_divide(self, calc):
        calc.set_operand(Q1, A)
        calc.set_operand(Q2, B)
        calc.select_operation(Operation.DIVIDE)
        a = Quaternion(1.0, 2.0, 3.0, 4.0)
        expected = a.divide_into(Quaternion(5.0, 6.0, 7.0, 8.0)).values
        assert_allclose(list(calc.result.values()), expected, atol=1e-15)

    def test_divide_uses_library_inverse(self, calc):
        """identity / identity follows the (-w, -i, -j, k) inverse rule."""
        calc.set_operand(Q1, {'w': 1, 'i': 0, 'j': 0, 'k': 0})
        calc.set_operand(Q2, {'w': 1, 'i': 0, 'j': 0, 'k': 0})
        calc.select_operation('divide')
        assert list(calc.result.values()) == [-1.0, 0.0, 0.0, 0.0]

    def test_result_follows_operand_edits(self, calc):
        calc.select_operation('add')
        calc.set_operand(Q1, A)
        calc.set_operand(Q2, A)
        assert list(calc.result.values()) == [2.0, 4.0, 6.0, 8.0]
        calc.set_operand(Q2, B)
        assert list(calc.result.values()) == [6.0, 8.0, 10.0, 12.0]

    def test_changing_operation_does_not_accumulate(self, calc):
        calc.set_operand(Q1, A)
        calc.set_operand(Q2, B)
        calc.select_operation('multiply')
        calc.select_operation('add')
        calc.select_operation('add')
        assert list(calc.result.values()) == [6.0, 8.0, 10.0, 12.0]

    def test_memory_round_trip(self, calc):
        calc.set_operand(Q1, A)
        calc.memory_add(Q1)
        calc.set_operand(Q1, B)
        calc.set_operand(Q2, B)
        calc.select_operation('subtract')
        assert list(calc.result.values()) == [0.0, 0.0, 0.0, 0.0]

        calc.memory_recall(Q1)
        assert calc.operand(Q1) == A
        assert list(calc.result.values()) == [-4.0, -4.0, -4.0, -4.0]

    def test_memory_recall_second_slot(self, calc):
        calc.set_operand(Q2, B)
        calc.memory_add(Q2)
        calc.set_operand(Q2, A)
        calc.memory_recall(Q2)
        assert calc.operand(Q2) == B
        assert calc.store.state.q2 == QuaternionValue(**B)

    def test_clear(self, calc):
        calc.set_operand(Q1, A)
        calc.set_operand(Q2, B)
        calc.select_operation('multiply')
        calc.clear()
        assert calc.result == {'w': 0.0, 'i': 0.0, 'j': 0.0, 'k': 0.0}
        assert calc.operand(Q1) == {'w': 0.0, 'i': 0.0, 'j': 0.0, 'k': 0.0}
        assert calc.operation is Operation.NONE
        assert calc.result_title == "Result"

    def test_operands_do_not_share_state(self, calc):
        q = Quaternion(1.0, 2.0, 3.0, 4.0)
        calc.set_operand(Q1, q)
        calc.set_operand(Q2, q)
        calc.select_operation('multiply')
        assert q.values == [1.0, 2.0, 3.0, 4.0]

    def test_close_stops_updates(self, calc):
        calc.close()
        calc.set_operand(Q1, A)
        calc.set_operand(Q2, B)
        calc.store.dispatch(Action(ActionType.OP_CHANGE, Operation.ADD))
        assert calc.operation is Operation.NONE

    def test_shared_store(self):
        store = Store()
        first = QuaternionCalculator(store)
        second = QuaternionCalculator(store)
        first.set_operand(Q1, A)
        first.set_operand(Q2, B)
        first.select_operation('add')
        assert second.result == first.result
