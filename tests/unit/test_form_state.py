"""Unit tests for FormState persistence and bookkeeping."""

from workflows.common.types import NextStep, StepPhase
from workflows.form.state import DEFAULT_LOCALE, FORM_STATE_VERSION, FormState

R, S, C = StepPhase.READY, StepPhase.RESPONDING, StepPhase.COMPLETED


def test_create():
    state = FormState.create(3, locale="de-CH")
    assert state.phases == [R, R, R]
    assert state.step == 0
    assert state.history == []
    assert state.next is None
    assert state.locale == "de-CH"


def test_reset_keeps_step_and_prompt():
    state = FormState(phases=[C, S], step=1, history=[0], next=NextStep.named(["a", "b"]),
                      step_state={"x": 1}, last_prompt="Please enter b")
    state.reset()
    assert state.phases == [R, R]
    assert state.history == []
    assert state.next is None
    assert state.step_state is None
    assert state.step == 1
    assert state.last_prompt == "Please enter b"


class TestResize:

    def test_grow_appends_ready(self):
        state = FormState(phases=[C])
        state.resize(3)
        assert state.phases == [C, R, R]

    def test_shrink_drops_out_of_range_positions(self):
        state = FormState(phases=[C, C, S], step=2, history=[0, 2], step_state={"x": 1})
        state.resize(2)
        assert state.phases == [C, C]
        assert state.history == [0]
        assert state.step == 0
        assert state.step_state is None


class TestPersistence:

    def test_to_dict_is_plain_json(self):
        state = FormState(phases=[C, S], step=1, history=[0], next=NextStep.named(["a", "b"]))
        data = state.to_dict()
        assert data == {
            "version": FORM_STATE_VERSION,
            "step": 1,
            "phases": ["completed", "responding"],
            "history": [0],
            "next": {"direction": "named", "names": ["a", "b"]},
            "step_state": None,
            "last_prompt": None,
            "locale": DEFAULT_LOCALE,
        }
        assert FormState.from_dict(data, 2) == state

    def test_missing_keys_default(self):
        state = FormState.from_dict({"phases": ["completed"]}, 3)
        assert state.phases == [C, R, R]
        assert state.step == 0
        assert state.history == []
        assert state.next is None
        assert state.locale == DEFAULT_LOCALE

    def test_empty_data_creates_fresh_state(self):
        assert FormState.from_dict(None, 2) == FormState.create(2)
        assert FormState.from_dict({}, 2) == FormState.create(2)

    def test_copy_is_independent(self):
        state = FormState(phases=[S], step_state={"items": [1]})
        clone = state.copy()
        clone.phases[0] = C
        clone.step_state["items"].append(2)
        assert state.phases == [S]
        assert state.step_state == {"items": [1]}
