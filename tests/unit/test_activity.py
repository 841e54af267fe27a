"""
Unit tests for the Activity Logger module.

Tests:
- Progress bar calculation from FormState
- Activity persistence and granularity filtering
- Turn activities derived from state diffs
"""

import pytest

from activity import get_progress, get_progress_summary, persistence, types
from activity.types import Activity
from activity.persistence import (
    COARSE_ACTIVITIES,
    MAX_ACTIVITIES_PER_CONVERSATION,
    get_persisted_activities,
    log_activity,
    log_turn_activities,
    log_workflow_activity,
)
from workflows.common.types import StepPhase
from workflows.form.fields import FieldDescriptor
from workflows.form.spec import FormSpec
from workflows.form.state import FormState
from workflows.steps import ConfirmStep, FieldStep, MessageStep

R, S, C = StepPhase.READY, StepPhase.RESPONDING, StepPhase.COMPLETED


@pytest.fixture
def form():
    return FormSpec([
        MessageStep("intro", "Hello"),
        FieldStep(FieldDescriptor("name")),
        FieldStep(FieldDescriptor("pet")),
        FieldStep(FieldDescriptor("pet_name", condition=lambda v: v.get("pet") == "dog")),
        ConfirmStep("confirm", "OK?", dependencies=("name", "pet")),
    ])


def _state(phases, step):
    return FormState(phases=list(phases), step=step)


class TestProgress:
    """Tests for progress bar calculation."""

    def test_fresh_form(self, form):
        progress = get_progress(form, _state([C, S, R, R, R], 1), {})

        assert progress.current_stage == "name"
        assert [s.id for s in progress.stages] == ["name", "pet", "confirm"]
        assert [s.status for s in progress.stages] == ["active", "pending", "pending"]
        assert progress.percentage == 0

    def test_conditional_steps_join_the_bar(self, form):
        progress = get_progress(form, _state([C, C, C, S, R], 3), {"name": "Ada", "pet": "dog"})

        assert [s.id for s in progress.stages] == ["name", "pet", "pet_name", "confirm"]
        assert progress.stages[2].label == "pet name"
        assert progress.percentage == 50

    def test_rounding(self, form):
        progress = get_progress(form, _state([C, C, R, R, R], 2), {"name": "Ada"})
        assert progress.percentage == 33

    def test_finished_form(self, form):
        progress = get_progress(form, _state([C] * 5, 4), {"pet": "cat"})
        assert progress.current_stage == ""
        assert progress.percentage == 100

    def test_missing_state(self, form):
        assert get_progress(form, None, {}).percentage == 0

    def test_summary_and_serialization(self, form):
        state = _state([C, S, R, R, R], 1)
        assert get_progress_summary(form, state, {}) == {"current_stage": "name", "percentage": 0}
        data = get_progress(form, state, {}).to_dict()
        assert data["stages"][0] == {"id": "name", "label": "name", "status": "active"}


class TestActivityPersistence:
    """Tests for activity persistence to the conversation record."""

    def test_log_activity_shape(self):
        record = {}
        log_activity(record, "💬", "Conversation Started", "contact")

        [entry] = record["activity_log"]
        assert entry["id"].startswith("act_")
        assert entry["granularity"] == "high"
        assert Activity(**entry).to_dict() == entry

    def test_none_record_is_ignored(self):
        log_activity(None, "x", "y")

    def test_log_is_trimmed(self):
        record = {}
        for index in range(MAX_ACTIVITIES_PER_CONVERSATION + 5):
            log_activity(record, "📝", f"Activity {index}")

        assert len(record["activity_log"]) == MAX_ACTIVITIES_PER_CONVERSATION
        assert record["activity_log"][0]["title"] == "Activity 5"

    def test_granularity_filter_and_order(self):
        record = {}
        log_workflow_activity(record, "conversation_started", form_id="contact")
        log_workflow_activity(record, "step_completed", field="name", value="Ada")
        log_workflow_activity(record, "form_completed", form_id="contact")

        high = get_persisted_activities(record, granularity="high")
        assert [a["title"] for a in high] == ["Form Completed", "Conversation Started"]

        detailed = get_persisted_activities(record, granularity="detailed", limit=2)
        assert [a["title"] for a in detailed] == ["Form Completed", "Step Completed"]
        assert detailed[1]["detail"] == "name: Ada"

    def test_unknown_key_is_ignored(self):
        record = {}
        log_workflow_activity(record, "does_not_exist")
        assert record == {}

    def test_missing_format_args_keep_template(self):
        record = {}
        log_workflow_activity(record, "form_completed")
        assert record["activity_log"][0]["detail"] == "{form_id}"

    def test_coarse_keys(self):
        assert "step_completed" not in COARSE_ACTIVITIES
        assert "form_reset" in COARSE_ACTIVITIES

    def test_granularity_type_is_shared(self):
        assert persistence.Granularity is types.Granularity


class TestTurnActivities:

    def _titles(self, record):
        return [(a["title"], a["detail"]) for a in record["activity_log"]]

    def test_completed_field(self, form):
        record = {"form_id": "pets"}
        log_turn_activities(record, form, _state([C, S, R, R, R], 1), _state([C, C, S, R, R], 2), {"name": "Ada"}, "waiting")
        assert self._titles(record) == [("Step Completed", "name: Ada")]

    def test_skipped_optional_field(self, form):
        record = {}
        log_turn_activities(record, form, _state([C, C, S, R, R], 2), _state([C, C, C, R, S], 4), {"pet": None}, "waiting")
        assert self._titles(record) == [("Step Completed", "pet: Unspecified")]

    def test_confirmation_and_completion(self, form):
        record = {"form_id": "pets"}
        log_turn_activities(record, form, _state([C, C, C, R, S], 4), _state([C] * 5, 4), {}, "completed")
        assert self._titles(record) == [("Confirmed", "confirm"), ("Form Completed", "pets")]

    def test_revisit(self, form):
        record = {}
        log_turn_activities(record, form, _state([C, C, C, R, S], 4), _state([C, S, C, R, R], 1), {}, "waiting")
        assert self._titles(record) == [("Step Revisited", "name")]

    def test_reset(self, form):
        record = {}
        log_turn_activities(record, form, _state([C, C, S, R, R], 2), _state([R] * 5, 2), {}, "waiting")
        assert self._titles(record) == [("Form Reset", "Started over")]

    def test_cancelled(self, form):
        record = {"form_id": "pets"}
        log_turn_activities(record, form, _state([C, S, R, R, R], 1), _state([C, S, R, R, R], 1), {}, "cancelled")
        assert self._titles(record) == [("Form Cancelled", "pets")]
