"""Unit tests for FormSpec construction and lookups."""

import pytest

from detection.recognizers import Choice, NumberRecognizer
from workflows.common.errors import FormDefinitionError, NoSuchStepError
from workflows.common.prompts import TemplateUsage
from workflows.form.configuration import FormConfiguration
from workflows.form.fields import FieldDescriptor
from workflows.form.spec import FormSpec
from workflows.form.state import FormState
from workflows.steps import ConfirmStep, FieldStep, MessageStep, NavigationStep


def _fields(*names):
    return [FieldStep(FieldDescriptor(name)) for name in names]


class TestDefinitionErrors:

    def test_empty_form(self):
        with pytest.raises(FormDefinitionError):
            FormSpec([])

    def test_duplicate_names(self):
        with pytest.raises(FormDefinitionError, match="Duplicate"):
            FormSpec(_fields("name", "name"))

    def test_navigation_steps_are_not_declarable(self):
        with pytest.raises(FormDefinitionError):
            FormSpec([NavigationStep("name", [Choice("a", "A")])])

    def test_unknown_dependency(self):
        with pytest.raises(NoSuchStepError) as exc:
            FormSpec(_fields("name") + [ConfirmStep("ok", "OK?", dependencies=("email",))])
        assert exc.value.name == "email"


class TestLookups:

    @pytest.fixture
    def form(self):
        return FormSpec([
            MessageStep("hello", "Hi"),
            FieldStep(FieldDescriptor("email_address")),
            FieldStep(FieldDescriptor("age", recognizer=NumberRecognizer(), condition=lambda v: v.get("email_address"))),
        ])

    def test_step_index(self, form):
        assert form.step_index("age") == 2
        with pytest.raises(NoSuchStepError):
            form.step_index("nope")

    def test_step_and_field(self, form):
        assert form.step("hello").type.value == "message"
        assert form.step("nope") is None
        assert form.field("email_address").description == "email address"
        assert form.field("hello") is None
        assert list(form.fields) == ["email_address", "age"]

    def test_active_fields(self, form):
        assert [f.name for f in form.active_fields({})] == ["email_address"]
        assert [f.name for f in form.active_fields({"email_address": "a@b.c"})] == ["email_address", "age"]

    def test_step_names_are_commands(self, form):
        assert [m.value for m in form.commands.matches("email address")] == ["email_address"]
        assert form.commands.matches("hello") == []


def test_configuration_is_bound_to_steps():
    config = FormConfiguration(templates={TemplateUsage.STRING: "Type your {field}"})
    own = FormConfiguration()
    shared, explicit = FieldStep(FieldDescriptor("name")), FieldStep(FieldDescriptor("city"), configuration=own)
    form = FormSpec([shared, explicit], configuration=config)

    assert form.configuration is config
    assert form.steps[0].configuration is config
    assert form.steps[1].configuration is own
    assert form.step("name").start({}, FormState.create(2)) == "Type your name"


def test_shared_step_is_not_mutated():
    step = FieldStep(FieldDescriptor("name"))
    first = FormSpec([step], configuration=FormConfiguration(templates={TemplateUsage.STRING: "First {field}"}))
    second = FormSpec([step], configuration=FormConfiguration(templates={TemplateUsage.STRING: "Second {field}"}))

    assert step.configuration is None
    assert first.steps[0].start({}, FormState.create(1)) == "First name"
    assert second.steps[0].start({}, FormState.create(1)) == "Second name"
