"""Shared forms for turn-loop tests."""

import pytest

from detection.recognizers import NumberRecognizer
from workflows.form.fields import FieldDescriptor
from workflows.form.spec import FormSpec
from workflows.steps import ConfirmStep, FieldStep, MessageStep


@pytest.fixture
def name_age_form():
    return FormSpec([
        FieldStep(FieldDescriptor("name")),
        FieldStep(FieldDescriptor("age", recognizer=NumberRecognizer(minimum=0, maximum=130))),
    ])


@pytest.fixture
def confirm_form():
    return FormSpec([
        FieldStep(FieldDescriptor("name")),
        FieldStep(FieldDescriptor("email")),
        ConfirmStep("confirm", "Is {name} / {email} right?", dependencies=("name", "email")),
    ])


@pytest.fixture
def welcome_form():
    return FormSpec([
        MessageStep("welcome", "Welcome!"),
        FieldStep(FieldDescriptor("name")),
    ])
