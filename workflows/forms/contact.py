"""Sample contact form: who are you, how do we reach you."""
from __future__ import annotations

import logging
import re
from typing import Any, Optional

from detection.recognizers import Choice, ChoiceRecognizer, NumberRecognizer
from workflows.form.fields import FieldDescriptor, Values
from workflows.form.spec import FormSpec
from workflows.steps import ConfirmStep, FieldStep, MessageStep

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_PATTERN = re.compile(r"^\+?[\d\s()-]{6,}$")


def validate_email(values: Values, value: Any) -> Optional[str]:
    if EMAIL_PATTERN.match(str(value).strip()):
        return None
    return f'"{value}" does not look like an email address.'


def validate_phone(values: Values, value: Any) -> Optional[str]:
    if PHONE_PATTERN.match(str(value).strip()):
        return None
    return f'"{value}" does not look like a phone number.'


def _wants_phone(values: Values) -> bool:
    return values.get("contact_method") == "phone"


def _log_completion(values: Values) -> None:
    logger.info("[FORM][CONTACT] Contact form completed for %s", values.get("name"))


def build_contact_form() -> FormSpec:
    steps = [
        MessageStep("welcome", "Hi! I need a few details so we can get back to you."),
        FieldStep(FieldDescriptor("name", prompt="What is your name?")),
        FieldStep(FieldDescriptor("email", description="email address", validate=validate_email)),
        FieldStep(FieldDescriptor(
            "contact_method",
            description="contact method",
            recognizer=ChoiceRecognizer([
                Choice("email", "Email", ["e-mail", "mail"]),
                Choice("phone", "Phone", ["call", "telephone"]),
            ]),
        )),
        FieldStep(FieldDescriptor(
            "phone",
            description="phone number",
            condition=_wants_phone,
            validate=validate_phone,
        )),
        FieldStep(FieldDescriptor(
            "age",
            recognizer=NumberRecognizer(minimum=0, maximum=130, integer_only=True),
            optional=True,
        )),
        ConfirmStep("confirm_contact", dependencies=("name", "email", "contact_method")),
        MessageStep("goodbye", "Thanks {name}, we will be in touch."),
    ]
    return FormSpec(steps, on_completion=_log_completion)


__all__ = ["build_contact_form", "validate_email", "validate_phone"]
