"""Step variants.

``Step`` is the closed set of variants the engine understands; dispatch on
``step.type`` rather than on the class.
"""
from typing import Union

from .base import StepContract
from .confirm import ConfirmStep
from .field import FieldStep
from .message import MessageStep
from .navigation import NavigationStep

Step = Union[FieldStep, ConfirmStep, MessageStep, NavigationStep]

__all__ = [
    "Step",
    "StepContract",
    "FieldStep",
    "ConfirmStep",
    "MessageStep",
    "NavigationStep",
]
