"""Named form factories available to the HTTP API.

Specs are built lazily and cached: a FormSpec is immutable and shared by
every conversation of its type.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, List

from workflows.form.spec import FormSpec
from workflows.forms.contact import build_contact_form

logger = logging.getLogger(__name__)

FormFactory = Callable[[], FormSpec]

_FACTORIES: Dict[str, FormFactory] = {
    "contact": build_contact_form,
}
_CACHE: Dict[str, FormSpec] = {}


def register_form(form_id: str, factory: FormFactory) -> None:
    _FACTORIES[form_id] = factory
    _CACHE.pop(form_id, None)


def available_forms() -> List[str]:
    return sorted(_FACTORIES)


def get_form(form_id: str) -> FormSpec:
    """Return the FormSpec for ``form_id``; raises KeyError for unknown ids."""
    form = _CACHE.get(form_id)
    if form is None:
        form = _CACHE[form_id] = _FACTORIES[form_id]()
        logger.info("[FORM][REGISTRY] Built form %s", form_id)
    return form


__all__ = ["FormFactory", "register_form", "available_forms", "get_form"]
