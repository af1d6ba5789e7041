from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Any, Callable, Dict, Optional
import logging

from mortgage_calculator.calculator import MortgageInputs, MortgageResults, compute
from mortgage_calculator.validation import FIELD_NAMES, validate


logger = logging.getLogger(__name__)


class MortgageForm:
    """State behind the calculator widget.

    Inputs change one field at a time; results are derived from the current
    inputs and recomputed after every change, never patched. Editing a field
    clears that field's error only; a successful ``validate_inputs`` clears
    them all.
    """

    def __init__(
        self,
        inputs: Optional[MortgageInputs] = None,
        today: Callable[[], date] = date.today,
    ):
        self._inputs = inputs or MortgageInputs()
        self._today = today
        self._errors: Dict[str, str] = {}
        self._results: Optional[MortgageResults] = None

    @property
    def inputs(self) -> MortgageInputs:
        return self._inputs

    @property
    def errors(self) -> Dict[str, str]:
        return dict(self._errors)

    @property
    def results(self) -> MortgageResults:
        if self._results is None:
            self._results = compute(self._inputs, today=self._today())
        return self._results

    def update_input(self, key: str, value: Any) -> None:
        if key not in FIELD_NAMES:
            raise KeyError(f"unknown mortgage input: {key}")
        self._inputs = replace(self._inputs, **{key: value})
        self._results = None
        self._errors.pop(key, None)

    def validate_inputs(self) -> bool:
        errors = validate(self._inputs)
        if errors:
            logger.debug("mortgage form rejected: %s", errors)
            self._errors = errors
            return False
        self._errors = {}
        return True
