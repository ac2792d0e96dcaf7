import logging
from typing import Dict, Mapping, Optional, Sequence, Set, Union

from .submission import SubmissionExecutor, SubmissionState
from .validation import FieldSchema, ValidationResult, validate, validate_field


logger = logging.getLogger(__name__)


class FormController:
    """Field values, errors and submission for one form instance.

    Errors only appear after a full ``validate``/``submit``; once a field is
    in error, ``set_value`` re-checks that field alone so the message clears
    as soon as the input is corrected. Not thread-safe: mutate from a single
    task.
    """

    def __init__(
        self,
        schema: Sequence[FieldSchema],
        executor: SubmissionExecutor,
        initial: Optional[Mapping[str, str]] = None,
    ):
        self.schema = tuple(schema)
        self.executor = executor
        self._fields: Dict[str, FieldSchema] = {f.name: f for f in self.schema}
        self._initial: Dict[str, str] = {name: "" for name in self._fields}
        if initial:
            for name, value in initial.items():
                self._require(name)
                self._initial[name] = value
        self.values: Dict[str, str] = dict(self._initial)
        self.errors: Dict[str, str] = {}
        self.touched: Set[str] = set()

    def _require(self, name: str) -> FieldSchema:
        try:
            return self._fields[name]
        except KeyError:
            raise KeyError(f"Unknown form field: {name}") from None

    @property
    def dirty(self) -> Set[str]:
        return {name for name, value in self.values.items() if value != self._initial[name]}

    @property
    def submission(self) -> SubmissionState:
        return self.executor.state

    def set_value(self, name: str, value: str) -> None:
        field_schema = self._require(name)
        self.values[name] = value
        self.touched.add(name)
        if name in self.errors:
            _, message = validate_field(field_schema, value)
            if message is None:
                del self.errors[name]
            else:
                self.errors[name] = message

    def set_values(self, values: Mapping[str, str]) -> None:
        for name, value in values.items():
            self.set_value(name, value)

    def validate(self) -> ValidationResult:
        result = validate(self.schema, self.values)
        self.errors = dict(result.errors)
        return result

    async def submit(self) -> Union[ValidationResult, SubmissionState, None]:
        """Validate everything and hand the typed values to the executor.

        Returns the failed ``ValidationResult`` when any field is invalid,
        otherwise whatever the executor returns (``None`` when ignored
        because a submission is already pending).
        """
        result = self.validate()
        if not result.ok:
            logger.debug(f"Form submission blocked by field errors: {sorted(result.errors)}")
            return result
        return await self.executor.submit(result.data)

    def reset(self) -> None:
        self.values = dict(self._initial)
        self.errors = {}
        self.touched = set()
