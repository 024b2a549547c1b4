"""Output contract of an agent: plain text or a validated structured type."""

import logging
from functools import cached_property
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError, create_model
from pydantic_core import to_jsonable_python

from ..types.exceptions import ModelBehaviorError, UserError

logger = logging.getLogger(__name__)

_WRAPPER_KEY = "response"


class OutputSchema:
    """Container for an agent's output type and its validation logic.

    Types whose JSON schema is not an object (e.g. `list[str]`, `int`) are wrapped in an object with a single
    `response` key, since most providers only accept object schemas for structured output.
    """

    def __init__(self, output_type: Optional[type] = None, strict: bool = True) -> None:
        """Initialize output schema.

        Args:
            output_type: Type of the final output. None or `str` means plain text.
            strict: Whether providers should enforce the schema strictly.
        """
        self.output_type: type = output_type if output_type is not None else str
        self.strict = strict

        if self.is_plain_text():
            self._adapter: Optional[TypeAdapter] = None
            self._wrapped = False
            return

        try:
            adapter: TypeAdapter = TypeAdapter(self.output_type)
            schema = adapter.json_schema()
        except Exception as e:
            raise UserError(f"Output type {self.name()} cannot be converted to a JSON schema: {e}") from e

        self._wrapped = schema.get("type") != "object"
        if self._wrapped:
            wrapper = create_model(f"{self.name()}Wrapper", **{_WRAPPER_KEY: (self.output_type, ...)})
            adapter = TypeAdapter(wrapper)
        self._adapter = adapter

    def is_plain_text(self) -> bool:
        """True if the output is plain text."""
        return self.output_type is str

    def is_wrapped(self) -> bool:
        """True if the output type is wrapped in a `response` object."""
        return self._wrapped

    def name(self) -> str:
        """Name of the output type."""
        return getattr(self.output_type, "__name__", repr(self.output_type))

    @cached_property
    def json_schema(self) -> dict[str, Any]:
        """JSON schema of the structured output.

        Raises:
            UserError: If the output is plain text.
        """
        if self._adapter is None:
            raise UserError("Plain text output has no JSON schema")
        return self._adapter.json_schema()

    def validate_json(self, text: str) -> Any:
        """Parse and validate model output text against the output type.

        Args:
            text: Raw model text.

        Returns:
            The text itself for plain text outputs, otherwise the validated value.

        Raises:
            ModelBehaviorError: If the text is not valid JSON or does not match the type.
        """
        if self._adapter is None:
            return text

        try:
            value = self._adapter.validate_json(text)
        except ValidationError as e:
            logger.debug("output_type=<%s>, error=<%s> | final output failed validation", self.name(), e)
            raise ModelBehaviorError(f"Invalid JSON when parsing {text!r} for {self.name()}: {e}") from e

        if self._wrapped:
            value = value[_WRAPPER_KEY] if isinstance(value, dict) else getattr(value, _WRAPPER_KEY)
        return value

    def validate_python(self, data: Any) -> Any:
        """Validate JSON-compatible data, as produced by `dump`, against the output type.

        Raises:
            ModelBehaviorError: If the data does not match the type.
        """
        if self._adapter is None:
            return data

        try:
            value = self._adapter.validate_python({_WRAPPER_KEY: data} if self._wrapped else data)
        except ValidationError as e:
            raise ModelBehaviorError(f"Invalid data for {self.name()}: {e}") from e

        if self._wrapped:
            value = getattr(value, _WRAPPER_KEY)
        return value

    @staticmethod
    def dump(value: Any) -> Any:
        """Convert an output value into JSON-compatible data."""
        return to_jsonable_python(value, fallback=str)


def resolve_output_schema(output_type: Optional[type | OutputSchema]) -> Optional[OutputSchema]:
    """Resolve an agent's output type into an `OutputSchema`.

    Returns:
        None for plain text output, otherwise the schema.
    """
    if output_type is None or output_type is str:
        return None

    if isinstance(output_type, OutputSchema):
        return None if output_type.is_plain_text() else output_type

    return OutputSchema(output_type)
