"""Context value serializers for run state persistence.

This module provides pluggable serialization strategies for the caller supplied context value of a `RunState`:
- JSONSerializer: Default serializer, deterministic output, validates before serializing
- PickleSerializer: Supports any Python object, no validation
- StateSerializer: Protocol for custom serializers
"""

import base64
import copy
import json
import pickle
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class StateSerializer(Protocol):
    """Protocol for context serializers.

    Custom serializers can implement this protocol to provide alternative serialization strategies for the context
    value. The serialized form is text so it can be embedded in the JSON document of the run state.
    """

    def serialize(self, value: Any) -> str:
        """Serialize a value to text.

        Args:
            value: The value to serialize

        Returns:
            Serialized value as text
        """
        ...

    def deserialize(self, data: str) -> Any:
        """Deserialize text back to a value.

        Args:
            data: Serialized value

        Returns:
            Deserialized value
        """
        ...

    def validate(self, value: Any) -> None:
        """Validate a value can be serialized.

        Serializers that accept any value should implement this as a no-op.

        Args:
            value: The value to validate

        Raises:
            ValueError: If value cannot be serialized by this serializer
        """
        ...


class JSONSerializer:
    """JSON-based context serializer.

    Default serializer that provides:
    - Human-readable serialization format
    - Deterministic output (sorted keys, compact separators) so serialized states compare byte for byte
    """

    def serialize(self, value: Any) -> str:
        """Serialize a value to JSON text.

        Args:
            value: The value to serialize

        Returns:
            JSON text
        """
        return json.dumps(value, sort_keys=True, separators=(",", ":"))

    def deserialize(self, data: str) -> Any:
        """Deserialize JSON text back to a value.

        Args:
            data: JSON text

        Returns:
            Deserialized value
        """
        return json.loads(data)

    def validate(self, value: Any) -> None:
        """Validate that a value is JSON serializable.

        Args:
            value: The value to validate

        Raises:
            ValueError: If value is not JSON serializable
        """
        try:
            json.dumps(value)
        except (TypeError, ValueError) as e:
            raise ValueError(
                f"Value is not JSON serializable: {type(value).__name__}. "
                f"Only JSON-compatible types (str, int, float, bool, list, dict, None) are allowed."
            ) from e


class PickleSerializer:
    """Pickle-based context serializer.

    Provides:
    - Support for any Python object (datetime, UUID, dataclass, Pydantic models, etc.)
    - No validation (accepts anything picklable)

    Security Warning:
        Pickle can execute arbitrary code during deserialization.
        Only unpickle data from trusted sources.
    """

    def serialize(self, value: Any) -> str:
        """Serialize a value using pickle, encoded as base64 text.

        Args:
            value: The value to serialize

        Returns:
            Base64 text of the pickled value
        """
        return base64.b64encode(pickle.dumps(copy.deepcopy(value))).decode("ascii")

    def deserialize(self, data: str) -> Any:
        """Deserialize base64 pickle text back to a value.

        Args:
            data: Base64 text of the pickled value

        Returns:
            Deserialized value
        """
        return pickle.loads(base64.b64decode(data))  # noqa: S301

    def validate(self, value: Any) -> None:
        """No-op validation - pickle accepts any Python object.

        Args:
            value: The value to validate (ignored)
        """
        pass
