"""Model provider interface: resolve a model reference into a callable model."""

import abc
import logging
from typing import Callable, Optional, Union

from ..types.exceptions import UserError
from .model import Model

logger = logging.getLogger(__name__)

ModelFactory = Callable[[], Model]


class ModelProvider(abc.ABC):
    """Resolves model identifiers into `Model` instances."""

    @abc.abstractmethod
    def get_model(self, model_name: Optional[str]) -> Model:
        """Get a model by name.

        Args:
            model_name: Model identifier, or None for the provider's default model.

        Returns:
            The model.

        Raises:
            UserError: If the name cannot be resolved.
        """
        pass


class MappingModelProvider(ModelProvider):
    """Model provider backed by a registry of named models or model factories.

    Example:
        ```python
        provider = MappingModelProvider({"fast": FastModel, "smart": SmartModel()}, default="fast")
        provider.get_model(None)  # FastModel()
        ```
    """

    def __init__(
        self,
        models: Optional[dict[str, Union[Model, ModelFactory]]] = None,
        *,
        default: Optional[str] = None,
    ) -> None:
        """Initialize the provider.

        Args:
            models: Models or zero-argument factories keyed by name.
            default: Name used when a model is requested without a name.
        """
        self._models: dict[str, Union[Model, ModelFactory]] = dict(models or {})
        self._default = default

    def register(self, name: str, model: Union[Model, ModelFactory]) -> None:
        """Register a model or model factory under a name.

        Raises:
            UserError: If the name is already registered.
        """
        if name in self._models:
            raise UserError(f"Model '{name}' already registered")
        self._models[name] = model

    def get_model(self, model_name: Optional[str]) -> Model:
        """Get a model by name, instantiating factories on every call."""
        name = model_name or self._default
        if name is None:
            raise UserError("No model name given and the provider has no default model")

        if name not in self._models:
            raise UserError(f"Model '{name}' is not registered with this provider")

        entry = self._models[name]
        logger.debug("model_name=<%s> | resolved model", name)
        return entry if isinstance(entry, Model) else entry()
