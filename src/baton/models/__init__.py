"""Model provider contract.

Concrete provider wire protocols live outside this package; it only defines the interfaces the run loop calls.
"""

from .model import Model, ModelResponse
from .provider import MappingModelProvider, ModelProvider
from .settings import ModelSettings

__all__ = ["MappingModelProvider", "Model", "ModelProvider", "ModelResponse", "ModelSettings"]
