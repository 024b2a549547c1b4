"""Abstract base class for model backends."""

import abc
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, AsyncIterator, Optional

from ..types.items import ConversationItem, ModelOutputItem
from ..types.streaming import ModelStreamEvent, ResponseCompletedEvent
from ..types.tools import ToolSpec
from ..types.usage import Usage
from .settings import ModelSettings

if TYPE_CHECKING:
    from ..output import OutputSchema

logger = logging.getLogger(__name__)


@dataclass
class ModelResponse:
    """Structured result of a single model exchange.

    Attributes:
        output: Items produced by the model, in order.
        usage: Token usage of the exchange.
        response_id: Provider identifier of the response, if any.
    """

    output: list[ModelOutputItem]
    usage: Usage = field(default_factory=Usage)
    response_id: Optional[str] = None


class Model(abc.ABC):
    """Abstract base class for model backends.

    The run loop never talks to a provider's wire protocol directly. It calls `get_response` for a buffered
    exchange or `stream_response` when a caller asked for incremental events.
    """

    @abc.abstractmethod
    async def get_response(
        self,
        system_instructions: Optional[str],
        input: list[ConversationItem],
        model_settings: ModelSettings,
        tools: list[ToolSpec],
        output_schema: Optional["OutputSchema"],
        handoffs: list[ToolSpec],
        *,
        previous_response_id: Optional[str] = None,
    ) -> ModelResponse:
        """Run a single request/response exchange.

        Args:
            system_instructions: Resolved agent instructions.
            input: Full conversation history.
            model_settings: Merged tuning parameters.
            tools: Tool specifications available to the model.
            output_schema: Expected structure of the final output, None for plain text.
            handoffs: Handoff specifications, exposed to the model as tools.
            previous_response_id: Identifier of the previous response for providers with server-side state.

        Returns:
            The model response.
        """
        pass

    async def stream_response(
        self,
        system_instructions: Optional[str],
        input: list[ConversationItem],
        model_settings: ModelSettings,
        tools: list[ToolSpec],
        output_schema: Optional["OutputSchema"],
        handoffs: list[ToolSpec],
        *,
        previous_response_id: Optional[str] = None,
    ) -> AsyncIterator[ModelStreamEvent]:
        """Run an exchange incrementally.

        Backends that support streaming override this. The default implementation performs a buffered exchange and
        yields its completion event only.

        Yields:
            Stream events, the last being a `ResponseCompletedEvent`.
        """
        logger.debug("model=<%s> | streaming not implemented, falling back to buffered response", type(self).__name__)
        response = await self.get_response(
            system_instructions,
            input,
            model_settings,
            tools,
            output_schema,
            handoffs,
            previous_response_id=previous_response_id,
        )
        yield ResponseCompletedEvent(response=response)
