"""Function tool decorator.

Turns a plain Python function into a `Tool`. The input schema comes from the function signature (via a pydantic
model) and the descriptions from its docstring.

Example:
    ```python
    from baton import tool

    @tool
    def get_weather(city: str, unit: str = "C") -> str:
        '''Get the current weather.

        Args:
            city: Name of the city.
            unit: Temperature unit.
        '''
        return f"18{unit} in {city}"

    @tool(needs_approval=True)
    async def delete_file(context: RunContext, path: str) -> str:
        '''Delete a file.'''
        ...
    ```
"""

import asyncio
import functools
import inspect
import logging
import re
from typing import Any, Callable, Optional, TypeVar, Union, get_origin, get_type_hints, overload

from pydantic import BaseModel, Field, ValidationError, create_model

from ..run.context import RunContext
from ..types.exceptions import ModelBehaviorError, UserError
from ..types.tools import ToolSpec
from .tools import NeedsApproval, Tool, ToolErrorFunction, decode_arguments, default_tool_error_function

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Callable[..., Any])


_DOCSTRING_SECTIONS = {"Args:", "Arguments:", "Returns:", "Raises:", "Yields:", "Example:", "Examples:", "Note:"}
_ARG_LINE_RE = re.compile(r"^(\s*)(\w+)\s*(?:\([^)]*\))?:\s*(.*)$")


def _is_context_annotation(annotation: Any) -> bool:
    return annotation is RunContext or get_origin(annotation) is RunContext


def parse_docstring(doc: Optional[str]) -> tuple[str, dict[str, str]]:
    """Split a Google style docstring into its description and per-argument descriptions.

    Args:
        doc: The raw docstring.

    Returns:
        The text before the first section header, and the `Args:` entries keyed by argument name.
    """
    lines = inspect.cleandoc(doc).splitlines() if doc else []
    description_lines: list[str] = []
    arg_lines: list[str] = []
    section = None

    for line in lines:
        if line.strip() in _DOCSTRING_SECTIONS:
            section = line.strip()
            continue
        if section is None:
            description_lines.append(line)
        elif section in ("Args:", "Arguments:"):
            arg_lines.append(line)

    args: dict[str, str] = {}
    current: Optional[str] = None
    arg_indent = 0
    for line in arg_lines:
        match = _ARG_LINE_RE.match(line)
        if match and (current is None or len(match.group(1)) <= arg_indent):
            arg_indent = len(match.group(1))
            current = match.group(2)
            args[current] = match.group(3).strip()
        elif current is not None and line.strip():
            # Continuation line
            args[current] = f"{args[current]} {line.strip()}".strip()

    return "\n".join(description_lines).strip(), args


class FunctionToolMetadata:
    """Signature and docstring derived metadata of a decorated function."""

    def __init__(self, func: Callable[..., Any], name: Optional[str], description: Optional[str]) -> None:
        """Inspect the function.

        Args:
            func: The function to inspect.
            name: Override for the tool name.
            description: Override for the tool description.

        Raises:
            UserError: If the signature cannot be turned into a schema.
        """
        self.func = func
        self.signature = inspect.signature(func)
        docstring_description, param_docs = parse_docstring(func.__doc__)
        self.name = name or func.__name__

        try:
            hints = get_type_hints(func)
        except Exception:
            hints = {}

        params = list(self.signature.parameters.values())

        self.takes_context = bool(params) and _is_context_annotation(hints.get(params[0].name))
        if self.takes_context:
            params = params[1:]

        fields: dict[str, Any] = {}
        self.param_names: list[str] = []
        for param in params:
            if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                continue
            if _is_context_annotation(hints.get(param.name)):
                raise UserError(f"Tool {self.name}: RunContext must be the first parameter")

            annotation = hints.get(param.name, Any)
            default = ... if param.default is inspect.Parameter.empty else param.default
            fields[param.name] = (annotation, Field(default, description=param_docs.get(param.name)))
            self.param_names.append(param.name)

        try:
            self.input_model: type[BaseModel] = create_model(f"{self.name}_args", **fields)
            self.input_schema = self.input_model.model_json_schema()
        except Exception as e:
            raise UserError(f"Tool {self.name}: failed to build input schema: {e}") from e

        self.input_schema.pop("title", None)
        for prop in self.input_schema.get("properties", {}).values():
            prop.pop("title", None)

        self.description = description if description is not None else docstring_description

    def validate_input(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Validate decoded arguments against the input model.

        Raises:
            ModelBehaviorError: If the arguments do not match the schema.
        """
        try:
            validated = self.input_model.model_validate(arguments)
        except ValidationError as e:
            raise ModelBehaviorError(f"Invalid input for tool {self.name}: {e}") from e

        return {name: getattr(validated, name) for name in self.param_names}


class FunctionTool(Tool):
    """A tool backed by a local Python function, sync or async."""

    def __init__(
        self,
        func: Callable[..., Any],
        *,
        name: Optional[str] = None,
        description: Optional[str] = None,
        needs_approval: NeedsApproval = False,
        failure_error_function: Optional[ToolErrorFunction] = default_tool_error_function,
    ) -> None:
        """Initialize the function tool.

        Args:
            func: The wrapped function.
            name: Tool name, defaults to the function name.
            description: Tool description, defaults to the docstring.
            needs_approval: Static flag or predicate deciding whether a call must be approved.
            failure_error_function: Converts failures into model visible text; None to raise instead.
        """
        super().__init__(needs_approval=needs_approval, failure_error_function=failure_error_function)
        self._metadata = FunctionToolMetadata(func, name, description)
        self._func = func
        functools.update_wrapper(self, func)

    @property
    def tool_name(self) -> str:
        """Name of the tool."""
        return self._metadata.name

    @property
    def tool_spec(self) -> ToolSpec:
        """Specification derived from the function signature and docstring."""
        return ToolSpec(
            name=self._metadata.name,
            description=self._metadata.description,
            inputSchema=self._metadata.input_schema,
        )

    @property
    def tool_type(self) -> str:
        """Function tools are of type 'function'."""
        return "function"

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        """Call the wrapped function directly, bypassing the run loop."""
        return self._func(*args, **kwargs)

    async def invoke(self, context: RunContext, arguments: str, call_id: str) -> Any:
        """Validate arguments and call the function.

        Sync functions run in a worker thread so they do not block the event loop.
        """
        kwargs = self._metadata.validate_input(decode_arguments(self.tool_name, arguments))
        args: tuple[Any, ...] = (context,) if self._metadata.takes_context else ()

        logger.debug("tool_name=<%s>, call_id=<%s> | invoking function tool", self.tool_name, call_id)
        if inspect.iscoroutinefunction(self._func):
            return await self._func(*args, **kwargs)

        return await asyncio.to_thread(self._func, *args, **kwargs)


@overload
def tool(__func: T) -> FunctionTool: ...


@overload
def tool(
    *,
    name: Optional[str] = None,
    description: Optional[str] = None,
    needs_approval: NeedsApproval = False,
    failure_error_function: Optional[ToolErrorFunction] = default_tool_error_function,
) -> Callable[[T], FunctionTool]: ...


def tool(
    func: Optional[T] = None,
    *,
    name: Optional[str] = None,
    description: Optional[str] = None,
    needs_approval: NeedsApproval = False,
    failure_error_function: Optional[ToolErrorFunction] = default_tool_error_function,
) -> Union[FunctionTool, Callable[[T], FunctionTool]]:
    """Decorator that turns a function into a `FunctionTool`.

    Can be used bare (`@tool`) or with arguments (`@tool(name="x", needs_approval=True)`).

    Args:
        func: The function to decorate.
        name: Tool name, defaults to the function name.
        description: Tool description, defaults to the docstring.
        needs_approval: Static flag or predicate deciding whether a call must be approved.
        failure_error_function: Converts failures into model visible text; None to raise `ToolCallError` instead.

    Returns:
        The tool, or a decorator producing it.
    """

    def decorator(f: T) -> FunctionTool:
        return FunctionTool(
            f,
            name=name,
            description=description,
            needs_approval=needs_approval,
            failure_error_function=failure_error_function,
        )

    if func is not None:
        return decorator(func)

    return decorator
