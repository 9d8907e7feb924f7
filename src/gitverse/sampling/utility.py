from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Literal

import yaml
from fastmcp.server.dependencies import get_context
from fastmcp.utilities.logging import get_logger
from mcp.types import ClientCapabilities, ModelPreferences, SamplingCapability, SamplingMessage, TextContent
from pydantic import BaseModel

if TYPE_CHECKING:
    from fastmcp.server import Context

logger = get_logger(__name__)


def dump_yaml(value: BaseModel | dict[str, Any]) -> str:
    data = value.model_dump(mode="json") if isinstance(value, BaseModel) else value

    return yaml.safe_dump(data, indent=1, sort_keys=False, width=400)


def estimate_tokens(text: str) -> int:
    """A rough token count, assuming four characters per token."""
    return len(text) // 4


def get_sampling_tokens(system_prompt: str, messages: Sequence[SamplingMessage]) -> int:
    return estimate_tokens(system_prompt) + sum(estimate_tokens(message.model_dump_json()) for message in messages)


def new_sampling_message(role: Literal["user", "assistant"], text: str) -> SamplingMessage:
    return SamplingMessage(role=role, content=TextContent(type="text", text=text))


async def sample(
    system_prompt: str,
    messages: Sequence[SamplingMessage],
    *,
    max_tokens: int,
    temperature: float,
    model_preferences: ModelPreferences | None = None,
) -> str:
    """Sample a text response from the connected client, falling back to the server's sampling handler."""

    context: Context = get_context()

    logger.info(f"Sampling {len(messages)} messages of about {get_sampling_tokens(system_prompt, messages)} tokens.")

    response = await context.sample(
        system_prompt=system_prompt,
        messages=list(messages),
        temperature=temperature,
        max_tokens=max_tokens,
        model_preferences=model_preferences,
    )

    if not isinstance(response, TextContent):
        msg = f"Expected a text response from sampling, got {response.type} content."
        raise TypeError(msg)

    logger.info(f"Sampling returned about {estimate_tokens(response.text)} tokens.")

    return response.text


def sampling_is_supported() -> bool:
    """Whether the server has a sampling handler or the connected client advertises sampling."""

    context: Context = get_context()

    return context.fastmcp.sampling_handler is not None or context.session.check_client_capability(
        capability=ClientCapabilities(sampling=SamplingCapability())
    )
