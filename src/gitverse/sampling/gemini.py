from collections.abc import Sequence
from typing import override

from fastmcp.experimental.sampling.handlers.base import BaseLLMSamplingHandler
from fastmcp.utilities.logging import get_logger
from google.genai import Client as GoogleGenaiClient
from google.genai.types import (
    Content,
    ContentUnion,
    GenerateContentConfig,
    GenerateContentResponse,
    ModelContent,
    Part,
    ThinkingConfig,
    UserContent,
)
from mcp import ClientSession, ServerSession
from mcp.shared.context import LifespanContextT, RequestContext
from mcp.types import CreateMessageResult, ModelPreferences, SamplingMessage, TextContent
from mcp.types import CreateMessageRequestParams as SamplingParams

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_THINKING_BUDGET = 200

logger = get_logger(__name__)


class GeminiSamplingError(ValueError):
    """Gemini did not produce a usable completion."""


class GeminiSamplingHandler(BaseLLMSamplingHandler):
    """Answers sampling requests with Google Gemini when the connected client cannot sample itself."""

    def __init__(
        self,
        default_model: str = DEFAULT_GEMINI_MODEL,
        client: GoogleGenaiClient | None = None,
        thinking_budget: int = DEFAULT_THINKING_BUDGET,
    ):
        self.client: GoogleGenaiClient = client or GoogleGenaiClient()
        self.default_model: str = default_model
        self.thinking_budget: int = thinking_budget

    @override
    async def __call__(
        self,
        messages: list[SamplingMessage],
        params: SamplingParams,
        context: RequestContext[ServerSession, LifespanContextT] | RequestContext[ClientSession, LifespanContextT],
    ) -> CreateMessageResult:
        model: str = self.get_model(model_preferences=params.modelPreferences)

        logger.info(f"Sampling {len(messages)} messages with {model}")

        response: GenerateContentResponse = await self.client.aio.models.generate_content(
            model=model,
            contents=to_gemini_contents(messages),
            config=GenerateContentConfig(
                system_instruction=params.systemPrompt,
                temperature=params.temperature,
                max_output_tokens=params.maxTokens,
                stop_sequences=params.stopSequences,
                thinking_config=ThinkingConfig(thinking_budget=self.thinking_budget),
            ),
        )

        if not (text := response.text):
            finish_reason = response.candidates[0].finish_reason if response.candidates else None

            msg = f"Gemini returned no text for the sampling request: {finish_reason}"
            raise GeminiSamplingError(msg)

        return CreateMessageResult(content=TextContent(type="text", text=text), role="assistant", model=model)

    def get_model(self, model_preferences: ModelPreferences | None) -> str:
        if model_preferences and model_preferences.hints and model_preferences.hints[0].name:
            return model_preferences.hints[0].name

        return self.default_model


def to_gemini_contents(messages: Sequence[SamplingMessage]) -> list[ContentUnion]:
    """Convert MCP sampling messages into Gemini user and model turns. Only text content is supported."""

    contents: list[Content] = []

    for message in messages:
        if not isinstance(message.content, TextContent):
            msg = f"Gemini sampling only supports text content, got {type(message.content).__name__}"
            raise GeminiSamplingError(msg)

        part = Part(text=message.content.text)

        if message.role == "user":
            contents.append(UserContent(parts=[part]))
        else:
            contents.append(ModelContent(parts=[part]))

    return list(contents)
