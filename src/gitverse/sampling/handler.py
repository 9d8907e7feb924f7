import os

from fastmcp.experimental.sampling.handlers.openai import OpenAISamplingHandler
from fastmcp.utilities.logging import get_logger

from gitverse.sampling.gemini import DEFAULT_GEMINI_MODEL, GeminiSamplingHandler

DEFAULT_OPENAI_MODEL = "gpt-4o"

logger = get_logger(__name__)


def get_sampling_handler() -> GeminiSamplingHandler | OpenAISamplingHandler | None:
    if os.getenv("GOOGLE_API_KEY"):
        return GeminiSamplingHandler(default_model=os.getenv("GOOGLE_MODEL") or DEFAULT_GEMINI_MODEL)

    if os.getenv("OPENAI_API_KEY"):
        return OpenAISamplingHandler(default_model=os.getenv("OPENAI_MODEL") or DEFAULT_OPENAI_MODEL)  # pyright: ignore[reportArgumentType]

    logger.warning(
        msg=(
            "No sampling handler configured, the assistant tools will only work with clients that support sampling. "
            "Set GOOGLE_API_KEY or OPENAI_API_KEY to answer with a server-side model."
        )
    )

    return None
