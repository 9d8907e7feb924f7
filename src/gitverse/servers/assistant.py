from logging import Logger
from typing import Annotated, Any, Self

from fastmcp.server import FastMCP
from fastmcp.tools import Tool
from fastmcp.utilities.logging import get_logger
from mcp.types import ModelHint, ModelPreferences
from pydantic import BaseModel, Field

from gitverse.analytics.aggregate import CategoryBucket
from gitverse.analytics.repository import RepositoryAnalytics
from gitverse.models.repository.tree import FileExtensionCount
from gitverse.sampling.gemini import DEFAULT_GEMINI_MODEL
from gitverse.sampling.prompts import CODE_ANALYSIS_INSTRUCTIONS, AnalysisType, PromptBuilder, SystemPromptBuilder
from gitverse.sampling.utility import sample, sampling_is_supported
from gitverse.servers.analytics import AnalyticsServer
from gitverse.servers.shared.annotations import CODE, LANGUAGE, QUESTION, REPOSITORY_ID
from gitverse.servers.shared.errors import SamplingSupportRequiredError

ASSISTANT_MAX_TOKENS = 4000
ASSISTANT_EXTENSION_STATISTICS_TOP_N = 10
ASSISTANT_TEMPERATURE = 0.3
CODE_ANALYSIS_MAX_TOKENS = 6000
CODE_ANALYSIS_TEMPERATURE = 0.1

MODEL_PREFERENCES = ModelPreferences(hints=[ModelHint(name=DEFAULT_GEMINI_MODEL)])


class RepositoryStats(BaseModel):
    commits: int
    contributors: int
    files: int


class RepositoryContext(BaseModel):
    """What the assistant is told about a repository before it answers a question."""

    name: str
    description: str | None = None
    languages: list[str] = Field(default_factory=list)
    stats: RepositoryStats
    file_types: list[CategoryBucket] = Field(default_factory=list)
    file_extensions: list[FileExtensionCount] = Field(default_factory=list)

    @classmethod
    def from_analytics(cls, analytics: RepositoryAnalytics) -> Self:
        snapshot = analytics.snapshot

        return cls(
            name=snapshot.name,
            description=snapshot.description,
            languages=[language.name for language in snapshot.languages],
            stats=RepositoryStats(commits=len(snapshot.commits), contributors=len(snapshot.contributors), files=len(snapshot.files)),
            file_types=analytics.file_type_distribution(),
            file_extensions=analytics.file_tree.count_file_extensions(top_n=ASSISTANT_EXTENSION_STATISTICS_TOP_N),
        )


class RepositoryAnswer(BaseModel):
    question: str = Field(description="The question that was asked.")
    answer: str = Field(description="The assistant's answer, in markdown.")


class CodeAnalysis(BaseModel):
    language: str = Field(description="The programming language of the analyzed code.")
    analysis_type: AnalysisType = Field(description="The kind of analysis that was performed.")
    analysis: str = Field(description="The analysis, in markdown.")


class AssistantServer:
    """Answers questions about analyzed repositories and reviews code snippets using sampling."""

    def __init__(self, analytics_server: AnalyticsServer, logger: Logger | None = None):
        self.logger: Logger = logger or get_logger(name=__name__)
        self.analytics_server: AnalyticsServer = analytics_server

    def register_tools(self, fastmcp: FastMCP[Any]) -> FastMCP[Any]:
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.ask_repository_assistant))
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.analyze_code))

        return fastmcp

    def require_sampling_support(self) -> None:
        """Raise a SamplingSupportRequiredError if neither the server nor the client can sample."""

        if not sampling_is_supported():
            self.logger.warning("A connected client does not support sampling. Sampling support is required to use the assistant tools.")

            raise SamplingSupportRequiredError

    async def ask_repository_assistant(self, repository_id: REPOSITORY_ID, question: QUESTION) -> RepositoryAnswer:
        """Ask the assistant a question about an analyzed repository. The assistant is given the repository's
        name, description, languages, commit, contributor and file counts, the mix of file types and the most common file extensions."""

        self.require_sampling_support()

        analytics: RepositoryAnalytics = await self.analytics_server.load_analytics(repository_id=repository_id)

        context: RepositoryContext = RepositoryContext.from_analytics(analytics=analytics)

        user_prompt = (
            PromptBuilder()
            .add_yaml_section(title="Repository Context", obj=context, preamble="The user is looking at the following repository:")
            .add_text_section(title="User Question", text=question)
        )

        self.logger.info(f"Answering a question about repository {repository_id}")

        answer: str = await sample(
            system_prompt=SystemPromptBuilder().render_text(),
            messages=[user_prompt.to_sampling_message()],
            max_tokens=ASSISTANT_MAX_TOKENS,
            temperature=ASSISTANT_TEMPERATURE,
            model_preferences=MODEL_PREFERENCES,
        )

        return RepositoryAnswer(question=question, answer=answer)

    async def analyze_code(
        self,
        code: CODE,
        language: LANGUAGE,
        analysis_type: Annotated[
            AnalysisType,
            Field(
                description=(
                    "The kind of analysis to perform: `explain` the code, look for `bugs`, suggest how to `improve` it, "
                    "or `document` it."
                )
            ),
        ] = "explain",
    ) -> CodeAnalysis:
        """Explain, review, improve or document a snippet of code."""

        self.require_sampling_support()

        instructions: str = CODE_ANALYSIS_INSTRUCTIONS[analysis_type].format(language=language)

        user_prompt = (
            PromptBuilder()
            .add_text_section(title="Instructions", text=instructions)
            .add_code_section(title="Code", code=code, language=language)
        )

        self.logger.info(f"Analyzing {len(code)} characters of {language} code ({analysis_type})")

        analysis: str = await sample(
            system_prompt=SystemPromptBuilder().render_text(),
            messages=[user_prompt.to_sampling_message()],
            max_tokens=CODE_ANALYSIS_MAX_TOKENS,
            temperature=CODE_ANALYSIS_TEMPERATURE,
            model_preferences=MODEL_PREFERENCES,
        )

        return CodeAnalysis(language=language, analysis_type=analysis_type, analysis=analysis)
