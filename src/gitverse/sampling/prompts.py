from textwrap import dedent
from typing import Any, Literal, Self

from mcp.types import SamplingMessage
from pydantic import BaseModel, Field

from gitverse.sampling.utility import dump_yaml, new_sampling_message

AnalysisType = Literal["explain", "bugs", "improve", "document"]


class PromptSection(BaseModel):
    title: str = Field(description="The title of the section.")
    level: int = Field(default=1, description="The level of the section.")
    section: str = Field(description="The section of the prompt.")

    def render_text(self) -> str:
        return f"{'#' * self.level} {self.title}\n{self.section}"


WHO_YOU_ARE = PromptSection(
    title="Who you are",
    section="""
You are the GitVerse assistant. GitVerse analyzes Git repositories and presents their commits, branches, contributors,
languages and files. You help users understand the repository they are looking at and the code inside it.
""",
)

DEEPLY_ROOTED = PromptSection(
    title="Deeply Rooted",
    section="""
Your answers should be rooted in the repository information you were provided, not invented. If the information needed
to answer is missing, say so plainly and point to where in the repository the answer is likely to be found.
""",
)

RESPONSE_FORMAT = PromptSection(
    title="Response Format",
    section="""
Your entire response will be shown directly to the user. Do not describe what you are about to do, answer the question.
Your response should be in markdown format.
""",
)

SYSTEM_PROMPT_SECTIONS = [WHO_YOU_ARE, DEEPLY_ROOTED, RESPONSE_FORMAT]

CODE_ANALYSIS_INSTRUCTIONS: dict[AnalysisType, str] = {
    "explain": (
        "Please explain the following {language} code in detail. "
        "Break down what it does, how it works, and any important patterns or concepts used:"
    ),
    "bugs": (
        "Please analyze the following {language} code for potential bugs, issues, or problems. "
        "Identify any security vulnerabilities, logic errors, or code smells:"
    ),
    "improve": (
        "Please suggest improvements for the following {language} code. "
        "Focus on performance, readability, maintainability, and best practices:"
    ),
    "document": (
        "Please generate comprehensive documentation for the following {language} code. "
        "Include function descriptions, parameters, return values, and usage examples:"
    ),
}


class PromptBuilder(BaseModel):
    """Builds a markdown prompt out of titled sections."""

    sections: list[PromptSection] = Field(default_factory=list, description="The sections of the prompt.")

    def add_text_section(self, title: str, text: str, level: int = 1) -> Self:
        self.sections.append(PromptSection(title=title, level=level, section=dedent(text)))

        return self

    def add_code_section(self, title: str, code: str, language: str, level: int = 1) -> Self:
        self.sections.append(PromptSection(title=title, level=level, section=f"```{language}\n{code}\n```"))

        return self

    def add_yaml_section(self, title: str, obj: BaseModel | dict[str, Any], preamble: str, level: int = 1) -> Self:
        self.sections.append(PromptSection(title=title, level=level, section=f"{preamble}\n```yaml\n{dump_yaml(obj)}```"))

        return self

    def render_text(self) -> str:
        return "\n\n".join(section.render_text() for section in self.sections)

    def to_sampling_message(self) -> SamplingMessage:
        return new_sampling_message("user", self.render_text())


class SystemPromptBuilder(PromptBuilder):
    sections: list[PromptSection] = Field(default_factory=lambda: SYSTEM_PROMPT_SECTIONS.copy(), description="The sections of the prompt.")
