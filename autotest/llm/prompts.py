"""
LLM Prompts
===========
Centralised store for the test-generation system prompt and user prompt
builder.

Prompt Layout:
    - Names the file the tests are for
    - Optional numbered technology list ("using the following technologies")
    - Optional numbered tips list
    - Hard instruction: answer with the code block only
    - The file content, last, inside a fenced code block

Few-Shot Seeding:
    - Each example replays the same prompt for the example's file, followed
      by an assistant message holding the example's tests
    - Examples share the caller's techs and tips so the model sees the exact
      shape of the real request
"""
import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence

from autotest.models.example import Example
from autotest.models.message import Message, Role

logger = logging.getLogger(__name__)

FENCE = "```"


# ---------------------------------------------------------------------------
# System Prompt
# ---------------------------------------------------------------------------
SYSTEM_PROMPT = "You are an assistant that provides unit tests for a given file."

ANSWER_FORMAT_INSTRUCTION = (
    "Your answer should be only the code block. "
    f"Start your response with {FENCE} directly and end it with {FENCE} only, "
    "don't add any more text."
)


@dataclass
class PromptArgs:
    """Inputs of a single user prompt."""
    content: str
    file_name: str
    techs: List[str] = field(default_factory=list)
    tips: List[str] = field(default_factory=list)


def to_list(items: Sequence[str]) -> str:
    """Render items as a 1-indexed numbered list, one per CRLF-separated line."""
    return "\r\n".join(f"{index}. {item}" for index, item in enumerate(items, start=1))


def get_prompt(
    content: str,
    file_name: str,
    techs: Optional[Sequence[str]] = None,
    tips: Optional[Sequence[str]] = None,
) -> str:
    """
    Build the user prompt asking for unit tests of one file.

    Parameters
    ----------
    content : str
        Full text of the file under test. Placed verbatim in the trailing
        fenced code block.
    file_name : str
        Name (or path) of the file, as the model should see it.
    techs : sequence of str, optional
        Test technologies to use (e.g. "pytest", "unittest.mock").
    tips : sequence of str, optional
        Extra guidance for the model.

    Returns
    -------
    str
        The prompt text.
    """
    prompt = f"I need unit tests for a file called {file_name}"

    if techs:
        prompt += f" using the following technologies:\n{to_list(techs)}\n"
    else:
        prompt += "\n"

    if tips:
        prompt += f"Here are some tips:\n{to_list(tips)}\n"

    prompt += ANSWER_FORMAT_INSTRUCTION + "\n"
    prompt += f"Here is the file content:\n{FENCE}\n{content}\n{FENCE}"
    return prompt


def build_prompt(args: PromptArgs) -> str:
    return get_prompt(args.content, args.file_name, args.techs, args.tips)


def get_example_messages(
    prompt_args: PromptArgs,
    examples: Optional[Sequence[Example]] = None,
) -> List[Message]:
    """
    Turn few-shot examples into alternating user / assistant messages.

    The user message is the prompt re-rendered for the example's file
    (keeping the caller's techs and tips); the assistant message is the
    example's tests.
    """
    if not examples:
        return []

    messages: List[Message] = []
    for example in examples:
        example_args = replace(prompt_args, content=example.code, file_name=example.file_name)
        messages.append(Message(role=Role.USER, content=build_prompt(example_args)))
        messages.append(Message(role=Role.ASSISTANT, content=example.tests))

    logger.debug("Built %d few-shot messages from %d examples", len(messages), len(examples))
    return messages
