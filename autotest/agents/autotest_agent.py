"""
AutoTest Agent
==============
Generates unit tests for a source file (or every source file in a
directory) by asking a chat-completion model.

Flow (per file):
    1. Read the input file (failure → logged, process exits with status 1;
       in a directory run the file is recorded as failed and skipped)
    2. Build the prompt and the few-shot example messages
    3. Build the completion request (system, examples..., prompt)
    4. Either stream tokens into the output file as they arrive, or fetch
       the whole completion and write it with fence lines stripped

Output Naming:
    - Explicit output file → used as is
    - Explicit output directory → <dir>/<name>.test<ext>
    - No output → <name>.test<ext> beside the input file
    - Directory input keeps the relative layout under the output directory

The agent does NOT retry failed API calls; LLMError propagates to the
caller (CLI or HTTP endpoint).
"""
import os
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from autotest.core.config import DEFAULT_MODEL
from autotest.core.constants import SUPPORTED_MODELS
from autotest.llm.client import LLMClient, get_completion_request
from autotest.llm.prompts import PromptArgs, build_prompt, get_example_messages
from autotest.models.example import Example
from autotest.models.generation_result import GenerationResult
from autotest.services.file_service import (
    FileReadError,
    FileType,
    collect_source_files,
    get_file_type,
    get_test_file_name,
    read_file,
    write_to_file,
)

logger = logging.getLogger(__name__)


@dataclass
class AutoTestArgs:
    """Everything needed to generate tests for one file."""
    input_file: str
    output_file: str
    api_key: str
    model: str = DEFAULT_MODEL
    examples: List[Example] = field(default_factory=list)
    techs: List[str] = field(default_factory=list)
    tips: List[str] = field(default_factory=list)
    stream: bool = False


async def auto_test(args: AutoTestArgs, client: Optional[LLMClient] = None) -> GenerationResult:
    """
    Generate tests for ``args.input_file`` and write them to ``args.output_file``.

    Parameters
    ----------
    args : AutoTestArgs
        Input / output paths, credentials, model and prompt options.
    client : LLMClient or None
        Client to use; one is created (and closed) when not provided.

    Returns
    -------
    GenerationResult
        success is False when the output file could not be written.

    Raises
    ------
    SystemExit
        With status 1, if the input file cannot be read.
    LLMError
        If the completion API call fails.
    """
    logger.info("Reading input file %s...", args.input_file)
    try:
        content = read_file(args.input_file)
    except FileReadError as e:
        logger.error("Error reading file: %s", e)
        raise SystemExit(1)

    return await generate_tests(args, content, client=client)


async def generate_tests(
    args: AutoTestArgs,
    content: str,
    client: Optional[LLMClient] = None,
) -> GenerationResult:
    """Build the request for already-read ``content`` and write the generated tests."""
    logger.info("Generating tests for %s with %s...", args.input_file, args.model)

    own_client = client is None
    client = client or LLMClient(api_key=args.api_key)

    prompt_args = PromptArgs(
        content=content,
        file_name=args.input_file,
        techs=list(args.techs),
        tips=list(args.tips),
    )
    prompt = build_prompt(prompt_args)
    example_messages = get_example_messages(prompt_args, args.examples)
    completion_request = get_completion_request(args.model, prompt, example_messages)

    result = GenerationResult(
        input_file=args.input_file,
        output_file=args.output_file,
        streamed=args.stream,
    )

    try:
        if args.stream:
            # Start from an empty file so re-runs do not accumulate output
            ok = write_to_file(args.output_file, "")
            failed_writes = 0

            def on_token(token: str) -> None:
                nonlocal failed_writes
                if not write_to_file(args.output_file, token, append=True):
                    failed_writes += 1

            await client.stream_test_content(completion_request, on_token)
            result.success = ok and failed_writes == 0
            if result.success:
                logger.info("Successfully streamed tests to file: %s", args.output_file)
            else:
                result.error = f"{failed_writes} token writes failed"
        else:
            test_content = await client.get_test_content(completion_request)
            result.success = write_to_file(args.output_file, test_content)
            if not result.success:
                result.error = f"Could not write {args.output_file}"
    finally:
        if own_client:
            await client.close()

    return result


# ---------------------------------------------------------------------------
# Agent
# ---------------------------------------------------------------------------
class AutoTestAgent:
    """
    Runs auto_test over a file or a directory tree, sharing one client.

    Parameters
    ----------
    api_key : str
        Completion API key.
    model : str
        Chat model identifier. Names outside SUPPORTED_MODELS are allowed
        but logged.
    techs, tips : list of str
        Numbered lists added to every prompt.
    examples : list of Example
        Few-shot pairs replayed before every prompt.
    stream : bool
        Append tokens to the output file as they arrive.
    extensions : list of str, optional
        Only these suffixes are picked up when the input is a directory.
    client : LLMClient or None
        HTTP client (auto-created if not provided).
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        techs: Optional[List[str]] = None,
        tips: Optional[List[str]] = None,
        examples: Optional[List[Example]] = None,
        stream: bool = False,
        extensions: Optional[List[str]] = None,
        client: Optional[LLMClient] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.techs = techs or []
        self.tips = tips or []
        self.examples = examples or []
        self.stream = stream
        self.extensions = extensions
        self._own_client = client is None
        self.client = client or LLMClient(api_key=api_key)

        if model not in SUPPORTED_MODELS:
            logger.warning(
                "Model %s is not one of %s; sending it anyway",
                model, ", ".join(SUPPORTED_MODELS),
            )

    def plan(self, input_path: str, output_path: Optional[str] = None) -> List[Tuple[str, str]]:
        """Return (input_file, output_file) pairs for a file or directory input."""
        if get_file_type(input_path) == FileType.DIRECTORY:
            out_root = output_path or input_path
            pairs = []
            for source in collect_source_files(input_path, self.extensions):
                rel_dir = os.path.dirname(os.path.relpath(source, input_path))
                pairs.append((source, os.path.join(out_root, rel_dir, get_test_file_name(source))))
            return pairs

        if output_path is None:
            output_file = os.path.join(os.path.dirname(input_path), get_test_file_name(input_path))
        elif os.path.isdir(output_path):
            output_file = os.path.join(output_path, get_test_file_name(input_path))
        else:
            output_file = output_path
        return [(input_path, output_file)]

    async def run(self, input_path: str, output_path: Optional[str] = None) -> List[GenerationResult]:
        """Generate tests for every planned file, one at a time."""
        walk_directory = get_file_type(input_path) == FileType.DIRECTORY
        pairs = self.plan(input_path, output_path)
        if not pairs:
            logger.warning("No source files found under %s", input_path)

        results: List[GenerationResult] = []
        try:
            for input_file, output_file in pairs:
                args = AutoTestArgs(
                    input_file=input_file,
                    output_file=output_file,
                    api_key=self.api_key,
                    model=self.model,
                    examples=self.examples,
                    techs=self.techs,
                    tips=self.tips,
                    stream=self.stream,
                )
                if not walk_directory:
                    results.append(await auto_test(args, client=self.client))
                    continue

                # One unreadable file (binary, bad encoding) must not end a directory run
                try:
                    content = read_file(input_file)
                except FileReadError as e:
                    results.append(GenerationResult(
                        input_file=input_file,
                        output_file=output_file,
                        streamed=self.stream,
                        error=f"Could not read input: {e}",
                    ))
                    continue
                results.append(await generate_tests(args, content, client=self.client))
        finally:
            if self._own_client:
                await self.client.close()

        written = sum(1 for r in results if r.success)
        logger.info("Generated tests for %d/%d files", written, len(results))
        return results
