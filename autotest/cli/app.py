import asyncio
import logging
from typing import Annotated, List, Optional

import typer
from rich.console import Console
from rich.markup import escape

from autotest.agents.autotest_agent import AutoTestAgent
from autotest.core.config import (
    DEFAULT_MODEL,
    DEFAULT_STREAM,
    OPENAI_API_KEY,
    AutoTestConfig,
    ConfigError,
    find_config_file,
    load_config_file,
    load_examples,
)
from autotest.llm.client import LLMError
from autotest.utils.logging_config import setup_logging

console = Console()

app = typer.Typer(
    name="autotest",
    help="Generate unit tests for source files with a chat-completion model.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.command("generate")
def generate(
    input_path: Annotated[str, typer.Argument(help="Source file or directory to generate tests for.")],
    output: Annotated[Optional[str], typer.Option("--output", "-o", help="Output file or directory.")] = None,
    model: Annotated[Optional[str], typer.Option(help="Chat model identifier.")] = None,
    api_key: Annotated[Optional[str], typer.Option(help="API key (defaults to OPENAI_API_KEY).")] = None,
    tech: Annotated[Optional[List[str]], typer.Option("--tech", "-t", help="Technology to use; repeatable.")] = None,
    tip: Annotated[Optional[List[str]], typer.Option(help="Tip for the model; repeatable.")] = None,
    ext: Annotated[Optional[List[str]], typer.Option(help="File extension to include for directory input; repeatable.")] = None,
    config: Annotated[Optional[str], typer.Option("--config", "-c", help="YAML config with examples, techs and tips.")] = None,
    stream: Annotated[Optional[bool], typer.Option("--stream/--no-stream", help="Write tokens as they arrive.")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging.")] = False,
) -> None:
    """Generate unit tests for a file (or every file in a directory)."""
    setup_logging(level=logging.DEBUG if verbose else logging.INFO)

    settings = AutoTestConfig()
    examples = []
    config_path = find_config_file(config)
    if config_path:
        try:
            settings = load_config_file(config_path)
            examples = load_examples(settings, config_path)
        except ConfigError as e:
            console.print(f"[red]Config error:[/red] {escape(str(e))}")
            raise typer.Exit(code=2)

    key = api_key or OPENAI_API_KEY
    if not key:
        console.print("[red]No API key:[/red] pass --api-key or set OPENAI_API_KEY")
        raise typer.Exit(code=2)

    agent = AutoTestAgent(
        api_key=key,
        model=model or settings.model or DEFAULT_MODEL,
        techs=tech or settings.techs,
        tips=tip or settings.tips,
        examples=examples,
        stream=stream if stream is not None else (
            settings.stream if settings.stream is not None else DEFAULT_STREAM
        ),
        extensions=ext,
    )

    try:
        results = asyncio.run(agent.run(input_path, output))
    except LLMError as e:
        console.print(f"[red]Generation failed:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    for result in results:
        if result.success:
            console.print(f"[green]Wrote[/green] {result.output_file}")
        else:
            console.print(f"[red]Failed[/red] {result.output_file}: {escape(result.error)}")

    if any(not r.success for r in results):
        raise typer.Exit(code=1)


@app.command("serve")
def serve(
    host: str = "127.0.0.1",
    port: int = 8000,
) -> None:
    """Start the HTTP API server."""
    import uvicorn

    from autotest.api.app import create_app

    console.print(f"[green]Starting API server on {host}:{port}[/green]")
    uvicorn.run(create_app(), host=host, port=port)


def main() -> None:
    app()
