"""Main CLI application.

Click commands for toolloop: run, tools, transcript.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from toolloop import __version__
from toolloop.agent.executor import AgenticExecutor
from toolloop.completion.capture import DirectoryCapture
from toolloop.completion.invoker import CompletionInvoker
from toolloop.config.loader import load_config
from toolloop.core.errors import ConfigError, ToolloopError
from toolloop.core.retry import RetryConfig
from toolloop.observability.reflection import (
    generate_reflection_report,
    save_reflection_report,
)
from toolloop.observability.transcript import (
    generate_conversation_id,
    save_transcript,
    transcript_summary,
)
from toolloop.providers.base import Message, PinnedTool
from toolloop.providers.manager import ProviderManager
from toolloop.tools.base import ToolContext
from toolloop.tools.file_read import builtin_tools
from toolloop.tools.registry import ToolRegistry

if TYPE_CHECKING:
    from toolloop.agent.result import ExecutionResult
    from toolloop.config.schema import LoggingConfig, ToolloopConfig
    from toolloop.providers.base import ToolChoice

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


# ── Helpers ──────────────────────────────────────────────────────


def _error(msg: str) -> None:
    """Print an error message to stderr and exit."""
    click.echo(f"Error: {msg}", err=True)
    sys.exit(1)


def _load_config(config_path: str | None) -> ToolloopConfig:
    """Load config with user-friendly error handling."""
    try:
        return load_config(path=config_path)
    except ConfigError as e:
        _error(str(e))
        raise  # unreachable, keeps mypy happy


def configure_logging(config: LoggingConfig) -> None:
    """Apply the logging section of the config to the root logger."""
    level = logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        msg = f"Unknown log level: {config.level}"
        raise ConfigError(msg)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.file:
        log_path = Path(config.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)


def _tool_choice(value: str) -> ToolChoice:
    if value in ("auto", "none", "required"):
        return value  # type: ignore[return-value]
    return PinnedTool(value)


def _build_registry(workdir: str | None) -> ToolRegistry:
    context = ToolContext(
        working_directory=Path(workdir).resolve() if workdir else Path.cwd(),
        logger=logging.getLogger("toolloop.tools"),
    )
    registry = ToolRegistry(context)
    registry.register_all(builtin_tools())
    return registry


def _build_executor(
    config: ToolloopConfig,
    model_ref: str,
    capture_dir: str | None,
) -> AgenticExecutor:
    """Wire provider, invoker and executor from config."""
    manager = ProviderManager.from_config(config)
    provider, model_id = manager.get_provider(model_ref)

    capture = DirectoryCapture(capture_dir) if capture_dir else None
    prov_config = config.providers.get(provider.provider_id)
    retry = config.retry
    invoker = CompletionInvoker(
        provider,
        model_id,
        max_output_tokens=config.general.max_output_tokens,
        timeout=prov_config.timeout_seconds if prov_config else 300.0,
        retry=RetryConfig(
            max_attempts=retry.max_attempts,
            token_limit_base_delay=retry.token_limit_base_delay,
            token_limit_max_delay=retry.token_limit_max_delay,
            rate_limit_base_delay=retry.rate_limit_base_delay,
            rate_limit_max_delay=retry.rate_limit_max_delay,
        ),
        capture=capture,
    )
    return AgenticExecutor(
        invoker,
        max_iterations=config.general.max_iterations,
        tool_choice=_tool_choice(config.general.tool_choice),
        debug_prefix=config.debug.prefix if capture else None,
    )


# ── CLI group ────────────────────────────────────────────────────


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="toolloop")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True),
    default=None,
    help="Path to config file.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: str | None) -> None:
    """toolloop - Bounded tool-calling agent loop.

    Let a model investigate with tools, then answer.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ── run ──────────────────────────────────────────────────────────


@cli.command()
@click.argument("prompt")
@click.option(
    "--model",
    "model_ref",
    default=None,
    help="Model reference, e.g. openai:gpt-4o. Overrides config.",
)
@click.option("--system", "system_prompt", default=None, help="System prompt.")
@click.option(
    "--max-iterations",
    type=click.IntRange(min=1),
    default=None,
    help="Completion calls before forcing a final answer.",
)
@click.option(
    "--workdir",
    type=click.Path(exists=True, file_okay=False),
    default=None,
    help="Directory the file tools may read. Defaults to cwd.",
)
@click.option(
    "--debug-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Write request/response captures to this directory.",
)
@click.option(
    "--report",
    is_flag=True,
    default=False,
    help="Print a self-reflection report after the answer.",
)
@click.option(
    "--transcript",
    "transcript_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Save the conversation (.json or .md).",
)
@click.pass_context
def run(
    ctx: click.Context,
    prompt: str,
    model_ref: str | None,
    system_prompt: str | None,
    max_iterations: int | None,
    workdir: str | None,
    debug_dir: str | None,
    report: bool,
    transcript_path: str | None,
) -> None:
    """Run the agentic loop on PROMPT with the built-in file tools."""

    from toolloop.cli.display import RunDisplay

    config = _load_config(ctx.obj["config_path"])
    if max_iterations is not None:
        config.general.max_iterations = max_iterations
    model_ref = model_ref or config.general.model

    capture_dir = debug_dir
    if capture_dir is None and config.debug.enabled:
        capture_dir = config.debug.capture_dir or None

    try:
        configure_logging(config.logging)
        executor = _build_executor(config, model_ref, capture_dir)
        registry = _build_registry(workdir)
    except ToolloopError as e:
        _error(str(e))
        return

    messages: list[Message] = []
    if system_prompt:
        messages.append(Message.system(system_prompt))
    messages.append(Message.user(prompt))

    display = RunDisplay()
    display.start()
    try:
        with display.status(model_ref):
            result: ExecutionResult = asyncio.run(executor.run(messages, registry))
    except ToolloopError as e:
        _error(str(e))
        return

    display.show_result(result, executor.max_iterations)
    display.show_metrics(result)

    conversation_id = generate_conversation_id("run")
    metadata = {"model": model_ref, "max_iterations": executor.max_iterations}

    if report:
        text = generate_reflection_report(result, executor.max_iterations)
        display.show_report(text)
        if capture_dir:
            report_path = Path(capture_dir) / f"{conversation_id}-reflection.md"
            save_reflection_report(text, report_path)
            click.echo(f"Report saved to {report_path}")

    if transcript_path:
        path = Path(transcript_path)
        fmt = "markdown" if path.suffix.lower() in (".md", ".markdown") else "json"
        save_transcript(
            result,
            path,
            fmt=fmt,
            conversation_id=conversation_id,
            metadata=metadata,
        )
        click.echo(f"Transcript saved to {path}")


# ── tools ────────────────────────────────────────────────────────


@cli.command()
def tools() -> None:
    """List the built-in tools and their parameters."""
    from toolloop.cli.display import RunDisplay

    registry = _build_registry(None)
    RunDisplay().show_tools(registry.list_definitions())


# ── transcript ───────────────────────────────────────────────────


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def transcript(path: str) -> None:
    """Summarize a transcript saved as JSON by ``run --transcript``."""
    from toolloop.cli.display import RunDisplay

    try:
        summary = transcript_summary(Path(path))
    except ToolloopError as e:
        _error(str(e))
        return
    RunDisplay().show_transcript_summary(summary)
