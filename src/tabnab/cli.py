"""Command-line interface for tabnab."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, List, NoReturn, Optional, TypeVar

import click
import structlog
from rich.console import Console

from tabnab import __version__
from tabnab.ai import PromptStore
from tabnab.config import Config, load_config, mask_api_key, save_api_key
from tabnab.container import DependencyContainer
from tabnab.exceptions import FetchError, TabnabError, TemplateNotFoundError
from tabnab.extractor import (
    ExtractionRequest,
    LinksRequest,
    MetadataRequest,
    PromptRequest,
    ReadabilityRequest,
    SelectorRequest,
    SourceRequest,
)
from tabnab.filters import FilterSpec
from tabnab.formatter import CitationStyle, OutputFormat, RenderOptions
from tabnab.observability import configure_logging
from tabnab.pipeline import Pipeline, RunReport, Selection

# stdout carries rendered output only
console = Console(stderr=True)
logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])
T = TypeVar("T")

FORMAT_CHOICE = click.Choice([fmt.value for fmt in OutputFormat])


def fail(message: str) -> NoReturn:
    console.print(f"Error: {message}", style="red", markup=False, highlight=False, soft_wrap=True)
    sys.exit(1)


def notify(message: str) -> None:
    console.print(message, style="green", markup=False, highlight=False, soft_wrap=True)


def status(message: str) -> None:
    console.print(message, style="dim", markup=False, highlight=False, soft_wrap=True)


def run_async(ctx: click.Context, job: Callable[[Pipeline], Awaitable[T]]) -> T:
    """Run one pipeline job inside a container lifecycle; fatal errors exit 1."""
    config: Config = ctx.obj["config"]

    async def main() -> T:
        container = DependencyContainer(config)
        async with container.lifecycle():
            return await job(Pipeline(container))

    try:
        return asyncio.run(main())
    except TabnabError as e:
        logger.error("Command failed", command=ctx.info_name, error=str(e), error_type=type(e).__name__)
        fail(str(e))


def format_option(default: str = "text") -> Callable[[F], F]:
    return click.option(
        "-f", "--format", "fmt", type=FORMAT_CHOICE, default=default, show_default=True, help="Output format"
    )


def clipboard_option(f: F) -> F:
    return click.option("-c", "--clipboard", is_flag=True, help="Copy output to clipboard")(f)


def active_only_option(f: F) -> F:
    return click.option("-a", "--active-only", is_flag=True, help="Only use the active tab")(f)


def search_option(f: F) -> F:
    return click.option("--search", help="Search tabs by title (case-insensitive)")(f)


def filter_option(f: F) -> F:
    return click.option("--filter", "url_pattern", help="Filter tabs by URL pattern (regex)")(f)


def ai_options(f: F) -> F:
    options = [
        click.option("--all-tabs", is_flag=True, help="Process every matching tab instead of the active one"),
        filter_option,
        search_option,
        clipboard_option,
        format_option(),
        click.option("--model", help="Claude model to use"),
        click.option("--temperature", type=click.FloatRange(0.0, 1.0), help="Temperature (0-1)"),
        click.option("--max-tokens", type=click.IntRange(min=1), help="Maximum tokens in the response"),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def extraction_command(
    ctx: click.Context,
    request: ExtractionRequest,
    selection: Selection,
    fmt: str,
    clipboard: bool,
    confirmation: Callable[[RunReport], str],
    options: Optional[RenderOptions] = None,
) -> RunReport:
    report = run_async(
        ctx,
        lambda pipeline: pipeline.run(
            request, selection, OutputFormat(fmt), options or RenderOptions(), clipboard=clipboard
        ),
    )
    if clipboard:
        notify(confirmation(report))
    return report


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False), help="Configuration file path")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level (overrides configuration)",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], log_level: Optional[str]) -> None:
    """tabnab - get and extract content from Chrome tabs."""
    ctx.ensure_object(dict)
    path = Path(config_path) if config_path else None
    try:
        config = load_config(path)
    except TabnabError as e:
        fail(str(e))

    if log_level:
        config.monitoring.log_level = log_level.upper()
    configure_logging(config.monitoring)

    ctx.obj["config_path"] = path
    ctx.obj["config"] = config


# --- Tab listing ---


@cli.command("list")
@format_option()
@click.option("--url-only", is_flag=True, help="Only output URLs")
@click.option("--title-only", is_flag=True, help="Only output titles")
@clipboard_option
@filter_option
@search_option
@click.pass_context
def list_tabs(
    ctx: click.Context,
    fmt: str,
    url_only: bool,
    title_only: bool,
    clipboard: bool,
    url_pattern: Optional[str],
    search: Optional[str],
) -> None:
    """List all open Chrome tabs."""
    selection = Selection(filter=FilterSpec(url_pattern=url_pattern, title_search=search))
    options = RenderOptions(include_url=not title_only, include_title=not url_only)
    report = run_async(
        ctx, lambda pipeline: pipeline.list_tabs(selection, OutputFormat(fmt), options, clipboard=clipboard)
    )
    if clipboard:
        notify(f"✓ Copied {len(report.documents)} tab(s) to clipboard")


@cli.command()
@format_option()
@clipboard_option
@click.pass_context
def active(ctx: click.Context, fmt: str, clipboard: bool) -> None:
    """Get the currently active Chrome tab."""
    selection = Selection(active_only=True)
    run_async(ctx, lambda pipeline: pipeline.list_tabs(selection, OutputFormat(fmt), clipboard=clipboard))
    if clipboard:
        notify("✓ Copied active tab to clipboard")


# --- Extraction ---


@cli.command()
@click.argument("selector")
@format_option()
@click.option("-p", "--property", "prop", help="Property to extract (text, html, attr, attr:name)")
@active_only_option
@clipboard_option
@filter_option
@search_option
@click.option("--no-url", is_flag=True, help="Omit tab URLs from the output")
@click.option("--no-title", is_flag=True, help="Omit tab titles from the output")
@click.pass_context
def extract(
    ctx: click.Context,
    selector: str,
    fmt: str,
    prop: Optional[str],
    active_only: bool,
    clipboard: bool,
    url_pattern: Optional[str],
    search: Optional[str],
    no_url: bool,
    no_title: bool,
) -> None:
    """Extract content from Chrome tabs using a CSS selector."""
    extraction_command(
        ctx,
        SelectorRequest(selector=selector, property=prop),
        Selection(FilterSpec(url_pattern, search), active_only),
        fmt,
        clipboard,
        lambda report: f"✓ Copied extracted content from {len(report.documents)} tab(s) to clipboard",
        RenderOptions(include_url=not no_url, include_title=not no_title),
    )


@cli.command()
@click.option(
    "-f",
    "--format",
    "fmt",
    type=click.Choice(["raw"] + [fmt.value for fmt in OutputFormat]),
    default="raw",
    show_default=True,
    help="Output format",
)
@click.option("--pretty", is_flag=True, help="Pretty print HTML")
@click.option("--all-tabs", is_flag=True, help="Read every matching tab instead of the active one")
@clipboard_option
@filter_option
@search_option
@click.pass_context
def source(
    ctx: click.Context,
    fmt: str,
    pretty: bool,
    all_tabs: bool,
    clipboard: bool,
    url_pattern: Optional[str],
    search: Optional[str],
) -> None:
    """Get the HTML source of the active tab."""
    request = SourceRequest(pretty=pretty)
    selection = Selection(FilterSpec(url_pattern, search), active_only=not all_tabs)
    confirmation = "✓ Copied HTML source to clipboard"

    if fmt != "raw":
        extraction_command(ctx, request, selection, fmt, clipboard, lambda report: confirmation)
        return

    async def job(pipeline: Pipeline) -> None:
        results = await pipeline.extract(request, selection)
        failures = [result for result in results if not result.ok]
        if len(failures) == len(results):
            raise FetchError(failures[0].error or "Could not read page source")
        for result in failures:
            logger.warning("Skipping tab without source", url=result.url, error=result.error)
        output = "\n".join(str(result.content) for result in results if result.ok and result.content is not None)
        await pipeline.container.get_sink(clipboard).write(output)

    run_async(ctx, job)
    if clipboard:
        notify(confirmation)


@cli.command()
@format_option()
@active_only_option
@clipboard_option
@click.option("--internal-only", is_flag=True, help="Only include internal links (same domain)")
@click.option("--external-only", is_flag=True, help="Only include external links (different domain)")
@click.option("--filter", "link_pattern", help="Filter links by URL pattern (regex)")
@click.option("--tab-filter", "url_pattern", help="Filter tabs by URL pattern (regex)")
@search_option
@click.pass_context
def links(
    ctx: click.Context,
    fmt: str,
    active_only: bool,
    clipboard: bool,
    internal_only: bool,
    external_only: bool,
    link_pattern: Optional[str],
    url_pattern: Optional[str],
    search: Optional[str],
) -> None:
    """Extract all links from Chrome tabs."""

    def confirmation(report: RunReport) -> str:
        total = sum(len(result.content) for result in report.results if isinstance(result.content, list))
        return f"✓ Copied {total} link(s) from {len(report.results)} tab(s) to clipboard"

    extraction_command(
        ctx,
        LinksRequest(internal_only=internal_only, external_only=external_only, pattern=link_pattern),
        Selection(FilterSpec(url_pattern, search), active_only),
        fmt,
        clipboard,
        confirmation,
    )


@cli.command()
@format_option(default="json")
@active_only_option
@clipboard_option
@filter_option
@search_option
@click.pass_context
def metadata(
    ctx: click.Context,
    fmt: str,
    active_only: bool,
    clipboard: bool,
    url_pattern: Optional[str],
    search: Optional[str],
) -> None:
    """Extract metadata (Open Graph, Twitter Cards, etc) from tabs."""
    extraction_command(
        ctx,
        MetadataRequest(),
        Selection(FilterSpec(url_pattern, search), active_only),
        fmt,
        clipboard,
        lambda report: f"✓ Copied metadata from {len(report.results)} tab(s) to clipboard",
    )


@cli.command()
@format_option()
@active_only_option
@clipboard_option
@filter_option
@search_option
@click.pass_context
def readability(
    ctx: click.Context,
    fmt: str,
    active_only: bool,
    clipboard: bool,
    url_pattern: Optional[str],
    search: Optional[str],
) -> None:
    """Extract main article content."""
    extraction_command(
        ctx,
        ReadabilityRequest(),
        Selection(FilterSpec(url_pattern, search), active_only),
        fmt,
        clipboard,
        lambda report: f"✓ Copied article content from {len(report.results)} tab(s) to clipboard",
    )


@cli.command()
@click.option(
    "-f",
    "--format",
    "style",
    type=click.Choice([style.value for style in CitationStyle]),
    default="markdown",
    show_default=True,
    help="Citation format",
)
@click.option("--all-tabs", is_flag=True, help="Cite every matching tab instead of the active one")
@clipboard_option
@filter_option
@search_option
@click.pass_context
def cite(
    ctx: click.Context,
    style: str,
    all_tabs: bool,
    clipboard: bool,
    url_pattern: Optional[str],
    search: Optional[str],
) -> None:
    """Generate a citation for the active tab."""
    selection = Selection(FilterSpec(url_pattern, search), active_only=not all_tabs)
    run_async(ctx, lambda pipeline: pipeline.cite(selection, CitationStyle(style), clipboard=clipboard))
    if clipboard:
        notify("✓ Copied citation to clipboard")


# --- AI ---


def ai_command(
    ctx: click.Context,
    request: PromptRequest,
    all_tabs: bool,
    url_pattern: Optional[str],
    search: Optional[str],
    fmt: str,
    clipboard: bool,
    confirmation: str,
    progress: str,
) -> None:
    status(progress)
    extraction_command(
        ctx,
        request,
        Selection(FilterSpec(url_pattern, search), active_only=not all_tabs),
        fmt,
        clipboard,
        lambda report: confirmation,
    )


@cli.command()
@ai_options
@click.pass_context
def summarize(
    ctx: click.Context,
    all_tabs: bool,
    url_pattern: Optional[str],
    search: Optional[str],
    clipboard: bool,
    fmt: str,
    model: Optional[str],
    temperature: Optional[float],
    max_tokens: Optional[int],
) -> None:
    """Summarize page content using Claude."""
    request = PromptRequest(model=model, temperature=temperature, max_tokens=max_tokens)
    ai_command(
        ctx,
        request,
        all_tabs,
        url_pattern,
        search,
        fmt,
        clipboard,
        confirmation="✓ Copied summary to clipboard",
        progress="Summarizing with Claude...",
    )


@cli.command()
@click.argument("question")
@ai_options
@click.pass_context
def ask(
    ctx: click.Context,
    question: str,
    all_tabs: bool,
    url_pattern: Optional[str],
    search: Optional[str],
    clipboard: bool,
    fmt: str,
    model: Optional[str],
    temperature: Optional[float],
    max_tokens: Optional[int],
) -> None:
    """Ask a question about the page content using Claude."""
    request = PromptRequest(question=question, model=model, temperature=temperature, max_tokens=max_tokens)
    ai_command(
        ctx,
        request,
        all_tabs,
        url_pattern,
        search,
        fmt,
        clipboard,
        confirmation="✓ Copied answer to clipboard",
        progress="Asking Claude...",
    )


@cli.command()
@click.argument("template")
@ai_options
@click.pass_context
def prompt(
    ctx: click.Context,
    template: str,
    all_tabs: bool,
    url_pattern: Optional[str],
    search: Optional[str],
    clipboard: bool,
    fmt: str,
    model: Optional[str],
    temperature: Optional[float],
    max_tokens: Optional[int],
) -> None:
    """Apply a stored prompt template to page content."""
    request = PromptRequest(template_name=template, model=model, temperature=temperature, max_tokens=max_tokens)
    ai_command(
        ctx,
        request,
        all_tabs,
        url_pattern,
        search,
        fmt,
        clipboard,
        confirmation="✓ Copied result to clipboard",
        progress=f"Applying prompt template '{template}'...",
    )


# --- Configuration ---


@cli.group("config")
def config_group() -> None:
    """Manage tabnab configuration."""


def _prompt_store(ctx: click.Context) -> PromptStore:
    return PromptStore(ctx.obj["config"].prompts_dir)


@config_group.command("set-api-key")
@click.argument("key")
@click.pass_context
def set_api_key(ctx: click.Context, key: str) -> None:
    """Set the Anthropic API key."""
    try:
        path = save_api_key(key, ctx.obj["config_path"])
    except OSError as e:
        fail(f"Could not save API key: {e}")
    logger.info("API key saved", path=str(path))
    click.echo("✓ API key saved")


@config_group.command("get-api-key")
@click.pass_context
def get_api_key(ctx: click.Context) -> None:
    """Show the current API key (masked)."""
    key = ctx.obj["config"].ai.resolve_api_key()
    if key:
        click.echo(f"Current API key: {mask_api_key(key)}")
    else:
        click.echo("No API key set")


@config_group.command("init-prompts")
@click.pass_context
def init_prompts(ctx: click.Context) -> None:
    """Initialize the default prompt templates."""
    store = _prompt_store(ctx)
    try:
        created = store.initialize_defaults()
    except (TabnabError, OSError) as e:
        fail(str(e))
    logger.info("Default prompts initialized", created=created)
    click.echo(f"✓ Initialized default prompts in {store.directory}")


@config_group.command("list-prompts")
@click.pass_context
def list_prompts(ctx: click.Context) -> None:
    """List all available prompt templates."""
    prompts = _prompt_store(ctx).list_prompts()
    if not prompts:
        click.echo("No prompts found. Run 'tabnab config init-prompts' to create defaults.")
        return

    lines: List[str] = ["Available prompt templates:", ""]
    for template in prompts:
        lines.extend([f"  {template.name}", f"    {template.description}", ""])
    click.echo("\n".join(lines))


@config_group.command("show-prompt")
@click.argument("name")
@click.pass_context
def show_prompt(ctx: click.Context, name: str) -> None:
    """Show a prompt template."""
    try:
        template = _prompt_store(ctx).require(name)
    except TabnabError as e:
        fail(str(e))
    click.echo(json.dumps(template.to_json(), indent=2, ensure_ascii=False))


@config_group.command("delete-prompt")
@click.argument("name")
@click.pass_context
def delete_prompt(ctx: click.Context, name: str) -> None:
    """Delete a prompt template."""
    try:
        if not _prompt_store(ctx).delete(name):
            raise TemplateNotFoundError(name)
    except TabnabError as e:
        fail(str(e))
    click.echo(f"✓ Deleted prompt '{name}'")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
