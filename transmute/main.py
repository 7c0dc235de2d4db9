import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.markdown import Markdown
from rich.rule import Rule

from transmute import __version__
from transmute.config import Config
from transmute.core.exceptions import (
    FetchError,
    InvalidConfigurationError,
    InvalidInputError,
    RateLimitExceededError,
)
from transmute.core.orchestrator import Orchestrator
from transmute.plugins.media.handlers import MediaKind, MediaOptions
from transmute.plugins.templates import render_template, to_class_name, to_snake_case
from transmute.utils.console.logging import init_logging
from transmute.utils.pydantic_utils import ConfigFileError

app = typer.Typer(add_completion=False, pretty_exceptions_show_locals=False)


# Common cli options
opt_config_file: Optional[Path] = typer.Option(
    None,
    "--config",
    help="Path to the config file. Defaults to ~/.transmute/config.yaml when it exists",
)
opt_verbose: Optional[List[bool]] = typer.Option(
    [],
    "--verbose",
    "-v",
    help="Verbose output. You can pass multiple times to increase the verbosity. e.g. -v or -vv",
)


@app.command("make-transformer")
def make_transformer(
    name: str = typer.Argument(..., help="Transformer name, e.g. ArticleSummarizer"),
    output_dir: Path = typer.Option(
        Path("."), "--output-dir", "-o", help="Directory to write the transformer module to"
    ),
    prompt: str = typer.Option(
        "Transform the following content:", help="Default prompt of the transformer"
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
    verbose: Optional[List[bool]] = opt_verbose,
):
    """
    Create a new transformer class from a template
    """
    console = init_logging(verbose)
    class_name = to_class_name(name)
    if not class_name.isidentifier():
        console.print(f"[bold red]'{name}' is not a valid transformer name[/bold red]")
        raise typer.Exit(code=1)

    target = output_dir / f"{to_snake_case(class_name)}.py"
    if target.exists() and not force:
        console.print(
            f"[bold red]{target} already exists, use --force to overwrite it[/bold red]"
        )
        raise typer.Exit(code=1)

    source = render_template(
        "transformer.py.jinja2",
        {
            "class_name": class_name,
            "prompt": prompt,
            "description": f"{class_name} transformer.",
        },
    )
    output_dir.mkdir(parents=True, exist_ok=True)
    target.write_text(source, encoding="utf-8")
    logging.debug(f"Rendered transformer {class_name}")
    console.print(f"[bold green]Created transformer {class_name} in {target}[/bold green]")


@app.command()
def run(
    transformer: str = typer.Argument(
        ..., help="Registered transformer name or import path, e.g. myapp.transformers.Summarizer"
    ),
    text: Optional[str] = typer.Option(None, "--text", help="Text content to transform"),
    url: Optional[str] = typer.Option(None, "--url", help="URL to fetch and transform"),
    file: Optional[Path] = typer.Option(None, "--file", help="Local image or document"),
    media_type: MediaKind = typer.Option(
        MediaKind.DOCUMENT, "--media-type", help="How to send --file to the model"
    ),
    json_output: bool = typer.Option(False, "--json", help="Print the full result as JSON"),
    config_file: Optional[Path] = opt_config_file,
    verbose: Optional[List[bool]] = opt_verbose,
):
    """
    Run a transformer on text, a URL or a file and print the result
    """
    console = init_logging(verbose)

    sources = [source for source in (text, url, file) if source is not None]
    if len(sources) != 1:
        console.print("[bold red]Pass exactly one of --text, --url or --file[/bold red]")
        raise typer.Exit(code=1)

    try:
        config = Config.load_from_file(config_file)
    except ConfigFileError as e:
        console.print(f"[bold red]{e}[/bold red]")
        raise typer.Exit(code=1)

    orchestrator = Orchestrator(config).with_handler(transformer)
    try:
        if text is not None:
            orchestrator.with_text(text)
        elif url is not None:
            orchestrator.with_url(url)
        else:
            orchestrator.with_media(str(file), MediaOptions(type=media_type))
        result = orchestrator.run()
    except (FetchError, InvalidInputError, InvalidConfigurationError, RateLimitExceededError) as e:
        console.print(f"[bold red]{type(e).__name__}:[/bold red] {e}")
        raise typer.Exit(code=1)

    if json_output:
        console.print_json(result.to_json())
    elif result.is_successful():
        console.print(Rule())
        console.print(Markdown(result.data or ""))
        console.print(Rule())
    else:
        console.print("[bold red]Transformation failed:[/bold red]")
        for error in result.errors:
            console.print(f"  - {error}", markup=False)

    if not result.is_successful():
        raise typer.Exit(code=1)


@app.command()
def version() -> None:
    typer.echo(__version__)


def run_cli():
    if len(sys.argv) == 1:
        sys.argv.append("--help")
    app()


if __name__ == "__main__":
    run_cli()
