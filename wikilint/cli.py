"""
Command-line interface for the wikilint solution.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import click
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from wikilint import __version__
from wikilint.analysis import PageAnalysis
from wikilint.checkers import CheckerRegistry, ALIASES
from wikilint.common import console, context_excerpt, setup_logging
from wikilint.config import (
    SUPPORTED_WIKIS,
    AnalysisConfig,
    get_wiki,
)
from wikilint.elements import ElementKind
from wikilint.models import ErrorLevel, Finding, Page

LEVEL_COLORS = {
    ErrorLevel.ERROR: "red",
    ErrorLevel.WARNING: "dark_orange",
    ErrorLevel.CORRECT: "green",
}


def print_banner():
    """Print application banner."""
    console.print(Panel.fit(
        f"[bold blue]wikilint[/bold blue] v{__version__}\n"
        "[dim]Wikitext analysis and automatic fixing[/dim]",
        border_style="blue",
    ))


def load_config(ctx) -> AnalysisConfig:
    """Build the configuration from the global options."""
    config_file = ctx.obj.get("config_file")
    config = AnalysisConfig.from_file(Path(config_file)) if config_file else AnalysisConfig.from_env()
    if ctx.obj.get("wiki"):
        config.wiki_code = ctx.obj["wiki"]
    return config


def load_page(path: str, title: Optional[str], config: AnalysisConfig) -> Tuple[Page, str]:
    """Read a wikitext file as the contents of a page."""
    file_path = Path(path)
    contents = file_path.read_text(encoding="utf-8")
    title = title or file_path.stem.replace("_", " ")
    return Page(title=title, namespace=config.wiki.get_namespace(title)), contents


def select_checkers(registry: CheckerRegistry, checker_ids: Tuple[int, ...]):
    """Get the requested checkers, all of them when none is requested."""
    if not checker_ids:
        return registry.get_all_checkers()
    return registry.get_checkers(checker_ids)


def print_findings(contents: str, findings: List[Finding]):
    """Print findings as a table."""
    if not findings:
        console.print("[green]No errors found[/green]")
        return

    table = Table(title=f"Findings ({len(findings)})")
    table.add_column("Checker", justify="right")
    table.add_column("Level")
    table.add_column("Span", justify="right")
    table.add_column("Context")
    table.add_column("Replacements")

    for finding in sorted(findings, key=lambda f: (f.begin_index, f.checker_id)):
        color = LEVEL_COLORS[finding.error_level]
        replacements = []
        for replacement in finding.replacements:
            marker = "*" if replacement.automatic else ("b" if replacement.automatic_bot else " ")
            replacements.append(f"{marker} {replacement.text or '(remove)'}")
        table.add_row(
            str(finding.checker_id),
            f"[{color}]{finding.error_level.value}[/{color}]",
            f"{finding.begin_index}-{finding.end_index}",
            escape(context_excerpt(contents, finding.begin_index, finding.end_index)),
            escape("\n".join(replacements)),
        )
    console.print(table)
    console.print("[dim]* automatic, b bot only[/dim]")


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--config", "config_file", type=click.Path(exists=True, dir_okay=False),
              help="JSON configuration file")
@click.option("--wiki", "-w", type=click.Choice(SUPPORTED_WIKIS), help="Target wiki")
@click.pass_context
def main(ctx, verbose: bool, quiet: bool, config_file: Optional[str], wiki: Optional[str]):
    """
    wikilint - Wikitext analysis tool.

    Detects wikitext errors and applies the safe automatic fixes.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["config_file"] = config_file
    ctx.obj["wiki"] = wiki

    # fix may print the fixed contents on stdout, so messages go to stderr
    console.stderr = ctx.invoked_subcommand == "fix"

    level = logging.DEBUG if verbose else (logging.WARNING if quiet else logging.INFO)
    setup_logging(level=level)

    if not quiet:
        print_banner()


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--title", "-t", help="Page title (default: file name)")
@click.option("--checker", "-c", "checker_ids", type=int, multiple=True,
              help="Checker to run (repeatable, default: all)")
@click.option("--highlight", "show_text", is_flag=True, help="Print the highlighted wikitext")
@click.pass_context
def analyze(ctx, file: str, title: Optional[str], checker_ids: Tuple[int, ...], show_text: bool):
    """
    Analyze a wikitext file: list its elements and errors.

    Examples:

        wikilint analyze Article.wiki

        wikilint --wiki fr analyze Article.wiki --highlight
    """
    from wikilint.highlight import highlight

    try:
        config = load_config(ctx)
        page, contents = load_page(file, title, config)
        analysis = PageAnalysis(page, contents, config.wiki)

        table = Table(title=f"Elements of {escape(page.title)}")
        table.add_column("Kind")
        table.add_column("Count", justify="right")
        for kind in ElementKind:
            table.add_row(kind.value, str(len(analysis.get_elements(kind))))
        console.print(table)

        registry = CheckerRegistry(config)
        findings: List[Finding] = []
        for checker in select_checkers(registry, checker_ids):
            checker.analyze(analysis, findings)
        print_findings(contents, findings)

        if show_text:
            console.print(highlight(analysis, findings))

    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        if ctx.obj.get("verbose"):
            console.print_exception()
        sys.exit(1)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--title", "-t", help="Page title (default: file name)")
@click.option("--checker", "-c", "checker_ids", type=int, multiple=True,
              help="Checker to run (repeatable, default: all)")
@click.option("--strict", is_flag=True, help="Exit with status 2 when errors are found")
@click.pass_context
def check(ctx, file: str, title: Optional[str], checker_ids: Tuple[int, ...], strict: bool):
    """
    Check a wikitext file for errors.

    Examples:

        wikilint check Article.wiki -c 524 -c 526

        wikilint -q check Article.wiki --strict
    """
    try:
        config = load_config(ctx)
        page, contents = load_page(file, title, config)
        analysis = PageAnalysis(page, contents, config.wiki)
        registry = CheckerRegistry(config)

        findings: List[Finding] = []
        for checker in select_checkers(registry, checker_ids):
            checker.analyze(analysis, findings)
        print_findings(contents, findings)

    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        if ctx.obj.get("verbose"):
            console.print_exception()
        sys.exit(1)

    if strict and any(f.error_level == ErrorLevel.ERROR for f in findings):
        sys.exit(2)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--title", "-t", help="Page title (default: file name)")
@click.option("--checker", "-c", "checker_ids", type=int, multiple=True,
              help="Checker to apply (repeatable, default: all)")
@click.option("--output", "-o", type=click.Path(dir_okay=False),
              help="Output file (default: print to stdout)")
@click.option("--in-place", is_flag=True, help="Overwrite the input file")
@click.option("--bot", is_flag=True, help="Apply bot replacements")
@click.pass_context
def fix(
    ctx,
    file: str,
    title: Optional[str],
    checker_ids: Tuple[int, ...],
    output: Optional[str],
    in_place: bool,
    bot: bool,
):
    """
    Apply automatic fixes to a wikitext file.

    Examples:

        wikilint -q fix Article.wiki > Fixed.wiki

        wikilint fix Article.wiki --in-place -c 524
    """
    from wikilint.fixer import run_fix_passes

    try:
        config = load_config(ctx)
        page, contents = load_page(file, title, config)
        registry = CheckerRegistry(config)
        result = run_fix_passes(
            page,
            contents,
            select_checkers(registry, checker_ids),
            wiki=config.wiki,
            bot=bot,
            max_passes=config.max_fix_passes,
        )
        if not result.success:
            raise RuntimeError(result.error or "fixing failed")

        target = file if in_place else output
        if target:
            Path(target).write_text(result.modified_content, encoding="utf-8")
            if result.changes_made:
                for change in result.changes_made:
                    console.print(f"  [green]+[/green] {change}")
                console.print(f"[green]Saved fixed contents to {target}[/green]")
            else:
                console.print("[yellow]No automatic fix available[/yellow]")
        else:
            click.echo(result.modified_content, nl=False)

    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        if ctx.obj.get("verbose"):
            console.print_exception()
        sys.exit(1)


@main.command()
@click.option("--category", help="Process the pages of a category")
@click.option("--depth", type=int, default=0, help="Subcategory depth for --category")
@click.option("--template", help="Process the pages transcluding a template")
@click.option("--namespace", "namespaces", type=int, multiple=True,
              help="Namespace of the pages for --template (repeatable, default: all)")
@click.option("--titles-file", type=click.Path(exists=True, dir_okay=False),
              help="File with page titles (one per line)")
@click.option("--special-list", is_flag=True, help="Process the pages listed by the checkers")
@click.option("--checker", "-c", "checker_ids", type=int, multiple=True,
              help="Checker to apply (repeatable, default: all)")
@click.option("--workers", type=int, help="Number of parallel page cycles")
@click.option("--limit", type=int, default=100, help="Maximum number of pages")
@click.option("--comment", help="Edit comment")
@click.option("--bot", is_flag=True, help="Apply bot replacements and mark edits as bot edits")
@click.option("--dry-run", is_flag=True, help="Show what would be done without saving")
@click.pass_context
def batch(
    ctx,
    category: Optional[str],
    depth: int,
    template: Optional[str],
    namespaces: Tuple[int, ...],
    titles_file: Optional[str],
    special_list: bool,
    checker_ids: Tuple[int, ...],
    workers: Optional[int],
    limit: int,
    comment: Optional[str],
    bot: bool,
    dry_run: bool,
):
    """
    Fix pages of a wiki in parallel.

    Examples:

        # Preview fixes for the pages of a category
        wikilint batch --category "Pages with duplicate arguments" -c 524 --dry-run

        # Fix the articles using a template
        wikilint batch --template "Infobox person" --namespace 0 -c 524

        # Fix pages listed by the checkers
        wikilint --config wikilint.json batch --special-list --bot
    """
    from wikilint.batch import BatchFixer, collect_titles
    from wikilint.provider import MediaWikiApiClient

    if not (category or template or titles_file or special_list):
        console.print(
            "[red]Error: one of --category, --template, --titles-file or --special-list is required[/red]"
        )
        sys.exit(1)

    try:
        config = load_config(ctx)
        if workers:
            config.max_workers = max(1, workers)
        if config.log_file:
            setup_logging(level=logging.getLogger("wikilint").level, log_file=config.log_file)

        registry = CheckerRegistry(config)
        checkers = select_checkers(registry, checker_ids)
        provider = MediaWikiApiClient(config)

        titles: List[str] = []
        if titles_file:
            with open(titles_file, encoding="utf-8") as f:
                titles.extend(line.strip() for line in f if line.strip())
        if category:
            titles.extend(provider.fetch_category_members(category, depth, limit))
        if template:
            titles.extend(provider.fetch_embedded_in(template, namespaces))
        if special_list:
            titles.extend(collect_titles(provider, checkers, limit))
        titles = list(dict.fromkeys(titles))[:limit]

        if not titles:
            console.print("[yellow]No page to process[/yellow]")
            return

        fixer = BatchFixer(provider, checkers, config)
        summary = fixer.run(titles, comment=comment, bot=bot, dry_run=dry_run)

        table = Table(title="Batch summary")
        table.add_column("Page")
        table.add_column("Status")
        table.add_column("Checkers")
        for result in sorted(summary.results, key=lambda r: r.title):
            table.add_row(
                escape(result.title),
                result.status,
                ", ".join(str(c) for c in result.fixed_checkers) or escape(result.error_message or ""),
            )
        console.print(table)
        console.print(
            f"[green]{summary.pages_saved} modified[/green], "
            f"{summary.pages_unchanged} unchanged, "
            f"[yellow]{summary.pages_unavailable} unavailable[/yellow], "
            f"[red]{summary.pages_failed} failed[/red]"
        )

    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        if ctx.obj.get("verbose"):
            console.print_exception()
        sys.exit(1)


@main.command(name="checkers")
@click.pass_context
def list_checkers(ctx):
    """
    List available checkers and their properties.
    """
    config = load_config(ctx)
    registry = CheckerRegistry(config)
    aliases = {}
    for alias, target in ALIASES.items():
        aliases.setdefault(target, []).append(str(alias))

    table = Table(title="Checkers")
    table.add_column("Id", justify="right")
    table.add_column("Name")
    table.add_column("Description")
    table.add_column("Aliases")
    table.add_column("Properties")
    for checker in registry.get_all_checkers():
        table.add_row(
            str(checker.CHECKER_ID),
            checker.CHECKER_NAME,
            checker.CHECKER_DESCRIPTION,
            ", ".join(aliases.get(checker.CHECKER_ID, [])),
            ", ".join(sorted(checker.get_parameters())),
        )
    console.print(table)


@main.command()
@click.pass_context
def wikis(ctx):
    """
    List supported wikis.
    """
    table = Table(title="Supported wikis")
    table.add_column("Code")
    table.add_column("Name")
    table.add_column("API")
    for code in SUPPORTED_WIKIS:
        wiki = get_wiki(code)
        table.add_row(code, wiki.name, wiki.api_url)
    console.print(table)


if __name__ == "__main__":
    main()
