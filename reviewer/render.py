"""Rich console rendering for CLI output."""

from rich.console import Console
from rich.markup import escape
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich import box

from .config import REVIEW_MODEL
from .diff_types import PackResult, ReviewResult
from .schemas import ReviewComment

console = Console()

SEVERITY_STYLES = {
    "info": "cyan",
    "warning": "yellow",
    "error": "red",
}


def print_run_header(pr_url: str, diff_mode: str, token_limit: int):
    """Print what is about to be reviewed."""
    console.print()
    console.print(
        Panel(
            f"""[bold cyan]PR Reviewer[/bold cyan]

[dim]• Pull request: {escape(pr_url)}
• Diff mode: {diff_mode}
• Token limit: {token_limit:,}
• Model: {REVIEW_MODEL}[/dim]""",
            border_style="cyan",
            padding=(1, 2),
        )
    )
    console.print()


def print_prompt(prompt: PackResult, max_chars: int = 4000):
    """Print the packed prompt (dry runs)."""
    text = prompt.text
    if len(text) > max_chars:
        text = text[:max_chars] + "\n\n*... (truncated)*"
    console.print(
        Panel(
            Markdown(text),
            title=f"[bold white]Prompt[/bold white] [dim]({prompt.patches_used} patches, {prompt.patches_skipped} skipped)[/dim]",
            border_style="green",
            padding=(1, 2),
        )
    )


def print_comments(comments: list[ReviewComment]):
    """Print the model's comments as a table."""
    table = Table(box=box.ROUNDED, border_style="cyan")
    table.add_column("Severity")
    table.add_column("Location", style="cyan")
    table.add_column("Commit", style="dim")
    table.add_column("Comment")
    for c in comments:
        style = SEVERITY_STYLES.get(c.severity, "white")
        # Truncate long comments
        body = c.body[:120] + "..." if len(c.body) > 120 else c.body
        table.add_row(
            f"[{style}]{c.severity}[/{style}]",
            escape(f"{c.file}:{c.line} ({c.side.value})"),
            escape(c.sha[:7]),
            escape(body),
        )
    console.print(table)
    console.print()


def print_result(result: ReviewResult):
    """Print how many comments went where."""
    console.print(
        f"[green]Posted {result.review_comments} comments and requested "
        f"{result.review_changes} changes.[/green]"
    )
    if result.issue_comments:
        console.print(
            f"[yellow]{result.issue_comments} comments could not be placed inline "
            f"and were posted on the conversation.[/yellow]"
        )


def print_error(message: str):
    """Print an error message."""
    console.print(f"\n[red]Error: {escape(message)}[/red]")


def print_info(message: str):
    """Print an info message."""
    console.print(f"[dim]{escape(message)}[/dim]")
