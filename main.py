import logging
from pathlib import Path
from typing import Callable, Dict, Optional

import typer
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from config import settings
from library import Library, LibraryError
from storage import StorageError
from utils.ui_helpers import set_output_mode, print_book_rows, print_stats_result
from utils.validators import TextValidator

APP_NAME = settings.app_name
EXIT_CHOICE = 6

console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)
logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Root logger setup; a no-op when handlers are already installed.

    An unknown LOG_LEVEL falls back to WARNING instead of aborting the command.
    """
    level_name = settings.effective_log_level
    level = logging.getLevelName(level_name)
    known = isinstance(level, int)
    logging.basicConfig(
        level=level if known else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not known:
        logger.warning("Unknown LOG_LEVEL %r, using WARNING", level_name)


# --- Persistence glue ---
def load_library(path: Path) -> Library:
    """Load the catalog, degrading to an empty one on any storage error."""
    try:
        return Library.load(path)
    except StorageError as e:
        logger.warning("Could not load %s: %s", path, e)
        err_console.print(f"[bold red]Error loading library: {escape(str(e))}. Starting with empty library.[/]")
        return Library()


def save_library(lib: Library, path: Path, announce: bool = True) -> bool:
    """Save the catalog and report the outcome. Never raises on storage errors."""
    try:
        lib.save(path)
    except StorageError as e:
        logger.warning("Could not save %s: %s", path, e)
        err_console.print(f"[bold red]Error saving data: {escape(str(e))}[/]")
        return False
    if announce:
        console.print(f"[green]Data saved to {escape(str(path))}[/]")
    return True


# --- Interactive menu ---
def _ask(label: str) -> str:
    return TextValidator.clean(Prompt.ask(label, console=console))


def _report_error(e: LibraryError) -> None:
    console.print(f"[red]{escape(str(e))}[/]")


def menu_add_book(lib: Library) -> None:
    title = _ask("Enter book title")
    author = _ask("Enter book author")
    if not TextValidator.all_present(title, author):
        console.print("[red]Error: Title and author cannot be empty![/]")
        return
    book = lib.add_book(title, author)
    console.print(f"[green]Book '{escape(book.title)}' by '{escape(book.author)}' added[/]")


def menu_add_user(lib: Library) -> None:
    name = _ask("Enter user name")
    if TextValidator.is_blank(name):
        console.print("[red]Error: Name cannot be empty![/]")
        return
    try:
        user = lib.add_user(name)
    except LibraryError as e:
        _report_error(e)
        return
    console.print(f"[green]User '{escape(user.name)}' added[/]")


def menu_issue_book(lib: Library) -> None:
    title = _ask("Enter book title to issue")
    user_name = _ask("Enter user name")
    if not TextValidator.all_present(title, user_name):
        console.print("[red]Error: Title and user name cannot be empty![/]")
        return
    try:
        lib.issue_book(title, user_name)
    except LibraryError as e:
        _report_error(e)
        return
    console.print(f"[green]Book '{escape(title)}' issued to user '{escape(user_name)}'[/]")


def menu_return_book(lib: Library) -> None:
    title = _ask("Enter book title to return")
    user_name = _ask("Enter user name")
    if not TextValidator.all_present(title, user_name):
        console.print("[red]Error: Title and user name cannot be empty![/]")
        return
    try:
        lib.return_book(title, user_name)
    except LibraryError as e:
        _report_error(e)
        return
    console.print(f"[green]Book '{escape(title)}' returned by user '{escape(user_name)}'[/]")


def menu_display_books(lib: Library) -> None:
    print_book_rows(lib.display_books())


MENU_ITEMS = [
    ("1", "Add Book", "➕"),
    ("2", "Add User", "👤"),
    ("3", "Issue Book", "📤"),
    ("4", "Return Book", "📥"),
    ("5", "Display Books", "📚"),
    ("6", "Exit", "🚪"),
]

MENU_ACTIONS: Dict[int, Callable[[Library], None]] = {
    1: menu_add_book,
    2: menu_add_user,
    3: menu_issue_book,
    4: menu_return_book,
    5: menu_display_books,
}


def render_menu() -> None:
    table = Table.grid(padding=(0, 2))
    table.add_column(justify="right", style="bold cyan", width=4)
    table.add_column(justify="left", style="white")
    for key, label, icon in MENU_ITEMS:
        table.add_row(f"[reverse]{key}[/]", f"{icon} {label}")

    console.print(Panel(
        table,
        title=APP_NAME,
        subtitle=f"v{settings.app_version}",
        border_style="cyan",
        box=box.HEAVY,
        padding=(0, 2),
    ))


def run_menu(lib: Library, path: Path) -> None:
    """Numbered menu loop. Exit (or end of input) saves the catalog to ``path``."""
    while True:
        render_menu()
        try:
            choice = TextValidator.parse_choice(Prompt.ask("Enter choice", console=console))
            if choice is None:
                console.print("[yellow]Invalid input! Please enter a number.[/]")
                continue
            if choice == EXIT_CHOICE:
                break
            action = MENU_ACTIONS.get(choice)
            if action is None:
                console.print("[yellow]Invalid choice! Please select 1–6.[/]")
                continue
            action(lib)
        except EOFError:
            console.print()
            break

    save_library(lib, path)
    console.print("Exiting...")


def run_shell(path: Path) -> None:
    lib = load_library(path)
    stats = lib.get_statistics()
    console.print(f"Library initialized with {stats['total_books']} books and {stats['total_users']} users")
    run_menu(lib, path)


# --- Typer CLI App ---
app = typer.Typer(help="Library catalog CLI", add_completion=False)


def _data_file(ctx: typer.Context) -> Path:
    return ctx.obj["data_file"]


def _load_or_exit(path: Path) -> Library:
    """Load for one-shot commands; a broken data file aborts instead of being overwritten."""
    try:
        return Library.load(path)
    except StorageError as e:
        logger.warning("Could not load %s: %s", path, e)
        err_console.print(f"[bold red]Error loading library: {escape(str(e))}[/]")
        raise typer.Exit(code=1)


def _run_update(ctx: typer.Context, operation: Callable[[Library], str]) -> None:
    path = _data_file(ctx)
    lib = _load_or_exit(path)
    try:
        message = operation(lib)
    except LibraryError as e:
        _report_error(e)
        raise typer.Exit(code=1)
    if not save_library(lib, path, announce=False):
        raise typer.Exit(code=1)
    console.print(f"[green]{escape(message)}[/]")


def _require(*values: str, message: str) -> None:
    if not TextValidator.all_present(*values):
        console.print(f"[red]{message}[/]")
        raise typer.Exit(code=1)


@app.callback(invoke_without_command=True)
def _global_options(
    ctx: typer.Context,
    data_file: Optional[Path] = typer.Option(
        None,
        "--data-file",
        "-f",
        help="Catalog JSON file (default: LIBRARY_DATA_FILE or library.json)",
    ),
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Listing format: plain | json | rich (default: plain)",
    ),
):
    """Library catalog. Without a command, starts the interactive menu."""
    configure_logging()
    if output and not set_output_mode(output):
        raise typer.BadParameter(f"Unknown output mode '{output}'", param_hint="--output")
    ctx.obj = {"data_file": data_file or Path(settings.data_file)}
    if ctx.invoked_subcommand is None:
        run_shell(ctx.obj["data_file"])


@app.command("menu")
def cli_menu(ctx: typer.Context):
    """Start the interactive menu."""
    run_shell(_data_file(ctx))


@app.command("list")
def cli_list(ctx: typer.Context):
    """List all books with their status."""
    lib = _load_or_exit(_data_file(ctx))
    print_book_rows(lib.display_books())


@app.command("add-book")
def cli_add_book(ctx: typer.Context, title: str, author: str):
    """Add a book."""
    title, author = TextValidator.clean(title), TextValidator.clean(author)
    _require(title, author, message="Error: Title and author cannot be empty!")

    def operation(lib: Library) -> str:
        book = lib.add_book(title, author)
        return f"Book '{book.title}' by '{book.author}' added"

    _run_update(ctx, operation)


@app.command("add-user")
def cli_add_user(ctx: typer.Context, name: str):
    """Register a user."""
    name = TextValidator.clean(name)
    _require(name, message="Error: Name cannot be empty!")

    def operation(lib: Library) -> str:
        user = lib.add_user(name)
        return f"User '{user.name}' added"

    _run_update(ctx, operation)


@app.command("issue")
def cli_issue(ctx: typer.Context, title: str, user: str):
    """Issue the first available copy of TITLE to USER."""
    title, user = TextValidator.clean(title), TextValidator.clean(user)
    _require(title, user, message="Error: Title and user name cannot be empty!")

    def operation(lib: Library) -> str:
        lib.issue_book(title, user)
        return f"Book '{title}' issued to user '{user}'"

    _run_update(ctx, operation)


@app.command("return")
def cli_return(ctx: typer.Context, title: str, user: str):
    """Return an issued copy of TITLE from USER."""
    title, user = TextValidator.clean(title), TextValidator.clean(user)
    _require(title, user, message="Error: Title and user name cannot be empty!")

    def operation(lib: Library) -> str:
        lib.return_book(title, user)
        return f"Book '{title}' returned by user '{user}'"

    _run_update(ctx, operation)


@app.command("stats")
def cli_stats(ctx: typer.Context):
    """Show catalog statistics."""
    lib = _load_or_exit(_data_file(ctx))
    print_stats_result(lib.get_statistics())


@app.command("check")
def cli_check(ctx: typer.Context):
    """Verify that book flags and user loans agree."""
    lib = _load_or_exit(_data_file(ctx))
    problems = lib.find_inconsistencies()
    if not problems:
        print("Catalog is consistent.")
        return
    print(f"Found {len(problems)} inconsistencies:")
    for problem in problems:
        print(f"- {problem}")
    raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
