import os
import json
from typing import List, Any, Dict, Optional
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.markup import escape

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIB_CLI_OUTPUT"
OUTPUT_MODES = {"plain", "json", "rich"}

_console = Console()

def set_output_mode(mode: str) -> bool:
    """Switch the output mode. Returns False (and keeps the current mode) for unknown values."""
    mode = (mode or "").lower().strip()
    if mode not in OUTPUT_MODES:
        return False
    os.environ[OUTPUT_MODE_ENV] = mode
    return True

def get_output_mode() -> str:
    mode = os.environ.get(OUTPUT_MODE_ENV, "plain").lower()
    return mode if mode in OUTPUT_MODES else "plain"

def print_book_rows(rows: Optional[List[Dict[str, Any]]]) -> None:
    """Print the catalog listing in the current output mode.
    - plain: 'Library Books:' then 'ID: .., Title: .., Author: .., Status: ..' lines
    - json: JSON array of the rows
    - rich: Rich table
    ``None`` means the catalog holds no books.
    """
    mode = get_output_mode()

    if rows is None:
        if mode == "json":
            print("[]")
        else:
            print("No books available.")
        return

    if mode == "json":
        print(json.dumps(rows, ensure_ascii=False))
    elif mode == "rich":
        table = Table(title="📚 Library Books", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True, justify="right")
        table.add_column("Title", style="white")
        table.add_column("Author", style="white")
        table.add_column("Status")
        for row in rows:
            style = "yellow" if row["status"] == "Issued" else "green"
            table.add_row(
                str(row["id"]),
                escape(row["title"]),
                escape(row["author"]),
                f"[{style}]{row['status']}[/]",
            )
        _console.print(table)
    else:
        print("\nLibrary Books:")
        for row in rows:
            print(f"ID: {row['id']}, Title: {row['title']}, Author: {row['author']}, Status: {row['status']}")

def print_stats_result(stats: Dict[str, Any]) -> None:
    """Print statistics in the current output mode.
    - plain: one 'Label: value' line per metric
    - json: JSON object
    - rich: Panel with the key metrics
    """
    mode = get_output_mode()

    labels = [
        ("total_books", "Total Books"),
        ("issued_books", "Issued Books"),
        ("available_books", "Available Books"),
        ("total_users", "Total Users"),
        ("active_loans", "Active Loans"),
    ]

    if mode == "json":
        print(json.dumps({key: stats.get(key, 0) for key, _ in labels}, ensure_ascii=False))
    elif mode == "rich":
        content = "\n".join(f"[bold]{label}:[/] {stats.get(key, 0)}" for key, label in labels)
        _console.print(Panel.fit(content, title="📊 Stats", border_style="blue"))
    else:
        for key, label in labels:
            print(f"{label}: {stats.get(key, 0)}")
