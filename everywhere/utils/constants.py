"""Console symbols and column styles shared by the CLI commands."""

SYMBOLS = {
    "success": "[bold green]✓[/bold green] ",
    "error": "[bold red]![/bold red] ",
    "warning": "[bold yellow]⚠[/bold yellow] ",
    "loop": "[bold red]↻[/bold red] ",
    "info": "[bold blue]i[/bold blue] ",
}

# Table / tree columns
STYLE = {
    "node": "cyan",
    "input": "magenta",
    "broadcaster": "bold yellow",
}
