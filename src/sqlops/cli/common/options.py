"""Common CLI options for the CLI."""

import typer

ProjectOpt = typer.Option(
    None,
    "--project",
    "-p",
    help="Project ID (defaults to the gcloud configured project)",
)

OutputOpt = typer.Option(
    "table",
    "--output",
    "-o",
    help="Output format: table or json (one JSON document per line)",
)

TimeoutOpt = typer.Option(
    None,
    "--timeout",
    help="Stop waiting after this many seconds (the remote operation keeps running)",
    min=1,
)

ForceOpt = typer.Option(
    False,
    "--force",
    "-f",
    help="Skip the confirmation prompt",
)

DryRunOpt = typer.Option(
    False,
    "--dry-run",
    help="Show what would be deleted, but don't delete anything",
)

FilterOpt = typer.Option(
    None,
    "--filter",
    help="Server-side filter expression (e.g. 'settings.userLabels.env:prod')",
)

MaxResultsOpt = typer.Option(
    None,
    "--max-results",
    help="Page size requested from the API",
)

VerboseOpt = typer.Option(
    False,
    "--verbose",
    "-v",
    help="Log API calls and poll results",
)
