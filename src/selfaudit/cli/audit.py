"""selfaudit - DApp security self-audit from the command line.

Normalizes generator markdown, scores findings and builds the
deterministic baseline from questionnaire answers.
"""

from __future__ import annotations

import json
from pathlib import Path

import click
from rich.console import Console

from .. import __version__

console = Console(stderr=True)

USER_TYPES = ["developer", "organization"]


def _config(project: str, overrides: dict | None = None) -> dict:
    from ..core.config import get_effective_config

    return get_effective_config(Path(project), cli_overrides=overrides)


def _print_warnings(config: dict, warnings: list[str]) -> None:
    if not config["output"].get("show_warnings", True):
        return
    for warning in warnings:
        console.print(f"  [yellow]WARN[/yellow] {warning}")


def _read_json(path: str, param: str):
    try:
        return json.loads(Path(path).read_text(encoding="utf-8-sig"))
    except (OSError, ValueError) as exc:
        raise click.BadParameter(f"{path} is not valid JSON ({exc})", param_hint=param) from None


def load_answers_file(path: str) -> dict[str, list[str]]:
    """Read answers JSON in any of the stored shapes.

    Accepts a plain ``{question: [options]}`` map (a bare string counts as a
    single option), a list of embedded ``{question, options}`` items, a list
    of ``{question, option_value}`` rows, or an audit record carrying
    ``developer_responses``/``organization_responses``.
    """
    from ..core.answers import responses_from_audit, responses_from_embedded, responses_from_rows

    data = _read_json(path, "ANSWERS")
    if isinstance(data, list):
        if any(isinstance(row, dict) and "option_value" in row for row in data):
            return responses_from_rows(data)
        return responses_from_embedded(data)
    if not isinstance(data, dict):
        raise click.BadParameter(f"{path} must hold an object or a list", param_hint="ANSWERS")
    if any(k in data for k in ("meta", "developer_responses", "organization_responses")):
        return responses_from_audit(data)

    responses: dict[str, list[str]] = {}
    for question, value in data.items():
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list):
            raise click.BadParameter(
                f"answer for {question!r} must be a string or a list", param_hint="ANSWERS"
            )
        responses[str(question)] = [str(v) for v in value]
    return responses


def _emit(text: str, output: str | None) -> None:
    if output:
        out_path = Path(output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text, encoding="utf-8")
        console.print(f"  [green]OK[/green] Wrote {out_path}")
    else:
        click.echo(text)


def _emit_analytics(built, output_format: str, output: str | None, project_name: str) -> None:
    from ..core.report import export_analytics_json, generate_risk_report

    if output_format == "json":
        if output:
            path = export_analytics_json(built, Path(output))
            console.print(f"  [green]OK[/green] Wrote {path}")
        else:
            click.echo(json.dumps(built.analytics.model_dump(mode="json"), indent=2, ensure_ascii=False))
        return
    _emit(generate_risk_report(built, project_name=project_name), output)


@click.group()
@click.version_option(__version__, prog_name="selfaudit")
def selfaudit_cli() -> None:
    """DApp security self-audit: validate, score and baseline."""


@selfaudit_cli.command()
@click.option("--project", "-p", type=click.Path(exists=True, file_okay=False), default=".")
@click.option("--name", "-n", type=str, help="Project name (defaults to the directory name)")
def init(project: str, name: str | None) -> None:
    """Create .selfaudit/config.yaml in a project."""
    from ..core.config import write_default_config

    path = write_default_config(Path(project), project_name=name or "")
    console.print(f"  [green]Initialized[/green] {path}")


@selfaudit_cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--project", "-p", type=click.Path(exists=True, file_okay=False), default=".")
@click.option("--write", "write_back", is_flag=True, help="Rewrite FILE in place")
def validate(file: str, project: str, write_back: bool) -> None:
    """Normalize generator markdown into the canonical audit layout."""
    from ..core.validator import validate_and_fix_markdown

    config = _config(project)
    path = Path(file)
    result = validate_and_fix_markdown(path.read_text(encoding="utf-8-sig"))
    _print_warnings(config, result.warnings)

    if write_back:
        path.write_text(result.output + "\n", encoding="utf-8")
        console.print(f"  [green]OK[/green] {path.name}: {len(result.warnings)} fix(es) applied")
    else:
        click.echo(result.output)


@selfaudit_cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--project", "-p", type=click.Path(exists=True, file_okay=False), default=".")
@click.option("--output-format", "-f", type=click.Choice(["markdown", "json"]))
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write to a file instead of stdout")
def score(file: str, project: str, output_format: str | None, output: str | None) -> None:
    """Score generator markdown (validated first) and print the risk register."""
    from ..core.analytics import build_analytics_from_markdown

    config = _config(project, {"output": {"format": output_format}} if output_format else None)
    built = build_analytics_from_markdown(Path(file).read_text(encoding="utf-8-sig"))
    _print_warnings(config, built.analytics.validation_warnings)
    _emit_analytics(built, config["output"]["format"], output, config["project"]["name"])


@selfaudit_cli.command()
@click.argument("answers", type=click.Path(exists=True, dir_okay=False))
@click.option("--project", "-p", type=click.Path(exists=True, file_okay=False), default=".")
@click.option("--user-type", "-u", type=click.Choice(USER_TYPES))
@click.option("--markdown", "-m", type=click.Path(exists=True, dir_okay=False),
              help="Generator markdown kept as narrative")
@click.option("--output-format", "-f", type=click.Choice(["markdown", "json"]))
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write to a file instead of stdout")
def baseline(
    answers: str,
    project: str,
    user_type: str | None,
    markdown: str | None,
    output_format: str | None,
    output: str | None,
) -> None:
    """Build deterministic findings from questionnaire answers and score them."""
    from ..core.analytics import build_analytics_deterministic, build_analytics_from_markdown
    from ..core.baseline import build_baseline_findings, control_coverage, evaluate_controls

    overrides: dict = {}
    if user_type:
        overrides["audit"] = {"user_type": user_type}
    if output_format:
        overrides["output"] = {"format": output_format}
    config = _config(project, overrides)
    kind = config["audit"]["user_type"]

    responses = load_answers_file(answers)
    narrative = Path(markdown).read_text(encoding="utf-8-sig") if markdown else ""
    coverage = control_coverage(evaluate_controls(responses))
    extras = {"user_type": kind, "coverage": coverage.model_dump(mode="json")}

    if config["analytics"]["mode"] == "markdown" and narrative.strip():
        built = build_analytics_from_markdown(narrative, extras=extras)
    else:
        findings = build_baseline_findings(responses, user_type=kind)
        built = build_analytics_deterministic(findings, narrative, extras=extras)

    _print_warnings(config, built.analytics.validation_warnings)
    console.print(
        f"  [dim]INFO[/dim] {coverage.matched}/{coverage.answered} answers matched controls, "
        f"{coverage.coverage_percent}% implemented"
    )
    _emit_analytics(built, config["output"]["format"], output, config["project"]["name"])


@selfaudit_cli.command()
@click.argument("answers", type=click.Path(exists=True, dir_okay=False))
@click.option("--project", "-p", type=click.Path(exists=True, file_okay=False), default=".")
@click.option("--user-type", "-u", type=click.Choice(USER_TYPES))
@click.option("--others", type=click.Path(exists=True, dir_okay=False),
              help='JSON map of question -> free text for "Others"')
@click.option("--system", "with_system", is_flag=True, help="Print the system prompt first")
def prompt(answers: str, project: str, user_type: str | None, others: str | None, with_system: bool) -> None:
    """Format answers into the generator prompt."""
    from ..core.prompt import SYSTEM_PROMPT, format_audit_responses
    from ..core.questions import load_questions

    config = _config(project, {"audit": {"user_type": user_type}} if user_type else None)
    kind = config["audit"]["user_type"]
    catalog = Path(config["_catalog_path"]) if config["_catalog_path"] else None
    try:
        questions = load_questions(kind, catalog)
    except ValueError as exc:
        raise click.UsageError(str(exc)) from None

    others_input = _read_json(others, "--others") if others else {}
    if not isinstance(others_input, dict):
        raise click.BadParameter("must hold a JSON object", param_hint="--others")

    text = format_audit_responses(
        load_answers_file(answers),
        others_input={str(k): str(v) for k, v in others_input.items()},
        user_type=kind,
        questions_in_order=questions,
    )
    if with_system:
        click.echo(SYSTEM_PROMPT)
        click.echo()
    click.echo(text)


def main() -> None:
    selfaudit_cli()


if __name__ == "__main__":
    main()
