# Simple CLI for the AYN response guard
import json

import click
from pydantic import ValidationError

from core.config.settings import Settings
from core.logging import configure_logging, get_error_logger_safe, reset_logging
from core.utils.exceptions import (
    ConfigurationError,
    ContextSourceError,
    PermanentError,
    create_error_context,
)
from services.response_validator import ResponseValidator
from services.response_validator.context_builder import context_from_document


def _load_settings(log_level: str) -> Settings:
    try:
        settings = Settings()
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first["loc"])
        raise ConfigurationError(
            f"Invalid setting {field}: {first['msg']}",
            config_field=field,
            config_value=first.get("input"),
        ) from e
    # Keep stdout for the delivered text
    logging_settings = settings.logging.model_copy(
        update={"level": log_level.upper(), "console_stream": "stderr"}
    )
    return settings.model_copy(update={"logging": logging_settings})


def _read_context_document(context_file) -> dict:
    try:
        document = json.load(context_file)
    except json.JSONDecodeError as e:
        raise ContextSourceError(f"Context file is not valid JSON: {e}", source=context_file.name) from e
    if not isinstance(document, dict):
        raise ContextSourceError("Context file must hold a JSON object", source=context_file.name)
    return document


@click.group()
@click.option("--log-level", default="WARNING", show_default=True,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False))
@click.pass_context
def cli(ctx, log_level):
    """AYN response guard CLI"""
    try:
        settings = _load_settings(log_level)
    except ConfigurationError as e:
        raise click.ClickException(e.message)
    configure_logging(settings)
    ctx.call_on_close(reset_logging)
    ctx.obj = settings


@cli.command()
@click.argument("response_file", type=click.File("r", encoding="utf-8"))
@click.argument("context_file", type=click.File("r", encoding="utf-8"))
@click.option("--json", "as_json", is_flag=True, help="Print the full result as JSON")
@click.pass_obj
def validate(settings, response_file, context_file, as_json):
    """Validate RESPONSE_FILE against the account snapshot in CONTEXT_FILE.

    Exits 0 when the response is approved and 1 when it was replaced.
    """
    response_text = response_file.read()
    try:
        document = _read_context_document(context_file)
        validation_context = context_from_document(
            document, recent_trades_limit=settings.validator.recent_trades_limit
        )
    except PermanentError as e:
        get_error_logger_safe("cli").error(
            "Cannot build validation context", **create_error_context(e, "load_context")
        )
        raise click.ClickException(e.message)

    result = ResponseValidator(settings).validate(response_text, validation_context)

    if as_json:
        payload = result.model_dump(mode="json")
        payload["delivery_text"] = result.text_for_delivery(response_text)
        click.echo(json.dumps(payload, indent=2))
    else:
        click.echo(result.text_for_delivery(response_text))
        for violation in result.violations:
            click.echo(f"violation: {violation}", err=True)

    if not result.is_valid:
        click.get_current_context().exit(1)


@cli.command("show-config")
@click.pass_obj
def show_config(settings):
    """Print the effective validator settings"""
    click.echo(json.dumps(settings.validator.model_dump(mode="json"), indent=2))


if __name__ == "__main__":
    cli()
