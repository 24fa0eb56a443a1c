# soapnotes/cli.py
"""Flask CLI commands for manual runs: ``flask soap <command>``."""
import json

import click
from flask import Flask, current_app
from flask.cli import AppGroup

from soapnotes.utils.identifiers import derive_doc_prefix, doc_name_prefix

soap_cli = AppGroup("soap", help="SOAP note processing commands.")


def _service():
    from soapnotes.api.triggers import get_soap_note_service

    return get_soap_note_service()


@soap_cli.command("process-latest")
def process_latest_cli():
    """Process the newest form response if it is not in the log yet."""
    try:
        outcome = _service().on_form_submit()
    except Exception as e:
        click.echo(f"❌ Error: {str(e)}")
        return
    click.echo(json.dumps(outcome.to_dict()))


@soap_cli.command("run-batch")
def run_batch_cli():
    """Process every row without an Upload Timestamp."""
    try:
        result = _service().run_batch()
    except Exception as e:
        click.echo(f"❌ Error: {str(e)}")
        return
    click.echo(json.dumps(result.to_dict(), indent=2))


@soap_cli.command("process-row")
@click.argument("row_number", type=int)
def process_row_cli(row_number):
    """Reprocess a single sheet row (1-based, header is row 1)."""
    try:
        outcome = _service().process_row(row_number)
    except Exception as e:
        click.echo(f"❌ Error: {str(e)}")
        return
    click.echo(json.dumps(outcome.to_dict()))


@soap_cli.command("derive-code")
@click.argument("job_code")
def derive_code_cli(job_code):
    """Show the client code and log name prefix for a Job Code."""
    code = derive_doc_prefix(job_code)
    click.echo(f"code: {code or '(none)'}")
    click.echo(f"prefix: {doc_name_prefix(job_code, current_app.soap_config.TARGET_DOC_NAME)}")


def register_cli_commands(app: Flask) -> None:
    app.cli.add_command(soap_cli)
