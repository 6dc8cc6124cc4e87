"""Command-line interface for inline step injection.

Commands either speak the JSON request protocol used by hosts (`run`)
or work directly on files (`inject`, `validate`). Every command exits
with the exit code of its outcome: 0 on success, 1 on failed validation
or internal errors, 2 on malformed input.
"""

import logging
import sys
from json import dumps
from pathlib import Path
from typing import TYPE_CHECKING, Any

from click import Choice, File, argument, echo, group, option, pass_context
from click import Path as PathParam
from yaml import YAMLError, safe_load

from inline_steps.core import InlineInjector
from inline_steps.errors import InlineStepsError, InputError
from inline_steps.jsonschema import SchemaGenerator
from inline_steps.schema import ErrorResponse
from inline_steps.validation import format_report

if TYPE_CHECKING:
    from io import TextIOWrapper

    from click import Context

    from inline_steps.schema import InjectResponse

LOG_FORMAT = '%(levelname)s %(name)s: %(message)s'

InputFilepath = PathParam(
    exists=True,
    dir_okay=False,
    readable=True,
    path_type=Path,
)

OutputFilepath = PathParam(
    dir_okay=False,
    writable=True,
    path_type=Path,
)


def _injector(ctx: 'Context') -> InlineInjector:
    """Create an injector honoring the group options."""
    return InlineInjector(strict=ctx.obj.get('strict'))


def _load_spec(path: Path) -> Any:  # noqa: ANN401
    """Load a JSON or YAML test specification file.

    Raises:
        InputError: If the file is not valid YAML (JSON included).
    """
    try:
        return safe_load(path.read_text(encoding='utf-8'))

    except YAMLError as base:
        raise InputError(f'Invalid specification file {path}: {base}') from base


def _report_unmatched(response: 'InjectResponse') -> None:
    """Print unmatched steps to standard error."""
    for unmatched in response.unmatched_steps:
        for step in unmatched.steps:
            echo(
                f'Unmatched step {step.step_index + 1} ({step.action or "no action"}) '
                f'of test {unmatched.test_id or "<unnamed>"}, '
                f'suggested line {step.suggested_line}',
                err=True,
            )


@group(help='Bind structured test steps to documentation sources as inline statements.')
@option('-v', '--verbose', is_flag=True, help='Log pipeline details to standard error.')
@option('--strict/--no-strict', default=None, help='Raise on plugin loading issues.')
@pass_context
def cli(ctx: 'Context', verbose: bool, strict: bool | None) -> None:
    """Root CLI group for inline-steps tools."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format=LOG_FORMAT)

    ctx.ensure_object(dict)
    ctx.obj['strict'] = strict


@cli.command(
    name='run',
    help='Process one JSON request (inject or validate) and print the JSON response.',
)
@argument('request', type=File('r', encoding='utf-8'), default='-')
@pass_context
def run_request(ctx: 'Context', request: 'TextIOWrapper') -> None:
    """Handle a JSON request envelope."""
    try:
        injector = _injector(ctx)
    except InlineStepsError as error:
        response = ErrorResponse(error=error.message, exit_code=error.exit_code).dump()
    else:
        response = injector.handle(request.read())

    if formatted := response.get('formatted'):
        echo(formatted, err=True)

    echo(dumps(response, ensure_ascii=False))
    ctx.exit(response['exitCode'])


@cli.command(
    name='inject',
    help='Preview or apply inline statements for SPEC in SOURCE.',
)
@argument('spec', type=InputFilepath)
@argument('source', type=InputFilepath)
@option('--apply', is_flag=True, help='Write statements instead of printing a preview.')
@option(
    '--syntax',
    type=Choice(['json', 'yaml', 'xml', 'auto']),
    default=None,
    help='Payload syntax of inserted statements.',
)
@option(
    '--format-name',
    type=Choice(['htmlComment', 'jsxComment', 'xmlProcessingInstruction', 'asciidocComment']),
    default=None,
    help='Comment format overriding the one implied by the file extension.',
)
@option(
    '-o', '--output',
    type=OutputFilepath,
    default=None,
    help='Write the result to a file instead of standard output.',
)
@pass_context
def inject_file(ctx: 'Context', spec: Path, source: Path, apply: bool,
                syntax: str | None, format_name: str | None,
                output: Path | None) -> None:
    """Inject the steps of a specification file into a source file."""
    try:
        response = _injector(ctx).inject({
            'spec': _load_spec(spec),
            'sourceContent': source.read_text(encoding='utf-8'),
            'sourcePath': source.as_posix(),
            'options': {
                'apply': apply,
                'syntax': syntax,
                'commentFormat': format_name,
            },
        })

    except InlineStepsError as error:
        echo(str(error), err=True)
        ctx.exit(error.exit_code)

    _report_unmatched(response)

    if output is None:
        echo(response.result, nl=not response.result.endswith('\n'))
        return

    output.write_text(response.result, encoding='utf-8')


@cli.command(
    name='validate',
    help='Validate the test specification in SPEC.',
)
@argument('spec', type=InputFilepath)
@option(
    '--mode',
    type=Choice(['structural', 'schema', 'auto']),
    default=None,
    help='Validation variant.',
)
@option('--json', 'as_json', is_flag=True, help='Print the report as JSON.')
@pass_context
def validate_file(ctx: 'Context', spec: Path, mode: str | None, as_json: bool) -> None:
    """Validate a specification file."""
    try:
        report = _injector(ctx).validate({
            'action': 'validate',
            'spec': _load_spec(spec),
            'options': {'mode': mode},
        })

    except InlineStepsError as error:
        echo(str(error), err=True)
        ctx.exit(error.exit_code)

    if as_json:
        echo(dumps(report.dump(), ensure_ascii=False))
    else:
        echo(format_report(report))

    ctx.exit(report.exit_code)


@cli.command(
    name='schema',
    help='Print the JSON Schema of test specifications to standard output.',
)
def print_schema() -> None:
    """Generate and print the JSON Schema."""
    echo(SchemaGenerator.make_schema())


if __name__ == '__main__':
    cli()
