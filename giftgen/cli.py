# cli.py - Command line interface for giftgen
"""
giftgen CLI - Generate a Moodle GIFT quiz from documents with Gemini

USAGE:
    giftgen [OPTIONS] [FILES]...

EXAMPLES:
    giftgen --files file1.pdf file2.docx --num-questions 10
    giftgen --interactive --files a.pdf --num-questions 5 --files b.txt c.md
    giftgen --prompt "Generate 7 C++ questions" --num-questions 7
    giftgen --quiet --gemini-api-key abc123 --output quiz.gift --files ../docs/*.pdf

ENVIRONMENT:
    GEMINI_API_KEY          API key for Google Gemini (if --gemini-api-key not used)
    GIFTGEN_MODEL           Model id or alias (flash, pro)
    GIFTGEN_BASE_URL        API root URL
    GIFTGEN_BATCH_TIMEOUT   Seconds allowed for each upload/delete batch

Note: If --prompt and --num-questions specify different numbers, results may
be unpredictable.
"""

import sys
from collections import Counter
from typing import Iterator, List, Optional, Sequence

import click

from giftgen import __version__
from giftgen.config_utils import get_config
from giftgen.envelope import ErrorEnvelope
from giftgen.errors import GiftGenError, no_input_error
from giftgen.icons import QUIZ, RETRY
from giftgen.log_utils import setup_logging
from giftgen.pipeline import run_quiz_pipeline


EPILOG = """\b
Examples:
  giftgen --files file1.pdf file2.docx --num-questions 10
  giftgen --interactive --files a.pdf --num-questions 5 --files b.txt c.md
  giftgen --prompt "Generate 7 C++ questions" --num-questions 7
  giftgen --quiet --output quiz.gift --files ../docs/*.pdf

\b
Environment:
  GEMINI_API_KEY  API key for Google Gemini (if --gemini-api-key not used)
"""

FILE_PATH = click.Path(exists=True, dir_okay=False, readable=True)
RAW_ARGS_KEY = "giftgen.raw_args"


class OrderedFilesCommand(click.Command):
    """Command that keeps its raw arguments so file order can be restored."""

    def parse_args(self, ctx, args):
        ctx.meta[RAW_ARGS_KEY] = list(args)
        return super().parse_args(ctx, args)


def _file_tokens(token: str) -> Iterator[str]:
    """Values a raw argument may carry: bare path, --files=PATH or -fPATH."""
    yield token
    if token.startswith("--files="):
        yield token[len("--files="):]
    elif token.startswith("-f") and len(token) > 2:
        yield token[2:]


def files_in_command_line_order(files: Sequence[str], raw_args: Sequence[str]) -> List[str]:
    """
    Order parsed paths as they appeared on the command line.

    click collects --files values and positional FILES separately; this
    interleaves them again. Paths not found among raw_args keep their
    parsed order at the end.
    """
    remaining = Counter(files)
    ordered = []
    for token in raw_args:
        for value in _file_tokens(token):
            if remaining[value] > 0:
                remaining[value] -= 1
                ordered.append(value)
                break
    for value in files:
        if remaining[value] > 0:
            remaining[value] -= 1
            ordered.append(value)
    return ordered


# ============================================================================
# Operator decisions
# ============================================================================

def _confirm_retry(error: ErrorEnvelope) -> bool:
    """Ask whether to repeat the request after a service error."""
    return click.confirm(f"{RETRY} Try again?", default=False, err=True)


def _accept_output(gift_text: str) -> bool:
    """Show a generated quiz and ask whether to keep it."""
    click.echo()
    click.echo(gift_text)
    return click.confirm(f"{QUIZ} Is this output good enough?", default=False, err=True)


# ============================================================================
# Command
# ============================================================================

@click.command(cls=OrderedFilesCommand, epilog=EPILOG)
@click.argument('extra_files', nargs=-1, type=FILE_PATH, metavar='[FILES]...')
@click.option('--files', '-f', 'files', multiple=True, type=FILE_PATH,
              help='Files to process (can be used multiple times)')
@click.option('--num-questions', '-n', type=click.IntRange(min=1),
              help='Number of questions to generate (default: 5)')
@click.option('--output', '-o', type=click.Path(dir_okay=False),
              help='Write GIFT output to file instead of stdout')
@click.option('--interactive', is_flag=True,
              help='Show GIFT output and ask for approval before saving')
@click.option('--quiet', '-q', is_flag=True,
              help='Suppress non-error output (except interactive prompts and final GIFT output)')
@click.option('--verbose', '-v', is_flag=True, help='Show debug output and full error details')
@click.option('--prompt', 'custom_prompt', metavar='TEXT',
              help='Custom query prompt (default: generate N questions from the files)')
@click.option('--gemini-api-key', 'api_key', metavar='KEY', help='Google Gemini API key')
@click.option('--model', help='Gemini model id or alias: flash (default), pro')
@click.option('--max-attempts', type=click.IntRange(min=1),
              help='Give up after this many generation requests (default: unlimited)')
@click.option('--batch-timeout', type=click.FloatRange(min=0), metavar='SECONDS',
              help='Deadline for each parallel upload/delete batch (0 disables)')
@click.option('--explanations', is_flag=True,
              help='Add each explanation as GIFT general feedback')
@click.version_option(__version__, prog_name='giftgen')
@click.pass_context
def cli(
    ctx: click.Context,
    extra_files: tuple,
    files: tuple,
    num_questions: Optional[int],
    output: Optional[str],
    interactive: bool,
    quiet: bool,
    verbose: bool,
    custom_prompt: Optional[str],
    api_key: Optional[str],
    model: Optional[str],
    max_attempts: Optional[int],
    batch_timeout: Optional[float],
    explanations: bool,
):
    """
    Generate multiple choice questions from documents with Google Gemini
    and write them in Moodle's GIFT format.

    Files are uploaded in parallel, referenced in one generation request,
    and deleted from online storage afterwards.
    """
    setup_logging(quiet=quiet, verbose=verbose)

    all_files = files_in_command_line_order(
        list(files) + list(extra_files), ctx.meta.get(RAW_ARGS_KEY, [])
    )

    try:
        if not all_files and not custom_prompt:
            raise no_input_error()

        config = get_config(overrides={
            "api_key": api_key,
            "model": model,
            "num_questions": num_questions,
            "max_attempts": max_attempts,
            "batch_timeout": batch_timeout,
            "include_explanations": explanations or None,
        })

        run_quiz_pipeline(
            all_files,
            config,
            confirm_retry=_confirm_retry,
            accept_output=_accept_output,
            interactive=interactive,
            custom_prompt=custom_prompt,
            output_file=output,
        )
    except GiftGenError as e:
        if verbose:
            click.echo(e.format_message(), err=True)
        raise click.ClickException(e.message) from e


# ============================================================================
# Entry Point
# ============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    """
    Console entry point.

    Every failure, including usage errors, exits with status 1; --help and
    --version exit 0.
    """
    try:
        rv = cli.main(args=argv, prog_name='giftgen', standalone_mode=False)
    except click.ClickException as e:
        e.show()
        return 1
    except click.Abort:
        click.echo("Aborted!", err=True)
        return 1
    return rv if isinstance(rv, int) else 0


if __name__ == '__main__':
    sys.exit(main())
