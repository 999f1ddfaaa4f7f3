"""Command-line interface for the plcdiff textconv filter."""

import sys
import logging
import click

from .errors import PlcDiffError
from .textconv import textconv_file


@click.command()
@click.argument('input_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--show-context', is_flag=True,
              help='Prefix every line with its context label (for checking hunk headers)')
@click.option('--verbose', '-v', is_flag=True, help='Verbose diagnostics on stderr')
def textconv(input_file: str, show_context: bool, verbose: bool):
    """Convert a PLC project file to diff-friendly text on stdout.

    Meant to be used as a git textconv filter:

    \b
      git config diff.smbp.textconv plc-textconv
      git config diff.smbp.xfuncname '^### (.*)$'
    """
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)

    try:
        output = textconv_file(input_file, show_context=show_context)
    except PlcDiffError as e:
        click.echo(f"Error: {e}", err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)
    except Exception as e:
        click.echo(f"Internal error: {e}", err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)

    # Single write once the whole document converted
    click.echo(output.encode('utf-8'), nl=False)


def main():
    """Main entry point for the plc-textconv console script."""
    textconv()


if __name__ == '__main__':
    main()
