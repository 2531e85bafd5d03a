"""
cyonec - Cyone Compiler Command-Line Interface
==============================================

This module implements the command-line interface for the Cyone compiler.
It compiles a Cyone source file into Intel HEX records.

Usage Examples
--------------
Compile to stdout:
    $ cyonec lamp.cy

With output file:
    $ cyonec lamp.cy -o lamp.hex

Smaller records and no start record:
    $ cyonec --bytes-per-record 8 --start-record none lamp.cy

Inspect the front end:
    $ cyonec --tokens lamp.cy
    $ cyonec --ast lamp.cy

Verbose mode:
    $ cyonec -v lamp.cy -o lamp.hex
"""

import logging
import platform
from pathlib import Path
from typing import Optional

import click

from cyone import __version__
from cyone.compiler import CyoneCompiler, CompilerOptions
from cyone.compiler.ast import ASTPrinter
from cyone.cli.errors import handle_cli_exception


LICENSE_TEXT = """\
Copyright 2024 Isak Ruas

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License."""


def print_license(ctx: click.Context, param: click.Parameter, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    click.echo(LICENSE_TEXT)
    ctx.exit()


def print_info(ctx: click.Context, param: click.Parameter, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    click.echo(f"cyonec {__version__}")
    click.echo(f"Platform: {platform.system()} {platform.machine()}")
    ctx.exit()


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output HEX file (default: stdout)",
)
@click.option(
    "--bytes-per-record",
    type=click.IntRange(1, 255),
    default=16,
    show_default=True,
    help="Payload bytes per data record",
)
@click.option(
    "--start-record",
    type=click.Choice(["linear", "segment", "none"], case_sensitive=False),
    default="linear",
    show_default=True,
    help="Record written for the 'start' address",
)
@click.option(
    "--ast",
    is_flag=True,
    help="Print AST and exit (for debugging)",
)
@click.option(
    "--tokens",
    is_flag=True,
    help="Print token stream and exit (for debugging)",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write resolved symbol map to file",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.option(
    "--license",
    is_flag=True,
    callback=print_license,
    expose_value=False,
    is_eager=True,
    help="Show license and exit",
)
@click.option(
    "--info",
    is_flag=True,
    callback=print_info,
    expose_value=False,
    is_eager=True,
    help="Show version and platform information and exit",
)
@click.version_option(version=__version__, prog_name="cyonec")
def main(
    input_file: Path,
    output: Optional[Path],
    bytes_per_record: int,
    start_record: str,
    ast: bool,
    tokens: bool,
    symbols: Optional[Path],
    verbose: bool,
) -> None:
    """
    Compile a Cyone program to Intel HEX.

    INPUT_FILE is the Cyone source file to compile.

    \b
    Examples:
        cyonec lamp.cy                   # HEX to stdout
        cyonec lamp.cy -o lamp.hex       # Specify output file
        cyonec -s lamp.map lamp.cy       # Also write symbol map
        cyonec --ast lamp.cy             # Show parse tree

    \b
    Device functions:
        DRAW_LINE, DRAW_CIRCLE, SET_COLOR, DRAW_RECTANGLE
    """
    setup_logging(verbose)

    try:
        options = CompilerOptions(
            bytes_per_record=bytes_per_record,
            start_record=start_record,
        )

        if verbose:
            click.echo(f"Compiling {input_file}...", err=True)

        source = input_file.read_text(encoding="utf-8")
        result = CyoneCompiler(options).compile_source(source, str(input_file))

        # Token dump mode
        if tokens:
            if not result.tokens:
                raise result.error
            for token in result.tokens:
                click.echo(repr(token))
            return

        # AST dump mode
        if ast:
            if result.ast is None:
                raise result.error
            click.echo(ASTPrinter().print(result.ast))
            return

        if not result.success:
            raise result.error

        if symbols:
            symbols.write_text(result.image.symbols.format_map())
            if verbose:
                click.echo(f"Wrote symbols to {symbols}", err=True)

        if output is None:
            click.echo(result.hex_text, nl=False)
        else:
            output.write_text(result.hex_text)
            click.echo(f"Compiled {input_file} -> {output}")

        if verbose:
            image = result.image
            click.echo(f"Tokenized: {result.token_count} tokens", err=True)
            click.echo(
                f"Generated {image.size} bytes in {len(image.chunks)} blocks, "
                f"{len(result.lines)} records",
                err=True,
            )

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Compilation")


if __name__ == "__main__":
    main()
