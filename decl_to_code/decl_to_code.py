import json
import logging
import sys
from pathlib import Path

import click

from .cli_utils import reconstruct_command_line
from .pipeline import CodeGeneratorConfig, GenerationError, OutputMode, PipelineGenerator
from .pipeline.declarations import SUPPORTED_TARGETS


@click.command()
@click.option("--config", "-c", default=None, type=click.Path(exists=True, resolve_path=True))
@click.option(
    "--target",
    "-t",
    default=None,
    type=click.Choice(SUPPORTED_TARGETS),
    help="Target language, overriding the document's \"target\" key",
)
@click.option("--force", "-f", is_flag=True, default=False, help="Overwrite existing output files")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log pipeline phases")
@click.argument("path", default=None, type=click.Path(exists=True, resolve_path=True))
@click.argument("output_dir", default=None, type=click.Path(file_okay=False, resolve_path=True))
def decl_to_code(config, target, force, verbose, path, output_dir):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    with open(path) as f:
        document = json.load(f)

    if config is not None:
        with open(config) as f:
            config = json.load(f)
            config = CodeGeneratorConfig.from_dict(config)
    else:
        config = CodeGeneratorConfig()

    # CLI flag overrides the config file
    if force:
        config.output.mode = OutputMode.FORCE

    if config.add_generation_comment:
        config.generation_comment = f"{config.generation_comment}\n{reconstruct_command_line(decl_to_code)}"

    generator = PipelineGenerator(target, config)
    try:
        result = generator.generate(document)
        if not result.ok:
            for error in result.errors:
                click.echo(f"error: {error}", err=True)
            sys.exit(1)
        written = generator.write(result, Path(output_dir))
    except (GenerationError, FileExistsError) as e:
        click.echo(f"error: {e}", err=True)
        sys.exit(1)

    for written_path in written:
        click.echo(str(written_path))
