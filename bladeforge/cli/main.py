"""
BladeForge Command Line Interface

Applies the knife adjustment pipelines to document files and inspects
their layers.
"""

import asyncio
import json
from pathlib import Path
from typing import Optional

import click

from ..config import load_config, get_config_value
from ..io.document_file import DocumentFileError, load_document, save_document
from ..processing.candidates import guess_role_layer, list_candidates
from ..processing.orchestrator import KnifeAdjuster
from ..processing.presets import (
    BLADE, HANDLE, ROLE_ORDER, KNIFE_PIPELINES, KNIFE_SHADOW, DEFAULT_ROLE_KEYWORDS
)
from ..host.memory import InMemoryHistory
from ..utils.logging import setup_console_logging


def _load(path: str):
    try:
        return load_document(path)
    except DocumentFileError as e:
        raise click.ClickException(str(e))


def _keywords(config, role: str):
    return get_config_value(config, f'roles.{role}.keywords', DEFAULT_ROLE_KEYWORDS[role])


@click.group()
@click.option('--config', '-c', type=click.Path(exists=True, dir_okay=False),
              help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress non-error output')
@click.pass_context
def main(ctx, config: Optional[str] = None, verbose: bool = False, quiet: bool = False):
    """
    BladeForge - knife product shot adjustments

    Runs the blade and handle adjustment pipelines on a layered document
    and groups the result under a drop shadow, as a single undo step.
    """
    ctx.ensure_object(dict)

    ctx.obj['config'] = load_config(config)

    level = get_config_value(ctx.obj['config'], 'logging.level', 'INFO')
    if verbose:
        level = 'DEBUG'
    elif quiet:
        level = 'ERROR'
    setup_console_logging(level, color=get_config_value(ctx.obj['config'], 'logging.color', True))

    ctx.obj['verbose'] = verbose
    ctx.obj['quiet'] = quiet


@main.command()
@click.argument('document', type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def layers(ctx, document: str):
    """
    List the layers a pipeline can run on.

    DOCUMENT: YAML or JSON document description
    """
    config = ctx.obj['config']
    doc = _load(document)
    candidates = asyncio.run(list_candidates(doc))

    if not candidates:
        click.echo("No valid layers found")
        return

    guesses = {
        role: guess_role_layer(candidates, _keywords(config, role))
        for role in ROLE_ORDER
    }

    click.echo(f"Layers in '{doc.name}':")
    for layer in candidates:
        roles = [role for role, guess in guesses.items() if guess and guess.id == layer.id]
        marker = f"  <- {', '.join(roles)}" if roles else ""
        click.echo(f"  {layer.id:>5}  {layer.name} ({layer.kind.value}){marker}")


@main.command()
@click.argument('document', type=click.Path(exists=True, dir_okay=False))
@click.option('--blade', '-b', type=int, help='Blade layer id (guessed by name if omitted)')
@click.option('--handle', '-h', 'handle', type=int, help='Handle layer id (guessed by name if omitted)')
@click.option('--output', '-o', type=click.Path(dir_okay=False),
              help='Where to save the adjusted document (defaults to overwriting DOCUMENT)')
@click.option('--dry-run', is_flag=True, help='Run the pipeline without saving')
@click.option('--json', 'as_json', is_flag=True, help='Print the result as JSON')
@click.pass_context
def apply(ctx, document: str, blade: Optional[int] = None, handle: Optional[int] = None,
          output: Optional[str] = None, dry_run: bool = False, as_json: bool = False):
    """
    Apply the knife adjustments to a document.

    DOCUMENT: YAML or JSON document description
    """
    config = ctx.obj['config']
    quiet = ctx.obj['quiet']
    doc = _load(document)

    if blade is None or handle is None:
        candidates = asyncio.run(list_candidates(doc))
        if blade is None:
            guess = guess_role_layer(candidates, _keywords(config, BLADE))
            blade = guess.id if guess else None
        if handle is None:
            guess = guess_role_layer(candidates, _keywords(config, HANDLE))
            handle = guess.id if guess else None

    adjuster = KnifeAdjuster(doc, InMemoryHistory(doc), config)
    result = asyncio.run(adjuster.apply(blade, handle))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    elif result.success and not quiet:
        click.echo(f"✓ Adjusted blade layer {blade} and handle layer {handle}")
        for role, constructs in result.constructs.items():
            names = ", ".join(layer.name for layer in constructs) or "filters only"
            click.echo(f"  {role}: {names}")
        click.echo(f"  group: {result.group.name} (id {result.group.id})")

    if not result.success:
        if not as_json:
            click.echo(f"✗ {result.error_kind.value}: {result.detail}", err=True)
        ctx.exit(1)

    if dry_run:
        if not quiet and not as_json:
            click.echo("Dry run, document not saved")
        return

    target = Path(output) if output else Path(document)
    save_images = get_config_value(config, 'output.save_images', True)
    try:
        save_document(doc, target, save_images=save_images)
    except DocumentFileError as e:
        raise click.ClickException(str(e))

    if not quiet and not as_json:
        click.echo(f"Saved to {target}")


@main.command()
def pipeline():
    """Show the adjustment pipelines and the group shadow."""
    for role in ROLE_ORDER:
        click.echo(f"{role}:")
        for step, descriptor in enumerate(KNIFE_PIPELINES[role], 1):
            kind = "filter" if descriptor.is_filter else "adjustment layer"
            click.echo(f"  {step}. {descriptor.describe()} [{kind}]")

    shadow = KNIFE_SHADOW
    click.echo(
        f"group shadow: {shadow.blend_mode}, opacity {shadow.opacity:g}%, angle {shadow.angle:g}°, "
        f"distance {shadow.distance:g}px, spread {shadow.spread:g}%, size {shadow.size:g}px"
    )


if __name__ == '__main__':
    main()
