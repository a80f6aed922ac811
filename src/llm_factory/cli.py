import asyncio
import json

import click

from . import __version__
from .exceptions import LLMFactoryError
from .factory import LLMFactory
from .finops import calculate_cost
from .telemetry import setup_logging


def get_version():
    return __version__


async def run_generation(factory, models, prompt, retries, stream, temperature, max_tokens):
    params = {"model": list(models), "prompt": prompt, "temperature": temperature, "max_tokens": max_tokens}
    if retries is not None:
        params["retries"] = retries

    if not stream:
        result = await factory.generate(**params)
        click.echo(result.text)
        return result.metadata

    handle = factory.generate_stream(**params)
    async for chunk in handle:
        click.echo(chunk, nl=False)
    click.echo()
    return await handle.get_metadata()


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL")
def cli(log_level):
    setup_logging(level=log_level)


@cli.command()
@click.option("--format", default="text", type=click.Choice(["text", "json"]))
def version(format):
    if format == "json":
        click.echo(json.dumps({"version": get_version()}))
    else:
        click.echo(f"v{get_version()}")


@cli.command()
@click.option("--format", default="text", type=click.Choice(["text", "json"]))
def models(format):
    """List supported models, their provider and whether they can be served."""
    factory = LLMFactory()
    rows = [
        {
            "model": model,
            "provider": factory.router.provider_name_for(model),
            "available": factory.router.is_available(model),
        }
        for model in factory.supported_models()
    ]
    if format == "json":
        click.echo(json.dumps(rows))
        return
    for row in rows:
        status = "available" if row["available"] else "unavailable"
        click.echo(f"{row['model']:<32} {row['provider']:<10} {status}")


@cli.command()
@click.argument("model")
@click.argument("input_tokens", type=click.IntRange(min=0))
@click.argument("output_tokens", type=click.IntRange(min=0))
def cost(model, input_tokens, output_tokens):
    """Estimate the cost in USD of a generation."""
    try:
        value = calculate_cost(model, input_tokens, output_tokens)
    except LLMFactoryError as e:
        raise click.ClickException(e.message)
    click.echo(f"${value:.6f}")


@cli.command()
@click.argument("prompt")
@click.option("-m", "--model", "models", multiple=True, required=True, help="Candidate model, in order")
@click.option("--retries", type=click.IntRange(min=1), default=None, help="Attempts per candidate")
@click.option("--stream", is_flag=True)
@click.option("--temperature", type=click.FloatRange(0, 2), default=None)
@click.option("--max-tokens", type=click.IntRange(min=1), default=None)
def generate(prompt, models, retries, stream, temperature, max_tokens):
    """Generate a response, falling back across the given models."""
    factory = LLMFactory()
    try:
        metadata = asyncio.run(
            run_generation(factory, models, prompt, retries, stream, temperature, max_tokens)
        )
    except LLMFactoryError as e:
        raise click.ClickException(e.message)
    click.echo(
        f"[{metadata.model}] input={metadata.input_tokens} output={metadata.output_tokens} "
        f"cost=${metadata.cost:.6f}",
        err=True,
    )


if __name__ == "__main__":
    cli()
