"""CLI interface for sk-reliability"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import click
import httpx

from sk_reliability.domain.backoff import decide
from sk_reliability.domain.config.retry import RetryConfig
from sk_reliability.domain.models.attempt import AttemptOutcome, describe_status
from sk_reliability.infrastructure.config.config_manager import ConfigManager
from sk_reliability.infrastructure.connectors.base import (
    AIConnector,
    AIServiceError,
    ImageGenerationConnector,
    TextCompletionConnector,
)
from sk_reliability.infrastructure.connectors.factory import ConnectorFactory
from sk_reliability.infrastructure.http_client import DefaultRetryTransportFactory, create_async_client

logger = logging.getLogger(__name__)

DEMO_URL = "http://retry-demo.invalid/"


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)
    # Keep httpx/httpcore chatter out of the retry logs unless asked for
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


def _load_config(ctx: click.Context) -> ConfigManager:
    try:
        return ConfigManager(config_path=ctx.obj.get("config_path"))
    except Exception as e:
        _die(str(e), verbose=ctx.obj.get("verbose", False), exc=e)


def _create_connector_config(config_manager: ConfigManager) -> dict:
    """Create connector configuration dictionary (connector + retry fields)"""
    connector_config = config_manager.get_connector_config()
    retry_config = config_manager.get_retry_config()

    config = connector_config.model_dump(exclude={"provider"}, exclude_none=True)
    config.update(retry_config.model_dump())
    return config


def _create_connector(
    config_manager: ConfigManager,
    provider_override: Optional[str],
    verbose: bool,
) -> AIConnector:
    provider = provider_override or config_manager.get_connector_config().provider
    logger.info(f"Using connector: {provider}")
    try:
        return ConnectorFactory.create(provider, _create_connector_config(config_manager))
    except ValueError as e:
        _die(str(e), verbose=verbose, exc=e)


def format_schedule(config: RetryConfig, status_code: int) -> list:
    """Describe, attempt by attempt, what happens when every attempt returns ``status_code``"""
    lines = []
    for attempt in range(1, config.max_attempts + 1):
        outcome = AttemptOutcome(attempt_number=attempt, succeeded=False, status_code=status_code)
        decision = decide(config, outcome)
        if decision.should_retry:
            lines.append(f"attempt {attempt}: {outcome.reason} -> retry after {decision.delay * 1000:.0f}ms")
        else:
            lines.append(f"attempt {attempt}: {outcome.reason} -> return to caller")
            break
    return lines


async def run_demo(config: RetryConfig, status_code: int) -> httpx.Response:
    """Send one request to an in-process backend that always answers ``status_code``"""
    backend = httpx.MockTransport(lambda request: httpx.Response(status_code))
    factory = DefaultRetryTransportFactory(config)
    async with create_async_client(factory, transport=backend) as client:
        return await client.get(DEMO_URL)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .sk-reliability.yml config file",
)
@click.pass_context
def cli(ctx, verbose: bool, config: Path):
    """sk-reliability - retrying HTTP layer for AI backends"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


@cli.command()
@click.option("--status", "status_code", type=int, default=429, show_default=True,
              help="Status code every attempt is assumed to return")
@click.pass_context
def schedule(ctx, status_code: int):
    """Show the retry schedule of the configured policy."""
    retry_config = _load_config(ctx).get_retry_config()
    click.echo(
        f"Strategy: {retry_config.backoff_strategy.value}, "
        f"max attempts: {retry_config.max_attempts}, "
        f"retryable: {sorted(retry_config.retryable_status_codes)}"
    )
    for line in format_schedule(retry_config, status_code):
        click.echo(line)


@cli.command()
@click.argument("prompt", type=str)
@click.option("--provider", type=str, help="Connector to use (mock, openai, vllm). Overrides config.")
@click.pass_context
def complete(ctx, prompt: str, provider: str):
    """Complete PROMPT with the configured AI backend."""
    verbose = ctx.obj.get("verbose", False)
    connector = _create_connector(_load_config(ctx), provider, verbose)
    if not isinstance(connector, TextCompletionConnector):
        _die(f"Connector {type(connector).__name__} does not support text completion")

    try:
        click.echo(asyncio.run(connector.complete(prompt)))
    except AIServiceError as e:
        _die(f"Completion failed: {e}", verbose=verbose, exc=e)


@cli.command()
@click.argument("description", type=str)
@click.option("--provider", type=str, help="Connector to use (mock, huggingface). Overrides config.")
@click.option("--width", type=int, default=512, show_default=True)
@click.option("--height", type=int, default=512, show_default=True)
@click.pass_context
def image(ctx, description: str, provider: str, width: int, height: int):
    """Generate an image for DESCRIPTION and print it as a data URI."""
    verbose = ctx.obj.get("verbose", False)
    connector = _create_connector(_load_config(ctx), provider, verbose)
    if not isinstance(connector, ImageGenerationConnector):
        _die(f"Connector {type(connector).__name__} does not support image generation")

    try:
        click.echo(asyncio.run(connector.generate_image(description, width, height)))
    except AIServiceError as e:
        _die(f"Image generation failed: {e}", verbose=verbose, exc=e)


@cli.command()
@click.option("--status", "status_code", type=int, default=401, show_default=True,
              help="Status code the demo backend always answers")
@click.option("--attempts", type=click.IntRange(min=1), help="Override max attempts")
@click.option("--base-delay", type=click.FloatRange(min=0.0), help="Override base delay (seconds)")
@click.pass_context
def demo(ctx, status_code: int, attempts: Optional[int], base_delay: Optional[float]):
    """Run the retry loop against a backend that always fails.

    The demo status is added to the retryable set, so the default 401 shows a
    full retry sequence even though 401 is not retryable in production.
    """
    retry_config = _load_config(ctx).get_retry_config()
    updates = {"retryable_status_codes": retry_config.retryable_status_codes | {status_code}}
    if attempts is not None:
        updates["max_attempts"] = attempts
    if base_delay is not None:
        updates["base_delay"] = base_delay
        updates["max_delay"] = max(retry_config.max_delay, base_delay)
    demo_config = RetryConfig(**{**retry_config.model_dump(), **updates})

    response = asyncio.run(run_demo(demo_config, status_code))
    click.echo(f"Final response: {describe_status(response.status_code)}")


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
