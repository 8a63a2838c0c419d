"""CLI interface for staticdeploy."""

import logging
import sys
from typing import Any

import click

from . import __version__
from .config import load_config
from .exceptions import DeployError
from .output import OutputFormatter, ProgressSink
from .sync import DeployEngine
from .utils import DEFAULT_CONFIG_PATH

logger = logging.getLogger(__name__)


def _describe(error: BaseException) -> str:
    """Join an error with its causes into one line."""
    parts = [str(error)]
    cause = error.__cause__
    while cause is not None:
        text = str(cause)
        if text and text not in parts[-1]:
            parts.append(text)
        cause = cause.__cause__
    return ": ".join(parts)


@click.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    help="Path to the configuration file (config.yml)",
)
@click.option(
    "--dry-run",
    "-dr",
    is_flag=True,
    help="Run without actually uploading or invalidating anything",
)
@click.option("--silent", "-s", is_flag=True, help="Omit all progress output")
@click.option(
    "--delta",
    "-d",
    is_flag=True,
    help="Only upload files that changed since the last deploy",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(__version__)
@click.pass_context
def main(
    ctx: Any,
    config_path: str,
    dry_run: bool,
    silent: bool,
    delta: bool,
    verbose: bool,
) -> None:
    """Upload a static site to S3 and invalidate its CloudFront paths."""
    # Configure logging based on verbose flag
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("staticdeploy").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)

    out = OutputFormatter(quiet=silent)
    sink = ProgressSink(None if silent else sys.stdout)

    try:
        config = load_config(config_path)
        engine = DeployEngine(config, sink, out)
        try:
            engine.deploy(dry_run=dry_run, delta=delta)
        finally:
            engine.close()
    except KeyboardInterrupt:
        out.error("Deploy cancelled by user")
        ctx.exit(130)  # Standard exit code for SIGINT
    except DeployError as e:
        logger.debug("Deploy failed", exc_info=True)
        out.error(_describe(e))
        ctx.exit(1)


if __name__ == "__main__":
    main()
