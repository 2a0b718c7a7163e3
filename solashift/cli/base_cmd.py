# solashift/cli/base_cmd.py

"""
Base setup for CLI commands: configuration loading and logging initialization.
"""

import logging
import sys
from pathlib import Path

import click

from solashift.config import load_configuration, SolashiftConfig
from solashift.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


class ConfigGroup(click.Group):
    """
    A Click Group that loads configuration and sets up logging before
    invoking its subcommands. The config is passed via ``ctx.obj['config']``.
    """
    def invoke(self, ctx: click.Context):
        if ctx.obj is None:
            ctx.obj = {}

        try:
            if 'config' not in ctx.obj:
                config_file = ctx.params.get('config_file')
                config = load_configuration(config_files=[Path(config_file)] if config_file else None)
                ctx.obj['config'] = config

                verbosity = -1 if ctx.params.get('quiet') else ctx.params.get('verbose', 0)
                setup_logging(config, verbosity)
                logger.debug("Logging setup complete in ConfigGroup.")
            else:
                logger.debug("Configuration already loaded in context.")
        except Exception as e:
            logging.getLogger("solashift.error").critical(f"Critical error during CLI setup: {e!r}", exc_info=True)
            print(f"CRITICAL SETUP ERROR: {e!r}", file=sys.stderr)
            ctx.exit(1)

        # Errors raised by commands propagate to Click
        return super().invoke(ctx)


def get_config(ctx: click.Context) -> SolashiftConfig:
    """Returns the configuration loaded by ConfigGroup, or defaults."""
    obj = ctx.find_root().obj
    if isinstance(obj, dict) and 'config' in obj:
        return obj['config']
    logger.debug("No configuration in context; using defaults.")
    return SolashiftConfig()


# --- Common CLI Options ---
verbose_option = click.option(
    '-v', '--verbose',
    count=True,
    help="Increase verbosity level (-v for INFO, -vv for DEBUG)."
)
quiet_option = click.option(
    '-q', '--quiet',
    is_flag=True,
    default=False,
    help="Suppress all console output except critical errors."
)
config_option = click.option(
    '-c', '--config', 'config_file',
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Additional TOML configuration file."
)
scale_option = click.option(
    '-s', '--scale', type=float, default=None,
    help="Time scale factor (>1 faster tempo, <1 slower tempo). Defaults to the configured value."
)
