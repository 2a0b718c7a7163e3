# solashift/cli/main.py

"""
Main entry point for the solashift CLI application.
Uses Click for command-line interface handling.
"""

import logging

import click

from solashift.version import __version__
from .base_cmd import ConfigGroup, config_option, quiet_option, verbose_option
from .sola_cmd import params_cmd, pitch_cmd, process_cmd, stretch_cmd

logger = logging.getLogger(__name__)

CONTEXT_SETTINGS = dict(help_option_names=['-h', '--help'])


@click.group(context_settings=CONTEXT_SETTINGS, cls=ConfigGroup)
@click.version_option(__version__, '-V', '--version', package_name='solashift', prog_name='solashift')
@verbose_option
@quiet_option
@config_option
@click.pass_context
def main_cli(ctx, verbose: int, quiet: bool, config_file):
    """
    solashift: SOLA time scaling and pitch shifting for mono 16-bit PCM.

    Configuration is loaded from:
    Defaults -> --config FILE -> ./solashift.toml -> ~/.config/solashift/solashift.toml -> Env Vars

    Use -v for verbose output, -vv for debug output, -q for quiet mode.
    """
    logger.debug(f"solashift CLI group invoked with subcommand '{ctx.invoked_subcommand}'.")


main_cli.add_command(params_cmd)
main_cli.add_command(stretch_cmd)
main_cli.add_command(pitch_cmd)
main_cli.add_command(process_cmd)

cli = main_cli

if __name__ == "__main__":
    cli()
