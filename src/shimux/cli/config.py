"""Configuration management commands."""
import click

from ..config import Config, dump_config_env, dump_config_toml, get_config

FORMAT_OPTION = click.option("--format", "output_format", type=click.Choice(["toml", "env"]),
                             default="toml", help="Output format")


def _render(config: Config, output_format: str) -> str:
    if output_format == "env":
        return dump_config_env(config)
    return dump_config_toml(config)


@click.group()
def config():
    """Configuration management commands."""
    pass


@config.command("show")
@FORMAT_OPTION
def show(output_format):
    """Show current effective configuration."""
    click.echo(_render(get_config(), output_format))


@config.command("defaults")
@FORMAT_OPTION
def defaults(output_format):
    """Show default configuration values."""
    click.echo(_render(Config(), output_format))
