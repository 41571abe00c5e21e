"""Shaho Calc CLI - Command-line interface for social insurance filing calculations."""

import click

from shahocalc import __version__

from .era_commands import era as era_group
from .remuneration_commands import remuneration as remuneration_group
from .remuneration_commands import bonus as bonus_group
from .grade_commands import grade as grade_group
from .requirements_commands import requirements as requirements_group
from .settings_commands import settings as settings_group


@click.group()
@click.version_option(version=__version__, prog_name="shaho-calc")
def cli():
    """Shaho Calc - Japanese social insurance filing calculations.

    Era date conversion, standard remuneration averaging, bonus rounding,
    grade lookup and dependent-filing field requirements.

    Settings are loaded from (in order):

    \b
    1. SHAHO_CALC_CONFIG_PATH environment variable
    2. ~/.config/shaho-calc/settings.json (XDG default)

    Run 'shaho-calc settings show' to see the effective settings.
    """
    pass


cli.add_command(era_group)
cli.add_command(remuneration_group)
cli.add_command(bonus_group)
cli.add_command(grade_group)
cli.add_command(requirements_group)
cli.add_command(settings_group)


def main():
    cli()


if __name__ == "__main__":
    main()
