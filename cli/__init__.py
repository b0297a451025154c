"""
CLI Package for the OpenRTB Validator

Click group with one module per subcommand. main() is the group; cli() is
the console script entry point declared in setup.py.
"""

import os
import click
from dotenv import load_dotenv

# Priority: .env.dev (if exists) overrides .env
if os.path.exists('.env.dev'):
    load_dotenv('.env.dev')
elif os.path.exists('.env'):
    load_dotenv('.env')

from ortb import __version__
from .validate import validate
from .analyze import analyze


@click.group()
@click.version_option(version=__version__, prog_name='ortb-validator')
def main():
    """OpenRTB Validator CLI - Validate bid requests and report on compliance.

    Validates OpenRTB 2.6 bid requests one at a time or in batches, scores
    their compliance and produces analytics and trend reports.
    """
    pass


main.add_command(validate)
main.add_command(analyze)


def cli():
    """Console script entry point."""
    main()
