import argparse
import getpass
import logging
import os

from dotenv import load_dotenv

from .config import ConfigError, config_to_options
from .jira_client import create_jira_client
from .querymanager import QueryManager
from .runner import run_forecast, write_outputs
from .utils import current_day, parse_day, set_chart_context
from .webapp.app import app as webapp

load_dotenv()

logger = logging.getLogger(__name__)


def _day_argument(value):
    try:
        return parse_day(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"`{value}` is not a date in YYYY-MM-DD format"
        ) from None


def configure_argument_parser():
    """Configure an ArgumentParser that manages command line options."""

    parser = argparse.ArgumentParser(
        description=(
            "Forecast when a body of JIRA work will be done, "
            "and produce burnup data and charts."
        )
    )

    # Basic options
    parser.add_argument(
        "config", metavar="config.yml", nargs="?", help="Configuration file"
    )
    parser.add_argument(
        "-v", dest="verbose", action="store_true", help="Verbose output"
    )
    parser.add_argument(
        "-vv",
        dest="very_verbose",
        action="store_true",
        help="Even more verbose output",
    )
    parser.add_argument(
        "--today",
        metavar="YYYY-MM-DD",
        type=_day_argument,
        help="Forecast as if today were this date, instead of the system date",
    )

    parser.add_argument(
        "--server",
        metavar="127.0.0.1:8080",
        help=(
            "Run as a web server instead of a command line tool, "
            "on the given host and/or port. "
            "The remaining options do not apply."
        ),
    )

    # Output directory
    parser.add_argument(
        "--output-directory",
        "-o",
        metavar="burnup",
        help="Write output files to this directory, rather than the current one.",
    )

    # Connection options
    parser.add_argument(
        "--domain", metavar="example.atlassian.net", help="JIRA domain name"
    )
    parser.add_argument("--username", metavar="user", help="JIRA user name")
    parser.add_argument("--token", metavar="token", help="JIRA API token")

    return parser


def main():
    parser = configure_argument_parser()
    args = parser.parse_args()

    if args.server:
        run_server(parser, args)
    else:
        run_command_line(parser, args)


def run_server(parser, args):
    host = None
    port = args.server

    if ":" in args.server:
        (host, port) = args.server.split(":")
    try:
        port = int(port)
    except ValueError:
        parser.error(f"Invalid port `{port}`")

    set_chart_context("paper")
    webapp.run(host=host, port=port)


def run_command_line(parser, args):
    if not args.config:
        parser.print_usage()
        return None

    logging.basicConfig(
        format="[%(asctime)s %(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        level=(
            logging.DEBUG
            if args.very_verbose
            else logging.INFO if args.verbose else logging.WARNING
        ),
    )

    # Configuration and settings
    # (command line arguments override config file options)

    logger.debug("Parsing options from %s", args.config)
    try:
        with open(args.config, encoding="utf-8") as config:
            options = config_to_options(
                config.read(), cwd=os.path.dirname(os.path.abspath(args.config))
            )
    except FileNotFoundError:
        print(
            f"Error: Configuration file '{args.config}' not found. "
            "Please provide a valid config file."
        )
        return None

    override_options(options["connection"], args)
    override_options(options["settings"], args)

    set_chart_context("paper")

    output_dir = options.get("output_directory")
    if args.output_directory:
        output_dir = args.output_directory
    if output_dir:
        logger.info("Changing working directory to %s", output_dir)
        os.makedirs(output_dir, exist_ok=True)
        os.chdir(output_dir)

    jira = get_jira_client(options["connection"])
    query_manager = QueryManager(jira, options["settings"])

    today = args.today or current_day()
    logger.info("Running forecast as of %s", today.isoformat())
    result = run_forecast(query_manager, options["settings"], today)

    logger.info(
        "Scope %.1f days, resolved %.1f days, "
        "scope rate %.2f days/day, resolved rate %.2f days/day",
        result.rates.total_scope_days,
        result.rates.total_resolved_days,
        result.rates.scope_rate,
        result.rates.resolved_rate,
    )

    write_outputs(result, options["settings"])

    print(
        "Projected completion: "
        + result.projected_completion.label(options["settings"]["date_format"])
    )
    return result


def override_options(options, arguments):
    """Update `options` dict with settings from `arguments`
    with the same key.
    """
    for key in options.keys():
        if getattr(arguments, key, None) is not None:
            options[key] = getattr(arguments, key)


def get_jira_client(connection):
    """Create a JIRA client, prompting for a missing user name or token."""
    connection = dict(connection)
    domain = connection.get("domain") or os.environ.get("JIRA_URL")
    if not domain:
        raise ConfigError("No JIRA domain given in `Connection` or JIRA_URL")

    if not (connection.get("username") or os.environ.get("JIRA_USERNAME")):
        connection["username"] = input("Username: ")

    if not (connection.get("token") or os.environ.get("JIRA_TOKEN")):
        connection["token"] = getpass.getpass("API token: ")

    return create_jira_client(connection)


if __name__ == "__main__":
    main()
