"""
scaf CLI - Scaffolder command line.

Usage:
    scaf [plugin] [subcommand] [options]    Run a plugin sub-module
    scaf <plugin> --list                    List the plugin's subcommands
    scaf --plugins                          Show version and cache information
    scaf --config-list                      Show the persisted settings
    scaf --config-get <key>                 Show one persisted setting
    scaf --config-set <key>=<value>         Persist a setting
    scaf --config-unset <key>               Remove a persisted setting

Options not recognized by scaf are forwarded to the selected sub-module.
"""

import argparse
import sys

from scaffolder.errors import ScaffolderError


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="scaf",
        description="Scaffolder - run scaffolding plugins hosted on GitHub",
        add_help=False,
        # Unknown options belong to the sub-module and must not match ours by prefix
        allow_abbrev=False,
    )

    # Operation flags (mutually exclusive)
    ops = parser.add_mutually_exclusive_group()
    ops.add_argument("-h", "--help", action="store_true", help="Show help")
    ops.add_argument(
        "-p", "--plugins", action="store_true", help="Show version and cache information"
    )
    ops.add_argument("--config-list", action="store_true", help="Show persisted settings")
    ops.add_argument("--config-get", metavar="KEY", help="Show a persisted setting")
    ops.add_argument("--config-set", metavar="KEY=VALUE", help="Persist a setting")
    ops.add_argument("--config-unset", metavar="KEY", help="Remove a persisted setting")

    # Run options
    parser.add_argument("--list", action="store_true", help="List the plugin's subcommands")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument(
        "--skip-update", action="store_true", help="Use cached plugins without updating"
    )

    # Settings overrides (take precedence over the persisted settings)
    parser.add_argument("--gh-auth-token", help="GitHub token for private plugins")
    parser.add_argument("--gh-org", help="GitHub organization listing the plugins")
    parser.add_argument("--sub-generator-prefix", help="Repository prefix of plugins")
    parser.add_argument("--add-gh-org", help="Additional GitHub organization or user")
    parser.add_argument(
        "--add-sub-generator-prefix", help="Repository prefix of additional plugins"
    )
    parser.add_argument("--cache-dir", help="Directory holding downloaded plugins")

    # Positional arguments: plugin, subcommand, forwarded arguments
    parser.add_argument("targets", nargs="*", help="Plugin, subcommand and arguments")

    return parser


def print_help():
    """Print help message."""
    help_text = """
scaf - Scaffolder

Usage:
    scaf [plugin] [subcommand] [options]    Run a plugin sub-module
    scaf <plugin> --list                    List the plugin's subcommands
    scaf -p, --plugins                      Show version and cache information
    scaf --config-list                      Show the persisted settings
    scaf --config-get <key>                 Show one persisted setting
    scaf --config-set <key>=<value>         Persist a setting
    scaf --config-unset <key>               Remove a persisted setting

Options:
    --list                                  List the plugin's subcommands
    --skip-update                           Use cached plugins without updating
    --gh-auth-token <token>                 GitHub token for private plugins
    --gh-org <org>                          GitHub organization listing the plugins
    --sub-generator-prefix <prefix>         Repository prefix of plugins
    --add-gh-org <owner>                    Additional organization or user
    --add-sub-generator-prefix <prefix>     Repository prefix of additional plugins
    --cache-dir <dir>                       Directory holding downloaded plugins
    -v, --verbose                           Verbose output
    -h, --help                              Show this help

Unknown options are forwarded to the selected sub-module.
"""
    print(help_text.strip())


def main(argv: list[str] | None = None) -> int:
    """Main entry point for scaf CLI."""
    parser = create_parser()
    args, extras = parser.parse_known_args(argv)

    try:
        if args.help:
            print_help()
            return 0

        if args.config_list or args.config_get or args.config_set or args.config_unset:
            from scaf.commands.config import config_command

            return config_command(args)

        from scaffolder.config.logging import configure_logging

        configure_logging(args.verbose)

        if args.plugins:
            from scaf.commands.info import info_command

            return info_command(args)

        from scaf.commands.run import run_command

        return run_command(args, extras)

    except ScaffolderError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
