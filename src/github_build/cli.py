# cli.py
from __future__ import annotations

import sys
from typing import List, Optional

import click

from .config import (
    DEFAULT_GITIGNORE_CONFIG_FILE,
    DEFAULT_LANGUAGES_CONFIG_FILE,
    DEFAULT_LINTERS_CONFIG_FILE,
    OPTIONS_APT_CONFIG_FILE,
    OPTIONS_ELASTICSEARCH_CONFIG_FILE,
    OPTIONS_MONGODB_CONFIG_FILE,
    OPTIONS_MYSQL_CONFIG_FILE,
    OPTIONS_REDIS_CONFIG_FILE,
    Defaults,
    Options,
    args_from_file,
)
from .errors import RepositorySettingsError
from .runner import run_build
from .status import ERROR_EXIT_CODE, FAILURE_EXIT_CODE, SUCCESS_EXIT_CODE
from .ui.console import Console, get_console, set_console


def _split_list(value: Optional[str]) -> List[str]:
    return [v.strip() for v in (value or "").split(",") if v.strip()]


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--application_name", default=None, help="Name of the CodeDeploy application")
@click.option("--build_file", default=Defaults().build_file, show_default=True, help="Path to build file")
@click.option("--excluded_folders", default=None, help="Comma separated list of folders to ignore")
@click.option("--force_codedeploy_setup", is_flag=True, help="Run the setup steps in CodeDeploy even if not technically required")
@click.option("--gitignore_config_file", default=DEFAULT_GITIGNORE_CONFIG_FILE, show_default=True, help="Path to gitignore config file")
@click.option("--ignored_linters", default=None, help="Comma separated linter keys of the linters config file to ignore")
@click.option("--languages_config_file", default=DEFAULT_LANGUAGES_CONFIG_FILE, show_default=True, help="Path to languages config file")
@click.option("--linters_config_file", default=DEFAULT_LINTERS_CONFIG_FILE, show_default=True, help="Path to linters config file")
@click.option("--only_dependabot", is_flag=True, help="Just do Dependabot and nothing else")
@click.option("--options-apt", "options_apt", default=OPTIONS_APT_CONFIG_FILE, show_default=True, help="Path to APT options file")
@click.option("--options-mongodb", "options_mongodb", default=OPTIONS_MONGODB_CONFIG_FILE, show_default=True, help="Path to MongoDB options file")
@click.option("--options-mysql", "options_mysql", default=OPTIONS_MYSQL_CONFIG_FILE, show_default=True, help="Path to MySQL options file")
@click.option("--options-redis", "options_redis", default=OPTIONS_REDIS_CONFIG_FILE, show_default=True, help="Path to Redis options file")
@click.option("--options-elasticsearch", "options_elasticsearch", default=OPTIONS_ELASTICSEARCH_CONFIG_FILE, show_default=True, help="Path to Elasticsearch options file")
@click.option("--organization", default=None, help="GitHub organization")
@click.option("--skip_dependabot", is_flag=True, help="Skip dependabot")
@click.option("--skip_gitignore", is_flag=True, help="Skip update of gitignore file")
@click.option("--skip_license_check", is_flag=True, help="Skip license check")
@click.option("--skip_repository_settings", is_flag=True, help="Skip check of repository settings")
@click.option("--skip_slack", is_flag=True, help="Skip slack")
@click.option("--no_strict_version_check", is_flag=True, help="Do not exit with error when VERSION options do not match recommended defaults")
@click.option("--debug", is_flag=True, default=False, help="Enable debug mode (show stack traces and detailed output)")
@click.pass_context
def cli(ctx, **params):
    """Generate the GitHub Actions build workflow of the current repository."""
    console = Console(debug=params["debug"])
    set_console(console)

    original_args = list((ctx.obj or {}).get("original_args") or [])

    options = Options(
        application_name=params["application_name"] or "",
        organization=params["organization"] or "",
        build_file=params["build_file"],
        excluded_folders=_split_list(params["excluded_folders"]),
        force_codedeploy_setup=params["force_codedeploy_setup"],
        gitignore_config_file=params["gitignore_config_file"],
        ignored_linters=set(_split_list(params["ignored_linters"])),
        languages_config_file=params["languages_config_file"],
        linters_config_file=params["linters_config_file"],
        only_dependabot=params["only_dependabot"],
        options_config_file_apt=params["options_apt"],
        options_config_file_mongodb=params["options_mongodb"],
        options_config_file_mysql=params["options_mysql"],
        options_config_file_redis=params["options_redis"],
        options_config_file_elasticsearch=params["options_elasticsearch"],
        skip_dependabot=params["skip_dependabot"],
        skip_gitignore=params["skip_gitignore"],
        skip_license_check=params["skip_license_check"],
        skip_repository_settings=params["skip_repository_settings"],
        skip_slack=params["skip_slack"],
        strict_version_check=not params["no_strict_version_check"],
        debug=params["debug"],
        original_args=original_args,
    ).fill_identity()

    try:
        run_build(options, console=console)
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except RepositorySettingsError as e:
        console.print_exception(e)
        sys.exit(FAILURE_EXIT_CODE)
    except Exception as e:
        console.print_exception(e)
        sys.exit(ERROR_EXIT_CODE)

    sys.exit(SUCCESS_EXIT_CODE)


def main(argv: Optional[List[str]] = None) -> None:
    """
    Console entry point.

    Without arguments, the ones recorded in the first line of the existing
    build file are reused, so a bare `github-build` regenerates the file the
    way it was generated last time.
    """
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        args = args_from_file(Defaults().build_file)
        if args:
            get_console().print_debug(f"Using arguments from {Defaults().build_file}: {args}")
    cli.main(args=args, prog_name="github-build", obj={"original_args": args})


if __name__ == "__main__":
    main()
