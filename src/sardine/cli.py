"""
Command line entry point for sardine release builds.
"""
from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

from .build import release_pipeline
from .core import BuildError, BuildSettings, Context, ToolUnavailableError, default_settings
from .pipeline import Pipeline, elapsed_ms
from .pretty_utils import format_elapsed, print_with_style


def parse_settings_args(argv: list[str] | None = None, **kw):
    """
    Parse command line arguments for a build. Every option has a default, so
    running without arguments builds the project in the current directory.
    """
    parser = argparse.ArgumentParser(description='Build a release of an extension project.', **kw)
    parser.add_argument('-C', '--root',
                        help='project directory containing package.json; defaults to the current directory',
                        type=Path,
                        default=Path('.'))
    parser.add_argument('--src',
                        help='source directory, relative to the root (default: src)',
                        default='src')
    parser.add_argument('--assets',
                        help='shared assets directory, relative to the root (default: assets)',
                        default='assets')
    parser.add_argument('--tmp',
                        help='scratch directory, removed after the build (default: __tmp)',
                        default='__tmp')
    parser.add_argument('--dist',
                        help='output directory that gets zipped (default: __dist)',
                        default='__dist')
    parser.add_argument('--lint',
                        help='run eslint --fix before building',
                        action=argparse.BooleanOptionalAction,
                        default=True)
    parser.add_argument('--fetch',
                        help='fetch the newest remote library files before building',
                        action=argparse.BooleanOptionalAction,
                        default=True)
    parser.add_argument('--audit-tools',
                        help='show which required tools are installed instead of building',
                        action='store_true')
    return parser.parse_args(argv)


def settings_from_args(args: argparse.Namespace) -> BuildSettings:
    return default_settings(args.root, args.src, args.assets, args.tmp, args.dist)


def pprint_tools(pipeline: Pipeline):
    """
    Prettily display the availability of every tool the pipeline needs.
    """
    for stage in pipeline.stages:
        for dep in stage.dependencies:
            if dep.satisfied:
                print_with_style(f'✓ {dep} ({stage.message})', style='green')
            else:
                print_with_style(f'✗ {dep} ({stage.message}): {dep.install_hint}', style='red')


def pprint_missing_deps(error: ToolUnavailableError):
    print_with_style(
        'The build is unavailable due to missing tools!',
        file='stderr',
        style='red'
    )
    for dep in error.dependencies:
        print_with_style(f'✗ {dep}: {dep.install_hint}', file='stderr', style='red')


def main(arguments: list[str] | None = None):
    """
    sardine main function. Loads package.json, then runs the release pipeline
    and exits with status 1 on any failure.
    """
    args = parse_settings_args(arguments)
    settings = settings_from_args(args)

    try:
        if args.audit_tools:
            pipeline = release_pipeline(Context.from_settings(settings), lint=args.lint, fetch=args.fetch)
            pprint_tools(pipeline)
            sys.exit(1 if pipeline.missing_dependencies() else 0)

        print_with_style('Building release...\n')
        start = time.perf_counter()
        context = Context.from_settings(settings)
        print_with_style(format_elapsed(elapsed_ms(start), 'Loaded package.json'))
        release_pipeline(context, lint=args.lint, fetch=args.fetch).run(context)
    except ToolUnavailableError as e:
        pprint_missing_deps(e)
        sys.exit(1)
    except BuildError as e:
        print_with_style(str(e), file='stderr', style='red')
        sys.exit(1)
