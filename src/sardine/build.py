"""
The release pipeline: clean, lint, fetch, transform, pack, clean.
"""
from __future__ import annotations

import datetime
import typing as t

from . import files
from .commands import eslint_fix
from .core import ToolUnavailableError
from .dependencies import NodeExecDependency
from .fetch import fetch_all
from .package import zip_directory
from .pipeline import Pipeline, Stage
from .transform import AssetKind, default_transformers, minify

if t.TYPE_CHECKING:
    from .core import Context


def clean_pre(context: Context):
    files.remove([
        context['tmp_dir'] / '*',
        context['dist_dir'] / '*',
        context['root_dir'] / '*.zip',
    ])
    files.create_file(
        context['tmp_dir'] / 'info.txt',
        datetime.datetime.now(datetime.timezone.utc).isoformat(),
    )


def clean_post(context: Context):
    files.remove([context['tmp_dir']])


def eslint_check(context: Context, eslint: NodeExecDependency):
    if not (executable := eslint.executable):
        raise ToolUnavailableError([eslint])
    for target in context['lint_targets']:
        eslint_fix(executable, target, cwd=context['root_dir'])
    return f'{len(context["lint_targets"])} target(s) clean'


def remote_js(context: Context):
    libs = context['remote_libs']
    fetch_all(libs, context['src_dir'] / 'js' / 'lib')
    return ', '.join(lib.file for lib in libs)


def _minify_stage(context: Context, patterns: list[str], dest_parts: tuple[str, ...], flatten: bool):
    written = minify(
        [context['src_dir'] / p for p in patterns],
        context['dist_dir'].joinpath(*dest_parts),
        default_transformers(context),
        flatten=flatten,
        roots=context.source_roots,
    )
    return f'{len(written)} file(s)'


def js(context: Context):
    return _minify_stage(context, ['js/**/*.js'], (), flatten=False)


def css(context: Context):
    return _minify_stage(context, ['scss/*.scss'], ('css',), flatten=True)


def json(context: Context):
    return _minify_stage(context, ['manifest.json'], (), flatten=True)


def html(context: Context):
    return _minify_stage(context, ['html/**/*.html'], (), flatten=False)


def img(context: Context):
    written = files.copy(
        [context['src_dir'] / 'img' / '**' / '*'],
        [context['src_dir'] / '**' / '*.xcf'],
        context['dist_dir'],
        flatten=False,
        roots=context.source_roots,
    )
    return f'{len(written)} file(s)'


def zip_dist(context: Context):
    archive = zip_directory(context['dist_dir'], context['root_dir'] / context.metadata.archive_name)
    return archive.name


def release_stages(context: Context, lint: bool = True, fetch: bool = True) -> list[Stage]:
    """
    The stages of a release build, in order. @lint and @fetch can turn off
    the eslint check and the remote library download.
    """
    transformers = default_transformers(context)
    eslint = NodeExecDependency('eslint', context['root_dir'])

    stages = [Stage('Cleaned tmp and dist directories', clean_pre)]
    if lint:
        stages.append(Stage(
            'Performed eslint check',
            lambda c: eslint_check(c, eslint),
            {eslint},
        ))
    if fetch:
        stages.append(Stage('Fetched remote libraries', remote_js))
    stages += [
        Stage('Moved js files to dist directory', js,
              transformers[AssetKind.JS].get_dependencies()),
        Stage('Moved css files to dist directory', css,
              transformers[AssetKind.SCSS].get_dependencies()),
        Stage('Moved image files to dist directory', img),
        Stage('Moved json files to dist directory', json,
              transformers[AssetKind.JSON].get_dependencies()),
        Stage('Moved html files to dist directory', html,
              transformers[AssetKind.HTML].get_dependencies()),
        Stage('Created zip file from dist directory', zip_dist),
        Stage('Cleaned tmp directory', clean_post),
    ]
    return stages


def release_pipeline(context: Context, lint: bool = True, fetch: bool = True):
    return Pipeline(release_stages(context, lint, fetch))
