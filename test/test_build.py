import re
import sys
from pathlib import Path

import pytest
import requests

from sardine import build, cli
from sardine.core import Context, LintError, RemoteLib
from sardine.test_harness import (
    CLEAN_ESLINT, DIRTY_ESLINT, FAKE_TERSER, archive_contents, make_project, tool_log, write_fake_tool,
)


pytestmark = pytest.mark.skipif(sys.platform == 'win32', reason='fake tools are shell scripts')


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    pytest.importorskip('sass')
    pytest.importorskip('minify_html')
    pytest.importorskip('json_minify')
    monkeypatch.delenv('SARDINE_AUTHOR', raising=False)
    monkeypatch.delenv('SARDINE_LICENSE', raising=False)
    root = tmp_path / 'project'
    make_project(root)
    write_fake_tool(root, 'terser', FAKE_TERSER)
    write_fake_tool(root, 'eslint', CLEAN_ESLINT)
    return root


def test_release(project: Path, capsys: pytest.CaptureFixture):
    cli.main(['-C', str(project), '--no-fetch'])
    out = capsys.readouterr().out
    assert re.search(r'^ - \[\d+ ms\] +Loaded package.json$', out, re.MULTILINE)
    assert 'Release built successfully' in out

    archive = project / 'demo_1.2.3.zip'
    assert archive.exists()
    contents = archive_contents(archive)
    assert set(contents) == {'js/app.js', 'css/style.css', 'manifest.json'}
    assert contents['js/app.js'].startswith(b'/*! (c) Jane Doe under MIT */')
    assert contents['css/style.css'].strip() == b'.box .title{color:#123456}'
    assert contents['manifest.json'] == b'{"name":"Demo","version":"1.2.3"}'
    assert not (project / '__tmp').exists()


def test_release_images_and_html(project: Path):
    (project / 'src' / 'img' / 'icons').mkdir(parents=True)
    (project / 'src' / 'img' / 'icons' / 'icon.png').write_bytes(b'\x89PNG')
    (project / 'src' / 'img' / 'icons' / 'icon.xcf').write_bytes(b'gimp')
    (project / 'src' / 'html').mkdir()
    (project / 'src' / 'html' / 'popup.html').write_text('<p>\n   Hi   there\n</p>\n<!-- note -->\n')

    cli.main(['-C', str(project), '--no-fetch', '--no-lint'])

    contents = archive_contents(project / 'demo_1.2.3.zip')
    assert contents['img/icons/icon.png'] == b'\x89PNG'
    assert 'img/icons/icon.xcf' not in contents
    assert b'note' not in contents['html/popup.html']


def test_release_cleans_previous_output(project: Path):
    stale = project / '__dist' / 'stale.js'
    stale.parent.mkdir(parents=True)
    stale.write_text('old')
    (project / 'old_0.1.zip').write_text('old')

    cli.main(['-C', str(project), '--no-fetch'])

    assert not stale.exists()
    assert not (project / 'old_0.1.zip').exists()
    assert 'stale.js' not in archive_contents(project / 'demo_1.2.3.zip')


def test_release_fetches_remote_libs(project: Path, monkeypatch: pytest.MonkeyPatch):
    class Response:
        text = 'function jsu() { return 1; }'

        def raise_for_status(self):
            pass

    monkeypatch.setattr(requests, 'get', lambda url, timeout: Response())
    context = Context.from_settings(make_project(project))
    context.settings['remote_libs'] = [RemoteLib('jsu.js', 'https://example.com/jsu.js')]
    build.release_pipeline(context).run(context)

    assert (project / 'src' / 'js' / 'lib' / 'jsu.js').read_text() == Response.text
    contents = archive_contents(project / 'demo_1.2.3.zip')
    assert b'function jsu() { return 1; }' in contents['js/lib/jsu.js']


def test_lint_failure(project: Path):
    write_fake_tool(project, 'eslint', DIRTY_ESLINT)
    with pytest.raises(SystemExit) as info:
        cli.main(['-C', str(project), '--no-fetch'])
    assert info.value.code == 1
    assert not (project / 'demo_1.2.3.zip').exists()


def test_lint_stage(project: Path):
    write_fake_tool(project, 'eslint', DIRTY_ESLINT)
    context = Context.from_settings(make_project(project))
    stage = build.release_stages(context, fetch=False)[1]
    with pytest.raises(LintError, match='no-var'):
        stage.func(context)


def test_lint_targets_run_in_order(project: Path):
    eslint = write_fake_tool(project, 'eslint', CLEAN_ESLINT)
    context = Context.from_settings(make_project(project))
    assert build.release_stages(context, fetch=False)[1].func(context) == '2 target(s) clean'
    assert tool_log(eslint) == [
        f'--fix --no-error-on-unmatched-pattern {project.resolve() / "*.js"}',
        f'--fix --no-error-on-unmatched-pattern {project.resolve() / "src" / "js" / "**" / "*.js"}',
    ]


def test_lint_stops_at_first_dirty_target(project: Path):
    eslint = write_fake_tool(project, 'eslint', DIRTY_ESLINT)
    context = Context.from_settings(make_project(project))
    with pytest.raises(LintError) as info:
        build.release_stages(context, fetch=False)[1].func(context)
    assert info.value.target == str(project.resolve() / '*.js')
    assert len(tool_log(eslint)) == 1


def test_missing_tool(project: Path, monkeypatch: pytest.MonkeyPatch):
    (project / 'node_modules' / '.bin' / 'terser').unlink()
    monkeypatch.setenv('PATH', str(project / 'empty'))
    with pytest.raises(SystemExit) as info:
        cli.main(['-C', str(project), '--no-fetch'])
    assert info.value.code == 1
    # Tools are checked before any stage runs.
    assert not (project / '__tmp').exists()


def test_missing_package_json(project: Path):
    (project / 'package.json').unlink()
    with pytest.raises(SystemExit) as info:
        cli.main(['-C', str(project)])
    assert info.value.code == 1


def test_audit_tools(project: Path, capsys: pytest.CaptureFixture):
    with pytest.raises(SystemExit) as info:
        cli.main(['-C', str(project), '--audit-tools'])
    assert info.value.code == 0
    out = capsys.readouterr().out
    assert '✓ terser' in out
    assert '✓ eslint' in out
