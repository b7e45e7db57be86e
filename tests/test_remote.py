"""
Tests for repository deduction from import paths.
"""

import pytest
import requests
from unittest.mock import MagicMock

from repovendor.exit_codes import RepositoryResolutionError
from repovendor.infra.remote import (
    deduce_remote_repo,
    parse_meta_go_imports,
    split_scheme,
    strip_scheme,
)
from repovendor.infra.vcs import BzrRepo, GitRepo, HgRepo


def html_page(*metas):
    tags = "\n".join(f'<meta name="go-import" content="{m}">' for m in metas)
    return f"<!DOCTYPE html><html><head>{tags}</head><body>go get</body></html>"


def session_returning(*responses):
    """A requests session whose get() yields the given texts or exceptions."""
    session = MagicMock()
    results = []
    for r in responses:
        if isinstance(r, Exception):
            results.append(r)
        else:
            response = MagicMock()
            response.text = r
            response.json.return_value = r
            results.append(response)
    session.get.side_effect = results
    return session


class TestSchemes:
    """Tests for scheme handling."""

    def test_split_scheme(self):
        assert split_scheme('https://github.com/a/b/') == ('https', 'github.com/a/b')
        assert split_scheme('github.com/a/b') == ('', 'github.com/a/b')

    def test_strip_scheme(self):
        assert strip_scheme('git://example.com/x') == 'example.com/x'


class TestKnownHosts:
    """Tests for hosts recognised without network access."""

    @pytest.mark.parametrize('path,repo_type,url,extra', [
        ('github.com/pkg/errors', GitRepo, 'https://github.com/pkg/errors', ''),
        ('github.com/pkg/errors/sub/pkg', GitRepo, 'https://github.com/pkg/errors', 'sub/pkg'),
        ('gitlab.com/group/proj/x', GitRepo, 'https://gitlab.com/group/proj', 'x'),
        ('golang.org/x/net/context', GitRepo, 'https://go.googlesource.com/net', 'context'),
        ('gopkg.in/yaml.v2', GitRepo, 'https://gopkg.in/yaml.v2', ''),
        ('gopkg.in/user/pkg.v3/sub', GitRepo, 'https://gopkg.in/user/pkg.v3', 'sub'),
        ('launchpad.net/goyaml', BzrRepo, 'https://launchpad.net/goyaml', ''),
        ('example.com/repo.git/sub', GitRepo, 'https://example.com/repo.git', 'sub'),
        ('hg.example.com/team/repo.hg', HgRepo, 'https://hg.example.com/team/repo.hg', ''),
    ])
    def test_deduction(self, path, repo_type, url, extra):
        repo, sub = deduce_remote_repo(path, session=MagicMock())
        assert isinstance(repo, repo_type)
        assert repo.url == url
        assert sub == extra

    def test_explicit_scheme_is_kept(self):
        repo, extra = deduce_remote_repo('ssh://github.com/a/b/c')
        assert repo.url == 'ssh://github.com/a/b'
        assert extra == 'c'

    def test_http_requires_insecure(self):
        with pytest.raises(RepositoryResolutionError, match="insecure"):
            deduce_remote_repo('http://example.com/repo.git')
        repo, _ = deduce_remote_repo('http://example.com/repo.git', insecure=True)
        assert repo.url == 'http://example.com/repo.git'

    def test_bitbucket_asks_the_api(self):
        session = session_returning({'scm': 'hg'})

        repo, extra = deduce_remote_repo('bitbucket.org/owner/name/sub', session=session)

        assert isinstance(repo, HgRepo)
        assert repo.url == 'https://bitbucket.org/owner/name'
        assert extra == 'sub'
        session.get.assert_called_once_with(
            'https://api.bitbucket.org/2.0/repositories/owner/name', timeout=30)

    def test_unrecognized_path(self):
        with pytest.raises(RepositoryResolutionError, match="unrecognized"):
            deduce_remote_repo('mycompany/pkg')


class TestMetaProbing:
    """Tests for go-import meta tag probing."""

    def test_parse_meta_go_imports(self):
        page = html_page('example.org/pkg git https://code.example.org/pkg',
                         'broken entry')
        imports = parse_meta_go_imports(page)
        assert len(imports) == 1
        assert imports[0].prefix == 'example.org/pkg'
        assert imports[0].vcs == 'git'
        assert imports[0].repo_root == 'https://code.example.org/pkg'

    def test_tags_after_head_are_ignored(self):
        page = ('<html><head></head><body>'
                '<meta name="go-import" content="a.org/x git https://a.org/x">'
                '</body></html>')
        assert parse_meta_go_imports(page) == []

    def test_meta_tag_resolves_repository_and_subpath(self):
        session = session_returning(html_page('example.org/pkg hg https://code.example.org/pkg'))

        repo, extra = deduce_remote_repo('example.org/pkg/sub', session=session)

        assert isinstance(repo, HgRepo)
        assert repo.url == 'https://code.example.org/pkg'
        assert extra == 'sub'
        session.get.assert_called_once_with('https://example.org/pkg/sub?go-get=1', timeout=30)

    def test_prefix_must_match_on_segment_boundary(self):
        session = session_returning(html_page('example.org/pk git https://code.example.org/pk'))
        with pytest.raises(RepositoryResolutionError, match="not found"):
            deduce_remote_repo('example.org/pkg', session=session)

    def test_multiple_matches(self):
        session = session_returning(html_page(
            'example.org/pkg git https://a.example.org/pkg',
            'example.org/pkg/sub git https://b.example.org/sub',
        ))
        with pytest.raises(RepositoryResolutionError, match="multiple"):
            deduce_remote_repo('example.org/pkg/sub', session=session)

    def test_unsupported_vcs(self):
        session = session_returning(html_page('example.org/pkg fossil https://example.org/pkg'))
        with pytest.raises(RepositoryResolutionError, match="unsupported"):
            deduce_remote_repo('example.org/pkg', session=session)

    def test_network_failure(self):
        session = session_returning(requests.ConnectionError("refused"))
        with pytest.raises(RepositoryResolutionError, match="refused"):
            deduce_remote_repo('example.org/pkg', session=session)

    def test_insecure_falls_back_to_http(self):
        session = session_returning(
            requests.ConnectionError("no tls"),
            html_page('example.org/pkg git http://example.org/pkg.git'),
        )

        repo, _ = deduce_remote_repo('example.org/pkg', insecure=True, session=session)

        assert repo.url == 'http://example.org/pkg.git'
        urls = [call.args[0] for call in session.get.call_args_list]
        assert urls == ['https://example.org/pkg?go-get=1', 'http://example.org/pkg?go-get=1']

    def test_insecure_repository_root_needs_the_flag(self):
        session = session_returning(html_page('example.org/pkg git http://example.org/pkg.git'))
        with pytest.raises(RepositoryResolutionError, match="insecure"):
            deduce_remote_repo('example.org/pkg', session=session)
