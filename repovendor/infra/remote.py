"""
Remote repository deduction for repovendor.

Turns an import path such as ``github.com/pkg/errors/sub`` into the
repository that hosts it and the subpath inside that repository:

    repo, extra = deduce_remote_repo("github.com/pkg/errors/sub")
    # GitRepo('https://github.com/pkg/errors'), 'sub'

Known hosting sites are matched by pattern; import paths ending in a VCS
suffix name their repository directly; anything else is resolved by fetching
``https://<path>?go-get=1`` and reading its go-import meta tag.
"""

import logging
import re
from dataclasses import dataclass
from html.parser import HTMLParser
from typing import List, Optional, Tuple
from urllib.parse import urlsplit

import requests

from ..exit_codes import RepositoryResolutionError
from .vcs import RemoteRepo, REPO_TYPES, new_remote_repo

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 30

_SEGMENT = r'[A-Za-z0-9_.\-]+'

# (pattern, vcs, url template); the "root" group is the repository import
# path and "extra" the remainder.
KNOWN_HOSTS = [
    (re.compile(rf'^(?P<root>github\.com/{_SEGMENT}/{_SEGMENT})(?P<extra>/.*)?$'),
     'git', '{scheme}://{root}'),
    (re.compile(rf'^(?P<root>gitlab\.com/{_SEGMENT}/{_SEGMENT})(?P<extra>/.*)?$'),
     'git', '{scheme}://{root}'),
    (re.compile(rf'^golang\.org/x/(?P<name>{_SEGMENT})(?P<extra>/.*)?$'),
     'git', '{scheme}://go.googlesource.com/{name}'),
    (re.compile(rf'^(?P<root>gopkg\.in/(?:{_SEGMENT}/)?[A-Za-z][A-Za-z0-9_\-]*\.v\d+)(?P<extra>/.*)?$'),
     'git', '{scheme}://{root}'),
    (re.compile(rf'^(?P<root>launchpad\.net/(?:~{_SEGMENT}/)?{_SEGMENT}(?:/{_SEGMENT})?)(?P<extra>/.*)?$'),
     'bzr', '{scheme}://{root}'),
]

BITBUCKET = re.compile(rf'^bitbucket\.org/(?P<owner>{_SEGMENT})/(?P<name>{_SEGMENT})(?P<extra>/.*)?$')

VCS_SUFFIX = re.compile(
    r'^(?P<root>(?P<host>[A-Za-z0-9.\-]+(?::\d+)?)(?:/[A-Za-z0-9_.\-~]+)+?\.(?P<vcs>git|hg|bzr|svn))(?P<extra>/.*)?$'
)


def split_scheme(path: str) -> Tuple[str, str]:
    """Split ``https://host/p`` into ('https', 'host/p'); no scheme gives ''."""
    if '://' in path:
        parts = urlsplit(path)
        return parts.scheme, (parts.netloc + parts.path).rstrip('/')
    return '', path.rstrip('/')


def strip_scheme(path: str) -> str:
    """Remove any URL scheme from an import path."""
    return split_scheme(path)[1]


@dataclass(frozen=True)
class MetaImport:
    """One <meta name="go-import" content="prefix vcs repo-root"> entry."""
    prefix: str
    vcs: str
    repo_root: str


class _GoImportParser(HTMLParser):
    """Collects go-import meta tags; stops caring after </head>."""

    def __init__(self):
        super().__init__()
        self.imports: List[MetaImport] = []
        self._done = False

    def handle_starttag(self, tag, attrs):
        if self._done or tag != 'meta':
            return
        attributes = dict(attrs)
        if attributes.get('name') != 'go-import':
            return
        fields = (attributes.get('content') or '').split()
        if len(fields) == 3:
            self.imports.append(MetaImport(*fields))

    def handle_endtag(self, tag):
        if tag == 'head':
            self._done = True


def parse_meta_go_imports(html: str) -> List[MetaImport]:
    """Extract go-import meta tags from an HTML document."""
    parser = _GoImportParser()
    parser.feed(html)
    parser.close()
    return parser.imports


def fetch_metadata(path: str, insecure: bool = False, scheme: str = '',
                   session: Optional[requests.Session] = None) -> str:
    """
    Fetch the ?go-get=1 page for ``path``.

    HTTPS is tried first; HTTP only when ``insecure`` is set.

    Raises:
        RepositoryResolutionError: if no scheme yields a response
    """
    http = session or requests
    schemes = [scheme] if scheme else (['https', 'http'] if insecure else ['https'])
    last_error = None
    for candidate in schemes:
        if candidate == 'http' and not insecure:
            raise RepositoryResolutionError(
                f"{path} requires an insecure protocol, use --precaire to allow it", path
            )
        url = f"{candidate}://{path}?go-get=1"
        try:
            logger.debug(f"Probing {url}")
            response = http.get(url, timeout=PROBE_TIMEOUT)
            response.raise_for_status()
            return response.text
        except requests.RequestException as e:
            last_error = e
    raise RepositoryResolutionError(
        f"unable to determine remote metadata protocol for {path}: {last_error}", path
    )


def parse_metadata(path: str, insecure: bool = False, scheme: str = '',
                   session: Optional[requests.Session] = None) -> MetaImport:
    """
    Fetch and select the go-import entry that matches ``path``.

    Raises:
        RepositoryResolutionError: if none or several entries match
    """
    imports = parse_meta_go_imports(fetch_metadata(path, insecure, scheme, session))
    matches = [im for im in imports if path == im.prefix or path.startswith(im.prefix + '/')]
    if not matches:
        raise RepositoryResolutionError(f"go-import metadata not found for {path}", path)
    if len(matches) > 1:
        raise RepositoryResolutionError(f"multiple meta tags match import path {path!r}", path)
    return matches[0]


def _extra(match: 're.Match') -> str:
    return (match.group('extra') or '').strip('/')


def _bitbucket_vcs(owner: str, name: str, session: Optional[requests.Session]) -> str:
    """Ask the Bitbucket API whether a repository is git or hg."""
    http = session or requests
    url = f"https://api.bitbucket.org/2.0/repositories/{owner}/{name}"
    try:
        response = http.get(url, timeout=PROBE_TIMEOUT)
        response.raise_for_status()
        return response.json().get('scm', 'git')
    except (requests.RequestException, ValueError) as e:
        raise RepositoryResolutionError(f"unable to query bitbucket for {owner}/{name}: {e}") from e


def deduce_remote_repo(path: str, insecure: bool = False,
                       session: Optional[requests.Session] = None) -> Tuple[RemoteRepo, str]:
    """
    Deduce the repository hosting ``path``.

    The path may carry a URL scheme, which is then used for the repository
    URL and for probing (useful for private hosts that cannot be probed over
    HTTPS).

    Returns:
        Tuple of (RemoteRepo, extra) where extra is the subpath of ``path``
        inside the repository, without slashes at either end

    Raises:
        RepositoryResolutionError: if the repository cannot be determined or
            needs an insecure protocol that was not allowed
    """
    scheme, bare = split_scheme(path)
    if scheme == 'http' and not insecure:
        raise RepositoryResolutionError(
            f"{path} uses an insecure protocol, use --precaire to allow it", path
        )
    url_scheme = scheme or 'https'

    for pattern, vcs, template in KNOWN_HOSTS:
        m = pattern.match(bare)
        if m:
            url = template.format(scheme=url_scheme, **m.groupdict())
            return new_remote_repo(url, vcs, insecure), _extra(m)

    m = BITBUCKET.match(bare)
    if m:
        vcs = _bitbucket_vcs(m.group('owner'), m.group('name'), session)
        url = f"{url_scheme}://bitbucket.org/{m.group('owner')}/{m.group('name')}"
        return new_remote_repo(url, vcs, insecure), _extra(m)

    m = VCS_SUFFIX.match(bare)
    if m:
        root = m.group('root')
        vcs = m.group('vcs')
        url = f"{url_scheme}://{root}"
        return new_remote_repo(url, vcs, insecure), _extra(m)

    if '.' not in bare.split('/')[0]:
        raise RepositoryResolutionError(f"unrecognized import path {path!r}", path)

    meta = parse_metadata(bare, insecure, scheme, session)
    if meta.vcs not in REPO_TYPES:
        raise RepositoryResolutionError(f"unsupported VCS {meta.vcs!r} for {path}", path)
    extra = bare[len(meta.prefix):].strip('/')
    logger.debug(f"{path}: go-import {meta.prefix} {meta.vcs} {meta.repo_root}")
    return new_remote_repo(meta.repo_root, meta.vcs, insecure), extra
