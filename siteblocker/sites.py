import logging
import string
from typing import Iterable, List, TextIO

import requests

logger = logging.getLogger(__name__)

MAX_SITE_LENGTH = 255
VALID_SITE_CHARS = frozenset(string.ascii_letters + string.digits + "-.")


class InvalidSiteError(ValueError):
    pass


class SiteSourceError(Exception):
    pass


def validate_site(site: str) -> str:
    if not site:
        raise InvalidSiteError("Empty site")
    if len(site) > MAX_SITE_LENGTH:
        raise InvalidSiteError(f"Site is longer than max length of {MAX_SITE_LENGTH}: {site}")
    if not set(site) <= VALID_SITE_CHARS:
        raise InvalidSiteError(f"Site contains invalid characters: {site}")
    return site


def validate_sites(sites: Iterable[str]) -> List[str]:
    return [validate_site(site) for site in sites]


def parse_site_list(content: str) -> List[str]:
    """One site per line; blank lines and comments are skipped."""
    sites = []
    for line in content.splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            sites.append(line)
    return sites


def read_site_source(source: str) -> List[str]:
    """Reads a list of sites from a local file or an http(s) URL."""
    if source.startswith(("http://", "https://")):
        logger.debug("fetching sites from %s", source)
        try:
            response = requests.get(source, timeout=10)
            response.raise_for_status()
        except requests.RequestException as err:
            raise SiteSourceError(f"Error fetching {source}: {err}") from err
        return parse_site_list(response.text)

    logger.debug("reading sites from %s", source)
    try:
        with open(source, "r", encoding="utf-8") as f:
            return parse_site_list(f.read())
    except (OSError, UnicodeDecodeError) as err:
        raise SiteSourceError(f"Error reading {source}: {err}") from err


def collect_sites(sites: Iterable[str], sources: Iterable[str] = ()) -> List[str]:
    collected = list(sites)
    for source in sources:
        collected.extend(read_site_source(source))
    return collected


def read_stream(stream: TextIO) -> List[str]:
    """Reads whitespace separated sites, e.g. from stdin."""
    sites = []
    for line in stream:
        sites.extend(line.split())
    return sites
