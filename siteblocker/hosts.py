import difflib
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Union

logger = logging.getLogger(__name__)

BLOCK_ADDRESS = "127.0.0.1"
LOOPBACK_ADDRESSES = ("127.0.0.1", "::1")
LOCALHOST = "localhost"


class HostsError(Exception):
    """Raised when the hosts file cannot be read or written."""


class HostsFileNotFound(HostsError):
    pass


class HostsPermissionDenied(HostsError):
    pass


@dataclass(frozen=True)
class Empty:
    pass


@dataclass(frozen=True)
class Comment:
    text: str


@dataclass(frozen=True)
class Entry:
    address: str
    hostname: str


@dataclass(frozen=True)
class Invalid:
    text: str


Line = Union[Empty, Comment, Entry, Invalid]


def classify(raw: str) -> Line:
    """Classifies one physical line of a hosts file."""
    stripped = raw.strip()
    if not stripped:
        return Empty()
    if stripped.startswith("#"):
        return Comment(raw)

    tokens = stripped.split()
    if len(tokens) != 2:
        return Invalid(raw)
    return Entry(tokens[0], tokens[1])


def split_lines(content: str) -> List[str]:
    """Splits on newlines only, dropping a trailing carriage return from each line."""
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def render(line: Line) -> str:
    """Turns a classified line back into text, without the newline."""
    if isinstance(line, Empty):
        return ""
    if isinstance(line, Entry):
        return f"{line.address}\t{line.hostname}"
    if isinstance(line, (Comment, Invalid)):
        return line.text
    raise TypeError(f"not a hosts line: {line!r}")


def blocked_hostname(line: Line) -> Optional[str]:
    """Returns the hostname if the line redirects a site to loopback."""
    if not isinstance(line, Entry):
        return None
    if line.hostname == LOCALHOST or line.address not in LOOPBACK_ADDRESSES:
        return None
    return line.hostname


class Outcome(Enum):
    ADDED = "added"
    ALREADY_BLOCKED = "already blocked"
    REMOVED = "removed"
    NOT_FOUND = "not found"


@dataclass(frozen=True)
class SiteResult:
    site: str
    outcome: Outcome

    @property
    def changed(self) -> bool:
        return self.outcome in (Outcome.ADDED, Outcome.REMOVED)


class HostsFile:
    """An ordered, classified view of a hosts file.

    Only blocked-site entries are ever added or removed; every other line is
    kept as it was read, in the same order.
    """

    def __init__(self, path: Union[str, Path], lines: Optional[List[Line]] = None, original: str = ""):
        self.path = Path(path)
        self.lines: List[Line] = list(lines or [])
        self.original = original
        self.changed = False

    @classmethod
    def load(cls, path: Union[str, Path]) -> "HostsFile":
        """Reads and classifies the hosts file at `path`."""
        path = Path(path)
        logger.debug("reading hosts file: %s", path)
        try:
            with open(path, "r", encoding="utf-8", newline="") as f:
                content = f.read()
        except FileNotFoundError as err:
            raise HostsFileNotFound(f"{path}: hosts file not found") from err
        except (OSError, UnicodeDecodeError) as err:
            raise HostsError(f"{path}: {err}") from err

        lines = [classify(raw) for raw in split_lines(content)]
        for number, line in enumerate(lines, start=1):
            if isinstance(line, Invalid):
                logger.warning("%s:%d invalid entry: %s", path, number, line.text)
        return cls(path, lines, original=content)

    def blocked_sites(self) -> List[str]:
        """Returns the blocked hostnames in file order."""
        sites = []
        for line in self.lines:
            hostname = blocked_hostname(line)
            if hostname is not None:
                sites.append(hostname)
        return sites

    def add(self, sites: Iterable[str]) -> List[SiteResult]:
        """Appends a loopback entry for every site that isn't blocked yet."""
        blocked = set(self.blocked_sites())
        results = []
        for site in sites:
            if site in blocked:
                logger.warning("%s is already blocked", site)
                results.append(SiteResult(site, Outcome.ALREADY_BLOCKED))
                continue

            logger.debug("adding %s at line %d", site, len(self.lines) + 1)
            self.lines.append(Entry(BLOCK_ADDRESS, site))
            blocked.add(site)
            self.changed = True
            logger.info("blocked %s", site)
            results.append(SiteResult(site, Outcome.ADDED))
        return results

    def remove(self, sites: Iterable[str]) -> List[SiteResult]:
        """Deletes the first blocked entry of every site."""
        results = []
        for site in sites:
            index = self._find(site)
            if index is None:
                logger.warning("%s is not blocked", site)
                results.append(SiteResult(site, Outcome.NOT_FOUND))
                continue

            logger.debug("removing %s at line %d", site, index + 1)
            del self.lines[index]
            self.changed = True
            logger.info("unblocked %s", site)
            results.append(SiteResult(site, Outcome.REMOVED))
        return results

    def set(self, sites: Iterable[str]) -> List[SiteResult]:
        """Makes the blocked sites exactly `sites`.

        Sites that are no longer wanted are removed first, then the missing
        ones are appended in the given order. Entries that stay blocked keep
        their position.
        """
        wanted = list(sites)
        keep = set(wanted)
        stale = [site for site in self.blocked_sites() if site not in keep]
        results = self.remove(stale)

        blocked = set(self.blocked_sites())
        results.extend(self.add(site for site in wanted if site not in blocked))
        return results

    def _find(self, site: str) -> Optional[int]:
        for index, line in enumerate(self.lines):
            if blocked_hostname(line) == site:
                return index
        return None

    def render(self) -> str:
        return "".join(render(line) + "\n" for line in self.lines)

    def diff(self) -> str:
        """Unified diff between the file as loaded and the current lines."""
        diff = difflib.unified_diff(
            split_lines(self.original),
            split_lines(self.render()),
            fromfile=f"{self.path} (current)",
            tofile=f"{self.path} (new)",
            lineterm="",
        )
        return "\n".join(diff)

    def backup(self) -> Path:
        """Copies the hosts file on disk next to itself with a timestamp."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        backup_path = self.path.with_name(f"{self.path.name}.{timestamp}.bak")
        logger.info("backing up %s to %s", self.path, backup_path)
        try:
            shutil.copy2(self.path, backup_path)
        except PermissionError as err:
            raise HostsPermissionDenied(f"{err}. Try using 'sudo'") from err
        except OSError as err:
            raise HostsError(f"{backup_path}: {err}") from err
        return backup_path

    def write(self, atomic: bool = False) -> None:
        """Overwrites the hosts file with the current lines.

        With `atomic`, the content goes to a temporary file in the same
        directory which then replaces the hosts file.
        """
        logger.debug("writing hosts file: %s", self.path)
        content = self.render()
        try:
            if atomic:
                self._replace(content)
            else:
                with open(self.path, "w", encoding="utf-8", newline="") as f:
                    f.write(content)
        except PermissionError as err:
            raise HostsPermissionDenied(f"{err}. Try using 'sudo'") from err
        except OSError as err:
            raise HostsError(f"{self.path}: {err}") from err
        self.original = content

    def _replace(self, content: str) -> None:
        fd, tmp = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
        os.close(fd)
        try:
            with open(tmp, "w", encoding="utf-8", newline="") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            if self.path.exists():
                shutil.copymode(self.path, tmp)
            os.replace(tmp, self.path)
        except BaseException:
            os.unlink(tmp)
            raise
