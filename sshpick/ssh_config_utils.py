import glob
import logging
import os
import re
import shlex
from typing import Iterable, List, Optional, Set, Tuple

import paramiko
from paramiko.ssh_exception import SSHException

from sshpick.models import (
    SOURCE_MALFORMED,
    SOURCE_UNAVAILABLE,
    HostRecord,
    HostSource,
    ParseResult,
    SourceWarning,
    is_wildcard,
)


logger = logging.getLogger(__name__)

# Same shape paramiko accepts: "Keyword value" or "Keyword=value".
_SETTINGS_RE = re.compile(r"^(\w+)(?:\s*=\s*|\s+)(.+)$")


def _warn(warnings: List[SourceWarning], path: str, kind: str, message: str, line: Optional[int] = None):
    warning = SourceWarning(path=path, kind=kind, message=message, line=line)
    logger.warning("%s", warning)
    warnings.append(warning)


def resolve_ssh_config_files(
    main_path: str,
    *,
    max_depth: int = 32,
    visited: Optional[Set[str]] = None,
    warnings: Optional[List[SourceWarning]] = None,
) -> List[str]:
    """Return a list of SSH config files including those referenced by Include.

    Paths are expanded and resolved relative to their parent file. Files
    already in *visited* are skipped, so a caller can share one set across
    several roots. The main file is always first in the returned list. A
    recursion guard prevents cycles and limits include depth.
    """
    resolved: List[str] = []
    if visited is None:
        visited = set()
    if warnings is None:
        warnings = []

    def _resolve(path: str, depth: int, stack: List[str]):
        abs_path = os.path.abspath(os.path.expanduser(path))
        if abs_path in stack:
            _warn(warnings, abs_path, SOURCE_MALFORMED,
                  "Include cycle detected: %s -> %s" % (" -> ".join(stack), abs_path))
            return
        if depth > max_depth:
            _warn(warnings, abs_path, SOURCE_MALFORMED,
                  "Maximum include depth (%d) exceeded" % max_depth)
            return
        if abs_path in visited:
            return
        try:
            with open(abs_path, 'r', encoding='utf-8', errors='replace') as f:
                lines = f.readlines()
        except OSError as exc:
            _warn(warnings, abs_path, SOURCE_UNAVAILABLE, "Cannot read SSH config: %s" % exc.strerror)
            return
        visited.add(abs_path)
        resolved.append(abs_path)
        base_dir = os.path.dirname(abs_path)
        stack.append(abs_path)
        for lineno, raw_line in enumerate(lines, 1):
            line = raw_line.strip()
            if not line or line.startswith('#'):
                continue
            match = _SETTINGS_RE.match(line)
            if not match or match.group(1).lower() != 'include':
                continue
            try:
                patterns = shlex.split(match.group(2), comments=True)
            except ValueError as exc:
                _warn(warnings, abs_path, SOURCE_MALFORMED, "Bad Include directive: %s" % exc, lineno)
                continue
            for pattern in patterns:
                expanded = os.path.expanduser(pattern)
                if not os.path.isabs(expanded):
                    expanded = os.path.join(base_dir, expanded)
                matches = glob.glob(expanded)
                if not matches:
                    logger.debug("Include pattern %s does not match any files", pattern)
                for matched in sorted(matches):
                    if os.path.isdir(matched):
                        for fname in sorted(glob.glob(os.path.join(matched, '*'))):
                            _resolve(fname, depth + 1, stack)
                    else:
                        _resolve(matched, depth + 1, stack)
        stack.pop()

    _resolve(main_path, 1, [])
    return resolved


def list_config_dir(config_dir: Optional[str]) -> List[str]:
    """Return the regular files of a drop-in directory sorted by name."""
    if not config_dir:
        return []
    try:
        names = sorted(os.listdir(config_dir))
    except OSError as exc:
        logger.debug("Skipping SSH config directory %s: %s", config_dir, exc)
        return []
    return [
        os.path.join(config_dir, name)
        for name in names
        if os.path.isfile(os.path.join(config_dir, name))
    ]


def _line_is_valid_match(line: str) -> bool:
    try:
        paramiko.SSHConfig.from_text(line)
    except (SSHException, ValueError):
        return False
    return True


def _scan_lines(path: str, lines: Iterable[str], warnings: List[SourceWarning]) -> Tuple[List[str], List[str]]:
    """Collect host aliases in declaration order and the lines paramiko can parse."""
    aliases: List[str] = []
    seen: Set[str] = set()
    clean: List[str] = []
    skipping_block = False

    for lineno, raw_line in enumerate(lines, 1):
        line = raw_line.strip()
        if not line or line.startswith('#'):
            continue
        match = _SETTINGS_RE.match(line)
        if not match:
            _warn(warnings, path, SOURCE_MALFORMED, "Unparsable line: %s" % line, lineno)
            continue
        key = match.group(1).lower()

        if key == 'host':
            try:
                tokens = shlex.split(match.group(2), comments=True)
            except ValueError as exc:
                _warn(warnings, path, SOURCE_MALFORMED, "Bad Host line: %s" % exc, lineno)
                skipping_block = True
                continue
            if not tokens:
                _warn(warnings, path, SOURCE_MALFORMED, "Host line has no patterns", lineno)
                skipping_block = True
                continue
            skipping_block = False
            # Trailing comments would otherwise become host patterns for paramiko.
            line = "Host " + " ".join(tokens)
            for token in tokens:
                if is_wildcard(token) or token in seen:
                    continue
                seen.add(token)
                aliases.append(token)
        elif key == 'match':
            if not _line_is_valid_match(line):
                _warn(warnings, path, SOURCE_MALFORMED, "Bad Match line: %s" % line, lineno)
                skipping_block = True
                continue
            skipping_block = False
        elif skipping_block or key == 'include':
            continue

        clean.append(line)

    return aliases, clean


def parse_ssh_config_file(path: str) -> ParseResult:
    """Return the concrete host aliases declared in one SSH config file.

    Options are resolved with paramiko's lookup rules, so ``Host *`` defaults
    and the first-obtained-value-wins ordering apply exactly as ssh would
    apply them within this file.
    """
    warnings: List[SourceWarning] = []
    try:
        with open(path, 'r', encoding='utf-8', errors='replace') as f:
            lines = f.readlines()
    except OSError as exc:
        _warn(warnings, path, SOURCE_UNAVAILABLE, "Cannot read SSH config: %s" % exc.strerror)
        return ParseResult([], warnings)

    aliases, clean = _scan_lines(path, lines, warnings)
    if not aliases:
        return ParseResult([], warnings)

    try:
        config = paramiko.SSHConfig.from_text("\n".join(clean))
    except (SSHException, ValueError) as exc:
        _warn(warnings, path, SOURCE_MALFORMED, "SSH config could not be evaluated: %s" % exc)
        return ParseResult([], warnings)

    records: List[HostRecord] = []
    for alias in aliases:
        try:
            options = config.lookup(alias)
        except (SSHException, ValueError, ImportError) as exc:
            _warn(warnings, path, SOURCE_MALFORMED, "Cannot resolve host %s: %s" % (alias, exc))
            continue
        records.append(
            HostRecord(
                alias=alias,
                source=HostSource.CONFIG_FILE,
                hostname=str(options.get('hostname') or alias),
                port=str(options.get('port') or ''),
                user=str(options.get('user') or ''),
                proxy_jump=str(options.get('proxyjump') or ''),
            )
        )
    logger.debug("Parsed %d host(s) from %s", len(records), path)
    return ParseResult(records, warnings)


def parse_ssh_config_sources(
    primary: str,
    system: Optional[str] = None,
    config_dir: Optional[str] = None,
) -> ParseResult:
    """Parse the user config, the system config and the drop-in directory, in that order."""
    records: List[HostRecord] = []
    warnings: List[SourceWarning] = []
    visited: Set[str] = set()

    roots = [primary]
    if system:
        roots.append(system)
    roots.extend(list_config_dir(config_dir))

    for root in roots:
        for cfg_file in resolve_ssh_config_files(root, visited=visited, warnings=warnings):
            result = parse_ssh_config_file(cfg_file)
            records.extend(result.records)
            warnings.extend(result.warnings)

    return ParseResult(records, warnings)


__all__ = [
    "list_config_dir",
    "parse_ssh_config_file",
    "parse_ssh_config_sources",
    "resolve_ssh_config_files",
]
