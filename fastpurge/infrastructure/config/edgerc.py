"""Loads EdgeGrid credentials from an edgerc file.

The file is read with `akamai.edgegrid.EdgeRc`. A missing file or section is a
CredentialError; missing individual keys are returned empty so that
validate_config can report them in its defined order.
"""

import logging
from configparser import Error as ConfigParserError
from pathlib import Path
from typing import Union

from akamai.edgegrid import EdgeRc

from fastpurge.domain.exceptions import CredentialError
from fastpurge.domain.models.purge import DEFAULT_MAX_BODY, EdgeCredentials

logger = logging.getLogger(__name__)

DEFAULT_EDGERC = "~/.edgerc"
DEFAULT_SECTION = "default"


def resolve_edgerc_path(edgerc: Union[str, Path]) -> Path:
    """Expands ``~`` and checks the file exists.

    Raises:
        CredentialError: If no path was given or the file does not exist.
    """
    if not str(edgerc):
        raise CredentialError("specify an edgerc file path")
    path = Path(edgerc).expanduser()
    if not path.is_file():
        raise CredentialError(f"edgerc file not found: {path}")
    return path


def load_credentials(edgerc: Union[str, Path] = DEFAULT_EDGERC, section: str = DEFAULT_SECTION) -> EdgeCredentials:
    """Reads one section of an edgerc file.

    Args:
        edgerc: Path to the edgerc file, ``~`` allowed.
        section: Section name inside the file.

    Returns:
        EdgeCredentials with whitespace-trimmed values.

    Raises:
        CredentialError: File missing, unreadable or section absent.
    """
    path = resolve_edgerc_path(edgerc)
    try:
        rc = EdgeRc(str(path))
    except (ConfigParserError, OSError, UnicodeDecodeError) as e:
        raise CredentialError(f"failed to read edgerc file {path}: {e}") from e

    if not rc.has_section(section):
        raise CredentialError(f'edgerc file {path} has no section "{section}"')

    def _get(key: str) -> str:
        return rc.get(section, key, fallback="").strip()

    try:
        max_body = rc.getint(section, "max_body", fallback=DEFAULT_MAX_BODY)
    except ValueError as e:
        raise CredentialError(f'edgerc section "{section}" has a non-integer max_body') from e

    logger.info(f'Loaded credentials from {path} section "{section}"')
    return EdgeCredentials(
        host=_get("host"),
        client_token=_get("client_token"),
        client_secret=_get("client_secret"),
        access_token=_get("access_token"),
        max_body=max_body,
    )
