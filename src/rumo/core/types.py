"""Type aliases shared by the core and financial packages."""

from os import PathLike as _OsPathLike
from typing import Any

# Merged configuration tree, as held by Config.config_data
ConfigDict = dict[str, Any]

# A decoded JSON object (blob, backup document, record)
JSONDict = dict[str, Any]

PathLike = str | _OsPathLike[str]
