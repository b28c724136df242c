"""Constants used across the ldif-events package."""

from __future__ import annotations

from .config import LdifConfig

DEFAULT_CONFIG = LdifConfig()

# LDIF syntax
DN_ATTRIBUTE = "dn"
COMMENT_PREFIX = "#"
CONTINUATION_PREFIX = " "
VALUE_SEPARATOR = ":"
DN_PREFIX = DN_ATTRIBUTE + VALUE_SEPARATOR
VERSION_ATTRIBUTE = "version"
SUPPORTED_VERSION = 1

# Input files and limits
LDIF_EXTENSIONS = (".ldif", ".ldf")
DEFAULT_ENCODING = DEFAULT_CONFIG.encoding
DEFAULT_MAX_FILE_SIZE = DEFAULT_CONFIG.max_file_size
