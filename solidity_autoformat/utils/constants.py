"""Shared constants used across the application."""

# Change Detection Constants
# --------------------------

ZERO_SHA = "0" * 40
"""Placeholder SHA GitHub sends as `before` on the first push to a branch (64 zeros in SHA-256 repositories)."""

DEFAULT_FILE_SUFFIXES = (".sol",)
"""File suffixes considered by the change detector by default."""

# Formatting Constants
# --------------------

DEFAULT_TAB_WIDTH = 4
"""Indent width used when no project-local Prettier configuration exists."""

DEFAULT_PRINT_WIDTH = 120
"""Line width used when no project-local Prettier configuration exists."""

DEFAULT_PRETTIER_CONFIG_PATH = ".prettierrc"
"""Project-local Prettier configuration artifact."""

DEFAULT_PRETTIER_COMMAND = ("npx", "prettier")
"""Command prefix used to invoke Prettier."""

SOLIDITY_PRETTIER_PLUGIN = "prettier-plugin-solidity"
"""Prettier plugin that teaches Prettier the Solidity grammar."""

# Commit Constants
# ----------------

COMMIT_MESSAGE = "auto-format: prettier formatting for Solidity files"
"""Fixed message of the formatting commit."""

BOT_AUTHOR_NAME = "GitHub Action"
BOT_AUTHOR_EMAIL = "action@github.com"
"""Synthetic identity the formatting commit is authored with."""

DEFAULT_REMOTE = "origin"

# Build Constants
# ---------------

DEFAULT_FORGE_COMMAND = ("forge",)
"""Command prefix used to invoke the Foundry toolchain."""

# Comment Constants
# -----------------

FORMATTED_COMMENT_MARKER = "<!-- solidity-autoformat:formatted -->"
"""Hidden marker identifying the formatting summary comment."""

BUILD_FAILED_COMMENT_MARKER = "<!-- solidity-autoformat:build-failed -->"
"""Hidden marker identifying the build failure advisory comment."""

# Exit Codes
# ----------

EXIT_SUCCESS = 0
EXIT_DETECTION_FAILURE = 1
EXIT_FORMAT_FAILURE = 2
EXIT_PUSH_FAILURE = 3
EXIT_BUILD_FAILURE = 4
