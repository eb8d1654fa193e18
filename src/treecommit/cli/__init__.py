"""treecommit CLI: commit files from a working tree into a bare git repo."""

from ._helpers import main  # noqa: F401  entry point

# Import command modules to register Click commands with the main group.
from . import _commit  # noqa: F401
