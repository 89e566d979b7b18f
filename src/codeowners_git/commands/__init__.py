"""Command implementations exposed by the codeowners-git CLI."""

from .branch import create_branch
from .extract import extract_files
from .list import list_owners
from .multi_branch import create_multi_branch
from .recover import recover_operation

__all__ = [
    "create_branch",
    "create_multi_branch",
    "extract_files",
    "list_owners",
    "recover_operation",
]
