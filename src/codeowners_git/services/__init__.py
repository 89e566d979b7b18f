from .base import BaseService
from .branch import BranchRequest, BranchService
from .extract import ExtractRequest, ExtractService
from .multi_branch import MultiBranchRequest, MultiBranchService, branch_name_for, sanitize_owner
from .recovery import RecoverRequest, RecoveryService

__all__ = [
    "BaseService",
    "BranchRequest",
    "BranchService",
    "ExtractRequest",
    "ExtractService",
    "MultiBranchRequest",
    "MultiBranchService",
    "RecoverRequest",
    "RecoveryService",
    "branch_name_for",
    "sanitize_owner",
]
