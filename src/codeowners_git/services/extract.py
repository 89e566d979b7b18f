"""Copy a branch's changed files into the working tree."""

from __future__ import annotations

from dataclasses import dataclass

from .. import log
from ..errors import ExternalCommandFailedError, ValidationFailedError
from ..git import GitProvider
from ..matcher import matches_any, split_patterns
from ..models import ExtractResult
from ..ownership import OwnerLookup
from .base import BaseService
from .branch import ensure_no_staged_changes


@dataclass(frozen=True)
class ExtractRequest:
    source: str
    owner: str | None = None
    compare_main: bool = False
    remote: str = "origin"


class ExtractService(BaseService[ExtractRequest, ExtractResult]):
    """Bring the files a source ref changed into the working tree, unstaged.

    The comparison base is the merge-base of the source with the default
    branch, or the default branch tip itself with ``compare_main``.
    """

    def __init__(self, *, git: GitProvider, owners: OwnerLookup) -> None:
        self.git = git
        self.owners = owners

    def _run(self, request: ExtractRequest) -> ExtractResult:
        if not request.source or not request.source.strip():
            raise ValidationFailedError("missing required option: --source")
        ensure_no_staged_changes(self.git)

        base = self._base_ref(request)
        log.info(f'Comparing "{request.source}" against {base}')
        files = self.git.changed_files_between(base, request.source)
        if request.owner:
            patterns = split_patterns(request.owner)
            files = [
                path
                for path in files
                if any(matches_any(owner, patterns) for owner in self.owners.owners_of(path))
            ]
        if not files:
            log.warning("No files to extract")
            return ExtractResult(source=request.source, base=base)

        log.info(f"Extracting {len(files)} file(s):")
        for path in files:
            log.file(path)
        self.git.restore_files_from_ref(request.source, files)
        log.success(f"Extracted {len(files)} file(s) from {request.source} (unstaged)")
        return ExtractResult(source=request.source, base=base, files=tuple(files))

    def _base_ref(self, request: ExtractRequest) -> str:
        default = self.git.default_branch(request.remote)
        default_ref = default if self.git.branch_exists(default) else f"{request.remote}/{default}"
        if request.compare_main:
            return default_ref
        try:
            return self.git.merge_base(default_ref, request.source)
        except ExternalCommandFailedError as exc:
            raise ExternalCommandFailedError(
                f'could not find a merge-base between "{default_ref}" and "{request.source}": {exc}',
                recovery_hint="use --compare-main to diff against the default branch directly",
            ) from exc
