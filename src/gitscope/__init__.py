"""gitscope: project-scoped file lookup and search for git working copies."""

__version__ = "0.1.0"

from gitscope.completion import (
    BlockingPrompt,
    CompletionStrategy,
    CustomCompletion,
    IncrementalPrompt,
    register_completion,
    resolve_completion,
)
from gitscope.config import GitscopeConfig
from gitscope.context import (
    ActiveProjectContext,
    ContextResolver,
    ProjectState,
    Resolution,
)
from gitscope.exceptions import (
    DuplicateClassError,
    GitscopeError,
    InvalidScopeError,
    NotFoundError,
    NotInProjectError,
    StorageError,
    SubprocessTimeout,
    UnknownClassError,
    UntrustedConfigurationError,
)
from gitscope.facade import ProjectSession
from gitscope.query_types import FileListResult, GrepHit, GrepQueryResult, LineMatch
from gitscope.registry import ProjectBinding, ProjectClass, ProjectRegistry
from gitscope.roots import RootResolver, locate_dominating
from gitscope.runner import QueryRunner
from gitscope.scope import (
    Scope,
    current_scope,
    listing_filter_args,
    render_command,
    search_pattern_args,
)
from gitscope.store import ProjectStore
from gitscope.trust import TrustEntry, TrustList

__all__ = [
    "ActiveProjectContext",
    "BlockingPrompt",
    "CompletionStrategy",
    "ContextResolver",
    "CustomCompletion",
    "DuplicateClassError",
    "FileListResult",
    "GitscopeConfig",
    "GitscopeError",
    "GrepHit",
    "GrepQueryResult",
    "IncrementalPrompt",
    "InvalidScopeError",
    "LineMatch",
    "NotFoundError",
    "NotInProjectError",
    "ProjectBinding",
    "ProjectClass",
    "ProjectRegistry",
    "ProjectSession",
    "ProjectState",
    "ProjectStore",
    "QueryRunner",
    "Resolution",
    "RootResolver",
    "Scope",
    "StorageError",
    "SubprocessTimeout",
    "TrustEntry",
    "TrustList",
    "UnknownClassError",
    "UntrustedConfigurationError",
    "__version__",
    "current_scope",
    "listing_filter_args",
    "locate_dominating",
    "register_completion",
    "render_command",
    "resolve_completion",
    "search_pattern_args",
]
