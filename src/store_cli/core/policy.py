"""Pull-request write policy for shared caches."""

import logging

from store_cli.config import ExecutionContext
from store_cli.core.models import Action, Scope, StoreType

logger = logging.getLogger(__name__)

# Caches that outlive a single pull-request event.
SHARED_SCOPES = (Scope.PIPELINE, Scope.JOB)


def should_skip(
    store_type: StoreType, scope: Scope, action: Action, ctx: ExecutionContext
) -> bool:
    """Check whether a cache action must be suppressed for a PR build.

    PR builds may read pipeline- and job-scoped caches but must not write
    or delete them. Event-scoped caches belong to the PR's own event and
    are always writable.

    Args:
        store_type: Store type of the request
        scope: Scope of the request
        action: Requested action
        ctx: Execution context

    Returns:
        True if the action should be skipped
    """
    if store_type is not StoreType.CACHE or not ctx.is_pull_request:
        return False

    if action is not Action.GET and scope in SHARED_SCOPES:
        logger.info(
            "Skipping %s %s-scoped cache for Pull Request", action.value, scope.value
        )
        return True

    return False
