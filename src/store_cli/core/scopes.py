"""Resolve a cache scope to the id that partitions it."""

from store_cli.config import ExecutionContext
from store_cli.core.models import Scope


def resolve_scope(scope: Scope, ctx: ExecutionContext) -> str:
    """Get the scope id for *scope* in the current build.

    Pull-request jobs share the cache of the job they were forked from, so
    the parent job id wins for job scope when both PR values are present.
    Build and unscoped resolve to an empty id.
    """
    if scope is Scope.EVENT:
        return ctx.event_id
    if scope is Scope.JOB:
        if ctx.pull_request and ctx.pr_parent_job_id:
            return ctx.pr_parent_job_id
        return ctx.job_id
    if scope is Scope.PIPELINE:
        return ctx.pipeline_id
    return ""
