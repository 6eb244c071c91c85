"""Reconciliation engine: bring a resource's applied state in line with its desired state.

Works for any resource exposing the reconcilable contract:

    _desired_state()                  attributes as the caller set them
    _current_state()                  fresh state read from the filer
    _diff(current, desired)           list of AttributeChange
    _commands_for(changes, desired)   list of PlannedCommand
    _mark_applied(values)             record attributes the filer accepted

Usage:
    engine = ReconciliationEngine(executor, invalidate=cache.invalidate)
    result = engine.apply(export)
"""
import logging
from typing import Any, Callable, Optional

from ..commands.executor import CommandExecutor
from ..errors import CommandError
from ..utils.logging_config import timed_section
from .diff import summarize_plan
from .schema import ReconcilePlan, ReconcileResult

logger = logging.getLogger(__name__)


class ReconciliationEngine:
    """Computes and applies the minimal command set for one resource at a time."""

    def __init__(self, executor: CommandExecutor, invalidate: Optional[Callable[[str], Any]] = None):
        self.executor = executor
        self._invalidate = invalidate

    @property
    def filer_id(self) -> str:
        return self.executor.filer_id

    def plan(self, resource) -> ReconcilePlan:
        """Compare desired against current state and build the commands."""
        desired = resource._desired_state()
        current = resource._current_state()
        changes = resource._diff(current, desired)
        plan = ReconcilePlan(kind=resource.kind, key=resource.key, changes=changes, desired=desired)
        if changes:
            plan.commands = resource._commands_for(changes, desired)
            for command in plan.commands:
                command.line = self.executor.build(command.kind, command.verb, command.args)
        return plan

    def _invalidate_kind(self, resource) -> None:
        if self._invalidate is not None:
            self._invalidate(resource.kind)

    def preview(self, resource) -> str:
        """Human-readable summary of what apply() would do."""
        return summarize_plan(self.plan(resource))

    def apply(self, resource, dry_run: bool = False) -> ReconcileResult:
        """Apply the plan for a resource.

        Commands run in order; after each one the attributes it covers are
        marked applied, so a failure part way leaves the resource's applied
        state matching what the filer accepted. The failing CommandError
        propagates.

        Unless it is a dry run, the resource kind is invalidated in the
        cache afterwards, even when nothing needed changing or the first
        command failed.
        """
        with timed_section("reconcile", filer_id=self.filer_id, kind=resource.kind, key=resource.key):
            plan = self.plan(resource)
            result = ReconcileResult(plan=plan, dry_run=dry_run)

            if plan.no_change:
                logger.info(f"[{self.filer_id}] {plan.kind} {plan.key} already matches, nothing to do")
                result.success = True
                if not dry_run:
                    self._invalidate_kind(resource)
                return result

            logger.info(
                f"[{self.filer_id}] {'DRY RUN: ' if dry_run else ''}"
                f"{plan.kind} {plan.key}: {len(plan.changes)} change(s), {plan.total_commands} command(s)"
            )
            before = {c.name: c.current for c in plan.changes}
            after = {c.name: c.desired for c in plan.changes}

            try:
                for command in plan.commands:
                    if dry_run:
                        self.executor.execute(
                            command.line,
                            operation=f"{command.kind} {command.verb}",
                            parameters=command.args,
                            dry_run=True,
                            before_state=before,
                            after_state=after,
                        )
                    else:
                        self.executor.run(
                            command.kind, command.verb, command.args,
                            before_state=before, after_state=after,
                        )
                        resource._mark_applied({f: plan.desired[f] for f in command.fields if f in plan.desired})
                    result.commands_executed.append(command.line)
            except CommandError as e:
                result.error = e.message
                logger.warning(
                    f"[{self.filer_id}] {plan.kind} {plan.key}: stopped after "
                    f"{len(result.commands_executed)}/{plan.total_commands} command(s): {e.message}"
                )
                raise
            finally:
                if not dry_run:
                    self._invalidate_kind(resource)

            result.success = True
            return result
