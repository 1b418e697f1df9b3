"""Test execution with live status reconciliation.

A run request (included and excluded tree nodes) is grouped per target.
Each group becomes one ``cargo test`` invocation whose JSON event stream is
mapped back onto the tree through the reverse index while the process is
still running. Groups run strictly one after another.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from cargoscope.config.constants import (
    PATH_SEPARATOR,
    SKIP_FLAG,
    TEST_EVENT_FAILED,
    TEST_EVENT_IGNORED,
    TEST_EVENT_OK,
    TEST_EVENT_STARTED,
)
from cargoscope.config.models import RunConfig
from cargoscope.core.errors import ToolchainError
from cargoscope.core.logging import clear_run_id, get_logger, set_run_id
from cargoscope.testing.events import SuiteEvent, TestEvent, parse_event_line
from cargoscope.testing.models import RunGroup, TestNode, TestOutcome, TestStatus, TestTarget
from cargoscope.testing.tree import TestTree
from cargoscope.toolchain.process import ProcessRunner

log = get_logger("testing.run")

OutcomeListener = Callable[[TestNode, TestOutcome], None]


# =============================================================================
# Run recording
# =============================================================================


class TestRun:
    """Records status transitions and output for one run request.

    This is the run object a UI renders from: every transition is stored
    per node uid and forwarded to ``listener`` as it happens.
    """

    __test__ = False

    def __init__(self, run_id: str, listener: OutcomeListener | None = None) -> None:
        self.run_id = run_id
        self._listener = listener
        self._outcomes: dict[str, TestOutcome] = {}
        self._nodes: dict[str, TestNode] = {}
        self._output: dict[str | None, list[str]] = {}
        self.ended = False

    def _record(
        self,
        node: TestNode,
        status: TestStatus,
        message: str | None = None,
        duration_seconds: float | None = None,
    ) -> None:
        outcome = TestOutcome(status=status, message=message, duration_seconds=duration_seconds)
        self._outcomes[node.uid] = outcome
        self._nodes[node.uid] = node
        if self._listener is not None:
            self._listener(node, outcome)

    def enqueued(self, node: TestNode) -> None:
        self._record(node, "queued")

    def started(self, node: TestNode) -> None:
        self._record(node, "running")

    def passed(self, node: TestNode, duration_seconds: float | None = None) -> None:
        self._record(node, "passed", duration_seconds=duration_seconds)

    def failed(
        self,
        node: TestNode,
        message: str,
        duration_seconds: float | None = None,
    ) -> None:
        self._record(node, "failed", message, duration_seconds)

    def ignored(self, node: TestNode) -> None:
        self._record(node, "ignored")

    def skipped(self, node: TestNode) -> None:
        self._record(node, "skipped")

    def append_output(self, text: str, node: TestNode | None = None) -> None:
        self._output.setdefault(node.uid if node else None, []).append(text)

    def end(self) -> None:
        self.ended = True

    def outcome(self, node: TestNode) -> TestOutcome | None:
        return self._outcomes.get(node.uid)

    def output(self, node: TestNode | None = None) -> str:
        return "".join(self._output.get(node.uid if node else None, []))

    @property
    def outcomes(self) -> dict[str, TestOutcome]:
        return dict(self._outcomes)

    def nodes_with_status(self, status: TestStatus) -> list[TestNode]:
        return [self._nodes[uid] for uid, o in self._outcomes.items() if o.status == status]

    @property
    def has_failures(self) -> bool:
        return any(o.status == "failed" for o in self._outcomes.values())


# =============================================================================
# Grouping
# =============================================================================


def build_run_groups(
    tree: TestTree,
    base_args: list[str],
    include: Iterable[TestNode] | None = None,
    exclude: Iterable[TestNode] | None = None,
) -> list[RunGroup]:
    """Partition a run request into one group per target, in request order.

    Excluding a target's root drops that target from the run entirely.
    """
    skips: dict[TestTarget, list[tuple[str, ...]]] = {}
    for node in exclude or ():
        item = tree.item(node)
        skips.setdefault(item.target, []).append(item.name_path)

    groups: dict[TestTarget, RunGroup] = {}
    for node in tree.roots if include is None else include:
        item = tree.item(node)
        group = groups.get(item.target)
        if group is None:
            target = item.target
            group = RunGroup(
                target=target,
                run_args=[*base_args, "--package", target.package, *target.selector_args()],
                report=tree.find(target.root_id),
            )
            groups[item.target] = group
        group.add_filter(item.name_path)

    for target, paths in skips.items():
        group = groups.get(target)
        if group is None:
            continue
        for path in paths:
            group.add_skip(path)

    return [g for g in groups.values() if () not in g.skips]


def group_args(group: RunGroup, format_args: list[str]) -> list[str]:
    """Final cargo arguments for a group: target, format, skips, then filters."""
    args = [*group.run_args, "--", *format_args]
    for skip in group.skip_filters():
        args.extend([SKIP_FLAG, skip])
    args.extend(group.name_filters())
    return args


# =============================================================================
# Orchestration
# =============================================================================


@dataclass
class _GroupState:
    """Per-invocation bookkeeping fed by the event stream."""

    exec_time: float | None = None
    failed_count: int | None = None


class TestRunOrchestrator:
    """Runs groups sequentially and reconciles events onto the tree."""

    __test__ = False

    def __init__(
        self,
        runner: ProcessRunner,
        tree: TestTree,
        config: RunConfig | None = None,
        *,
        line_ending: str = "\r\n",
    ) -> None:
        self._runner = runner
        self._tree = tree
        self._config = config or RunConfig()
        self._line_ending = line_ending

    def build_groups(
        self,
        include: Iterable[TestNode] | None = None,
        exclude: Iterable[TestNode] | None = None,
    ) -> list[RunGroup]:
        return build_run_groups(self._tree, self._config.base_args, include, exclude)

    async def run(
        self,
        include: Iterable[TestNode] | None = None,
        exclude: Iterable[TestNode] | None = None,
        cancel: asyncio.Event | None = None,
        listener: OutcomeListener | None = None,
    ) -> TestRun:
        """Execute a run request and return its recorded outcomes.

        ``cancel`` is checked before each group starts; a cargo process that
        is already running is left to finish.
        """
        include = list(include) if include is not None else None
        run = TestRun(set_run_id(), listener)
        try:
            groups = self.build_groups(include, exclude)
            targets = {g.target for g in groups}
            for node in include if include is not None else [g.report for g in groups]:
                if self._tree.item(node).target in targets:
                    run.enqueued(node)

            log.info("run_started", groups=len(groups))
            for group in groups:
                if cancel is not None and cancel.is_set():
                    log.info("run_group_cancelled", target=group.report.id)
                    run.skipped(group.report)
                    continue
                await self._run_group(run, group)
        finally:
            run.end()
            log.info("run_ended", failed=len(run.nodes_with_status("failed")))
            clear_run_id()
        return run

    async def _run_group(self, run: TestRun, group: RunGroup) -> None:
        report = group.report
        package = group.target.package
        args = group_args(group, self._config.format_args)
        state = _GroupState()
        busy: list[TestNode] = []

        run.append_output(f"> cargo {' '.join(args)}{self._line_ending}", report)

        def append_line(text: str) -> None:
            run.append_output(f"{text}{self._line_ending}", report)

        def on_stdout(line: str) -> None:
            event = parse_event_line(line)
            if isinstance(event, SuiteEvent):
                if event.is_complete:
                    state.exec_time = event.exec_time
                    state.failed_count = event.failed
                return
            if isinstance(event, TestEvent):
                self._apply_test_event(run, group, event, line, append_line, busy)
                return
            log.debug("run_line_skipped", target=report.id, line=line[:200])

        try:
            exit_code = await self._runner.run(args, on_stdout, append_line)
        except ToolchainError as e:
            if e.exit_code is None:
                log.error("run_launch_failed", target=report.id, error=e.message)
                run.failed(report, e.message)
                return
            exit_code = e.exit_code
        finally:
            for node in busy:
                node.busy = False

        if exit_code == 0:
            run.passed(report, state.exec_time)
        elif state.failed_count is not None:
            run.failed(report, f"{state.failed_count} tests failed (exit code {exit_code})")
        else:
            run.failed(report, f"Unknown failed count (exit code {exit_code})")
        log.info("run_group_finished", package=package, target=report.id, exit_code=exit_code)

    def _apply_test_event(
        self,
        run: TestRun,
        group: RunGroup,
        event: TestEvent,
        raw_line: str,
        append_line: Callable[[str], None],
        busy: list[TestNode],
    ) -> None:
        qualified_name = f"{group.target.package}{PATH_SEPARATOR}{event.name}"
        node = self._tree.resolve(group.target, qualified_name)
        if node is None:
            log.error("test_event_unresolved", name=qualified_name, test_event=event.event)
            return

        if event.event == TEST_EVENT_STARTED:
            node.busy = True
            busy.append(node)
            run.started(node)
        elif event.event == TEST_EVENT_OK:
            node.busy = False
            run.passed(node, event.exec_time)
        elif event.event == TEST_EVENT_IGNORED:
            node.busy = False
            run.ignored(node)
        elif event.event == TEST_EVENT_FAILED:
            node.busy = False
            run.failed(node, f"~~~\n{event.stdout or ''}\n~~~", event.exec_time)
        else:
            append_line(raw_line)
            node.busy = False
            run.failed(node, f"Unhandled test event type {event.event}")
            log.warning("test_event_unhandled", name=qualified_name, test_event=event.event)
