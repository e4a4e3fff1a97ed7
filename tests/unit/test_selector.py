"""Unit tests for workflow run selection."""

from dataclasses import replace
from unittest.mock import MagicMock

from rerun_actions.pipeline.commands import RERUN_ALL, rerun_workflow
from rerun_actions.pipeline.selector import (
    find_matching_run,
    is_current_workflow,
    select_runs,
    target_workflows,
)


def run_lister(runs_by_workflow):
    """Build a run source backed by a dict and record its calls."""
    lister = MagicMock(side_effect=lambda wf_id, actor, event: iter(runs_by_workflow.get(wf_id, [])))
    return lister


class TestTargetWorkflows:
    """Tests for choosing workflows from commands."""

    def test_rerun_all_targets_everything(self, make_workflow):
        workflows = [make_workflow(1, "build"), make_workflow(2, "lint")]
        assert target_workflows({RERUN_ALL}, workflows) == workflows

    def test_exact_name_match(self, make_workflow):
        workflows = [make_workflow(1, "build"), make_workflow(2, "Build"), make_workflow(3, "lint")]
        result = target_workflows({rerun_workflow("build")}, workflows)
        assert [w.id for w in result] == [1]

    def test_listing_order_is_kept(self, make_workflow):
        workflows = [make_workflow(1, "a"), make_workflow(2, "b"), make_workflow(3, "c")]
        result = target_workflows({rerun_workflow("c"), rerun_workflow("a")}, workflows)
        assert [w.id for w in result] == [1, 3]


class TestCurrentWorkflow:
    """Tests for self-rerun prevention."""

    def test_matches_name(self, make_workflow):
        assert is_current_workflow(make_workflow(1, "rerun"), "rerun") is True

    def test_matches_path(self, make_workflow):
        workflow = make_workflow(1, "Rerun", path=".github/workflows/rerun.yml")
        assert is_current_workflow(workflow, ".github/workflows/rerun.yml") is True

    def test_no_current_workflow(self, make_workflow):
        assert is_current_workflow(make_workflow(1, "rerun"), None) is False
        assert is_current_workflow(make_workflow(1, "rerun"), "") is False


class TestFindMatchingRun:
    """Tests for scanning a workflow's runs."""

    def test_first_matching_run(self, pr, make_run):
        runs = [make_run(3, 1, head_sha="other", minutes=30), make_run(2, 1, minutes=20), make_run(1, 1, minutes=10)]
        assert find_matching_run(runs, pr).id == 2

    def test_stops_at_older_run(self, pr, make_run):
        runs = [make_run(2, 1, head_sha="other", minutes=5), make_run(1, 1, minutes=-5)]
        assert find_matching_run(runs, pr) is None

    def test_does_not_consume_past_match(self, pr, make_run):
        consumed = []

        def runs():
            for run in [make_run(2, 1, minutes=10), make_run(1, 1, minutes=5)]:
                consumed.append(run.id)
                yield run

        assert find_matching_run(runs(), pr).id == 2
        assert consumed == [2]

    def test_no_runs(self, pr):
        assert find_matching_run([], pr) is None


class TestSelectRuns:
    """Tests for the full selection."""

    def test_selects_one_run_per_workflow(self, pr, make_workflow, make_run):
        workflows = [make_workflow(1, "build"), make_workflow(2, "lint")]
        lister = run_lister(
            {
                1: [make_run(11, 1, minutes=20), make_run(10, 1, minutes=10)],
                2: [make_run(21, 2, minutes=15)],
            }
        )

        result = select_runs({RERUN_ALL}, workflows, pr, "pr-author", lister)

        assert [r.id for r in result] == [11, 21]
        assert len({r.workflow_id for r in result}) == len(result)

    def test_runs_filtered_by_author_and_event(self, pr, make_workflow):
        lister = run_lister({})
        select_runs({RERUN_ALL}, [make_workflow(1, "build")], pr, "pr-author", lister)
        lister.assert_called_once_with(1, "pr-author", "pull_request")

    def test_skips_inactive_workflows(self, pr, make_workflow, make_run):
        workflows = [make_workflow(1, "build", state="disabled_manually")]
        lister = run_lister({1: [make_run(11, 1)]})

        assert select_runs({RERUN_ALL}, workflows, pr, "pr-author", lister) == []
        lister.assert_not_called()

    def test_skips_current_workflow(self, pr, make_workflow, make_run):
        workflows = [make_workflow(1, "rerun"), make_workflow(2, "build")]
        lister = run_lister({1: [make_run(11, 1)], 2: [make_run(21, 2)]})

        result = select_runs(
            {RERUN_ALL}, workflows, pr, "pr-author", lister, current_workflow="rerun"
        )

        assert [r.id for r in result] == [21]

    def test_only_requested_workflows(self, pr, make_workflow, make_run):
        workflows = [make_workflow(1, "build"), make_workflow(2, "lint")]
        lister = run_lister({1: [make_run(11, 1)], 2: [make_run(21, 2)]})

        result = select_runs({rerun_workflow("lint")}, workflows, pr, "pr-author", lister)

        assert [r.id for r in result] == [21]

    def test_no_matching_sha(self, pr, make_workflow, make_run):
        lister = run_lister({1: [make_run(11, 1, head_sha="stale")]})
        assert select_runs({RERUN_ALL}, [make_workflow(1, "build")], pr, "pr-author", lister) == []

    def test_sort_runs(self, pr, make_workflow, make_run):
        # Out of order: the older matching run comes first.
        runs = [make_run(10, 1, minutes=10), make_run(12, 1, minutes=30), make_run(11, 1, minutes=20)]
        lister = run_lister({1: runs})

        unsorted = select_runs({RERUN_ALL}, [make_workflow(1, "build")], pr, "pr-author", lister)
        result = select_runs(
            {RERUN_ALL}, [make_workflow(1, "build")], pr, "pr-author", lister, sort_runs=True
        )

        assert [r.id for r in unsorted] == [10]
        assert [r.id for r in result] == [12]

    def test_pr_head_changes_selection(self, pr, make_workflow, make_run):
        runs = [make_run(11, 1, head_sha="new"), make_run(10, 1, minutes=1)]
        lister = run_lister({1: runs})

        result = select_runs(
            {RERUN_ALL}, [make_workflow(1, "build")], replace(pr, head_sha="new"), "pr-author", lister
        )

        assert [r.id for r in result] == [11]
