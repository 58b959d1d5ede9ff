"""
Tests for the thought timeline and step tracker.
"""
from geo_explorer.models import StepKind, StepStatus, ThoughtStepUpdate
from geo_explorer.orchestration.progress import StepTracker, ThoughtTimeline


class TestThoughtTimeline:

    def test_unseen_id_creates_pending_step_titled_by_id(self):
        timeline = ThoughtTimeline()

        step = timeline.report({"id": "lookup"})

        assert step.title == "lookup"
        assert step.status == StepStatus.PENDING
        assert step.details is None

    def test_updates_merge_instead_of_duplicating(self):
        timeline = ThoughtTimeline()
        timeline.report(ThoughtStepUpdate(id="from_coords", title="Geocode 'Paris'", kind=StepKind.GEOCODE))
        timeline.report(ThoughtStepUpdate(id="from_coords", status=StepStatus.RUNNING))
        timeline.report(ThoughtStepUpdate(id="from_coords", status=StepStatus.SUCCESS, details="Found: 48.86, 2.35"))

        steps = timeline.steps()
        assert len(steps) == 1
        assert steps[0].title == "Geocode 'Paris'"
        assert steps[0].kind == StepKind.GEOCODE
        assert steps[0].status == StepStatus.SUCCESS
        assert steps[0].details == "Found: 48.86, 2.35"

    def test_repeated_identical_update_is_idempotent(self):
        timeline = ThoughtTimeline()
        update = ThoughtStepUpdate(id="a", status=StepStatus.RUNNING)

        timeline.report(update)
        first = timeline.get("a")
        timeline.report(update)

        assert len(timeline) == 1
        assert timeline.get("a") == first

    def test_only_set_fields_are_merged(self):
        timeline = ThoughtTimeline()
        timeline.report({"id": "a", "title": "Analyze", "details": "working"})
        timeline.report({"id": "a", "status": "success"})

        step = timeline.get("a")
        assert step.title == "Analyze"
        assert step.details == "working"

    def test_explicit_none_does_not_blank_title(self):
        timeline = ThoughtTimeline()
        timeline.report({"id": "a", "title": "Analyze"})
        timeline.report({"id": "a", "title": None, "status": None})

        assert timeline.get("a").title == "Analyze"
        assert timeline.get("a").status == StepStatus.PENDING

    def test_order_follows_first_report(self):
        timeline = ThoughtTimeline()
        for step_id in ("from_coords", "to_coords", "generate_route"):
            timeline.report({"id": step_id})
        timeline.report({"id": "from_coords", "status": "success"})

        assert [s.id for s in timeline] == ["from_coords", "to_coords", "generate_route"]

    def test_listeners_receive_merged_steps(self):
        timeline = ThoughtTimeline()
        seen = []
        timeline.add_listener(seen.append)

        timeline.report({"id": "a", "title": "A"})
        timeline.report({"id": "a", "status": "running"})
        timeline.remove_listener(seen.append)
        timeline.report({"id": "a", "status": "success"})

        assert [s.status for s in seen] == [StepStatus.PENDING, StepStatus.RUNNING]
        assert seen[1].title == "A"

    def test_callable_as_callback(self):
        timeline = ThoughtTimeline()
        timeline(ThoughtStepUpdate(id="x"))
        assert timeline.get("x") is not None


class TestStepTracker:

    def test_without_callback_is_noop(self):
        tracker = StepTracker(None)
        tracker.declare("a", "A", StepKind.ANALYSIS)
        tracker.running("a")
        tracker.success("a", "done")

    def test_lifecycle_updates(self, recorded_steps):
        tracker = StepTracker(recorded_steps)

        tracker.declare("a", "A", StepKind.ANALYSIS)
        tracker.running("a")
        tracker.error("a", "boom")

        statuses = [u.status for u in recorded_steps.updates]
        assert statuses == [StepStatus.PENDING, StepStatus.RUNNING, StepStatus.ERROR]
        assert recorded_steps.updates[-1].details == "boom"

    def test_none_details_not_sent(self, recorded_steps):
        tracker = StepTracker(recorded_steps)
        tracker.running("a")

        assert "details" not in recorded_steps.updates[0].model_dump(exclude_unset=True)
