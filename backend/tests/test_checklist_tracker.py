"""
Checklist execution tracker tests:
  - progress formula (including the empty checklist)
  - instantiate / instantiate_ad_hoc
  - apply_responses merge rules, idempotence and value validation
  - completion gate (required items only) vs. progress (all items)
"""
import pytest

from sitekeeper.core.exceptions import ValidationError
from sitekeeper.models.checklist import ChecklistItem, ChecklistTemplate
from sitekeeper.schemas.checklist import ChecklistItemCreate
from sitekeeper.schemas.execution import ChecklistItemUpdate
from sitekeeper.services import checklist_tracker as tracker


def _template():
    return ChecklistTemplate(
        id=7,
        name="Site Inspection",
        items=[
            ChecklistItem(item_key="door", title="Door locked", kind="yes_no", required=True, order=0, options=[]),
            ChecklistItem(item_key="temp", title="Room temperature", kind="number", required=True, order=1, options=[]),
            ChecklistItem(item_key="state", title="Rack state", kind="choice", required=False, order=2,
                          options=["good", "dusty", "damaged"]),
            ChecklistItem(item_key="notes", title="Remarks", kind="text", required=False, order=3, options=[]),
        ],
    )


def _answer(key, **fields):
    return ChecklistItemUpdate(item_key=key, **fields)


# ═══════════════════════════════════════════════════════════════════════════
# Progress formula
# ═══════════════════════════════════════════════════════════════════════════


class TestProgress:

    @pytest.mark.parametrize("completed,total,expected", [
        (0, 0, 0),
        (0, 4, 0),
        (1, 2, 50),
        (1, 3, 33),
        (2, 3, 67),
        (1, 8, 13),
        (3, 3, 100),
    ])
    def test_round_of_percentage(self, completed, total, expected):
        assert tracker.compute_progress(completed, total) == expected

    def test_empty_ad_hoc_checklist_has_zero_progress(self):
        execution = tracker.instantiate_ad_hoc([])
        assert execution.progress == 0
        assert execution.items == []


# ═══════════════════════════════════════════════════════════════════════════
# Instantiation
# ═══════════════════════════════════════════════════════════════════════════


class TestInstantiate:

    def test_mirrors_template_in_order(self):
        execution = tracker.instantiate(_template())
        assert execution.template_id == 7
        assert execution.template_name == "Site Inspection"
        assert [i.item_key for i in execution.items] == ["door", "temp", "state", "notes"]
        assert all(not i.completed and i.value is None and i.notes is None for i in execution.items)
        assert execution.progress == 0

    def test_snapshot_survives_template_edits(self):
        template = _template()
        execution = tracker.instantiate(template)
        template.items[0].title = "Renamed"
        assert execution.items[0].title == "Door locked"

    def test_ad_hoc_has_no_template_and_generated_keys(self):
        execution = tracker.instantiate_ad_hoc([
            ChecklistItemCreate(title="Check fuel", kind="number", required=True),
            ChecklistItemCreate(title="Clean filters"),
        ])
        assert execution.template_id is None
        assert len(execution.items) == 2
        assert all(i.item_key for i in execution.items)
        assert execution.items[0].item_key != execution.items[1].item_key

    def test_ad_hoc_items_are_validated(self):
        with pytest.raises(ValidationError):
            tracker.instantiate_ad_hoc([ChecklistItemCreate(title="Pick", kind="choice", options=[])])

    def test_blank_choice_options_are_dropped(self):
        execution = tracker.instantiate_ad_hoc([
            ChecklistItemCreate(item_key="cabinet", title="Cabinet", kind="choice", options=["", "  ok ", " "]),
        ])
        assert execution.items[0].options == ["ok"]
        with pytest.raises(ValidationError):
            tracker.apply_responses(execution, [_answer("cabinet", completed=True, value="")])
        assert tracker.apply_responses(execution, [_answer("cabinet", value="ok")]).items[0].value == "ok"

        with pytest.raises(ValidationError):
            tracker.instantiate_ad_hoc([ChecklistItemCreate(title="Pick", kind="choice", options=["", " "])])


# ═══════════════════════════════════════════════════════════════════════════
# apply_responses
# ═══════════════════════════════════════════════════════════════════════════


class TestApplyResponses:

    def test_merges_by_key_and_recomputes_progress(self):
        execution = tracker.instantiate(_template())
        updated = tracker.apply_responses(execution, [
            _answer("door", completed=True, value=True),
            _answer("temp", completed=True, value=23.5, notes="AC ok"),
        ])
        assert updated.progress == 50
        by_key = {i.item_key: i for i in updated.items}
        assert by_key["door"].value is True
        assert by_key["temp"].value == 23.5
        assert by_key["temp"].notes == "AC ok"
        assert not by_key["state"].completed

    def test_returns_new_execution_and_leaves_input_untouched(self):
        execution = tracker.instantiate(_template())
        updated = tracker.apply_responses(execution, [_answer("door", completed=True)])
        assert updated is not execution
        assert execution.progress == 0
        assert not execution.items[0].completed

    def test_idempotent(self):
        execution = tracker.instantiate(_template())
        responses = [
            _answer("door", completed=True, value=True),
            _answer("state", completed=True, value="dusty"),
        ]
        once = tracker.apply_responses(execution, responses)
        twice = tracker.apply_responses(once, responses)
        assert once == twice
        assert twice.progress == 50

    def test_omitted_fields_keep_current_values(self):
        execution = tracker.instantiate(_template())
        first = tracker.apply_responses(execution, [_answer("notes", completed=True, value="all good")])
        second = tracker.apply_responses(first, [_answer("notes", notes="checked twice")])
        item = second.items[3]
        assert item.completed is True
        assert item.value == "all good"
        assert item.notes == "checked twice"

    def test_unknown_item_rejected(self):
        execution = tracker.instantiate(_template())
        with pytest.raises(ValidationError) as exc:
            tracker.apply_responses(execution, [_answer("door", completed=True), _answer("ghost", completed=True)])
        assert "ghost" in exc.value.details

    def test_duplicate_keys_in_one_batch_rejected(self):
        execution = tracker.instantiate(_template())
        with pytest.raises(ValidationError):
            tracker.apply_responses(execution, [_answer("door", completed=True), _answer("door", completed=False)])

    @pytest.mark.parametrize("key,value", [
        ("door", "yes"),
        ("temp", True),
        ("temp", "20"),
        ("state", "melted"),
        ("state", ["good", "melted"]),
        ("notes", 12),
    ])
    def test_value_must_match_item_kind(self, key, value):
        execution = tracker.instantiate(_template())
        with pytest.raises(ValidationError):
            tracker.apply_responses(execution, [_answer(key, value=value)])

    def test_multi_choice_value_accepted(self):
        execution = tracker.instantiate(_template())
        updated = tracker.apply_responses(execution, [_answer("state", value=["good", "dusty"])])
        assert updated.items[2].value == ["good", "dusty"]

    def test_photo_and_task_items(self):
        execution = tracker.instantiate_ad_hoc([
            ChecklistItemCreate(item_key="pic", title="Panel photo", kind="photo"),
            ChecklistItemCreate(item_key="sweep", title="Sweep floor", kind="task"),
        ])
        updated = tracker.apply_responses(execution, [
            _answer("pic", completed=True, value=["https://cdn.example/p1.jpg"], photos=["https://cdn.example/p1.jpg"]),
            _answer("sweep", completed=True),
        ])
        assert updated.progress == 100
        with pytest.raises(ValidationError):
            tracker.apply_responses(execution, [_answer("sweep", value="done")])


# ═══════════════════════════════════════════════════════════════════════════
# Completion gate
# ═══════════════════════════════════════════════════════════════════════════


class TestIsComplete:

    def test_required_items_only(self):
        execution = tracker.instantiate(_template())
        done = tracker.apply_responses(execution, [
            _answer("door", completed=True),
            _answer("temp", completed=True),
        ])
        assert tracker.is_complete(done) is True
        assert done.progress == 50

    def test_uncompleting_a_required_item_flips_the_gate(self):
        execution = tracker.instantiate(_template())
        done = tracker.apply_responses(execution, [
            _answer("door", completed=True),
            _answer("temp", completed=True),
            _answer("state", completed=True),
        ])
        for key in ("door", "temp"):
            reverted = tracker.apply_responses(done, [_answer(key, completed=False)])
            assert tracker.is_complete(reverted) is False

    def test_optional_items_never_block(self):
        execution = tracker.instantiate_ad_hoc([ChecklistItemCreate(title="Optional")])
        assert tracker.is_complete(execution) is True
        assert execution.progress == 0

    def test_summary_lists_missing_required(self):
        execution = tracker.instantiate(_template())
        partial = tracker.apply_responses(execution, [_answer("door", completed=True)])
        summary = tracker.summarize(partial)
        assert summary.total == 4
        assert summary.completed == 1
        assert summary.required == 2
        assert summary.required_completed == 1
        assert summary.missing_required == ["Room temperature"]
        assert summary.is_complete is False
