"""Tests for the in-memory roster store."""

from records.models import Record
from records.store import RecordStore


def make(id, group, name="", phone=""):
    return Record(id=id, group_key=group, name=name, phone=phone)


class TestGroupReconciliation:
    def test_first_group_alphabetically(self):
        store = RecordStore()
        store.set_records([make("1", "B"), make("2", "A"), make("3", "A")])
        assert store.selected_group == "A"
        assert store.groups() == ["A", "B"]

    def test_keeps_valid_selection(self):
        store = RecordStore()
        store.set_records([make("1", "B"), make("2", "A")])
        store.select_group("B")
        store.set_records([make("1", "B"), make("3", "C")])
        assert store.selected_group == "B"

    def test_resets_invalid_selection(self):
        store = RecordStore()
        store.set_records([make("1", "B"), make("2", "A")])
        store.select_group("B")
        store.set_records([make("3", "C"), make("4", "D")])
        assert store.selected_group == "C"

    def test_empty_groups_ignored(self):
        store = RecordStore()
        store.set_records([make("1", ""), make("2", "Z")])
        assert store.groups() == ["Z"]
        assert store.selected_group == "Z"

    def test_empty_set_clears_selection(self):
        store = RecordStore()
        store.set_records([make("1", "A")])
        store.set_records([])
        assert store.selected_group == ""
        assert store.visible_records() == []


class TestVisibleRecords:
    def setup_method(self):
        self.store = RecordStore()
        self.store.set_records([
            make("10", "A", name="Zara"),
            make("20", "B", name="Bilal"),
            make("4201", "A", name="Meena"),
            make("30", "A", name="Kiran", phone="9142000000"),
            make("40", "A", name="Anand"),
        ])

    def test_group_only_in_original_order(self):
        ids = [r.id for r in self.store.visible_records()]
        assert ids == ["10", "4201", "30", "40"]

    def test_query_matches_id_and_phone(self):
        self.store.set_query("42")
        ids = [r.id for r in self.store.visible_records()]
        assert ids == ["4201", "30"]

    def test_query_name_case_insensitive(self):
        self.store.set_query("MEE")
        assert [r.id for r in self.store.visible_records()] == ["4201"]

    def test_query_respects_group(self):
        self.store.set_query("bilal")
        assert self.store.visible_records() == []
        self.store.select_group("B")
        assert [r.id for r in self.store.visible_records()] == ["20"]

    def test_selection_does_not_mutate_records(self):
        before = self.store.records
        self.store.select_group("B")
        self.store.set_query("x")
        assert self.store.records is before


class TestPatch:
    def test_patch_existing(self):
        store = RecordStore()
        store.set_records([make("5", "A")])
        assert store.patch("5", "Approved", "Good") is True
        record = store.get("5")
        assert record.admission_status == "Approved"
        assert record.remark == "Good"

    def test_patch_missing(self):
        store = RecordStore()
        store.set_records([make("5", "A")])
        before = store.records
        assert store.patch("999", "x", "y") is False
        assert store.records is before

    def test_empty_id_never_matches(self):
        store = RecordStore()
        store.set_records([make("", "A")])
        assert store.get("") is None
        assert store.patch("", "x", "y") is False
        assert store.records[0].admission_status == ""

    def test_patch_is_copy_on_write(self):
        store = RecordStore()
        store.set_records([make("5", "A")])
        snapshot = store.records
        store.patch("5", "Approved", "")
        assert snapshot[0].admission_status == ""
        assert store.records is not snapshot


class TestErrorBanner:
    def test_set_and_clear(self):
        store = RecordStore()
        assert store.error is None
        store.set_error("boom")
        assert store.error == "boom"
        store.clear_error()
        assert store.error is None
