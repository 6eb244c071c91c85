"""Tests for planning and applying resource changes."""
import pytest

from netapp_filer.errors import CommandError
from netapp_filer.parsing import parse
from netapp_filer.reconcile import (
    AttributeChange,
    ChangeType,
    PlannedCommand,
    ReconcilePlan,
    classify_exports,
    diff_attributes,
    diff_exports,
    summarize_plan,
)

from conftest import ETC_EXPORTS, EXPORTFS_OUTPUT

VOL2_LIVE = "/vol/vol2\t-sec=sys,rw=client1\n"
VOL2_UPDATED = "/vol/vol2\t-sec=sys,rw=client1,ro,root=a\n"
VOL2_COMMAND = "exportfs -io sec=sys,rw=client1,ro,root=a /vol/vol2"


@pytest.fixture
def vol2(filer, transport):
    """Temporary export of /vol/vol2 read from the live table."""
    transport.responses["exportfs"] = []
    # get_exports, then update() reads the live table once more
    transport.script("exportfs", VOL2_LIVE, VOL2_LIVE, VOL2_UPDATED)
    return filer.get_export("/vol/vol2")


class TestDiff:
    """Tests for attribute diffs."""

    def test_no_current_state(self):
        """Everything is created when nothing exists."""
        changes = diff_attributes(None, {"a": 1, "b": 2})
        assert [c.change_type for c in changes] == [ChangeType.CREATE, ChangeType.CREATE]

    def test_modified_only(self):
        """Equal attributes produce no change."""
        changes = diff_attributes({"a": 1, "b": 2}, {"a": 1, "b": 3})
        assert changes == [AttributeChange("b", ChangeType.MODIFY, 2, 3)]

    def test_restricted_names(self):
        """Only the named attributes are compared."""
        assert diff_attributes({"a": 1, "b": 2}, {"a": 5, "b": 3}, names=["b"])[0].name == "b"

    def test_export_diff(self):
        """Export diffs name the changed fields."""
        current = parse("export", VOL2_LIVE)[0]
        desired = parse("export", VOL2_UPDATED)[0]
        assert sorted(c.name for c in diff_exports(current, desired)) == ["ro_all", "root"]

    def test_summary(self):
        """Summaries list changes and commands."""
        plan = ReconcilePlan(
            kind="qtree",
            key="/vol/vol1/proj",
            changes=[AttributeChange("security", ChangeType.MODIFY, "ntfs", "unix")],
            commands=[PlannedCommand("qtree", "security", line="qtree security /vol/vol1/proj unix")],
        )
        assert summarize_plan(plan) == (
            "qtree /vol/vol1/proj: 1 change(s)\n"
            "  ~ security: 'ntfs' -> 'unix'\n"
            "Commands:\n"
            "  qtree security /vol/vol1/proj unix"
        )

    def test_summary_no_change(self):
        """An empty plan says so."""
        assert summarize_plan(ReconcilePlan(kind="export", key="/vol/vol0")) == "export /vol/vol0: no changes"


class TestClassification:
    """Tests for splitting exports into permanent/temporary and active/inactive."""

    def test_partition(self):
        """Every instance lands in exactly one of each pair of sets."""
        partition = classify_exports(parse("export", EXPORTFS_OUTPUT), parse("export", ETC_EXPORTS))

        assert len(partition.entries) == 5
        assert len(partition.permanent) == 3
        assert len(partition.temporary) == 2
        assert len(partition.active) == 3
        assert len(partition.inactive) == 2

    def test_same_rules_one_instance(self):
        """A path whose live rules match the file is one permanent active export."""
        partition = classify_exports(parse("export", EXPORTFS_OUTPUT), parse("export", ETC_EXPORTS))
        [entry] = partition.for_path("/vol/vol0")
        assert (entry.type, entry.active) == ("permanent", True)

    def test_divergent_rules_two_instances(self):
        """A path whose live rules differ is split in two."""
        partition = classify_exports(parse("export", EXPORTFS_OUTPUT), parse("export", ETC_EXPORTS))
        entries = partition.for_path("/vol/vol1")
        assert [(e.type, e.active) for e in entries] == [("permanent", False), ("temporary", True)]
        assert entries[1].record["rw"] == ["client1", "client2"]

    def test_persisted_only(self):
        """A path only in the file is permanent and inactive."""
        partition = classify_exports(parse("export", EXPORTFS_OUTPUT), parse("export", ETC_EXPORTS))
        [entry] = partition.for_path("/vol/old")
        assert (entry.type, entry.active) == ("permanent", False)

    def test_last_line_wins(self):
        """Duplicate lines for a path resolve to the last one."""
        persisted = parse("export", "/vol/a\t-rw\n/vol/a\t-ro\n")
        partition = classify_exports([], persisted)
        [entry] = partition.for_path("/vol/a")
        assert entry.record["ro_all"] is True


class TestExportUpdate:
    """Tests for reconciling exports."""

    def test_single_command(self, vol2, transport):
        """Changing root and ro_all sends exactly one exportfs."""
        transport.script(VOL2_COMMAND, "")
        vol2.set_root(["a"]).set_ro_all(True)

        result = vol2.update()

        assert result.success
        assert result.commands_executed == [VOL2_COMMAND]
        assert [c for c in transport.commands if c.startswith("exportfs -")] == [VOL2_COMMAND]
        assert vol2.compare(vol2.last_applied)

    def test_second_update_is_noop(self, vol2, transport):
        """Once the filer matches, update sends nothing."""
        transport.script(VOL2_COMMAND, "")
        vol2.set_root(["a"]).set_ro_all(True)
        vol2.update()

        result = vol2.update()

        assert result.plan.no_change
        assert not result.changed
        assert transport.commands.count(VOL2_COMMAND) == 1

    def test_failure_keeps_last_applied(self, vol2, transport, tracker):
        """A rejected update leaves the applied state alone."""
        transport.script(VOL2_COMMAND, "exportfs: /vol/vol2: No such file or directory\n")
        before = vol2.last_applied
        vol2.set_root(["a"]).set_ro_all(True)

        with pytest.raises(CommandError):
            vol2.update()

        assert vol2.last_applied == before
        assert tracker.records[-1].success is False

    def test_dry_run(self, vol2, transport, tracker):
        """A dry run audits the command without sending it."""
        vol2.set_root(["a"]).set_ro_all(True)

        result = vol2.update(dry_run=True)

        assert result.commands_executed == [VOL2_COMMAND]
        assert VOL2_COMMAND not in transport.commands
        assert tracker.records[-1].dry_run is True
        assert not vol2.compare(vol2.last_applied)

    def test_preview(self, vol2):
        """preview() shows the planned command line."""
        vol2.set_ro_all(True)
        assert "exportfs -io sec=sys,rw=client1,ro /vol/vol2" in vol2.preview()

    def test_permanent_uses_persist(self, filer, transport):
        """Permanent exports are written with exportfs -p."""
        command = "exportfs -p sec=sys,rw,root=admin1:admin2,nosuid /vol/vol0"
        transport.script(command, "")
        export = filer.get_export("/vol/vol0")
        assert export.is_permanent and export.active

        export.add_root("admin2").update()

        assert command in transport.commands

    def test_permanent_inactive_reapplied(self, filer, transport):
        """A permanent export whose live rules drifted is re-persisted unchanged."""
        command = "exportfs -p sec=sys,rw=client1,root=admin1 /vol/vol1"
        transport.script(command, "")
        [permanent] = [e for e in filer.get_permanent_exports() if e.path == "/vol/vol1"]
        assert not permanent.active

        permanent.update()

        assert command in transport.commands
        assert permanent.active

    def test_empty_options(self, filer, transport):
        """An export with no options is applied with exportfs -i."""
        transport.script("exportfs -i /vol/tmp", "")
        export = filer.get_export("/vol/tmp")
        export.set_sec([]).set_ro_all(False)

        export.update()

        assert "exportfs -i /vol/tmp" in transport.commands


class TestPartialProgress:
    """Tests for multi-command resources."""

    def test_qtree_stops_at_first_failure(self, filer, transport):
        """Attributes applied before the failure stay applied."""
        transport.script("qtree security /vol/vol1/proj unix", "")
        transport.script("qtree oplocks /vol/vol1/proj enable", "qtree oplocks: /vol/vol1/proj: permission denied\n")
        qtree = filer.get_qtree("/vol/vol1/proj")
        qtree.set_security("unix").set_oplocks(True)

        with pytest.raises(CommandError):
            qtree.update()

        assert qtree.get("security") == "unix"
        assert qtree.get("oplocks") is False
        assert transport.commands[-1] == "qtree oplocks /vol/vol1/proj enable"

    def test_schedule_single_command(self, filer, transport):
        """Any schedule change rewrites the whole schedule."""
        transport.script("snap sched vol1 0 3 6@8,12,16,20", "")
        schedule = filer.get_snapshot_schedule("vol1")
        schedule.set_days(3)

        result = schedule.update()

        assert result.commands_executed == ["snap sched vol1 0 3 6@8,12,16,20"]
        assert schedule.get("days") == 3

    def test_volume_options(self, filer, transport):
        """Only options set through set_option are written."""
        transport.script("vol options vol1 nosnap on", "")
        volume = filer.get_volume("vol1")
        volume.set_option("nosnap", True)

        result = volume.update()

        assert result.commands_executed == ["vol options vol1 nosnap on"]
        assert volume.update().plan.no_change
