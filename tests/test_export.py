"""Tests for the Export resource's in-memory attribute rules."""
import pytest

from netapp_filer.parsing import UNSET, parse_export_options
from netapp_filer.reconcile import PERMANENT, TEMPORARY, compare_exports, export_signature
from netapp_filer.resources import Export


def make_export(options: str = "", path: str = "/vol/vol1", **kwargs) -> Export:
    return Export(None, parse_export_options(options, path=path), **kwargs)


class TestConstruction:
    """Tests for building exports."""

    def test_defaults(self):
        """A bare export has empty lists and unset scalars."""
        export = Export(None, {"path": "/vol/vol1"})
        assert export.get_sec() == []
        assert export.get_anon() is None
        assert export.anon is UNSET
        assert export.get_actual() is None
        assert export.get_nosuid() is False

    def test_temporary_is_always_active(self):
        """A temporary export cannot be inactive."""
        assert make_export("rw", type=TEMPORARY, active=False).active is True

    def test_permanent_may_be_inactive(self):
        """Permanent exports keep the given active flag."""
        export = make_export("rw", type=PERMANENT, active=False)
        assert export.is_permanent
        assert export.active is False

    def test_invalid_type(self):
        """Only permanent and temporary are valid types."""
        with pytest.raises(ValueError):
            make_export("rw", type="sometimes")

    def test_detached_filer(self):
        """Round trips need a filer."""
        from netapp_filer.errors import FilerError

        with pytest.raises(FilerError):
            make_export("rw").update()


class TestHostLists:
    """Tests for ro/rw and their *_all flags."""

    def test_ro_all_clears_list(self):
        """Setting ro_all empties ro and ro reads as empty while set."""
        export = make_export("ro=c1:c2")
        export.set_ro_all(True)
        assert export.get_ro() == []
        assert export.get_ro_all() is True

    def test_add_ro_ignored_while_all(self):
        """add/remove/has are no-ops while ro_all is set."""
        export = make_export("ro")
        export.add_ro("c1")
        assert export.get_ro() == []
        assert export.has_ro("c1") is False
        export.remove_ro("c1")
        assert export.get_ro_all() is True

    def test_set_ro_clears_all(self):
        """Setting a host list clears the all flag."""
        export = make_export("ro")
        export.set_ro(["c1"])
        assert export.get_ro_all() is False
        assert export.get_ro() == ["c1"]

    def test_rw_add_remove_has(self):
        """Hosts keep order and are not duplicated."""
        export = make_export("rw=c1")
        export.add_rw("c2").add_rw("c1")
        assert export.get_rw() == ["c1", "c2"]
        assert export.has_rw("c2")
        export.remove_rw("c1")
        assert export.get_rw() == ["c2"]

    def test_rw_all(self):
        """rw_all mirrors ro_all."""
        export = make_export("rw=c1:c2")
        export.set_rw_all(True)
        assert export.get_rw() == []
        export.set_rw_all(False)
        assert export.get_rw() == []
        export.add_rw("c3")
        assert export.get_rw() == ["c3"]

    def test_root(self):
        """Root hosts support the same list operations."""
        export = make_export("root=admin1")
        export.add_root("admin2").add_root("admin1")
        assert export.get_root() == ["admin1", "admin2"]
        assert export.has_root("admin2")
        export.remove_root("admin1")
        assert export.get_root() == ["admin2"]

    def test_sec_unique(self):
        """Security flavours are a set with stable order."""
        export = make_export("sec=sys")
        export.add_sec("krb5").add_sec("sys")
        assert export.get_sec() == ["sys", "krb5"]
        export.set_sec(["krb5", "krb5"])
        assert export.get_sec() == ["krb5"]
        assert export.has_sec("krb5")


class TestScalars:
    """Tests for actual, anon and nosuid."""

    def test_anon_zero(self):
        """anon 0 is a value distinct from unset."""
        export = make_export("anon=0")
        assert export.get_anon() == 0
        export.set_anon(None)
        assert export.get_anon() is None
        assert "anon" not in export.get_options_string()

    def test_actual(self):
        """Setting actual to empty unsets it."""
        export = make_export("actual=/vol/vol1/data")
        assert export.get_actual() == "/vol/vol1/data"
        export.set_actual("")
        assert export.get_actual() is None


class TestComparison:
    """Tests for comparing and formatting exports."""

    def test_compare_ignores_path_and_type(self):
        """Exports with the same rules compare equal whatever their identity."""
        a = make_export("sec=sys,rw=c1,root=admin", path="/vol/a", type=PERMANENT, active=False)
        b = make_export("rw=c1,root=admin,sec=sys", path="/vol/b", type=TEMPORARY)
        assert a.compare(b)

    def test_compare_sec_as_set(self):
        """Flavour order does not matter."""
        assert compare_exports(
            parse_export_options("sec=sys:krb5,rw"),
            parse_export_options("sec=krb5:sys,rw"),
        )

    def test_missing_sec_means_sys(self):
        """The filer reports sec=sys for exports written without a flavor."""
        assert compare_exports(parse_export_options("rw"), parse_export_options("sec=sys,rw"))
        assert not compare_exports(parse_export_options("rw"), parse_export_options("sec=krb5,rw"))

    def test_compare_host_order_matters(self):
        """Host list order is significant."""
        assert not compare_exports(
            parse_export_options("rw=c1:c2"),
            parse_export_options("rw=c2:c1"),
        )

    def test_anon_zero_differs_from_unset(self):
        """anon=0 and no anon are different rules."""
        assert not compare_exports(parse_export_options("rw,anon=0"), parse_export_options("rw"))

    def test_signature_ignores_list_under_all(self):
        """A stale host list under an all flag is not compared."""
        record = parse_export_options("rw")
        record["rw"] = ["leftover"]
        assert export_signature(record)["rw"] == ()

    def test_options_string(self):
        """The option string is written in a fixed order."""
        export = make_export("nosuid,root=admin1:admin2,rw,sec=sys")
        assert export.get_options_string() == "sec=sys,rw,root=admin1:admin2,nosuid"

    def test_to_dict(self):
        """to_dict carries identity and every attribute."""
        data = make_export("rw", path="/vol/x").to_dict()
        assert data["path"] == "/vol/x"
        assert data["type"] == TEMPORARY
        assert data["active"] is True
        assert data["rw_all"] is True

    def test_setters_do_not_change_last_applied(self):
        """Local edits stay local until update()."""
        export = make_export("rw")
        export.set_ro_all(True)
        assert export.last_applied["ro_all"] is False
        assert not export.compare(export.last_applied)
