"""
PathScanner: directory and archive traversal, cross-references,
de-duplication and failure isolation.
"""

import os
import struct
import zipfile

import pytest

from loadpath.context import LoadingContext
from loadpath.faults import InvalidArgumentFault, OriginUnreadableFault
from loadpath.manifest import MANIFEST_NAME
from loadpath.filters import FunctionFilter, ManifestFilter, PackageFilter
from loadpath.records import ResourceRecord, TypedRecord
from loadpath.scanner import PathScanner, ScanStats

from tests.conftest import make_archive, write_tree


def names_of(scanner):
    return [record.name for record in scanner.resources()]


def corrupt_manifest_archive(path):
    """Valid ZIP directory whose deflated manifest data is garbage."""
    make_archive(
        path,
        {"a.txt": "a" * 64},
        class_path="lib/a.zip lib/b.zip",
        compression=zipfile.ZIP_DEFLATED,
    )

    with zipfile.ZipFile(path) as archive:
        offset = archive.getinfo(MANIFEST_NAME).header_offset

    data = bytearray(path.read_bytes())
    name_length, extra_length = struct.unpack("<HH", data[offset + 26:offset + 30])
    start = offset + 30 + name_length + extra_length
    # 0xFF opens a deflate block with the reserved block type
    data[start:start + 4] = b"\xff\xff\xff\xff"
    path.write_bytes(bytes(data))
    return path


# ============================================================================
# Construction
# ============================================================================

class TestConstruction:

    def test_none_context(self):
        with pytest.raises(InvalidArgumentFault):
            PathScanner.of(None)

    def test_none_filter(self):
        with pytest.raises(InvalidArgumentFault):
            PathScanner.of(LoadingContext()).filter(None)

    def test_invalid_filter(self):
        with pytest.raises(InvalidArgumentFault):
            PathScanner.of(LoadingContext()).filter(42)

    def test_factory_must_return_filter(self):
        with pytest.raises(InvalidArgumentFault):
            PathScanner.of(LoadingContext()).filter(lambda: "not a filter")

    def test_filter_factory(self):
        scanner = PathScanner.of(LoadingContext()).filter(ManifestFilter)
        assert isinstance(scanner.filters[0], ManifestFilter)

    def test_filter_is_chainable(self):
        scanner = PathScanner.of(LoadingContext())
        assert scanner.filter(ManifestFilter()) is scanner

    def test_filters_copy(self):
        scanner = PathScanner.of(LoadingContext()).filter(ManifestFilter())
        scanner.filters.clear()
        assert len(scanner.filters) == 1


# ============================================================================
# Directories
# ============================================================================

class TestDirectories:

    def test_walk(self, tmp_path):
        write_tree(tmp_path, {
            "b.txt": "",
            "a/x.py": "",
            "a/deep/y.py": "",
        })
        assert names_of(PathScanner.of(LoadingContext([tmp_path]))) == [
            "a/deep/y.py",
            "a/x.py",
            "b.txt",
        ]

    def test_records_are_typed_by_suffix(self, tmp_path):
        write_tree(tmp_path, {"a/x.py": "", "a/y.cfg": ""})
        records = PathScanner.of(LoadingContext([tmp_path])).resources()

        assert isinstance(records[0], TypedRecord)
        assert type(records[1]) is ResourceRecord

    def test_empty_directories_yield_nothing(self, tmp_path):
        (tmp_path / "empty" / "nested").mkdir(parents=True)
        assert names_of(PathScanner.of(LoadingContext([tmp_path]))) == []

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks not supported")
    def test_symlink_cycle(self, tmp_path):
        write_tree(tmp_path, {"a/x.txt": ""})
        os.symlink(tmp_path / "a", tmp_path / "a" / "loop")

        assert names_of(PathScanner.of(LoadingContext([tmp_path]))) == ["a/x.txt"]


# ============================================================================
# Archives
# ============================================================================

class TestArchives:

    def test_entries(self, tmp_path):
        archive = make_archive(
            tmp_path / "app.zip",
            {"com/example/a.py": "", "conf/app.properties": ""},
            class_path="",
        )
        assert names_of(PathScanner.of(LoadingContext([archive]))) == [
            "com/example/a.py",
            "conf/app.properties",
        ]

    def test_directory_entries_skipped(self, tmp_path):
        archive = make_archive(tmp_path / "app.zip", {"com/": "", "com/a.py": ""})
        assert names_of(PathScanner.of(LoadingContext([archive]))) == ["com/a.py"]

    def test_class_path_followed(self, tmp_path):
        make_archive(tmp_path / "lib" / "dep.zip", {"dep/x.py": ""})
        app = make_archive(tmp_path / "app.zip", {"app/main.py": ""}, class_path="lib/dep.zip")

        assert names_of(PathScanner.of(LoadingContext([app]))) == ["dep/x.py", "app/main.py"]

    def test_class_path_directory(self, tmp_path):
        write_tree(tmp_path / "classes", {"app/conf.txt": ""})
        app = make_archive(tmp_path / "app.zip", {"app/main.py": ""}, class_path="classes/")

        assert names_of(PathScanner.of(LoadingContext([app]))) == ["app/conf.txt", "app/main.py"]

    def test_shared_reference_scanned_once(self, tmp_path):
        make_archive(tmp_path / "shared.zip", {"shared/s.py": ""})
        first = make_archive(tmp_path / "first.zip", {"first/f.py": ""}, class_path="shared.zip")
        second = make_archive(tmp_path / "second.zip", {"second/g.py": ""}, class_path="shared.zip")

        scanner = PathScanner.of(LoadingContext([first, second]))

        assert names_of(scanner) == ["shared/s.py", "first/f.py", "second/g.py"]
        assert scanner.stats.archives_scanned == 3

    def test_reference_cycle(self, tmp_path):
        a = make_archive(tmp_path / "a.zip", {"a.txt": ""}, class_path="b.zip")
        make_archive(tmp_path / "b.zip", {"b.txt": ""}, class_path="a.zip")

        assert names_of(PathScanner.of(LoadingContext([a]))) == ["b.txt", "a.txt"]

    def test_missing_reference_ignored(self, tmp_path):
        app = make_archive(tmp_path / "app.zip", {"a.txt": ""}, class_path="missing.zip")
        scanner = PathScanner.of(LoadingContext([app]))

        assert names_of(scanner) == ["a.txt"]
        assert scanner.faults == []

    def test_manifest_not_recorded(self, tmp_path):
        app = make_archive(tmp_path / "app.zip", {"a.txt": ""}, class_path="")
        assert "META-INF/MANIFEST.MF" not in names_of(PathScanner.of(LoadingContext([app])))


# ============================================================================
# Context hierarchy
# ============================================================================

class TestHierarchy:

    def test_parent_first_attribution(self, tmp_path):
        write_tree(tmp_path / "shared", {"s.txt": ""})
        write_tree(tmp_path / "own", {"o.txt": ""})

        parent = LoadingContext([tmp_path / "shared"], name="parent")
        child = LoadingContext([tmp_path / "own", tmp_path / "shared"], parent=parent, name="child")

        accepted = PathScanner.of(child).accepted()

        assert list(accepted) == [parent, child]
        assert accepted[parent] == ["s.txt"]
        assert accepted[child] == ["o.txt"]

    def test_reference_keeps_context(self, tmp_path):
        make_archive(tmp_path / "dep.zip", {"d.txt": ""})
        app = make_archive(tmp_path / "app.zip", {"a.txt": ""}, class_path="dep.zip")

        parent = LoadingContext(name="parent")
        child = LoadingContext([app], parent=parent, name="child")

        assert PathScanner.of(child).accepted() == {child: ["d.txt", "a.txt"]}

    def test_remote_origins_ignored(self, tmp_path):
        write_tree(tmp_path, {"x.txt": ""})
        ctx = LoadingContext(["https://example.com/lib.zip", tmp_path])

        assert names_of(PathScanner.of(ctx)) == ["x.txt"]

    def test_file_url_origin(self, tmp_path):
        write_tree(tmp_path, {"x.txt": ""})
        assert names_of(PathScanner.of(LoadingContext([tmp_path.as_uri()]))) == ["x.txt"]


# ============================================================================
# Failure isolation
# ============================================================================

class TestFailures:

    def test_missing_origin_skipped(self, tmp_path):
        write_tree(tmp_path / "real", {"x.txt": ""})
        scanner = PathScanner.of(LoadingContext([tmp_path / "missing", tmp_path / "real"]))

        assert names_of(scanner) == ["x.txt"]
        assert scanner.faults == []

    def test_non_archive_file_isolated(self, tmp_path):
        (tmp_path / "notes.txt").write_text("not a zip")
        write_tree(tmp_path / "real", {"x.txt": ""})
        scanner = PathScanner.of(LoadingContext([tmp_path / "notes.txt", tmp_path / "real"]))

        assert names_of(scanner) == ["x.txt"]
        assert len(scanner.faults) == 1

        fault = scanner.faults[0]
        assert isinstance(fault, OriginUnreadableFault)
        assert fault.code == "ORIGIN_UNREADABLE"
        assert fault.metadata["path"].endswith("notes.txt")
        assert scanner.stats.failures == 1

    def test_corrupt_archive_entry_isolated(self, tmp_path):
        bad = corrupt_manifest_archive(tmp_path / "bad.zip")
        write_tree(tmp_path / "real", {"x.txt": ""})
        scanner = PathScanner.of(LoadingContext([bad, tmp_path / "real"]))

        assert names_of(scanner) == ["x.txt"]
        assert len(scanner.faults) == 1
        assert scanner.faults[0].metadata["path"].endswith("bad.zip")
        assert scanner.stats.archives_scanned == 0

    def test_unlistable_directory_isolated(self, tmp_path, monkeypatch):
        write_tree(tmp_path / "lib", {"a/x.txt": "", "locked/y.txt": "", "z.txt": ""})
        locked = os.path.realpath(tmp_path / "lib" / "locked")
        scandir = os.scandir

        def guarded_scandir(path):
            if os.path.realpath(path) == locked:
                raise PermissionError(13, "Permission denied", str(path))
            return scandir(path)

        monkeypatch.setattr(os, "scandir", guarded_scandir)
        scanner = PathScanner.of(LoadingContext([tmp_path / "lib"]))

        assert names_of(scanner) == ["a/x.txt", "z.txt"]
        assert len(scanner.faults) == 1
        assert scanner.faults[0].metadata["path"].endswith("locked")
        assert "PermissionError" in scanner.faults[0].metadata["reason"]

    def test_filter_errors_propagate(self, tmp_path):
        write_tree(tmp_path, {"x.txt": ""})

        def explode(ctx, name):
            raise KeyError(name)

        scanner = PathScanner.of(LoadingContext([tmp_path])).filter(FunctionFilter(explode))
        with pytest.raises(KeyError):
            scanner.run()


# ============================================================================
# Results
# ============================================================================

class TestResults:

    def test_run_is_idempotent(self, tmp_path):
        write_tree(tmp_path, {"a.txt": "", "b.txt": ""})
        scanner = PathScanner.of(LoadingContext([tmp_path]))

        first = names_of(scanner)
        scanner.run()

        assert names_of(scanner) == first
        assert scanner.stats.resources_accepted == 2

    def test_accepted_is_a_copy(self, tmp_path):
        write_tree(tmp_path, {"a.txt": ""})
        scanner = PathScanner.of(LoadingContext([tmp_path]))

        accepted = scanner.accepted()
        for names in accepted.values():
            names.append("injected.txt")
        accepted.clear()

        assert names_of(scanner) == ["a.txt"]

    def test_stats(self, tmp_path):
        write_tree(tmp_path / "dir", {"a.py": "", "sub/b.txt": ""})
        archive = make_archive(tmp_path / "app.zip", {"c.py": ""})

        scanner = PathScanner.of(LoadingContext([tmp_path / "dir", archive]))
        scanner.filter(PackageFilter.of(""))
        scanner.run()

        stats = scanner.stats
        assert isinstance(stats, ScanStats)
        assert stats.origins_scanned == 2
        assert stats.directories_scanned == 2
        assert stats.archives_scanned == 1
        assert stats.resources_accepted == 2
        assert stats.resources_rejected == 1
        assert stats.to_dict()["failures"] == 0
