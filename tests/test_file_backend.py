from pathlib import Path

from savestash.backends import FileBackend
from savestash.paths import default_store_dir
from savestash.store import Store


def test_set_get_and_layout(tmp_path: Path):
    fb = FileBackend(tmp_path / "store")
    assert fb.get("slot1") is None
    assert fb.set("slot1", "payload ☃") is True

    path = tmp_path / "store" / "slot1.sav"
    assert path.read_text(encoding="utf-8") == "payload ☃"
    assert fb.get("slot1") == "payload ☃"
    assert fb.exists("slot1") is True


def test_overwrite_replaces_wholesale(tmp_path: Path):
    fb = FileBackend(tmp_path)
    fb.set("k", "a much longer first value")
    fb.set("k", "short")
    assert fb.get("k") == "short"
    # No temp files left behind
    assert [p.name for p in tmp_path.iterdir()] == ["k.sav"]


def test_delete_is_best_effort(tmp_path: Path):
    fb = FileBackend(tmp_path)
    fb.set("k", "v")
    fb.delete("k")
    assert fb.exists("k") is False
    fb.delete("k")


def test_keys_only_lists_records(tmp_path: Path):
    fb = FileBackend(tmp_path, extension=".dat")
    assert FileBackend(tmp_path / "missing").keys() == []
    fb.set("beta", "1")
    fb.set("alpha", "2")
    (tmp_path / "notes.txt").write_text("ignore me")
    (tmp_path / "sub.dat").mkdir()
    assert fb.keys() == ["alpha", "beta"]


def test_unreadable_file_reads_as_absent(tmp_path: Path):
    fb = FileBackend(tmp_path)
    (tmp_path / "bad.sav").write_bytes(b"\xff\xfe\xfa")
    assert fb.get("bad") is None


def test_write_failure_returns_false(tmp_path: Path):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")
    fb = FileBackend(blocker / "store")
    assert fb.set("k", "v") is False
    assert fb.get("k") is None


def test_default_directory_honours_env(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("SAVESTASH_DIR", str(tmp_path / "env-store"))
    assert default_store_dir() == (tmp_path / "env-store").resolve()
    assert FileBackend().directory == (tmp_path / "env-store").resolve()


def test_default_directory_from_platformdirs():
    path = default_store_dir("savestash-test")
    assert path.name == "store"
    assert "savestash-test" in str(path)


def test_store_persists_across_instances(tmp_path: Path, registry):
    Store(FileBackend(tmp_path), registry=registry).write_object("meta", {"gold": 10, "relics": ["a"]})

    reopened = Store(FileBackend(tmp_path), registry=registry)
    assert reopened.read_object("meta", {"gold": 0, "relics": [], "crypt": []}) == {
        "gold": 10,
        "relics": ["a"],
        "crypt": [],
    }


def test_hand_edited_file_degrades_to_default(tmp_path: Path, registry):
    store = Store(FileBackend(tmp_path), registry=registry)
    store.write_object("meta", {"gold": 10})

    path = tmp_path / "meta.sav"
    path.write_text(path.read_text(encoding="utf-8").replace("10", "99999"), encoding="utf-8")

    default = {"gold": 0}
    assert store.read_object("meta", default) is default
