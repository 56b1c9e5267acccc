import pytest

from procwatch.errors import PidStoreError
from procwatch.pid_store import PidRecordStore


def test_read_absent_file(tmp_path):
    assert PidRecordStore(tmp_path / "pid.txt").read() is None


@pytest.mark.parametrize("content", ["notvalidpid", "", "12abc", "-5", "0", "3.14", "12 34"])
def test_read_invalid_content_is_absent(tmp_path, content):
    path = tmp_path / "pid.txt"
    path.write_text(content)
    assert PidRecordStore(path).read() is None


def test_read_tolerates_surrounding_whitespace(tmp_path):
    path = tmp_path / "pid.txt"
    path.write_text("  4321\n")
    assert PidRecordStore(path).read() == 4321


def test_unreadable_record_raises(tmp_path):
    # A directory in place of the file cannot be read
    path = tmp_path / "pid.txt"
    path.mkdir()
    with pytest.raises(PidStoreError):
        PidRecordStore(path).read()


def test_write_then_read_roundtrip(tmp_path):
    store = PidRecordStore(tmp_path / "pid.txt")
    assert store.write(12345) is True
    assert store.read() == 12345


def test_second_write_replaces_first(tmp_path):
    path = tmp_path / "pid.txt"
    store = PidRecordStore(path)
    store.write(99999)
    store.write(42)
    assert path.read_text() == "42"
    assert store.read() == 42


def test_write_creates_parent_directory(tmp_path):
    path = tmp_path / "nested" / "dir" / "pid.txt"
    assert PidRecordStore(path).write(7)
    assert path.read_text() == "7"


def test_write_leaves_no_temp_files(tmp_path):
    store = PidRecordStore(tmp_path / "pid.txt")
    store.write(1)
    store.write(2)
    assert [p.name for p in tmp_path.iterdir()] == ["pid.txt"]


def test_write_failure_returns_false(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("")
    assert PidRecordStore(blocker / "pid.txt").write(5) is False


def test_write_rejects_non_positive_pid(tmp_path):
    with pytest.raises(ValueError):
        PidRecordStore(tmp_path / "pid.txt").write(0)


def test_clear(tmp_path):
    store = PidRecordStore(tmp_path / "pid.txt")
    store.clear()  # absent: no error
    store.write(10)
    store.clear()
    assert store.read() is None
