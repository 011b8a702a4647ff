#!filepath: tests/base_test/test_filesystem.py
from simsum.utils.filesystem import FileSystem


def test_ensure_dir(tmp_path):
    """测试 ensure_dir 是否能正确创建目录"""
    new_dir = tmp_path / "new_folder" / "nested"
    assert not new_dir.exists()

    FileSystem.ensure_dir(new_dir)
    assert new_dir.is_dir()


def test_file_exists(tmp_path):
    f = tmp_path / "file.txt"
    f.write_text("hello")

    assert FileSystem.file_exists(f) is True
    assert FileSystem.file_exists(tmp_path / "not_exist.txt") is False


def test_safe_write(tmp_path):
    """测试 safe_write 是否原子写入并不残留 tmp 文件"""
    file_path = tmp_path / "CASE.S0001"

    data = b"1234567890"
    FileSystem.safe_write(file_path, data)

    assert file_path.read_bytes() == data
    assert not (tmp_path / "CASE.S0001.tmp").exists()


def test_safe_write_replaces_existing(tmp_path):
    file_path = tmp_path / "CASE.SMSPEC"
    file_path.write_bytes(b"old")

    FileSystem.safe_write(file_path, b"new")
    assert file_path.read_bytes() == b"new"


def test_scan_dir(tmp_path):
    """测试 scan_dir 能正确扫描并按名称排序"""
    f2 = tmp_path / "b.csv"
    f1 = tmp_path / "a.csv"
    f2.write_text("2")
    f1.write_text("1")
    (tmp_path / "c.txt").write_text("3")

    assert FileSystem.scan_dir(tmp_path, suffix=".csv") == [f1, f2]
    assert len(FileSystem.scan_dir(tmp_path)) == 3
    assert FileSystem.scan_dir(tmp_path / "missing") == []


def test_get_file_size(tmp_path):
    f = tmp_path / "file.bin"
    data = b"hello world"
    f.write_bytes(data)

    assert FileSystem.get_file_size(f) == len(data)
    assert FileSystem.get_file_size(tmp_path / "missing") == 0
