"""Tests for file operations: backup, atomic write, locking."""

from __future__ import annotations

import os
from pathlib import Path

import portalocker
import pytest

from tabcalc.io.fileops import FileLock, atomic_write, backup


def test_backup(grid_workbook: Path):
    bak_path = backup(grid_workbook)
    assert Path(bak_path).exists()
    assert ".bak" in bak_path
    assert Path(bak_path).stat().st_size == grid_workbook.stat().st_size


def test_atomic_write(tmp_path: Path):
    target = tmp_path / "output.tsv"
    atomic_write(target, b"1\t2\t\n")
    assert target.read_bytes() == b"1\t2\t\n"


def test_atomic_write_overwrites(tmp_path: Path):
    target = tmp_path / "output.tsv"
    target.write_bytes(b"old content")
    atomic_write(target, b"new content")
    assert target.read_bytes() == b"new content"
    assert not list(tmp_path.glob(".tabcalc_tmp_*"))


class TestFileLock:
    """Unit tests for the FileLock context manager."""

    def test_lock_file_created(self, grid_workbook: Path):
        lock_path = grid_workbook.parent / (grid_workbook.name + ".tabcalc.lock")
        assert not lock_path.exists()
        with FileLock(grid_workbook):
            assert lock_path.exists()
        with FileLock(grid_workbook):
            pass

    def test_lock_file_contains_pid(self, grid_workbook: Path):
        with FileLock(grid_workbook):
            pass
        content = (grid_workbook.parent / (grid_workbook.name + ".tabcalc.lock")).read_text()
        assert f"pid={os.getpid()}" in content
        assert "time=" in content

    def test_second_lock_fails_immediately(self, grid_workbook: Path):
        with FileLock(grid_workbook):
            with pytest.raises(portalocker.LockException):
                with FileLock(grid_workbook):
                    pass

    def test_timeout_expires(self, grid_workbook: Path):
        with FileLock(grid_workbook):
            with pytest.raises(portalocker.LockException):
                with FileLock(grid_workbook, timeout=0.1):
                    pass
