"""Unit tests for storage_service file I/O."""
import json
import os

import pytest

from src.services.storage_service import delete_json, load_json, save_json


@pytest.fixture
def temp_dir(tmp_path):
    """Directory for test files."""
    return str(tmp_path)


class TestLoadJson:
    """Test load_json function."""

    def test_load_array_document(self, temp_dir):
        """Test loading a top-level JSON array."""
        file_path = os.path.join(temp_dir, "regs.json")
        with open(file_path, "w", encoding="utf-8") as f:
            json.dump([{"id": "a1", "name": "张三"}], f, ensure_ascii=False)

        data = load_json(file_path)
        assert data == [{"id": "a1", "name": "张三"}]

    def test_load_nonexistent_file_raises_error(self):
        """Test loading non-existent file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError, match="File not found"):
            load_json("/nonexistent/path/file.json")

    def test_load_malformed_json_raises_error(self, temp_dir):
        """Test loading malformed JSON raises JSONDecodeError."""
        file_path = os.path.join(temp_dir, "malformed.json")
        with open(file_path, "w", encoding="utf-8") as f:
            f.write("[{invalid json")

        with pytest.raises(json.JSONDecodeError, match="Malformed JSON"):
            load_json(file_path)


class TestSaveJson:
    """Test save_json function."""

    def test_save_keeps_utf8_readable(self, temp_dir):
        """Test saved file contains unescaped Chinese text."""
        file_path = os.path.join(temp_dir, "regs.json")
        save_json(file_path, [{"name": "李四"}], backup=False)

        with open(file_path, "r", encoding="utf-8") as f:
            assert "李四" in f.read()

    def test_save_creates_directory(self, temp_dir):
        """Test save_json creates parent directory if needed."""
        file_path = os.path.join(temp_dir, "subdir", "config.json")
        save_json(file_path, {"maxCapacity": 28}, backup=False)

        assert load_json(file_path) == {"maxCapacity": 28}

    def test_save_replaces_whole_document(self, temp_dir):
        """Test the previous document is fully replaced, not merged."""
        file_path = os.path.join(temp_dir, "config.json")
        save_json(file_path, {"a": 1, "b": 2}, backup=False)
        save_json(file_path, {"a": 3}, backup=False)

        assert load_json(file_path) == {"a": 3}

    def test_save_with_backup(self, temp_dir):
        """Test previous value is copied to .backup."""
        file_path = os.path.join(temp_dir, "regs.json")
        save_json(file_path, [1], backup=False)
        save_json(file_path, [1, 2], backup=True)

        assert load_json(f"{file_path}.backup") == [1]

    def test_save_unserializable_raises_ioerror_and_keeps_old_value(self, temp_dir):
        """Test a failed write leaves the old document and no temp files."""
        file_path = os.path.join(temp_dir, "regs.json")
        save_json(file_path, [1], backup=False)

        with pytest.raises(IOError, match="Failed to write file"):
            save_json(file_path, [object()], backup=False)

        assert load_json(file_path) == [1]
        assert not [name for name in os.listdir(temp_dir) if name.startswith(".tmp_")]


class TestDeleteJson:
    """Test delete_json function."""

    def test_delete_existing_file(self, temp_dir):
        """Test delete removes the file and keeps a backup."""
        file_path = os.path.join(temp_dir, "regs.json")
        save_json(file_path, [1, 2], backup=False)

        assert delete_json(file_path) is True
        assert not os.path.exists(file_path)
        assert load_json(f"{file_path}.backup") == [1, 2]

    def test_delete_missing_file_returns_false(self, temp_dir):
        """Test deleting a missing file is a no-op."""
        assert delete_json(os.path.join(temp_dir, "missing.json")) is False
