"""Tests for the local blob store."""

import pytest

from orderdesk.exceptions import ValidationError
from orderdesk.storage import LocalStorage
from orderdesk.storage.local_storage import slugify


class TestSlugify:

    def test_lowercases_and_joins(self):
        assert slugify("Summer Shoot (Final)") == "summer-shoot-final"

    def test_empty_falls_back(self):
        assert slugify("###") == "file"


class TestLocalStorage:

    def test_build_path_nests_by_location(self, tmp_path):
        storage = LocalStorage(str(tmp_path))

        path = storage.build_path(7, "My Photo.JPG", folder_id=3, subfolder_id=9)

        assert path.startswith("orders/7/3/9/my-photo-")
        assert path.endswith(".jpg")

    def test_subfolder_ignored_without_folder(self, tmp_path):
        path = LocalStorage(str(tmp_path)).build_path(7, "a.png", subfolder_id=9)
        assert path.startswith("orders/7/a-")

    def test_same_name_gives_distinct_paths(self, tmp_path):
        storage = LocalStorage(str(tmp_path))
        assert storage.build_path(1, "a.jpg") != storage.build_path(1, "a.jpg")

    def test_directory_parts_of_name_are_dropped(self, tmp_path):
        path = LocalStorage(str(tmp_path)).build_path(1, "../../etc/passwd")
        assert path.startswith("orders/1/passwd-")

    def test_save_read_delete(self, tmp_path):
        storage = LocalStorage(str(tmp_path))
        path = storage.build_path(1, "a.txt")

        assert storage.save(path, b"hello") == 5
        assert storage.exists(path)
        assert storage.read(path) == b"hello"
        assert storage.delete(path) is True
        assert not storage.exists(path)
        assert storage.delete(path) is False

    def test_resolve_refuses_escape(self, tmp_path):
        storage = LocalStorage(str(tmp_path / "root"))
        with pytest.raises(ValidationError):
            storage.resolve("../outside.txt")

    def test_delete_order_removes_tree(self, tmp_path):
        storage = LocalStorage(str(tmp_path))
        path = storage.build_path(5, "a.jpg", folder_id=1)
        storage.save(path, b"x")

        storage.delete_order(5)

        assert not storage.exists(path)
        assert not (tmp_path / "orders" / "5").exists()
