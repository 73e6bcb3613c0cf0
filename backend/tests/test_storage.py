import asyncio
import io
import re

import pytest
from starlette.datastructures import UploadFile

from provider_directory.core.errors import InvalidInput
from provider_directory.storage.local_storage import LocalStorage

from conftest import PNG_BYTES


@pytest.fixture()
def storage(settings):
    return LocalStorage(settings.model_copy(update={"MAX_FILE_SIZE": 1024}))


def upload(name: str, content: bytes = PNG_BYTES) -> UploadFile:
    return UploadFile(file=io.BytesIO(content), filename=name)


@pytest.mark.parametrize("original, expected", [
    ("shop.png", "shop.png"),
    ("my photo.png", "my_photo.png"),
    ("../../etc/passwd.png", "passwd.png"),
    ("C:\\Users\\me\\logo.jpg", "logo.jpg"),
    ("...", "upload"),
])
def test_safe_filename(original, expected):
    assert LocalStorage.safe_filename(original) == expected


def test_save_file_returns_public_path(storage):
    public_path = asyncio.run(storage.save_file(upload("my photo.png")))

    assert re.fullmatch(r"/uploads/\d+-my_photo\.png", public_path)
    assert storage.file_exists(public_path)
    assert storage.get_file_path(public_path).read_bytes() == PNG_BYTES


def test_save_file_rejects_extension(storage):
    with pytest.raises(InvalidInput, match="File type not supported"):
        asyncio.run(storage.save_file(upload("payload.exe")))


def test_save_file_rejects_oversize(storage):
    with pytest.raises(InvalidInput, match="exceeds"):
        asyncio.run(storage.save_file(upload("big.png", b"x" * 2048)))


def test_save_file_rejects_declared_oversize_before_reading(storage):
    class Unreadable(io.BytesIO):
        def read(self, *args):
            raise AssertionError("body should not be read")

    big = UploadFile(file=Unreadable(), filename="big.png", size=4096)
    with pytest.raises(InvalidInput, match="exceeds"):
        asyncio.run(storage.save_file(big))
    assert list(storage.upload_dir.iterdir()) == []


def test_save_file_keeps_same_name_uploads_apart(storage):
    first = asyncio.run(storage.save_file(upload("photo.png", b"one")))
    second = asyncio.run(storage.save_file(upload("photo.png", b"two")))

    assert first != second
    assert storage.get_file_path(first).read_bytes() == b"one"
    assert storage.get_file_path(second).read_bytes() == b"two"


def test_save_files_is_all_or_nothing(storage):
    with pytest.raises(InvalidInput):
        asyncio.run(storage.save_files([upload("ok.png"), upload("bad.exe")]))
    assert list(storage.upload_dir.iterdir()) == []


@pytest.mark.parametrize("public_path", [
    "https://cdn.x.com/a.png",
    "/img/a.png",
    "/uploads/",
    "/uploads/../secret.png",
    "/uploads/nested/a.png",
])
def test_get_file_path_ignores_foreign_paths(storage, public_path):
    assert storage.get_file_path(public_path) is None
    assert not storage.delete_file(public_path)


def test_delete_file(storage):
    public_path = asyncio.run(storage.save_file(upload("gone.png")))
    assert storage.delete_file(public_path)
    assert not storage.file_exists(public_path)
    # Deleting again is a no-op
    assert not storage.delete_file(public_path)
