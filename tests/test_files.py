"""
Tests for the atomic JSON snapshot helpers.
"""

import json
import os

import pytest

from openjdk_api.releases.files import atomic_write_json, read_json

pytestmark = [pytest.mark.unit]


@pytest.mark.asyncio
class TestAtomicWriteJson:
    async def test_writes_and_creates_directory(self, tmp_path):
        target = tmp_path / "nested" / "new_releases.json"

        assert await atomic_write_json(str(target), {"openjdk11-binaries": {"cacheTime": 1}})

        assert json.loads(target.read_text()) == {"openjdk11-binaries": {"cacheTime": 1}}

    async def test_replaces_existing_file_without_leftovers(self, tmp_path):
        target = tmp_path / "legacy_releases.json"
        target.write_text('{"old": true}')

        assert await atomic_write_json(str(target), {"new": True})

        assert json.loads(target.read_text()) == {"new": True}
        assert os.listdir(tmp_path) == ["legacy_releases.json"]

    async def test_unserializable_data(self, tmp_path):
        target = tmp_path / "bad.json"

        assert not await atomic_write_json(str(target), {"value": object()})

        assert not target.exists()
        assert os.listdir(tmp_path) == []

    async def test_unwritable_directory(self, tmp_path, mocker):
        mocker.patch("tempfile.mkstemp", side_effect=OSError("read-only"))

        assert not await atomic_write_json(str(tmp_path / "x.json"), {})


@pytest.mark.asyncio
class TestReadJson:
    async def test_reads_file(self, tmp_path):
        target = tmp_path / "data.json"
        target.write_text('{"a": [1, 2]}')

        assert await read_json(str(target)) == {"a": [1, 2]}

    async def test_missing_file(self, tmp_path):
        assert await read_json(str(tmp_path / "missing.json")) is None

    async def test_corrupt_file(self, tmp_path):
        target = tmp_path / "data.json"
        target.write_text("{not json")

        assert await read_json(str(target)) is None
