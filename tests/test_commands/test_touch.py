"""Tests for the touch command."""

import pytest
from memsh import Session


class TestTouch:
    """Test file creation and options."""

    @pytest.mark.asyncio
    async def test_creates_empty_file(self):
        session = Session()
        result = await session.exec("touch /tmp/new.txt")
        assert result.exit_code == 0
        assert await session.fs.read_file("/tmp/new.txt") == ""

    @pytest.mark.asyncio
    async def test_keeps_existing_content(self):
        session = Session(files={"/tmp/f.txt": "data\n"})
        await session.exec("touch /tmp/f.txt")
        assert await session.fs.read_file("/tmp/f.txt") == "data\n"

    @pytest.mark.asyncio
    async def test_updates_mtime(self):
        session = Session(files={"/tmp/f.txt": "data\n"})
        before = (await session.fs.stat("/tmp/f.txt")).mtime
        await session.exec("touch /tmp/f.txt")
        assert (await session.fs.stat("/tmp/f.txt")).mtime >= before

    @pytest.mark.asyncio
    async def test_multiple_files(self):
        session = Session()
        await session.exec("cd /tmp; touch a b c")
        result = await session.exec("ls /tmp")
        assert result.stdout == "a\nb\nc\n"

    @pytest.mark.asyncio
    async def test_no_create(self):
        session = Session()
        result = await session.exec("touch -c /tmp/ghost")
        assert result.exit_code == 0
        assert not await session.fs.exists("/tmp/ghost")

    @pytest.mark.asyncio
    async def test_missing_parent(self):
        session = Session()
        result = await session.exec("touch /nowhere/file")
        assert result.exit_code == 1
        assert result.stderr == "touch: cannot touch '/nowhere/file': No such file or directory\n"

    @pytest.mark.asyncio
    async def test_directory_untouched(self):
        session = Session()
        result = await session.exec("touch /tmp")
        assert result.exit_code == 0
        assert await session.fs.is_directory("/tmp")

    @pytest.mark.asyncio
    async def test_missing_operand(self):
        session = Session()
        result = await session.exec("touch")
        assert result.exit_code == 1
        assert result.stderr == "touch: missing file operand\n"
