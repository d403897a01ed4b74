"""Tests for pwd command options."""

import pytest
from memsh import Session


class TestPwdOptions:
    """Test pwd -P/-L options."""

    async def _session_in_link(self) -> Session:
        session = Session()
        await session.exec("mkdir /real_dir")
        await session.fs.symlink("/real_dir", "/link_dir")
        await session.exec("cd /link_dir")
        return session

    @pytest.mark.asyncio
    async def test_pwd_physical_flag(self):
        session = await self._session_in_link()
        result = await session.exec("pwd -P")
        assert result.stdout == "/real_dir\n"

    @pytest.mark.asyncio
    async def test_pwd_logical_flag(self):
        session = await self._session_in_link()
        result = await session.exec("pwd -L")
        assert result.stdout == "/link_dir\n"

    @pytest.mark.asyncio
    async def test_pwd_default_is_logical(self):
        session = await self._session_in_link()
        result = await session.exec("pwd")
        assert result.stdout == "/link_dir\n"

    @pytest.mark.asyncio
    async def test_last_flag_wins(self):
        session = await self._session_in_link()
        result = await session.exec("pwd -P -L")
        assert result.stdout == "/link_dir\n"

    @pytest.mark.asyncio
    async def test_invalid_option(self):
        session = Session()
        result = await session.exec("pwd -x")
        assert result.exit_code == 1
        assert result.stderr == "pwd: invalid option -- 'x'\n"

    @pytest.mark.asyncio
    async def test_initial_cwd(self):
        session = Session(cwd="/work")
        result = await session.exec("pwd")
        assert result.stdout == "/work\n"
