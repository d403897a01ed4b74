"""Tests for command substitution."""

import pytest
from memsh import ExecutionLimits, Session


class TestCommandSubstitution:
    """Test $(...) and backticks."""

    @pytest.mark.asyncio
    async def test_dollar_paren(self):
        session = Session()
        result = await session.exec("echo \"got: $(echo hi)\"")
        assert result.stdout == "got: hi\n"

    @pytest.mark.asyncio
    async def test_backticks(self):
        session = Session()
        result = await session.exec("echo `echo tick`")
        assert result.stdout == "tick\n"

    @pytest.mark.asyncio
    async def test_strips_one_trailing_newline(self):
        session = Session(files={"/f": "hello\n\n"})
        result = await session.exec('x="$(cat /f)"; echo "[$x]"')
        assert result.stdout == "[hello\n]\n"

    @pytest.mark.asyncio
    async def test_nested(self):
        session = Session()
        result = await session.exec("echo $(echo outer $(echo inner))")
        assert result.stdout == "outer inner\n"

    @pytest.mark.asyncio
    async def test_nested_quotes(self):
        session = Session()
        result = await session.exec('echo "$(echo "a   b")"')
        assert result.stdout == "a   b\n"

    @pytest.mark.asyncio
    async def test_paren_inside_string(self):
        session = Session()
        result = await session.exec("echo $(echo ')')")
        assert result.stdout == ")\n"

    @pytest.mark.asyncio
    async def test_sees_variables_and_functions(self):
        session = Session()
        result = await session.exec('name=x; f() { echo "f:$1"; }; echo $(f $name)')
        assert result.stdout == "f:x\n"

    @pytest.mark.asyncio
    async def test_assignments_do_not_leak(self):
        session = Session()
        result = await session.exec('x=outer; y=$(x=inner; echo $x); echo "$x $y"')
        assert result.stdout == "outer inner\n"

    @pytest.mark.asyncio
    async def test_cd_does_not_leak(self):
        session = Session()
        result = await session.exec("d=$(cd /tmp; pwd); pwd; echo $d")
        assert result.stdout == "/home/user\n/tmp\n"

    @pytest.mark.asyncio
    async def test_shares_filesystem(self):
        session = Session()
        result = await session.exec("x=$(echo data > /tmp/sub.txt); cat /tmp/sub.txt")
        assert result.stdout == "data\n"

    @pytest.mark.asyncio
    async def test_stderr_passes_through(self):
        session = Session()
        result = await session.exec("x=$(cat /missing); echo \"[$x]\"")
        assert result.stdout == "[]\n"
        assert "No such file or directory" in result.stderr

    @pytest.mark.asyncio
    async def test_exit_inside_substitution(self):
        session = Session()
        result = await session.exec("x=$(echo partial; exit 3); echo \"$? $x\"")
        assert result.stdout == "3 partial\n"

    @pytest.mark.asyncio
    async def test_depth_limit(self):
        session = Session(limits=ExecutionLimits(max_substitution_depth=2))
        result = await session.exec("echo $(echo $(echo $(echo deep)))")
        assert result.exit_code == 126
        assert "nesting too deep" in result.stderr
