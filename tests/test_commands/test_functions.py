"""Tests for shell functions, local and return."""

import pytest
from memsh import Session


class TestFunctions:
    """Test definition and calls."""

    @pytest.mark.asyncio
    async def test_define_and_call(self):
        session = Session()
        result = await session.exec('greet() { echo "Hello, $1!"; }; greet World')
        assert result.stdout == "Hello, World!\n"

    @pytest.mark.asyncio
    async def test_function_keyword(self):
        session = Session()
        result = await session.exec("function hi { echo hi; }; hi")
        assert result.stdout == "hi\n"

    @pytest.mark.asyncio
    async def test_multiline(self):
        session = Session()
        script = """
add() {
    echo $(( $1 + $2 ))
}
add 2 3
"""
        result = await session.exec(script)
        assert result.stdout == "5\n"

    @pytest.mark.asyncio
    async def test_positional_params_restored(self):
        session = Session()
        result = await session.exec('inner() { echo "in:$1"; }; outer() { inner x; echo "out:$1"; }; outer y')
        assert result.stdout == "in:x\nout:y\n"

    @pytest.mark.asyncio
    async def test_globals_visible_and_writable(self):
        session = Session()
        result = await session.exec("x=1; f() { echo $x; x=2; }; f; echo $x")
        assert result.stdout == "1\n2\n"

    @pytest.mark.asyncio
    async def test_recursion(self):
        session = Session()
        script = """
fact() {
    if [ $1 -le 1 ]; then
        echo 1
    else
        local sub=$(fact $(( $1 - 1 )))
        echo $(( $1 * sub ))
    fi
}
fact 5
"""
        result = await session.exec(script)
        assert result.stdout == "120\n"

    @pytest.mark.asyncio
    async def test_function_in_pipeline(self):
        session = Session()
        result = await session.exec("upper_lines() { grep -i x; }; echo -e 'x1\\ny\\nX2' | upper_lines")
        assert result.stdout == "x1\nX2\n"

    @pytest.mark.asyncio
    async def test_function_redirection(self):
        session = Session()
        result = await session.exec("log() { echo logged; } > /tmp/log; log; cat /tmp/log")
        assert result.stdout == "logged\n"

    @pytest.mark.asyncio
    async def test_function_shadows_command(self):
        session = Session()
        result = await session.exec("echo() { printenv HOME; }; echo ignored")
        assert result.stdout == "/home/user\n"

    @pytest.mark.asyncio
    async def test_unset_function(self):
        session = Session()
        result = await session.exec("f() { echo f; }; unset -f f; f")
        assert result.exit_code == 127


class TestLocal:
    """Test local variables."""

    @pytest.mark.asyncio
    async def test_local_does_not_leak(self):
        session = Session()
        result = await session.exec('x=global; f() { local x=local; echo $x; }; f; echo $x')
        assert result.stdout == "local\nglobal\n"

    @pytest.mark.asyncio
    async def test_local_visible_to_callees(self):
        session = Session()
        result = await session.exec("inner() { echo $v; }; outer() { local v=seen; inner; }; outer; echo \"[$v]\"")
        assert result.stdout == "seen\n[]\n"

    @pytest.mark.asyncio
    async def test_local_without_value(self):
        session = Session()
        result = await session.exec('x=g; f() { local x; echo "[$x]"; }; f; echo $x')
        assert result.stdout == "[]\ng\n"

    @pytest.mark.asyncio
    async def test_local_outside_function(self):
        session = Session()
        result = await session.exec("local x=1")
        assert result.exit_code == 1
        assert "can only be used in a function" in result.stderr

    @pytest.mark.asyncio
    async def test_assignment_inside_function_after_local(self):
        session = Session()
        result = await session.exec("f() { local n=1; n=2; echo $n; }; n=0; f; echo $n")
        assert result.stdout == "2\n0\n"


class TestReturn:
    """Test return."""

    @pytest.mark.asyncio
    async def test_return_status(self):
        session = Session()
        result = await session.exec("f() { return 3; }; f; echo $?")
        assert result.stdout == "3\n"

    @pytest.mark.asyncio
    async def test_return_stops_function(self):
        session = Session()
        result = await session.exec("f() { echo a; return; echo b; }; f; echo c")
        assert result.stdout == "a\nc\n"

    @pytest.mark.asyncio
    async def test_return_from_loop(self):
        session = Session()
        result = await session.exec("f() { for i in 1 2 3; do echo $i; [ $i = 2 ] && return 0; done; echo no; }; f")
        assert result.stdout == "1\n2\n"

    @pytest.mark.asyncio
    async def test_return_default_status(self):
        session = Session()
        result = await session.exec("f() { false; return; }; f; echo $?")
        assert result.stdout == "1\n"

    @pytest.mark.asyncio
    async def test_return_outside_function(self):
        session = Session()
        result = await session.exec("return 2")
        assert result.exit_code == 1
        assert "can only `return' from a function" in result.stderr

    @pytest.mark.asyncio
    async def test_break_does_not_cross_function(self):
        session = Session()
        result = await session.exec("f() { break; }; for i in 1 2; do f; echo $i; done")
        assert result.stdout == "1\n2\n"
