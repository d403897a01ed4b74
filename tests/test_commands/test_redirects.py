"""Tests for input and output redirections."""

import pytest
from memsh import Session


class TestOutputRedirection:
    """Test >, >> and friends."""

    @pytest.mark.asyncio
    async def test_write(self):
        session = Session()
        result = await session.exec("echo hello > /tmp/out.txt")
        assert result.stdout == ""
        assert await session.fs.read_file("/tmp/out.txt") == "hello\n"

    @pytest.mark.asyncio
    async def test_truncate(self):
        session = Session(files={"/tmp/f": "old old old\n"})
        await session.exec("echo new > /tmp/f")
        assert await session.fs.read_file("/tmp/f") == "new\n"

    @pytest.mark.asyncio
    async def test_append(self):
        session = Session()
        await session.exec("echo a > /tmp/f; echo b >> /tmp/f")
        assert await session.fs.read_file("/tmp/f") == "a\nb\n"

    @pytest.mark.asyncio
    async def test_relative_to_cwd(self):
        session = Session()
        await session.exec("cd /tmp; echo x > rel.txt")
        assert await session.fs.read_file("/tmp/rel.txt") == "x\n"

    @pytest.mark.asyncio
    async def test_empty_output_still_creates_file(self):
        session = Session()
        await session.exec("true > /tmp/empty")
        assert await session.fs.read_file("/tmp/empty") == ""

    @pytest.mark.asyncio
    async def test_stderr_to_file(self):
        session = Session()
        result = await session.exec("cat /missing 2> /tmp/err")
        assert result.stderr == ""
        assert result.exit_code == 1
        assert "No such file or directory" in await session.fs.read_file("/tmp/err")

    @pytest.mark.asyncio
    async def test_stderr_append(self):
        session = Session()
        await session.exec("cat /m1 2>> /tmp/err; cat /m2 2>> /tmp/err")
        content = await session.fs.read_file("/tmp/err")
        assert content.count("No such file or directory") == 2

    @pytest.mark.asyncio
    async def test_stderr_to_stdout(self):
        session = Session()
        result = await session.exec("cat /missing 2>&1")
        assert result.stderr == ""
        assert "No such file or directory" in result.stdout

    @pytest.mark.asyncio
    async def test_stdout_to_stderr(self):
        session = Session()
        result = await session.exec("echo oops >&2")
        assert result.stdout == ""
        assert result.stderr == "oops\n"

    @pytest.mark.asyncio
    async def test_both_to_file(self):
        session = Session()
        await session.exec("{ echo out; cat /missing; } &> /tmp/all")
        content = await session.fs.read_file("/tmp/all")
        assert content.startswith("out\n")
        assert "No such file or directory" in content

    @pytest.mark.asyncio
    async def test_order_matters(self):
        session = Session()
        result = await session.exec("cat /missing 2>&1 > /tmp/f")
        assert "No such file or directory" in result.stdout
        assert await session.fs.read_file("/tmp/f") == ""

        result = await session.exec("cat /missing > /tmp/g 2>&1")
        assert result.stdout == ""
        assert "No such file or directory" in await session.fs.read_file("/tmp/g")

    @pytest.mark.asyncio
    async def test_dev_null(self):
        session = Session()
        result = await session.exec("echo gone > /dev/null; cat /missing 2>/dev/null; echo kept")
        assert result.stdout == "kept\n"
        assert result.stderr == ""

    @pytest.mark.asyncio
    async def test_missing_directory(self):
        session = Session()
        result = await session.exec("echo x > /no/such/dir/f; echo after")
        assert result.stdout == "after\n"
        assert "No such file or directory" in result.stderr

    @pytest.mark.asyncio
    async def test_redirect_to_directory(self):
        session = Session()
        result = await session.exec("echo x > /tmp")
        assert result.exit_code == 1
        assert "Is a directory" in result.stderr

    @pytest.mark.asyncio
    async def test_failed_redirection_skips_command(self):
        session = Session()
        result = await session.exec("echo x > /tmp/f < /missing")
        assert result.exit_code == 1
        assert await session.fs.read_file("/tmp/f") == ""

    @pytest.mark.asyncio
    async def test_ambiguous_redirect(self):
        session = Session()
        result = await session.exec('echo x > "$UNSET_VAR"')
        assert result.exit_code == 1
        assert "ambiguous redirect" in result.stderr

    @pytest.mark.asyncio
    async def test_group_redirection(self):
        session = Session()
        await session.exec("{ echo a; echo b; } > /tmp/f")
        assert await session.fs.read_file("/tmp/f") == "a\nb\n"

    @pytest.mark.asyncio
    async def test_loop_redirection(self):
        session = Session()
        await session.exec("for i in 1 2 3; do echo $i; done > /tmp/f")
        assert await session.fs.read_file("/tmp/f") == "1\n2\n3\n"

    @pytest.mark.asyncio
    async def test_redirection_before_command(self):
        session = Session()
        await session.exec("> /tmp/f echo first")
        assert await session.fs.read_file("/tmp/f") == "first\n"

    @pytest.mark.asyncio
    async def test_redirection_only_creates_file(self):
        session = Session()
        result = await session.exec("> /tmp/touched")
        assert result.exit_code == 0
        assert await session.fs.exists("/tmp/touched")


class TestInputRedirection:
    """Test <, here-strings and pipes into compound commands."""

    @pytest.mark.asyncio
    async def test_input_file(self):
        session = Session(files={"/in.txt": "b\na\n"})
        result = await session.exec("sort < /in.txt")
        assert result.stdout == "a\nb\n"

    @pytest.mark.asyncio
    async def test_missing_input(self):
        session = Session()
        result = await session.exec("cat < /missing")
        assert result.exit_code == 1
        assert result.stderr == "bash: /missing: No such file or directory\n"

    @pytest.mark.asyncio
    async def test_here_string(self):
        session = Session()
        result = await session.exec('name=world; cat <<< "hello $name"')
        assert result.stdout == "hello world\n"

    @pytest.mark.asyncio
    async def test_pipe_into_loop(self):
        session = Session()
        result = await session.exec("echo -e 'b\\na' | { sort; }")
        assert result.stdout == "a\nb\n"
