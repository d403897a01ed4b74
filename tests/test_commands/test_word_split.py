"""Tests for field splitting, tilde and pathname expansion."""

import pytest
from memsh import Session


class TestFieldSplitting:
    """Unquoted expansions are split on IFS."""

    @pytest.mark.asyncio
    async def test_unquoted_splits(self):
        session = Session()
        result = await session.exec('x="a   b  c"; for w in $x; do echo "[$w]"; done')
        assert result.stdout == "[a]\n[b]\n[c]\n"

    @pytest.mark.asyncio
    async def test_quoted_does_not_split(self):
        session = Session()
        result = await session.exec('x="a   b"; echo "$x"')
        assert result.stdout == "a   b\n"

    @pytest.mark.asyncio
    async def test_custom_ifs(self):
        session = Session()
        result = await session.exec('IFS=:; x=a:b:c; for w in $x; do echo $w; done')
        assert result.stdout == "a\nb\nc\n"

    @pytest.mark.asyncio
    async def test_empty_unquoted_vanishes(self):
        session = Session()
        result = await session.exec("f() { echo $#; }; empty=; f $empty x")
        assert result.stdout == "1\n"

    @pytest.mark.asyncio
    async def test_empty_quoted_is_a_field(self):
        session = Session()
        result = await session.exec('f() { echo $#; }; f "" x')
        assert result.stdout == "2\n"

    @pytest.mark.asyncio
    async def test_substitution_is_split(self):
        session = Session()
        result = await session.exec("for w in $(echo one two); do echo $w; done")
        assert result.stdout == "one\ntwo\n"


class TestPositionalParameters:
    """Test $@, $*, $# and $1.."""

    @pytest.mark.asyncio
    async def test_quoted_at_keeps_fields(self):
        session = Session()
        script = 'count() { echo $#; }; f() { count "$@"; count "$*"; count $@; }; f "a b" c'
        result = await session.exec(script)
        assert result.stdout == "2\n1\n3\n"

    @pytest.mark.asyncio
    async def test_numbered(self):
        session = Session()
        result = await session.exec('f() { echo "$2-$1"; }; f first second')
        assert result.stdout == "second-first\n"

    @pytest.mark.asyncio
    async def test_star_joins_with_ifs(self):
        session = Session()
        result = await session.exec('f() { IFS=,; echo "$*"; }; f a b c')
        assert result.stdout == "a,b,c\n"


class TestTilde:
    """Test ~ expansion."""

    @pytest.mark.asyncio
    async def test_home(self):
        session = Session()
        result = await session.exec("echo ~ ~/docs")
        assert result.stdout == "/home/user /home/user/docs\n"

    @pytest.mark.asyncio
    async def test_quoted_tilde(self):
        session = Session()
        result = await session.exec('echo "~" \'~\'')
        assert result.stdout == "~ ~\n"

    @pytest.mark.asyncio
    async def test_follows_home(self):
        session = Session()
        result = await session.exec("HOME=/data; echo ~")
        assert result.stdout == "/data\n"


class TestGlobbing:
    """Test pathname expansion."""

    FILES = {
        "/proj/a.txt": "",
        "/proj/b.txt": "",
        "/proj/c.log": "",
        "/proj/sub/d.txt": "",
    }

    @pytest.mark.asyncio
    async def test_star(self):
        session = Session(files=self.FILES, cwd="/proj")
        result = await session.exec("echo *.txt")
        assert result.stdout == "a.txt b.txt\n"

    @pytest.mark.asyncio
    async def test_absolute(self):
        session = Session(files=self.FILES)
        result = await session.exec("echo /proj/*.log")
        assert result.stdout == "/proj/c.log\n"

    @pytest.mark.asyncio
    async def test_question_and_bracket(self):
        session = Session(files=self.FILES, cwd="/proj")
        result = await session.exec("echo ?.txt; echo [ab].txt")
        assert result.stdout == "a.txt b.txt\na.txt b.txt\n"

    @pytest.mark.asyncio
    async def test_nested_directory(self):
        session = Session(files=self.FILES, cwd="/proj")
        result = await session.exec("echo */*.txt")
        assert result.stdout == "sub/d.txt\n"

    @pytest.mark.asyncio
    async def test_no_match_stays_literal(self):
        session = Session(files=self.FILES, cwd="/proj")
        result = await session.exec("echo *.xyz")
        assert result.stdout == "*.xyz\n"

    @pytest.mark.asyncio
    async def test_quoted_not_expanded(self):
        session = Session(files=self.FILES, cwd="/proj")
        result = await session.exec("echo '*.txt' \"*.txt\"")
        assert result.stdout == "*.txt *.txt\n"

    @pytest.mark.asyncio
    async def test_glob_from_variable(self):
        session = Session(files=self.FILES, cwd="/proj")
        result = await session.exec('pat="*.log"; echo $pat')
        assert result.stdout == "c.log\n"

    @pytest.mark.asyncio
    async def test_hidden_files_need_dot(self):
        session = Session(files={"/h/.hidden": "", "/h/shown": ""}, cwd="/h")
        result = await session.exec("echo *; echo .h*")
        assert result.stdout == "shown\n.hidden\n"

    @pytest.mark.asyncio
    async def test_for_over_glob(self):
        session = Session(files=self.FILES, cwd="/proj")
        result = await session.exec("for f in *.txt; do echo \"file: $f\"; done")
        assert result.stdout == "file: a.txt\nfile: b.txt\n"
