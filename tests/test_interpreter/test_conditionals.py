"""Tests for test-expression parsing and evaluation."""

import pytest
from memsh import Session
from memsh.interpreter.conditionals import (
    AndTest,
    BinaryTest,
    GroupTest,
    NotTest,
    OrTest,
    StringTest,
    TestSyntaxError,
    UnaryTest,
    parse_test_expression,
)


class TestParseTestExpression:
    """Test the test-expression parser."""

    def test_unary(self):
        assert parse_test_expression(["-f", "/x"]) == UnaryTest("-f", "/x")

    def test_binary(self):
        assert parse_test_expression(["a", "=", "b"]) == BinaryTest("=", "a", "b")

    def test_lone_string(self):
        assert parse_test_expression(["hello"]) == StringTest("hello")

    def test_binary_wins_over_unary(self):
        assert parse_test_expression(["-f", "=", "-f"]) == BinaryTest("=", "-f", "-f")

    def test_not(self):
        assert parse_test_expression(["!", "-z", "x"]) == NotTest(UnaryTest("-z", "x"))

    def test_and_binds_tighter_than_or(self):
        node = parse_test_expression(["a", "-o", "b", "-a", "c"])
        assert node == OrTest(StringTest("a"), AndTest(StringTest("b"), StringTest("c")))

    def test_grouping(self):
        node = parse_test_expression(["(", "a", "-o", "b", ")", "-a", "c"])
        assert node == AndTest(GroupTest(OrTest(StringTest("a"), StringTest("b"))), StringTest("c"))

    def test_extended_combinators(self):
        node = parse_test_expression(["-n", "a", "&&", "-z", ""], extended=True)
        assert node == AndTest(UnaryTest("-n", "a"), UnaryTest("-z", ""))

    def test_extended_pattern_operand(self):
        node = parse_test_expression(["abc", "==", "a*"], patterns=["abc", "==", "a*"], extended=True)
        assert node == BinaryTest("==", "abc", "a*", right_pattern="a*")

    def test_too_many_arguments(self):
        with pytest.raises(TestSyntaxError, match="too many arguments"):
            parse_test_expression(["a", "b"])

    def test_unclosed_group(self):
        with pytest.raises(TestSyntaxError):
            parse_test_expression(["(", "a"])

    def test_regex_only_extended(self):
        with pytest.raises(TestSyntaxError):
            parse_test_expression(["a", "=~", "b"])

    def test_dangling_binary_operator(self):
        with pytest.raises(TestSyntaxError, match="^1: unary operator expected$"):
            parse_test_expression(["1", "-eq"])

    def test_dangling_binary_operator_extended(self):
        with pytest.raises(TestSyntaxError, match="conditional binary operator"):
            parse_test_expression(["a", "=="], extended=True)

    def test_unary_operator_with_operator_operand(self):
        assert parse_test_expression(["-n", "="]) == UnaryTest("-n", "=")


class TestTestBuiltin:
    """Test the test and [ builtins."""

    @pytest.mark.asyncio
    async def test_file_tests(self):
        session = Session(files={"/data/file.txt": "content", "/data/empty": ""})
        cases = {
            "test -e /data/file.txt": 0,
            "test -f /data/file.txt": 0,
            "test -d /data": 0,
            "test -f /data": 1,
            "test -s /data/file.txt": 0,
            "test -s /data/empty": 1,
            "test -e /missing": 1,
            "test -r /data/file.txt": 0,
            "test -x /data/file.txt": 1,
        }
        for script, expected in cases.items():
            result = await session.exec(script)
            assert result.exit_code == expected, script

    @pytest.mark.asyncio
    async def test_executable_after_chmod(self):
        session = Session(files={"/bin/tool": "#!/bin/sh\n"})
        await session.fs.chmod("/bin/tool", 0o755)
        result = await session.exec("test -x /bin/tool")
        assert result.exit_code == 0

    @pytest.mark.asyncio
    async def test_strings(self):
        session = Session()
        assert (await session.exec('[ -z "" ]')).exit_code == 0
        assert (await session.exec('[ -n "" ]')).exit_code == 1
        assert (await session.exec("[ abc = abc ]")).exit_code == 0
        assert (await session.exec("[ abc != abc ]")).exit_code == 1
        assert (await session.exec("[ abc ]")).exit_code == 0
        assert (await session.exec("[ ]")).exit_code == 1

    @pytest.mark.asyncio
    async def test_numeric(self):
        session = Session()
        assert (await session.exec("[ 10 -gt 9 ]")).exit_code == 0
        assert (await session.exec("[ 10 -lt 9 ]")).exit_code == 1
        assert (await session.exec("[ -3 -le -3 ]")).exit_code == 0

    @pytest.mark.asyncio
    async def test_numeric_requires_integer(self):
        session = Session()
        result = await session.exec("[ abc -eq 1 ]")
        assert result.exit_code == 2
        assert "integer expression expected" in result.stderr

    @pytest.mark.asyncio
    async def test_missing_bracket(self):
        session = Session()
        result = await session.exec("[ a = a")
        assert result.exit_code == 2
        assert "missing `]'" in result.stderr

    @pytest.mark.asyncio
    async def test_malformed_is_two(self):
        session = Session()
        result = await session.exec("test a b c d")
        assert result.exit_code == 2

    @pytest.mark.asyncio
    async def test_missing_right_operand(self):
        session = Session()
        result = await session.exec("[ 1 -eq ]")
        assert result.exit_code == 2
        assert result.stderr == "bash: [: 1: unary operator expected\n"

    @pytest.mark.asyncio
    async def test_combinators(self):
        session = Session()
        assert (await session.exec("[ -n a -a -n b ]")).exit_code == 0
        assert (await session.exec("[ -z a -o -n b ]")).exit_code == 0
        assert (await session.exec("[ ! -n a ]")).exit_code == 1
        assert (await session.exec("[ \\( a = b \\) -o c = c ]")).exit_code == 0

    @pytest.mark.asyncio
    async def test_only_zero_is_true_for_if(self):
        session = Session()
        result = await session.exec("if [ 1 -eq x ]; then echo yes; else echo no; fi")
        assert result.stdout == "no\n"


class TestDoubleBracket:
    """Test the [[ ]] conditional command."""

    @pytest.mark.asyncio
    async def test_glob_match(self):
        session = Session()
        assert (await session.exec("x=hello; [[ $x == h*o ]]")).exit_code == 0
        assert (await session.exec("x=hello; [[ $x == h?x ]]")).exit_code == 1
        assert (await session.exec("x=hello; [[ $x != z* ]]")).exit_code == 0

    @pytest.mark.asyncio
    async def test_quoted_pattern_is_literal(self):
        session = Session()
        assert (await session.exec('x=hello; [[ $x == "h*" ]]')).exit_code == 1
        assert (await session.exec('x="h*"; [[ $x == "h*" ]]')).exit_code == 0

    @pytest.mark.asyncio
    async def test_no_word_splitting(self):
        session = Session()
        result = await session.exec('x="a b"; [[ $x == "a b" ]] && echo same')
        assert result.stdout == "same\n"

    @pytest.mark.asyncio
    async def test_regex(self):
        session = Session()
        result = await session.exec('[[ abc123 =~ [0-9]+ ]] && echo "$BASH_REMATCH"')
        assert result.stdout == "123\n"

    @pytest.mark.asyncio
    async def test_regex_with_group_and_alternation(self):
        session = Session()
        result = await session.exec("[[ abc =~ ^(a|x)bc$ ]]; echo $?")
        assert result.stdout == "0\n"
        result = await session.exec("[[ ab =~ a|x ]]; echo $?")
        assert result.stdout == "0\n"
        result = await session.exec("[[ zbc =~ ^(a|x)bc$ ]]; echo $?")
        assert result.stdout == "1\n"

    @pytest.mark.asyncio
    async def test_regex_followed_by_and(self):
        session = Session()
        result = await session.exec('[[ x1 =~ ^x([0-9])$ && -n a ]] && echo "$BASH_REMATCH"')
        assert result.stdout == "x1\n"

    @pytest.mark.asyncio
    async def test_and_or(self):
        session = Session()
        assert (await session.exec("[[ -n a && -z '' ]]")).exit_code == 0
        assert (await session.exec("[[ -z a || -n b ]]")).exit_code == 0
        assert (await session.exec("[[ -z a || -z b ]]")).exit_code == 1

    @pytest.mark.asyncio
    async def test_arithmetic_comparison(self):
        session = Session()
        assert (await session.exec("n=4; [[ n+1 -eq 5 ]]")).exit_code == 0

    @pytest.mark.asyncio
    async def test_string_ordering(self):
        session = Session()
        assert (await session.exec("[[ apple < banana ]]")).exit_code == 0
