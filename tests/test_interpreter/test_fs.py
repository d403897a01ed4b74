"""Tests for the in-memory filesystem."""

import errno

import pytest
from memsh import InMemoryFs


class TestResolvePath:
    """Test lexical path resolution."""

    def test_relative_path(self):
        fs = InMemoryFs()
        assert fs.resolve_path("/home/user", "docs/a.txt") == "/home/user/docs/a.txt"

    def test_dot_and_dotdot(self):
        fs = InMemoryFs()
        assert fs.resolve_path("/a/b", "../c/./d") == "/a/c/d"

    def test_dotdot_stops_at_root(self):
        fs = InMemoryFs()
        assert fs.resolve_path("/", "../../x") == "/x"

    def test_absolute_path_ignores_base(self):
        fs = InMemoryFs()
        assert fs.resolve_path("/home", "/etc//passwd/") == "/etc/passwd"

    def test_idempotent_on_normalized_paths(self):
        fs = InMemoryFs()
        for path in ["/", "/a", "/a/b/c", "/tmp/file.txt"]:
            assert fs.resolve_path("/", path) == path
            assert fs.resolve_path("/", fs.resolve_path("/", path)) == path

    def test_case_sensitive(self):
        fs = InMemoryFs()
        assert fs.resolve_path("/", "/A") != fs.resolve_path("/", "/a")


class TestFiles:
    """Test reading and writing files."""

    @pytest.mark.asyncio
    async def test_write_then_read(self):
        fs = InMemoryFs()
        await fs.write_file("/hello.txt", "hi there\n")
        assert await fs.read_file("/hello.txt") == "hi there\n"

    @pytest.mark.asyncio
    async def test_write_truncates(self):
        fs = InMemoryFs(initial_files={"/f": "old content"})
        await fs.write_file("/f", "new")
        assert await fs.read_file("/f") == "new"

    @pytest.mark.asyncio
    async def test_append(self):
        fs = InMemoryFs(initial_files={"/f": "a\n"})
        await fs.append_file("/f", "b\n")
        assert await fs.read_file("/f") == "a\nb\n"

    @pytest.mark.asyncio
    async def test_append_creates_file(self):
        fs = InMemoryFs()
        await fs.append_file("/new", "x")
        assert await fs.read_file("/new") == "x"

    @pytest.mark.asyncio
    async def test_write_requires_parent(self):
        fs = InMemoryFs()
        with pytest.raises(FileNotFoundError):
            await fs.write_file("/missing/file.txt", "x")

    @pytest.mark.asyncio
    async def test_write_under_file_fails(self):
        fs = InMemoryFs(initial_files={"/f": "x"})
        with pytest.raises(NotADirectoryError):
            await fs.write_file("/f/g", "x")

    @pytest.mark.asyncio
    async def test_read_missing(self):
        fs = InMemoryFs()
        with pytest.raises(FileNotFoundError) as exc_info:
            await fs.read_file("/nope")
        assert exc_info.value.errno == errno.ENOENT
        assert exc_info.value.strerror == "No such file or directory"

    @pytest.mark.asyncio
    async def test_read_directory(self):
        fs = InMemoryFs(directories=["/d"])
        with pytest.raises(IsADirectoryError):
            await fs.read_file("/d")

    @pytest.mark.asyncio
    async def test_read_symlink_loop_is_oserror(self):
        fs = InMemoryFs()
        await fs.symlink("/loop", "/loop")
        with pytest.raises(OSError) as exc_info:
            await fs.read_file("/loop")
        assert exc_info.value.errno == errno.ELOOP

    @pytest.mark.asyncio
    async def test_initial_files_create_parents(self):
        fs = InMemoryFs(initial_files={"/a/b/c.txt": "deep"})
        assert await fs.is_directory("/a/b")
        assert await fs.read_file("/a/b/c.txt") == "deep"

    @pytest.mark.asyncio
    async def test_initial_bytes_are_decoded(self):
        fs = InMemoryFs(initial_files={"/b": b"bytes\n"})
        assert await fs.read_file("/b") == "bytes\n"


class TestDirectories:
    """Test directory operations."""

    @pytest.mark.asyncio
    async def test_mkdir_recursive_then_stat(self):
        fs = InMemoryFs()
        await fs.mkdir("/a", recursive=True)
        await fs.write_file("/a/b.txt", "x")
        st = await fs.stat("/a/b.txt")
        assert st.is_file
        assert not st.is_directory
        assert st.size == 1

    @pytest.mark.asyncio
    async def test_mkdir_existing_fails(self):
        fs = InMemoryFs(directories=["/a"])
        with pytest.raises(FileExistsError):
            await fs.mkdir("/a")

    @pytest.mark.asyncio
    async def test_mkdir_recursive_existing_ok(self):
        fs = InMemoryFs(directories=["/a"])
        await fs.mkdir("/a", recursive=True)
        assert await fs.is_directory("/a")

    @pytest.mark.asyncio
    async def test_mkdir_missing_parent(self):
        fs = InMemoryFs()
        with pytest.raises(FileNotFoundError):
            await fs.mkdir("/x/y")

    @pytest.mark.asyncio
    async def test_readdir_sorted(self):
        fs = InMemoryFs(initial_files={"/d/b": "", "/d/a": "", "/d/sub/c": ""})
        assert await fs.readdir("/d") == ["a", "b", "sub"]

    @pytest.mark.asyncio
    async def test_readdir_on_file(self):
        fs = InMemoryFs(initial_files={"/f": ""})
        with pytest.raises(NotADirectoryError):
            await fs.readdir("/f")

    @pytest.mark.asyncio
    async def test_rm_non_empty_needs_recursive(self):
        fs = InMemoryFs(initial_files={"/d/f": "x"})
        with pytest.raises(OSError) as exc_info:
            await fs.rm("/d")
        assert exc_info.value.errno == errno.ENOTEMPTY
        await fs.rm("/d", recursive=True)
        assert not await fs.exists("/d")
        assert not await fs.exists("/d/f")

    @pytest.mark.asyncio
    async def test_rm_force_missing(self):
        fs = InMemoryFs()
        await fs.rm("/nothing", force=True)
        with pytest.raises(FileNotFoundError):
            await fs.rm("/nothing")

    def test_get_all_paths(self):
        fs = InMemoryFs(initial_files={"/x/y.txt": ""})
        assert fs.get_all_paths() == ["/", "/x", "/x/y.txt"]


class TestSymlinks:
    """Test symbolic links."""

    @pytest.mark.asyncio
    async def test_stat_follows_lstat_does_not(self):
        fs = InMemoryFs(initial_files={"/target.txt": "data"})
        await fs.symlink("/target.txt", "/link")
        assert (await fs.stat("/link")).is_file
        assert (await fs.lstat("/link")).is_symbolic_link
        assert await fs.read_file("/link") == "data"
        assert await fs.readlink("/link") == "/target.txt"

    @pytest.mark.asyncio
    async def test_relative_symlink(self):
        fs = InMemoryFs(initial_files={"/d/real": "r"})
        await fs.symlink("real", "/d/alias")
        assert await fs.realpath("/d/alias") == "/d/real"

    @pytest.mark.asyncio
    async def test_symlink_loop(self):
        fs = InMemoryFs()
        await fs.symlink("/b", "/a")
        await fs.symlink("/a", "/b")
        with pytest.raises(OSError) as exc_info:
            await fs.stat("/a")
        assert exc_info.value.errno == errno.ELOOP

    @pytest.mark.asyncio
    async def test_dangling_symlink(self):
        fs = InMemoryFs()
        await fs.symlink("/missing", "/dangling")
        assert not await fs.exists("/dangling")
        assert (await fs.lstat("/dangling")).is_symbolic_link

    @pytest.mark.asyncio
    async def test_chmod(self):
        fs = InMemoryFs(initial_files={"/f": ""})
        await fs.chmod("/f", 0o755)
        assert (await fs.stat("/f")).mode == 0o755
