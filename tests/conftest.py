from pathlib import Path

import pytest

HEADER = "// a header file"
SOURCE = "// a cpp file"


def make_fs_lib(directory: Path, name: str, metadata: bool = True) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / f"{name}.h").write_text(HEADER)
    (directory / f"{name}.cpp").write_text(SOURCE)
    if metadata:
        (directory / "library.properties").write_text(f"name={name}\nversion=1.2.3\n")
    return directory


@pytest.fixture
def library_root(tmp_path: Path) -> Path:
    """A repository root holding lib1, yaya, an undescribed zzz and some noise."""
    root = tmp_path / "mydir"
    make_fs_lib(root / "lib1", "lib1")
    make_fs_lib(root / "yaya", "yaya")
    make_fs_lib(root / "zzz", "zzz", metadata=False)
    (root / "hello.txt").write_text("hello.txt")
    (root / ".profile").mkdir()
    (root / ".profile" / ".secret").write_text("sssh!")
    return root
