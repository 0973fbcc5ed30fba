from librepo.storage import FileSystemLibraryRepository, migrate_sourcecode

SOURCE = """
#pragma don't change me
#include "mylib/mylib.h"
  #include 'mylib\\mylib.h'
  #include "mylib2/mylib2.h"
  # include <mylib/mylib.h>
  // note this is perverse and beyond what reasonable code does
  "#include 'mylib/mylib_is_best.h'"
  //#include 'mylib/mylib_is_best.h'
  const char* s = "#include \\"mylib/mylib.h\\"";
"""

EXPECTED = """
#pragma don't change me
#include "mylib.h"
  #include 'mylib.h'
  #include "mylib2/mylib2.h"
  # include <mylib/mylib.h>
  // note this is perverse and beyond what reasonable code does
  "#include 'mylib/mylib_is_best.h'"
  //#include 'mylib/mylib_is_best.h'
  const char* s = "#include \\"mylib/mylib.h\\"";
"""


def test_migrate_rewrites_only_include_directives() -> None:
    assert migrate_sourcecode(SOURCE, "mylib") == EXPECTED


def test_migrate_is_available_on_repository() -> None:
    repo = FileSystemLibraryRepository("mydir")
    migrated = repo.migrate_sourcecode('#include "mylib/mylib.h" // trailing\r\n', "mylib")
    assert migrated == '#include "mylib.h" // trailing\r\n'


def test_migrate_leaves_other_libraries_alone() -> None:
    text = '#include "other/other.h"\n#include "mylibx/mylibx.h"\n'
    assert migrate_sourcecode(text, "mylib") == text


def test_migrate_handles_directive_spacing() -> None:
    assert migrate_sourcecode('\t#  include"mylib/sub.h"', "mylib") == '\t#  include"sub.h"'
