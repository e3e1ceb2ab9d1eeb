"""Tests for tool contracts and the tool executor."""

import json

import pytest

from fsroots.kernel.tools import (
    ToolExecutor,
    canonicalize_tool_name,
    execute_tool,
    list_tool_contracts,
    read_tool_names,
    supported_tool_names,
    write_tool_names,
)


@pytest.fixture
def executor(file_tools):
    return ToolExecutor(file_tools)


class TestToolContract:
    """Names, aliases and schemas."""

    def test_all_tools_are_registered(self):
        assert supported_tool_names() == sorted(
            [
                "create_directory",
                "directory_tree",
                "edit_file",
                "find_files",
                "get_bulk_file_info",
                "get_file_info",
                "get_server_info",
                "list_allowed_directories",
                "list_directory",
                "move_file",
                "read_file",
                "read_multiple_files",
                "search_files",
                "write_file",
            ]
        )

    def test_categories_partition_tools(self):
        assert set(read_tool_names()) | set(write_tool_names()) == set(supported_tool_names())
        assert not set(read_tool_names()) & set(write_tool_names())
        assert "edit_file" in write_tool_names()

    def test_aliases(self):
        assert canonicalize_tool_name("ls") == "list_directory"
        assert canonicalize_tool_name("  MV ") == "move_file"
        assert canonicalize_tool_name("unknown") == "unknown"
        assert canonicalize_tool_name("unknown", keep_unknown=False) == ""

    def test_schemas_use_wire_names(self):
        contracts = {c["name"]: c for c in list_tool_contracts()}
        edit_schema = contracts["edit_file"]["input_schema"]
        assert "dryRun" in edit_schema["properties"]
        assert edit_schema["required"] == ["path", "edits"]
        assert "excludePatterns" in contracts["search_files"]["input_schema"]["properties"]

    def test_filter_by_category(self):
        names = [c["name"] for c in list_tool_contracts(["write"])]
        assert names == write_tool_names()


class TestToolExecutor:
    """Dispatch, validation and rendering."""

    def test_read_file(self, executor, workspace):
        (workspace / "a.txt").write_text("hello")
        assert executor.execute("read_file", {"path": str(workspace / "a.txt")}) == "hello"

    def test_alias_dispatch(self, executor, workspace):
        (workspace / "a.txt").write_text("hello")
        assert executor.execute("cat", {"path": str(workspace / "a.txt")}) == "hello"

    def test_edit_with_wire_names(self, executor, workspace):
        target = workspace / "a.txt"
        target.write_text("one two\n")
        output = executor.execute(
            "edit_file",
            {
                "path": str(target),
                "edits": [{"oldText": "two", "newText": "three"}],
                "dryRun": True,
            },
        )
        assert "+one three\n" in output
        assert target.read_text() == "one two\n"

    def test_search_with_wire_names(self, executor, workspace):
        (workspace / "skip").mkdir()
        (workspace / "skip" / "a.txt").write_text("")
        (workspace / "b.txt").write_text("")
        output = executor.execute(
            "search_files",
            {"path": str(workspace), "pattern": "*.TXT", "excludePatterns": ["skip"]},
        )
        assert output == str(workspace / "b.txt")

    def test_find_files(self, executor, workspace):
        (workspace / "a.pdf").write_bytes(b"x" * 10)
        output = executor.execute(
            "find_files", {"path": str(workspace), "file_types": ["pdf"], "min_size": 5}
        )
        assert json.loads(output)["files"][0]["name"] == "a.pdf"

    def test_find_files_bad_date(self, executor, workspace):
        output = executor.execute(
            "find_files", {"path": str(workspace), "modified_after": "not a date"}
        )
        assert output.startswith("Error: Invalid parameter - modified_after")

    def test_unknown_tool(self, executor):
        output = executor.execute("delete_everything", {})
        assert output.startswith("Error: Invalid parameter - Unsupported tool 'delete_everything'")

    def test_missing_argument(self, executor):
        output = executor.execute("read_file", {})
        assert output.startswith("Error: Invalid parameter - ")
        assert "path" in output

    def test_unexpected_argument(self, executor, workspace):
        output = executor.execute("read_file", {"path": str(workspace), "mode": "rb"})
        assert output.startswith("Error: Invalid parameter - mode")

    def test_invalid_enum(self, executor, workspace):
        result = executor.run("find_files", {"path": str(workspace), "sort_by": "owner"})
        assert not result.success
        assert "sort_by" in result.error

    def test_invalid_limit(self, executor, workspace):
        result = executor.run("find_files", {"path": str(workspace), "limit": 0})
        assert not result.success

    def test_security_errors_render(self, executor, outside):
        output = executor.execute("read_file", {"path": str(outside / "secret.txt")})
        assert output.startswith("Security Error:")

    def test_list_allowed_directories(self, executor, workspace):
        output = executor.execute("list_allowed_directories")
        assert output == f"Allowed directories:\n{workspace}"

    def test_get_server_info_rejects_arguments(self, executor):
        assert executor.execute("get_server_info", {"verbose": True}).startswith(
            "Error: Invalid parameter"
        )
        assert json.loads(executor.execute("get_server_info"))["server"]["name"] == "fsroots"


class TestAuthGate:
    """Authentication gate."""

    def test_unauthenticated_call_is_rejected(self, file_tools, workspace):
        executor = ToolExecutor(file_tools, auth_required=True)
        output = executor.execute("list_allowed_directories")
        assert output == "Security Error: Authentication required"

    def test_authenticated_call_runs(self, file_tools, workspace):
        output = execute_tool(
            "list_allowed_directories",
            {},
            file_tools,
            auth_required=True,
            authenticated=True,
        )
        assert output == f"Allowed directories:\n{workspace}"
