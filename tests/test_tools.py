"""Tests for the MCP tool layer.

Tools are called directly with a mock context carrying a real AppContext,
so every call runs the full engine (providers, controller, snapshot store).
"""

import json
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from outline_mcp.engine import LanguagePolicy, OutlineConfig
from outline_mcp.server import create_app_context
from outline_mcp.tools import (
    _infer_language,
    close_buffer,
    edit_buffer,
    get_outline,
    list_supported_languages,
    open_buffer,
    outline_file,
)

URI = "file:///work/service.ts"

SERVICE_V1 = "export class UserService {\n  getUser() {}\n}\n"
SERVICE_V2 = "// TODO: cache users\nexport class UserService {\n  getUser() {}\n}\n"


@pytest.fixture
async def mock_context() -> AsyncIterator[MagicMock]:
    """Create mock MCP context with a fully wired AppContext.

    Returns:
        Mock context object with request_context.lifespan_context structure
    """
    app_context = create_app_context(OutlineConfig())
    app_context.wait_timeout = 5.0

    mock_ctx = MagicMock()
    mock_ctx.request_context.lifespan_context = app_context

    yield mock_ctx

    await app_context.controller.close()


def _root_names(result: dict[str, Any]) -> list[str]:
    return [root["name"] for root in result["roots"]]


class TestBufferTools:
    """open/edit/close/get round trips through the controller."""

    @pytest.mark.asyncio
    async def test_open_buffer_returns_outline(self, mock_context: MagicMock) -> None:
        result = await open_buffer(uri=URI, content=SERVICE_V1, ctx=mock_context)

        assert result["uri"] == URI
        assert result["generation"] == 1
        assert _root_names(result) == ["UserService"]
        service = result["roots"][0]
        assert service["kind"] == "class"
        assert [child["name"] for child in service["children"]] == ["getUser"]
        assert service["description"] == "class - (component) - Line 1"

    @pytest.mark.asyncio
    async def test_edit_buffer_returns_new_generation(self, mock_context: MagicMock) -> None:
        await open_buffer(uri=URI, content=SERVICE_V1, ctx=mock_context)

        result = await edit_buffer(uri=URI, content=SERVICE_V2, ctx=mock_context)

        assert result["generation"] == 2
        assert _root_names(result) == ["cache users", "UserService"]
        assert result["roots"][0]["kind"] == "todo"

    @pytest.mark.asyncio
    async def test_edit_inactive_buffer_fails(self, mock_context: MagicMock) -> None:
        await open_buffer(uri=URI, content=SERVICE_V1, ctx=mock_context)

        result = await edit_buffer(uri="file:///work/other.ts", content="x", ctx=mock_context)

        assert result["status"] == "failure"
        assert "not the active buffer" in result["error"]

    @pytest.mark.asyncio
    async def test_get_outline_after_open(self, mock_context: MagicMock) -> None:
        await open_buffer(uri=URI, content=SERVICE_V1, ctx=mock_context)

        result = await get_outline(uri=URI, ctx=mock_context)

        assert result["generation"] == 1
        assert result["node_count"] == 2

    @pytest.mark.asyncio
    async def test_get_outline_markdown(self, mock_context: MagicMock) -> None:
        await open_buffer(uri=URI, content=SERVICE_V2, ctx=mock_context)

        result = await get_outline(uri=URI, format="markdown", ctx=mock_context)

        assert isinstance(result, str)
        assert result.startswith(f"## Outline: {URI}")
        assert "todo cache users TODO [1]" in result
        assert "class UserService (component) [2-4]" in result

    @pytest.mark.asyncio
    async def test_get_outline_unknown_buffer(self, mock_context: MagicMock) -> None:
        result = await get_outline(uri="file:///missing.ts", ctx=mock_context)

        assert result["status"] == "failure"
        assert "No outline available" in result["error"]

    @pytest.mark.asyncio
    async def test_close_buffer_drops_outline(self, mock_context: MagicMock) -> None:
        await open_buffer(uri=URI, content=SERVICE_V1, ctx=mock_context)

        result = await close_buffer(uri=URI, ctx=mock_context)

        assert result == {"status": "success", "uri": URI, "was_active": True}
        missing = await get_outline(uri=URI, ctx=mock_context)
        assert missing["status"] == "failure"

    @pytest.mark.asyncio
    async def test_close_inactive_buffer_drops_outline(self, mock_context: MagicMock) -> None:
        other = "file:///work/helpers.py"
        await open_buffer(uri=other, content="def helper():\n    pass\n", ctx=mock_context)
        await open_buffer(uri=URI, content=SERVICE_V1, ctx=mock_context)

        result = await close_buffer(uri=other, ctx=mock_context)

        assert result == {"status": "success", "uri": other, "was_active": False}
        missing = await get_outline(uri=other, ctx=mock_context)
        assert missing["status"] == "failure"
        active = await get_outline(uri=URI, ctx=mock_context)
        assert _root_names(active) == ["UserService"]

    @pytest.mark.asyncio
    async def test_reopen_after_close_continues_generation(self, mock_context: MagicMock) -> None:
        await open_buffer(uri=URI, content=SERVICE_V1, ctx=mock_context)
        await close_buffer(uri=URI, ctx=mock_context)

        result = await open_buffer(uri=URI, content=SERVICE_V1, ctx=mock_context)

        assert result["generation"] == 2

    @pytest.mark.asyncio
    async def test_unsupported_language_gives_empty_outline(
        self, mock_context: MagicMock
    ) -> None:
        result = await open_buffer(
            uri="file:///work/notes.txt", content="// TODO: not scanned\n", ctx=mock_context
        )

        assert result["roots"] == []
        assert result["node_count"] == 0

    @pytest.mark.asyncio
    async def test_explicit_language_id_overrides_extension(
        self, mock_context: MagicMock
    ) -> None:
        result = await open_buffer(
            uri="untitled:1",
            content="def main():\n    pass\n",
            language_id="python",
            ctx=mock_context,
        )

        assert _root_names(result) == ["main"]


class TestOneShotTools:
    """Tools that do not touch the active buffer."""

    @pytest.mark.asyncio
    async def test_outline_file(self, mock_context: MagicMock, tmp_path: Path) -> None:
        source = tmp_path / "jobs.py"
        source.write_text("# NOTE: runs nightly\ndef run_jobs():\n    pass\n")

        result = await outline_file(path=str(source), ctx=mock_context)

        assert _root_names(result) == ["runs nightly", "run_jobs"]
        assert mock_context.request_context.lifespan_context.controller.current_uri is None

    @pytest.mark.asyncio
    async def test_outline_file_missing(self, mock_context: MagicMock, tmp_path: Path) -> None:
        result = await outline_file(path=str(tmp_path / "absent.py"), ctx=mock_context)

        assert result["status"] == "failure"
        assert "Cannot read" in result["error"]

    @pytest.mark.asyncio
    async def test_list_supported_languages(self, mock_context: MagicMock) -> None:
        result = json.loads(await list_supported_languages(ctx=mock_context))

        assert result["policy"] == "extended"
        assert "typescriptreact" in result["languages"]
        assert "python" in result["languages"]

    @pytest.mark.asyncio
    async def test_list_supported_languages_minimal(self) -> None:
        app_context = create_app_context(OutlineConfig(language_policy=LanguagePolicy.MINIMAL))
        mock_ctx = MagicMock()
        mock_ctx.request_context.lifespan_context = app_context

        result = json.loads(await list_supported_languages(ctx=mock_ctx))

        assert result == {
            "policy": "minimal",
            "languages": ["javascript", "javascriptreact", "typescript", "typescriptreact"],
        }


@pytest.mark.parametrize(
    "uri,expected",
    [
        ("file:///a/b/card.tsx", "typescriptreact"),
        ("/tmp/module.py", "python"),
        ("file:///src/lib.RS", "rust"),
        ("untitled:Untitled-1", "plaintext"),
    ],
)
def test_infer_language(uri: str, expected: str) -> None:
    assert _infer_language(uri) == expected
