"""Wire-level integration tests for MCP error envelope behavior."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    Exchange = Callable[[list[dict]], list[dict]]


def _call_get_doc(arguments: dict) -> dict:
    return {
        "jsonrpc": "2.0",
        "id": 2,
        "method": "tools/call",
        "params": {"name": "get_doc", "arguments": arguments},
    }


def _tool_error(responses: list[dict]) -> dict:
    tool_response = next(response for response in responses if response.get("id") == 2)
    assert tool_response["result"]["isError"] is True

    text_payload = tool_response["result"]["content"][0]["text"]
    assert "Error executing tool" not in text_payload
    return json.loads(text_payload)["error"]


def test_blank_path_serializes_to_structured_tool_error(mcp_exchange: Exchange) -> None:
    error = _tool_error(mcp_exchange([_call_get_doc({"path": "   "})]))

    assert error["code"] == "INVALID_INPUT"
    assert error["recoverable"] is False
    assert "path must not be empty" in error["message"]
    assert error["suggestion"]


def test_bad_working_dir_serializes_to_structured_tool_error(
    mcp_exchange: Exchange, tmp_path: Path
) -> None:
    arguments = {"path": "./pkg", "working_dir": str(tmp_path / "absent")}
    error = _tool_error(mcp_exchange([_call_get_doc(arguments)]))

    assert error["code"] == "INVALID_INPUT"
    assert "invalid working directory" in error["message"]
