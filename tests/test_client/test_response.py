"""Tests for response extraction and result printing."""

from __future__ import annotations

import json

import httpx
import pytest
from pydantic import BaseModel

from restcache.client.response import extract_response_data, format_api_result
from restcache.output import OutputFormat, OutputManager, set_output


class Item(BaseModel):
    id: int
    name: str


@pytest.fixture
def json_output() -> OutputManager:
    output = OutputManager(format=OutputFormat.JSON, no_color=True)
    set_output(output)
    return output


class TestExtractResponseData:
    def test_json(self) -> None:
        assert extract_response_data(httpx.Response(200, json={"a": 1})) == {"a": 1}

    def test_text(self) -> None:
        assert extract_response_data(httpx.Response(200, text="hello")) == "hello"

    def test_empty(self) -> None:
        assert extract_response_data(httpx.Response(204)) is None


class TestFormatApiResult:
    def test_dict(self, json_output: OutputManager, capsys: pytest.CaptureFixture[str]) -> None:
        format_api_result({"a": 1})
        assert json.loads(capsys.readouterr().out) == {"a": 1}

    def test_model(self, json_output: OutputManager, capsys: pytest.CaptureFixture[str]) -> None:
        format_api_result(Item(id=1, name="x"))
        assert json.loads(capsys.readouterr().out) == {"id": 1, "name": "x"}

    def test_list_of_models(self, json_output: OutputManager, capsys: pytest.CaptureFixture[str]) -> None:
        format_api_result([Item(id=1, name="x"), Item(id=2, name="y")])
        assert json.loads(capsys.readouterr().out) == [
            {"id": 1, "name": "x"},
            {"id": 2, "name": "y"},
        ]

    def test_bytes_decoded(self, json_output: OutputManager, capsys: pytest.CaptureFixture[str]) -> None:
        format_api_result(b"raw text")
        assert capsys.readouterr().out.strip() == "raw text"

    def test_none_prints_nothing(self, json_output: OutputManager, capsys: pytest.CaptureFixture[str]) -> None:
        format_api_result(None)
        assert capsys.readouterr().out == ""
