from __future__ import annotations

import json

import pytest

from ziptree.export import build_review_prompt, format_bytes, result_to_dict
from ziptree.orchestrator import Orchestrator


@pytest.fixture
def result(archive_builder):
    data = archive_builder.write(
        {
            "src/app.py": "import os\nos.system('ls')  # TODO: remove\n",
            ".env": "API=1\n",
        }
    ).build()
    return Orchestrator().analyze_archive(data)


def test_result_to_dict_is_json_serialisable(result) -> None:
    payload = result_to_dict(result)

    text = json.dumps(payload)
    assert "os.system('ls')" in text  # issue context is kept
    assert "API=1" not in text
    assert payload["score"]["counts"]["dangerous"] == 1
    assert payload["score"]["counts"]["todos"] == 1
    assert payload["stats"]["sensitive_files"] == [".env"]


def test_result_to_dict_file_entries(result) -> None:
    files = {entry["path"]: entry for entry in result_to_dict(result)["files"]}

    assert set(files) == {"src/app.py", ".env"}
    assert files["src/app.py"]["loaded"] is True
    assert files["src/app.py"]["deferred"] is False
    assert "content" not in files["src/app.py"]
    assert "binary" not in files["src/app.py"]


def test_result_to_dict_tree_shape(result) -> None:
    payload = result_to_dict(result)

    src, env = payload["tree"]
    assert src == {
        "name": "src",
        "path": "src",
        "type": "folder",
        "children": [
            {"name": "app.py", "path": "src/app.py", "type": "file", "risk_level": "high"}
        ],
    }
    assert env["risk_level"] == "none"
    assert payload["ascii_tree"] == result.ascii_tree


def test_result_to_dict_without_tree(result) -> None:
    payload = result_to_dict(result, include_tree=False)

    assert "tree" not in payload
    assert "ascii_tree" not in payload


def test_review_prompt_contains_tree_and_summary(result) -> None:
    prompt = build_review_prompt(result)

    assert "<file_structure>\n├── src\n" in prompt
    assert "Security Score: 84/100 (high-risk)" in prompt
    assert "- Dangerous Functions: 1" in prompt
    assert "- Sensitive files: .env" in prompt
    assert prompt.endswith("Please provide a detailed technical assessment.")


@pytest.mark.parametrize(
    "size, expected",
    [
        (0, "0 Bytes"),
        (512, "512 Bytes"),
        (1024, "1 KB"),
        (1536, "1.5 KB"),
        (5 * 1024 * 1024, "5 MB"),
        (1234567, "1.18 MB"),
    ],
)
def test_format_bytes(size, expected) -> None:
    assert format_bytes(size) == expected


def test_format_bytes_without_decimals() -> None:
    assert format_bytes(100 * 1024, decimals=0) == "100 KB"
