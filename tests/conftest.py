# tests/conftest.py
"""
Pytest configuration and shared fixtures for giftgen tests
"""
import json
from pathlib import Path
from typing import List

import pytest


ENV_VARS = [
    "GEMINI_API_KEY",
    "GIFTGEN_MODEL",
    "GIFTGEN_BASE_URL",
    "GIFTGEN_BATCH_TIMEOUT",
]


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep the developer's real key and ~/.giftgen out of every test"""
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
def quiz_data() -> dict:
    """Quiz JSON as the model returns it"""
    return {
        "questions": [
            {
                "title": "Arithmetic",
                "question": "What is 1 + 2?",
                "options": ["2", "3", "4"],
                "correct_answer": 1,
                "explanation": "1 + 2 = 3",
            },
            {
                "title": "Python: dicts",
                "question": "What does `{}` create?",
                "options": ["A set", "A dict", "A list"],
                "correct_answer": 1,
            },
        ]
    }


@pytest.fixture
def candidates_body(quiz_data) -> str:
    """generateContent success envelope wrapping quiz_data"""
    return json.dumps({
        "candidates": [
            {"content": {"parts": [{"text": json.dumps(quiz_data)}], "role": "model"}}
        ]
    })


@pytest.fixture
def error_body() -> str:
    return json.dumps({
        "error": {
            "code": 429,
            "message": "Resource has been exhausted",
            "status": "RESOURCE_EXHAUSTED",
        }
    })


@pytest.fixture
def doc_files(tmp_path) -> List[str]:
    """Three small documents to upload"""
    docs = tmp_path / "docs"
    docs.mkdir()
    paths = []
    for name in ("a.txt", "b.pdf", "c.md"):
        path = docs / name
        path.write_bytes(f"contents of {name}".encode())
        paths.append(str(path))
    return paths


class FakeGeminiClient:
    """Stands in for GeminiClient; replays canned response bodies"""

    def __init__(self, bodies, base_url="https://example.test"):
        self.bodies = list(bodies)
        self.base_url = base_url
        self.payloads = []

    def generate_content(self, payload):
        self.payloads.append(payload)
        return self.bodies.pop(0)


@pytest.fixture
def fake_client_factory():
    return FakeGeminiClient
