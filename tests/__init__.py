"""
Test utilities package.

IMPORTANT:
Do not globally monkeypatch sys.modules here. FastAPI/Starlette TestClient relies
on real httpx classes. Shared doubles live in tests/fakes.py; prefer per-test
monkeypatch/fixtures over global state.
"""
