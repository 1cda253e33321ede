"""
Integration tests package.

Integration tests drive the FastAPI app end to end through an ASGI
transport. They require:
- An in-memory SQLite database (aiosqlite)
- Mocked Salesforce / Zoom upstreams (httpx.MockTransport)

To run only integration tests:
    pytest tests/integration/ -v -m integration
"""
