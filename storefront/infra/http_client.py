"""
Client HTTP sortant partagé (httpx.AsyncClient), porté par app.state.http_client.
- Créé dans le lifespan, fermé à l'arrêt.
- Créé à la demande si l'app est utilisée sans lifespan (TestClient hors `with`).
- Les tests y injectent un httpx.MockTransport.
"""
from fastapi import FastAPI, Request
import httpx

from storefront import config

def build_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=config.HTTP_TIMEOUT_SECONDS)

def ensure_http_client(app: FastAPI) -> httpx.AsyncClient:
    client = getattr(app.state, "http_client", None)
    if client is None or client.is_closed:
        client = build_http_client()
        app.state.http_client = client
    return client

def get_http_client(request: Request) -> httpx.AsyncClient:
    return ensure_http_client(request.app)
