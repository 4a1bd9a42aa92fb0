
import httpx


def client(timeout_sec: float = 15, transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=timeout_sec, transport=transport)
