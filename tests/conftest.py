import asyncio
import socket
from contextlib import asynccontextmanager

import pytest

from tableprint.config import PrinterConfig
from tableprint.dates import DateFormatter


@pytest.fixture
def anyio_backend() -> str:  # pragma: no cover - required by pytest-anyio
    return "asyncio"


@asynccontextmanager
async def _fake_printer(hold: asyncio.Event | None = None):
    """Raw TCP listener that records a job and closes, like a port 9100 printer.

    With ``hold`` the listener never answers until the event is set, which
    lets a test drive the client into its timeout.
    """
    received = bytearray()

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        if hold is not None:
            await hold.wait()
        else:
            received.extend(await reader.read())
        writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    async with server:
        try:
            yield port, received
        finally:
            if hold is not None:
                hold.set()


@pytest.fixture
def fake_printer():
    return _fake_printer


@pytest.fixture
def free_port() -> int:
    """A local port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def utc_config(tmp_path) -> PrinterConfig:
    return PrinterConfig(
        host="127.0.0.1",
        timeout=2.0,
        display_timezone="UTC",
        db_time_is_utc=True,
        logo_path=str(tmp_path / "missing-logo.png"),
        receipts_dir=str(tmp_path / "receipts"),
    )


@pytest.fixture
def utc_formatter() -> DateFormatter:
    return DateFormatter.for_zone("UTC", db_time_is_utc=True)
