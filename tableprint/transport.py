"""Raw TCP delivery of ESC/POS buffers (port 9100 style printers)."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from tableprint.errors import PrinterTimeoutError, PrinterUnreachableError

logger = logging.getLogger(__name__)


async def _exchange(buffers: list[bytes], host: str, port: int) -> int:
    reader, writer = await asyncio.open_connection(host, port)
    sent = 0
    try:
        for chunk in buffers:
            writer.write(chunk)
            sent += len(chunk)
        await writer.drain()
        if writer.can_write_eof():
            writer.write_eof()
        # Status bytes the printer may send back are discarded; EOF means
        # the device has taken the whole job and closed its side.
        while await reader.read(1024):
            pass
    except BaseException:
        # close() would wait for unsent bytes a stalled printer never reads.
        writer.transport.abort()
        raise
    writer.close()
    await writer.wait_closed()
    return sent


async def send_to_printer(buffers: Iterable[bytes], host: str, port: int, timeout: float) -> int:
    """
    Stream ``buffers`` in order over one connection and wait for a clean close.

    Returns the number of bytes written. Raises ``PrinterTimeoutError`` when
    the exchange does not finish within ``timeout`` seconds and
    ``PrinterUnreachableError`` on any socket error. No retries.
    """
    payload = list(buffers)
    logger.debug("Connecting to printer %s:%s", host, port)
    try:
        sent = await asyncio.wait_for(_exchange(payload, host, port), timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise PrinterTimeoutError(f"printer {host}:{port} timed out after {timeout:g}s") from exc
    except OSError as exc:
        raise PrinterUnreachableError(f"printer {host}:{port} unreachable: {exc}") from exc
    logger.debug("Printer %s:%s closed cleanly after %d bytes", host, port, sent)
    return sent


async def probe_printer(host: str, port: int, timeout: float) -> None:
    """Open and close a connection without sending anything."""
    try:
        _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise PrinterTimeoutError(f"printer {host}:{port} timed out after {timeout:g}s") from exc
    except OSError as exc:
        raise PrinterUnreachableError(f"printer {host}:{port} unreachable: {exc}") from exc
    writer.close()
    try:
        await writer.wait_closed()
    except OSError as exc:
        logger.debug("Probe close for %s:%s reported %s", host, port, exc)
