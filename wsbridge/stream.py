"""A byte stream over asyncio streams that is either plain or TLS-encrypted."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

DEFAULT_READ_SIZE = 65536


@dataclass
class MaybeTlsStream:
    """Stream that can be either plain TCP or TLS-encrypted."""

    reader: asyncio.StreamReader
    writer: asyncio.StreamWriter
    secure: bool = False

    @classmethod
    def plain(cls, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> MaybeTlsStream:
        return cls(reader, writer, secure=False)

    @classmethod
    def tls(cls, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> MaybeTlsStream:
        return cls(reader, writer, secure=True)

    def is_tls(self) -> bool:
        return self.secure

    async def read(self, n: int = DEFAULT_READ_SIZE) -> bytes:
        """Read up to n bytes; an empty result means end of stream."""
        return await self.reader.read(n)

    async def write(self, data) -> int:
        """Queue data for sending and return how many bytes were taken."""
        self.writer.write(data)
        return len(data)

    async def flush(self) -> None:
        await self.writer.drain()

    async def shutdown(self) -> None:
        """Close the sending side of the stream."""
        if self.writer.is_closing():
            return
        if not self.secure and self.writer.can_write_eof():
            self.writer.write_eof()
            await self.writer.drain()
        else:
            self.writer.close()
            await self.writer.wait_closed()