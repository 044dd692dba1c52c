"""Teaching-kernel building blocks: libc helpers, printf formatting, bitmaps, ELF header parsing and a datagram network stack."""

__version__ = "0.1.0"
__all__ = ["bitmap", "debug", "elf", "libc", "network", "pop", "protocols", "sockets", "xprintf"]