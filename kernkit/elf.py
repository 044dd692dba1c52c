"""Parsing of 32-bit big-endian MIPS ELF executable headers."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import BinaryIO

__all__ = ["ElfInfo", "ElfError", "parse_header", "PAGE_SIZE"]

PAGE_SIZE = 4096

ET_EXEC = 2
EM_MIPS = 8
EI_CLASS = 4
EI_DATA = 5
EI_VERSION = 6
ELFCLASS32 = 1
ELFDATA2MSB = 2
EV_CURRENT = 1
ELF_MAGIC = b"\x7fELF"

PT_NULL = 0
PT_LOAD = 1
PT_NOTE = 4
PT_PHDR = 6

PF_X = 0x1
PF_W = 0x2
PF_R = 0x4

_EHDR = struct.Struct(">16sHHIIIIIHHHHHH")
_PHDR = struct.Struct(">8I")


class ElfError(ValueError):
    """The file is not an executable this loader can use."""


@dataclass
class ElfInfo:
    """Entry point and the read-only and read-write segments of an executable."""

    entry_point: int = 0
    ro_location: int = 0
    ro_size: int = 0
    ro_pages: int = 0
    ro_vaddr: int = 0
    rw_location: int = 0
    rw_size: int = 0
    rw_pages: int = 0
    rw_vaddr: int = 0


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise ElfError("file ends before header is complete")
    return data


def _pages(memsz: int) -> int:
    return ((memsz + PAGE_SIZE - 1) & 0xFFFFFFFF) // PAGE_SIZE


def parse_header(stream: BinaryIO) -> ElfInfo:
    """Read the ELF and program headers from ``stream`` and describe the segments."""
    (ident, e_type, e_machine, e_version, e_entry, e_phoff, _shoff, _flags,
     _ehsize, _phentsize, e_phnum, _shentsize, _shnum, _shstrndx) = _EHDR.unpack(
        _read_exact(stream, _EHDR.size)
    )

    if ident[:4] != ELF_MAGIC:
        raise ElfError("bad ELF magic")
    if ident[EI_CLASS] != ELFCLASS32 or ident[EI_DATA] != ELFDATA2MSB or e_machine != EM_MIPS:
        raise ElfError("not a 32-bit big-endian MIPS file")
    if e_version != EV_CURRENT or ident[EI_VERSION] != EV_CURRENT:
        raise ElfError("invalid ELF version")
    if e_type != ET_EXEC:
        raise ElfError("not an executable file")
    if e_phnum == 0:
        raise ElfError("no program headers")

    info = ElfInfo(entry_point=e_entry)
    have_ro = have_rw = False
    position = e_phoff
    stream.seek(position)

    for _ in range(e_phnum):
        p_type, p_offset, p_vaddr, _paddr, p_filesz, p_memsz, p_flags, _align = _PHDR.unpack(
            _read_exact(stream, _PHDR.size)
        )
        if p_type in (PT_NULL, PT_NOTE, PT_PHDR):
            pass
        elif p_type == PT_LOAD:
            if p_flags & PF_W:
                if have_rw:
                    raise ElfError("more than one writable segment")
                have_rw = True
                info.rw_location = p_offset
                info.rw_size = p_filesz
                info.rw_vaddr = p_vaddr
                info.rw_pages = _pages(p_memsz)
            else:
                if have_ro:
                    raise ElfError("more than one read-only segment")
                have_ro = True
                info.ro_location = p_offset
                info.ro_size = p_filesz
                info.ro_vaddr = p_vaddr
                info.ro_pages = _pages(p_memsz)
        else:
            raise ElfError(f"unsupported program header type {p_type:#x}")
        position += _PHDR.size
        stream.seek(position)

    if not (have_ro or have_rw):
        raise ElfError("no loadable segment")
    return info