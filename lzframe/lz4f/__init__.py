# Licensed under the GPLv3 - see LICENSE
"""LZ4 frame format reader/writer.

A frame consists of a 15-byte header (magic number, flags, block
descriptor, content size, and header checksum), a sequence of blocks, each
preceded by a size field, an all-zero EndMark, and a checksum of the
original content.
"""
from .base import open, info  # noqa
from .header import LZ4FrameHeader, BLOCK_SIZE_CLASSES  # noqa
from .payload import LZ4Payload, BlockSizeField  # noqa
from .frame import LZ4Frame, DecodeResult, encode, decode, decode_result  # noqa
