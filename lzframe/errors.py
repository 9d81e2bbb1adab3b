# Licensed under the GPLv3 - see LICENSE
"""Errors raised while encoding or decoding frames.

Every validation failure has an `ErrorKind`, and a corresponding exception
class carrying that kind as its ``kind`` attribute.  All exceptions derive
from `FrameError`, which is a `ValueError`, since they signal that the bytes
given are not a valid frame.  `TruncatedInput` is also an `EOFError`, as
raised elsewhere for short reads.
"""
import enum


__all__ = ['ErrorKind', 'FrameError', 'MagicMismatch',
           'HeaderChecksumMismatch', 'ContentChecksumMismatch',
           'DecompressionFailed', 'TruncatedInput', 'UnsupportedFrame',
           'BlockFlagMismatch']


class ErrorKind(enum.Enum):
    """Kinds of failure that can occur when decoding a frame."""
    MAGIC_MISMATCH = 'magic number mismatch'
    HEADER_CHECKSUM_MISMATCH = 'header checksum mismatch'
    CONTENT_CHECKSUM_MISMATCH = 'content checksum mismatch'
    DECOMPRESSION_FAILED = 'decompression failed'
    TRUNCATED_INPUT = 'truncated input'
    UNSUPPORTED_FRAME = 'unsupported frame'
    BLOCK_FLAG_MISMATCH = 'block flag mismatch'


class FrameError(ValueError):
    """Base class for frame validation errors."""
    kind = None


class MagicMismatch(FrameError):
    """Input does not start with the frame magic number."""
    kind = ErrorKind.MAGIC_MISMATCH


class HeaderChecksumMismatch(FrameError):
    """Header fields are inconsistent with the stored header checksum."""
    kind = ErrorKind.HEADER_CHECKSUM_MISMATCH


class ContentChecksumMismatch(FrameError):
    """Recovered content does not match the stored content checksum."""
    kind = ErrorKind.CONTENT_CHECKSUM_MISMATCH


class DecompressionFailed(FrameError):
    """Block codec could not reconstruct the declared content size."""
    kind = ErrorKind.DECOMPRESSION_FAILED


class TruncatedInput(FrameError, EOFError):
    """Buffer ended before a field could be read in full."""
    kind = ErrorKind.TRUNCATED_INPUT


class UnsupportedFrame(FrameError):
    """Frame uses a version or feature that is not supported."""
    kind = ErrorKind.UNSUPPORTED_FRAME


class BlockFlagMismatch(FrameError):
    """Blocks in a single frame disagree on being stored uncompressed."""
    kind = ErrorKind.BLOCK_FLAG_MISMATCH
