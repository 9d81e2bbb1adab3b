# Licensed under the GPLv3 - see LICENSE
"""
Definitions for LZ4 frame blocks and payloads.

The payload of a frame is stored as a sequence of blocks, each preceded by a
4-byte size field whose top bit marks the block as stored uncompressed.  The
sequence has no length prefix, but is terminated by an all-zero size field,
the EndMark.  Since a zero-length block would look identical to the EndMark,
`split_blocks` never creates one.
"""
import struct

import numpy as np

from ..base.header import HeaderParser, ParsedHeaderBase
from ..errors import TruncatedInput, BlockFlagMismatch, DecompressionFailed


__all__ = ['END_MARK', 'BlockSizeField', 'split_blocks', 'read_blocks',
           'LZ4Payload']


END_MARK = bytes(4)
"""Terminator of the block sequence: a size field of zero."""


class BlockSizeField(ParsedHeaderBase):
    """Decoder/encoder of the size field preceding each block.

    Parameters
    ----------
    words : tuple of int, or None
        Single 32-bit unsigned int.  If `None`, set to a list with a zero for
        later initialisation.
    verify : bool, optional
        Whether to do basic verification of integrity.  Default: `True`.
    """

    _struct = struct.Struct('<I')

    _header_parser = HeaderParser(
        (('length', (0, 0, 31, 0)),
         ('uncompressed', (0, 31, 1, False))))

    @property
    def is_end_mark(self):
        """Whether this field terminates the block sequence."""
        return self['length'] == 0


def split_blocks(payload, max_block_size):
    """Split a payload into consecutive blocks.

    Parameters
    ----------
    payload : `~numpy.ndarray`
        Array of bytes to split.
    max_block_size : int
        Maximum number of bytes in any block.

    Returns
    -------
    blocks : list of `~numpy.ndarray`
        Views of ``payload``, each of length at most ``max_block_size``.
        All but the last have exactly that length.  There are
        ``ceil(len(payload) / max_block_size)`` blocks, so if the payload is
        an exact multiple of the maximum size, there is no empty remainder,
        and for an empty payload there are no blocks at all.
    """
    if max_block_size <= 0:
        raise ValueError("max_block_size should be positive.")
    return [payload[start:start+max_block_size]
            for start in range(0, len(payload), max_block_size)]


def _read_fields(data, offset, header):
    """Read blocks from a byte array, returning views, flags and offset."""
    blocks = []
    flags = set()
    while True:
        field = BlockSizeField.frombytes(data, offset=offset)
        offset += BlockSizeField.nbytes
        if field.is_end_mark:
            break

        nbytes = field['length']
        if header is not None:
            header.check_block(nbytes)
        if offset + nbytes > len(data):
            raise TruncatedInput(
                "block {0} of {1} bytes extends beyond the end of the data."
                .format(len(blocks), nbytes))
        blocks.append(data[offset:offset+nbytes])
        flags.add(field['uncompressed'])
        offset += nbytes

    return blocks, flags, offset


def _combine(blocks, flags):
    """Concatenate blocks, checking they agree on being uncompressed."""
    if len(flags) > 1:
        raise BlockFlagMismatch("blocks disagree on whether they are stored "
                                "uncompressed.")
    payload = (np.concatenate(blocks) if blocks
               else np.empty(0, dtype='u1'))
    return payload, flags != {False}


def read_blocks(data, offset=0, header=None):
    """Read blocks until the EndMark.

    Parameters
    ----------
    data : bytes-like
        Buffer holding the frame.
    offset : int, optional
        Position of the first block size field.  Default: 0.
    header : `~lzframe.lz4f.LZ4FrameHeader`, optional
        If given, blocks larger than its advertised maximum size give a
        warning.

    Returns
    -------
    payload : `~numpy.ndarray`
        Concatenated block contents, as bytes.
    uncompressed : bool
        Whether all blocks were marked as stored uncompressed.  `True` if
        there were no blocks at all.
    offset : int
        Position just beyond the EndMark.

    Raises
    ------
    TruncatedInput
        If a size field or a block extends beyond the end of ``data``.
    BlockFlagMismatch
        If some blocks are marked uncompressed and others not.
    """
    blocks, flags, offset = _read_fields(np.frombuffer(data, dtype='u1'),
                                         offset, header)
    payload, uncompressed = _combine(blocks, flags)
    return payload, uncompressed, offset


class LZ4Payload:
    """Container for the possibly compressed content of a frame.

    The payload is stored as a single array of bytes; it is split into
    blocks only on writing.  Whether it is compressed is decided once for
    the whole frame, and all blocks carry the same flag.

    Parameters
    ----------
    words : `~numpy.ndarray`
        Array of bytes holding the payload.
    uncompressed : bool
        Whether the payload is the content itself, rather than compressed.
    block_sizes : list of int, optional
        Sizes of the blocks the payload was read from.  `None` for payloads
        that have not been read from a frame.
    """
    _dtype_word = np.dtype('u1')

    def __init__(self, words, uncompressed=False, block_sizes=None):
        if words.dtype != self._dtype_word:
            raise ValueError("encoded data should have dtype {0}"
                             .format(self._dtype_word))
        self.words = words
        self.uncompressed = bool(uncompressed)
        self.block_sizes = block_sizes

    @classmethod
    def fromdata(cls, data, codec):
        """Compress data to a payload.

        If compressing makes the data larger, the data are stored as is,
        and the payload is marked as uncompressed.

        Parameters
        ----------
        data : bytes-like
            Content to be compressed.
        codec : `~lzframe.codecs.RawBlockCodec`
            Used to compress the content.
        """
        data = bytes(data)
        compressed = codec.compress(data)
        uncompressed = len(compressed) > len(data)
        words = np.frombuffer(data if uncompressed else compressed,
                              dtype=cls._dtype_word)
        return cls(words, uncompressed=uncompressed)

    @classmethod
    def frombytes(cls, data, offset=0, header=None):
        """Read blocks from a buffer.

        Parameters are as for `~lzframe.lz4f.payload.read_blocks`.

        Returns
        -------
        payload : `LZ4Payload`
        offset : int
            Position just beyond the EndMark.
        """
        blocks, flags, offset = _read_fields(
            np.frombuffer(data, dtype=cls._dtype_word), offset, header)
        words, uncompressed = _combine(blocks, flags)
        return cls(words, uncompressed=uncompressed,
                   block_sizes=[block.nbytes for block in blocks]), offset

    @classmethod
    def fromfile(cls, fh, header=None):
        """Read blocks from a filehandle, up to and including the EndMark."""
        blocks = []
        flags = set()
        while True:
            field = BlockSizeField.fromfile(fh)
            if field.is_end_mark:
                break
            nbytes = field['length']
            if header is not None:
                header.check_block(nbytes)
            s = fh.read(nbytes)
            if len(s) < nbytes:
                raise TruncatedInput("could not read full block.")
            blocks.append(np.frombuffer(s, dtype=cls._dtype_word))
            flags.add(field['uncompressed'])

        words, uncompressed = _combine(blocks, flags)
        return cls(words, uncompressed=uncompressed,
                   block_sizes=[block.nbytes for block in blocks])

    def blocks(self, max_block_size):
        """Split the payload into blocks.  See `split_blocks`."""
        return split_blocks(self.words, max_block_size)

    def tofile(self, fh, max_block_size):
        """Write blocks and the EndMark to a filehandle."""
        for block in self.blocks(max_block_size):
            BlockSizeField.fromvalues(
                length=len(block), uncompressed=self.uncompressed).tofile(fh)
            fh.write(block.tobytes())
        fh.write(END_MARK)

    def decompress(self, codec, nbytes):
        """Recover the content.

        Parameters
        ----------
        codec : `~lzframe.codecs.RawBlockCodec`
            Used if the payload is compressed.
        nbytes : int
            Expected size of the content.

        Returns
        -------
        content : bytes

        Raises
        ------
        DecompressionFailed
            If the content does not have ``nbytes`` bytes.
        """
        if not self.uncompressed:
            return bytes(codec.decompress(self.words, self.nbytes, nbytes))

        if self.nbytes != nbytes:
            raise DecompressionFailed(
                "uncompressed payload has {0} bytes instead of the {1} "
                "expected.".format(self.nbytes, nbytes))
        return self.words.tobytes()

    @property
    def nbytes(self):
        """Size of the payload in bytes."""
        return self.words.nbytes

    def __eq__(self, other):
        return (type(self) is type(other)
                and self.uncompressed == other.uncompressed
                and np.array_equal(self.words, other.words))
