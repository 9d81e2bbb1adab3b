# Licensed under the GPLv3 - see LICENSE
"""Block codecs and hashers used by the frame encoder and decoder.

The framing layer only needs two capabilities from the outside world: a raw
block codec, which turns bytes into a compressed block and back, and a 32-bit
hash used for the header and content checksums.  Any object providing the
methods of `RawBlockCodec` or `Hasher` can be passed in; the defaults use the
``lz4`` block functions and the ``xxhash`` implementation of XXH32, which
together produce frames that the reference LZ4 tools understand.
"""
import lz4.block
import xxhash

from .errors import DecompressionFailed


__all__ = ['RawBlockCodec', 'Hasher', 'LZ4BlockCodec', 'XXH32Hasher']

MAX_EXPANSION = 255
"""Upper limit to the ratio of decompressed to compressed LZ4 block size."""
MAX_BLOCK_NBYTES = 0x7E000000
"""Largest block the lz4 library can compress or decompress."""


class RawBlockCodec:
    """Interface for compressing and decompressing a raw block."""

    def compress(self, data):
        """Compress ``data``, returning the compressed bytes."""
        raise NotImplementedError

    def decompress(self, data, compressed_nbytes, decompressed_nbytes):
        """Decompress the first ``compressed_nbytes`` of ``data``.

        Should raise `~lzframe.errors.DecompressionFailed` if the result
        does not have exactly ``decompressed_nbytes`` bytes.
        """
        raise NotImplementedError


class Hasher:
    """Interface for the 32-bit hash used in checksums."""

    def hash32(self, data, seed=0):
        """Return the unsigned 32-bit hash of ``data``."""
        raise NotImplementedError


class LZ4BlockCodec(RawBlockCodec):
    """Raw LZ4 block codec, using `lz4.block`.

    Blocks are written without the size prefix that `lz4.block` adds by
    default, since the frame stores the content size itself.

    Parameters
    ----------
    mode : {'default', 'fast', 'high_compression'}, optional
        Compression mode.  Default: 'default'.
    acceleration : int, optional
        Acceleration for 'fast' mode.  Default: 1.
    compression : int, optional
        Compression level for 'high_compression' mode.  Default: 0.
    """

    def __init__(self, mode='default', acceleration=1, compression=0):
        self.mode = mode
        self.acceleration = acceleration
        self.compression = compression

    def compress(self, data):
        return lz4.block.compress(data, mode=self.mode,
                                  acceleration=self.acceleration,
                                  compression=self.compression,
                                  store_size=False)

    def decompress(self, data, compressed_nbytes, decompressed_nbytes):
        if (decompressed_nbytes > MAX_EXPANSION * compressed_nbytes
                or decompressed_nbytes > MAX_BLOCK_NBYTES):
            raise DecompressionFailed(
                "{0} compressed bytes cannot hold {1} bytes of content."
                .format(compressed_nbytes, decompressed_nbytes))

        source = memoryview(data)[:compressed_nbytes]
        try:
            content = lz4.block.decompress(
                source, uncompressed_size=decompressed_nbytes)
        except (lz4.block.LZ4BlockError, ValueError) as exc:
            raise DecompressionFailed(
                "could not decompress {0} bytes into {1} bytes: {2}"
                .format(compressed_nbytes, decompressed_nbytes, exc)) from exc

        if len(content) != decompressed_nbytes:
            raise DecompressionFailed(
                "decompressed to {0} bytes instead of the {1} expected."
                .format(len(content), decompressed_nbytes))
        return content

    def __repr__(self):
        return ("{0}(mode={1!r}, acceleration={2}, compression={3})"
                .format(self.__class__.__name__, self.mode,
                        self.acceleration, self.compression))


class XXH32Hasher(Hasher):
    """XXH32 hash, using `xxhash`."""

    def hash32(self, data, seed=0):
        return xxhash.xxh32_intdigest(data, seed=seed)

    def __repr__(self):
        return f"{self.__class__.__name__}()"
