# Licensed under the GPLv3 - see LICENSE
import io

import pytest
import numpy as np
import xxhash

from ... import lz4f
from ...errors import (ErrorKind, FrameError, MagicMismatch,
                       HeaderChecksumMismatch, ContentChecksumMismatch,
                       DecompressionFailed, TruncatedInput)


def header_checksum_matches(b):
    return b[14] == (xxhash.xxh32_intdigest(bytes(b[4:14])) >> 8) & 0xff


class TestCorruptFrame:
    def setup_class(cls):
        cls.compressible = b''.join(b'record %06d,%06d\n' % (i, i * i % 977)
                                    for i in range(2000))
        cls.incompressible = np.random.default_rng(12).bytes(2000)
        cls.compressed_frame = lz4f.encode(cls.compressible)
        cls.raw_frame = lz4f.encode(cls.incompressible)

    def corrupt(self, frame, offset):
        b = bytearray(frame)
        b[offset] ^= 0xff
        return bytes(b)

    @pytest.mark.parametrize('offset', range(4))
    def test_magic(self, offset):
        b = self.corrupt(self.compressed_frame, offset)
        with pytest.raises(MagicMismatch):
            lz4f.decode(b)
        result = lz4f.decode_result(b)
        assert result.error is ErrorKind.MAGIC_MISMATCH

    @pytest.mark.parametrize('offset', range(4, 15))
    def test_header(self, offset):
        b = self.corrupt(self.compressed_frame, offset)
        if header_checksum_matches(b):
            # The flip happens to give a consistent checksum; the frame
            # should still be rejected somewhere.
            with pytest.raises(FrameError):
                lz4f.decode(b)
        else:
            with pytest.raises(HeaderChecksumMismatch):
                lz4f.decode(b)
            result = lz4f.decode_result(b)
            assert result.error is ErrorKind.HEADER_CHECKSUM_MISMATCH

    def test_header_checksum_byte(self):
        # The checksum byte itself can never be consistent after a flip.
        b = self.corrupt(self.raw_frame, 14)
        with pytest.raises(HeaderChecksumMismatch):
            lz4f.decode(b)

    @pytest.mark.parametrize('offset', [19, 100, 1000, 2018])
    def test_raw_payload(self, offset):
        b = self.corrupt(self.raw_frame, offset)
        with pytest.raises(ContentChecksumMismatch):
            lz4f.decode(b)
        result = lz4f.decode_result(b)
        assert result.error is ErrorKind.CONTENT_CHECKSUM_MISMATCH

    @pytest.mark.parametrize('offset', [20, 50, -20])
    def test_compressed_payload(self, offset):
        offset = offset if offset > 0 else len(self.compressed_frame) + offset
        b = self.corrupt(self.compressed_frame, offset)
        with pytest.raises((ContentChecksumMismatch, DecompressionFailed)):
            lz4f.decode(b)
        assert not lz4f.decode_result(b).ok

    @pytest.mark.parametrize('offset', [-4, -3, -2, -1])
    def test_content_checksum(self, offset):
        for frame in self.raw_frame, self.compressed_frame:
            b = self.corrupt(frame, len(frame) + offset)
            with pytest.raises(ContentChecksumMismatch):
                lz4f.decode(b)

    def test_block_size_field(self):
        # Claiming a shorter block makes the payload end early, so the
        # remainder is read as a nonsense size field.
        b = bytearray(self.raw_frame)
        b[15:19] = (0x80000000 + 1000).to_bytes(4, 'little')
        with pytest.raises(FrameError):
            lz4f.decode(bytes(b))
        # Claiming a longer block runs past the end.
        b[15:19] = (0x80000000 + 5000).to_bytes(4, 'little')
        with pytest.raises(TruncatedInput):
            lz4f.decode(bytes(b))

    def test_compressed_to_uncompressed_flag(self):
        b = bytearray(self.compressed_frame)
        b[18] ^= 0x80
        with pytest.raises((DecompressionFailed, ContentChecksumMismatch)):
            lz4f.decode(bytes(b))

    @pytest.mark.parametrize('nbytes', [0, 3, 10, 14, 15, 18, 19, 100])
    def test_truncated(self, nbytes):
        b = self.compressed_frame[:nbytes]
        with pytest.raises(TruncatedInput):
            lz4f.decode(b)
        with pytest.raises(EOFError):
            lz4f.open(io.BytesIO(b), 'rb').read_frame()
        result = lz4f.decode_result(b)
        assert result.error is ErrorKind.TRUNCATED_INPUT

    @pytest.mark.parametrize('strip', [1, 4, 5, 8])
    def test_truncated_end(self, strip):
        b = self.raw_frame[:-strip]
        with pytest.raises(TruncatedInput):
            lz4f.decode(b)
        with pytest.raises(TruncatedInput):
            lz4f.open(io.BytesIO(b), 'rb').read_frame()

    def test_no_partial_output(self):
        b = self.corrupt(self.raw_frame, 100)
        frame = lz4f.LZ4Frame.frombytes(b)
        with pytest.raises(ContentChecksumMismatch):
            frame.data
        # Still fails on a second attempt; nothing is cached.
        with pytest.raises(ContentChecksumMismatch):
            frame.data
