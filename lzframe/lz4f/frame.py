# Licensed under the GPLv3 - see LICENSE
"""
Definitions for LZ4 frames.

Implements a LZ4Frame class that can be used to hold a header, a payload and
a content checksum, providing access to the content encoded in them, as well
as the ``encode`` and ``decode`` functions that turn bytes into a frame and
back.

For the specification, see
https://github.com/lz4/lz4/blob/dev/doc/lz4_Frame_format.md
"""
import io
import logging
import struct
from collections import namedtuple

from astropy.utils import lazyproperty

from ..codecs import LZ4BlockCodec, XXH32Hasher
from ..errors import ContentChecksumMismatch, FrameError, TruncatedInput
from .header import LZ4FrameHeader
from .payload import BlockSizeField, LZ4Payload


__all__ = ['LZ4Frame', 'DecodeResult', 'encode', 'decode', 'decode_result']

log = logging.getLogger(__name__)

checksum_struct = struct.Struct('<I')
"""Struct instance that packs/unpacks the trailing content checksum."""


class LZ4Frame:
    """Representation of a LZ4 frame: header, payload and content checksum.

    Parameters
    ----------
    header : `~lzframe.lz4f.LZ4FrameHeader`
        Wrapper around the encoded header words, providing access to the
        header information.
    payload : `~lzframe.lz4f.LZ4Payload`
        Wrapper around the payload, providing mechanisms to decode it.
    content_checksum : int or None
        XXH32 hash of the original content.  `None` if the header indicates
        there is no content checksum.
    codec : `~lzframe.codecs.RawBlockCodec`, optional
        Used to decompress a compressed payload.  Default: LZ4 block codec.
    hasher : `~lzframe.codecs.Hasher`, optional
        Used to verify the content checksum.  Default: XXH32.
    reporter : callable, optional
        Called as ``reporter(event, **values)`` on progress.
    verify : bool
        Whether to do basic verification of integrity.  Default: `True`.

    Notes
    -----
    The Frame can also be instantiated using class methods:

      fromdata : compress content and build header and payload

      frombytes : decode header and payload from a buffer

      fromfile : read header and payload from a filehandle

    Of course, one can also do the opposite:

      tobytes : encode the frame

      tofile : method to write the frame to a filehandle

      data : property that yields the decoded and verified content

    The frame acts as a dictionary, with keys those of the header.
    """

    _header_class = LZ4FrameHeader
    _payload_class = LZ4Payload
    _codec_class = LZ4BlockCodec
    _hasher_class = XXH32Hasher

    def __init__(self, header, payload, content_checksum=None, *,
                 codec=None, hasher=None, reporter=None, verify=True):
        self.header = header
        self.payload = payload
        self.content_checksum = content_checksum
        self.codec = self._codec_class() if codec is None else codec
        self.hasher = self._hasher_class() if hasher is None else hasher
        self.reporter = reporter
        if verify:
            self.verify()

    def verify(self):
        """Simple verification of the frame's parts."""
        assert isinstance(self.header, self._header_class)
        assert isinstance(self.payload, self._payload_class)
        assert (self.header['content_checksum_flag']
                == (self.content_checksum is not None))

    def _report(self, event, **values):
        log.debug("%s: %s", event, values)
        if self.reporter is not None:
            self.reporter(event, **values)

    @classmethod
    def fromdata(cls, data, *, codec=None, hasher=None, reporter=None,
                 verify=True):
        """Construct a frame holding the given content.

        The content is compressed with ``codec``; if that makes it larger,
        the frame stores the content uncompressed instead.

        Parameters
        ----------
        data : bytes-like
            Content to be encoded.
        codec : `~lzframe.codecs.RawBlockCodec`, optional
            Used to compress the content.  Default: LZ4 block codec.
        hasher : `~lzframe.codecs.Hasher`, optional
            Used for the header and content checksums.  Default: XXH32.
        reporter : callable, optional
            Called as ``reporter(event, **values)`` on progress.
        verify : bool
            Whether to do basic checks of frame integrity.  Default: `True`.
        """
        data = bytes(data)
        if codec is None:
            codec = cls._codec_class()
        if hasher is None:
            hasher = cls._hasher_class()
        payload = cls._payload_class.fromdata(data, codec)
        header = cls._header_class.fromvalues(
            content_size=len(data), payload_nbytes=payload.nbytes,
            hasher=hasher, verify=verify)
        self = cls(header, payload, hasher.hash32(data), codec=codec,
                   hasher=hasher, reporter=reporter, verify=verify)
        self._report('compressed', content_size=len(data),
                     payload_nbytes=payload.nbytes,
                     uncompressed=payload.uncompressed)
        # No need to decompress again to get our own content.
        self.data = data
        return self

    @classmethod
    def frombytes(cls, data, *, codec=None, hasher=None, reporter=None,
                  verify=True):
        """Decode a frame from a buffer.

        Only the header and the framing are checked; the content is
        decompressed and checked against its checksum on accessing
        ``data``.

        Parameters
        ----------
        data : bytes-like
            Buffer holding the frame, starting with the magic number.
        codec, hasher, reporter, verify
            As for class initialisation.

        Raises
        ------
        MagicMismatch, HeaderChecksumMismatch, UnsupportedFrame
            If the header is invalid.
        TruncatedInput
            If the buffer ends before the frame does.
        BlockFlagMismatch
            If blocks disagree on whether they are compressed.
        """
        header = cls._header_class.frombytes(data, hasher=hasher,
                                             verify=verify)
        payload, offset = cls._payload_class.frombytes(
            data, offset=header.nbytes, header=header)
        content_checksum = None
        if header['content_checksum_flag']:
            if len(data) - offset < checksum_struct.size:
                raise TruncatedInput("frame ends before content checksum.")
            content_checksum = checksum_struct.unpack_from(data, offset)[0]
            offset += checksum_struct.size
        if offset < len(data):
            log.debug("ignoring %d bytes beyond end of frame.",
                      len(data) - offset)
        self = cls(header, payload, content_checksum, codec=codec,
                   hasher=hasher, reporter=reporter, verify=verify)
        self._report('blocks', nblocks=len(payload.block_sizes),
                     payload_nbytes=payload.nbytes,
                     uncompressed=payload.uncompressed)
        return self

    @classmethod
    def fromfile(cls, fh, *, codec=None, hasher=None, reporter=None,
                 verify=True):
        """Read a frame from a filehandle.

        Parameters are as for :meth:`LZ4Frame.frombytes`.
        """
        header = cls._header_class.fromfile(fh, hasher=hasher, verify=verify)
        payload = cls._payload_class.fromfile(fh, header=header)
        content_checksum = None
        if header['content_checksum_flag']:
            s = fh.read(checksum_struct.size)
            if len(s) < checksum_struct.size:
                raise TruncatedInput("frame ends before content checksum.")
            content_checksum = checksum_struct.unpack(s)[0]
        self = cls(header, payload, content_checksum, codec=codec,
                   hasher=hasher, reporter=reporter, verify=verify)
        self._report('blocks', nblocks=len(payload.block_sizes),
                     payload_nbytes=payload.nbytes,
                     uncompressed=payload.uncompressed)
        return self

    def tofile(self, fh):
        """Write encoded frame to filehandle."""
        self.header.tofile(fh)
        max_block_size = self.header.max_block_size
        self.payload.tofile(fh, max_block_size)
        if self.content_checksum is not None:
            fh.write(checksum_struct.pack(self.content_checksum))
        self._report('blocks', nblocks=len(self.block_sizes),
                     max_block_size=max_block_size)

    def tobytes(self):
        """Encode the frame."""
        with io.BytesIO() as fh:
            self.tofile(fh)
            return fh.getvalue()

    @property
    def block_sizes(self):
        """Sizes of the blocks the payload is stored in."""
        if self.payload.block_sizes is not None:
            return self.payload.block_sizes
        return [block.nbytes for block in
                self.payload.blocks(self.header.max_block_size)]

    @property
    def uncompressed(self):
        """Whether the content is stored without compression."""
        return self.payload.uncompressed

    @property
    def nbytes(self):
        """Size of the encoded frame in bytes."""
        return (self.header.nbytes
                + BlockSizeField.nbytes * (len(self.block_sizes) + 1)
                + self.payload.nbytes
                + (0 if self.content_checksum is None
                   else checksum_struct.size))

    @lazyproperty
    def data(self):
        """Decoded content, verified against the content checksum.

        Raises
        ------
        DecompressionFailed
            If the content cannot be recovered with the size in the header.
        ContentChecksumMismatch
            If the recovered content does not match the checksum.
        """
        content = self.payload.decompress(self.codec,
                                          self.header['content_size'])
        if self.content_checksum is not None:
            checksum = self.hasher.hash32(content)
            if checksum != self.content_checksum:
                raise ContentChecksumMismatch(
                    "content checksum {0:#010x} does not match calculated "
                    "{1:#010x}.".format(self.content_checksum, checksum))
        self._report('decoded', content_size=len(content))
        return content

    def __getitem__(self, item):
        return self.header[item]

    def keys(self):
        return self.header.keys()

    def __contains__(self, key):
        return key in self.keys()

    def __eq__(self, other):
        return (type(self) is type(other)
                and self.header == other.header
                and self.payload == other.payload
                and self.content_checksum == other.content_checksum)


class DecodeResult(namedtuple('DecodeResult', ['data', 'error', 'message'])):
    """Outcome of `decode_result`.

    Attributes
    ----------
    data : bytes or None
        Decoded content, or `None` if decoding failed.
    error : `~lzframe.errors.ErrorKind` or None
        Kind of failure, or `None` on success.
    message : str or None
        Description of the failure.
    """
    __slots__ = ()

    @property
    def ok(self):
        """Whether decoding succeeded."""
        return self.error is None


def encode(data, codec=None, hasher=None, reporter=None):
    """Encode content as a single LZ4 frame.

    Parameters
    ----------
    data : bytes-like
        Content to encode.
    codec : `~lzframe.codecs.RawBlockCodec`, optional
        Used to compress the content.  Default: LZ4 block codec.
    hasher : `~lzframe.codecs.Hasher`, optional
        Used for the header and content checksums.  Default: XXH32.
    reporter : callable, optional
        Called as ``reporter(event, **values)`` on progress.

    Returns
    -------
    frame : bytes
        Header, blocks, EndMark and content checksum.
    """
    return LZ4Frame.fromdata(data, codec=codec, hasher=hasher,
                             reporter=reporter).tobytes()


def decode(data, codec=None, hasher=None, reporter=None):
    """Decode a single LZ4 frame, verifying all checksums.

    Parameters
    ----------
    data : bytes-like
        Encoded frame.
    codec, hasher, reporter
        As for `encode`; must be compatible with those used to encode.

    Returns
    -------
    content : bytes

    Raises
    ------
    ~lzframe.errors.FrameError
        Subclassed for each kind of failure; see `~lzframe.errors`.
    """
    return LZ4Frame.frombytes(data, codec=codec, hasher=hasher,
                              reporter=reporter).data


def decode_result(data, codec=None, hasher=None, reporter=None):
    """Decode a single LZ4 frame, returning a result rather than raising.

    Parameters are as for `decode`.

    Returns
    -------
    result : `DecodeResult`
        With the content on success, and the kind of error otherwise.
    """
    try:
        content = decode(data, codec=codec, hasher=hasher, reporter=reporter)
    except FrameError as exc:
        return DecodeResult(None, exc.kind, str(exc))
    return DecodeResult(content, None, None)
