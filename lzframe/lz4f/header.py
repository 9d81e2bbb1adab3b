# Licensed under the GPLv3 - see LICENSE
"""
Definitions for LZ4 frame headers.

Implements a LZ4FrameHeader class used to store the header words, and
decode/encode the information therein.

For the specification, see
https://github.com/lz4/lz4/blob/dev/doc/lz4_Frame_format.md
"""
import struct
import warnings

from ..base.header import HeaderParser, ParsedHeaderBase
from ..codecs import XXH32Hasher
from ..errors import (MagicMismatch, HeaderChecksumMismatch,
                      UnsupportedFrame, TruncatedInput)


__all__ = ['MAGIC', 'BLOCK_SIZE_CLASSES', 'choose_block_size_class',
           'LZ4FrameHeader']


MAGIC = 0x184D2204
"""Magic number at the start of every frame (little-endian on the wire)."""

BLOCK_SIZE_CLASSES = {4: 64000,
                      5: 256000,
                      6: 1000000,
                      7: 4000000}
"""Maximum block size in bytes for each block-size class code.

Note that the sizes are decimal, so that, e.g., the "64KB" class holds at
most 64000 bytes per block, not 65536.
"""


def choose_block_size_class(payload_nbytes):
    """Select the block-size class for a payload.

    The smallest class is chosen for which the payload is strictly smaller
    than the maximum block size.  Hence, a payload of exactly 64000 bytes
    ends up in the 256KB class.

    Parameters
    ----------
    payload_nbytes : int
        Number of bytes in the (possibly compressed) payload.

    Returns
    -------
    code, max_block_size : int, int
        Class code stored in the block descriptor, and the corresponding
        maximum block size in bytes.
    """
    for code, max_block_size in BLOCK_SIZE_CLASSES.items():
        if payload_nbytes < max_block_size:
            return code, max_block_size
    return code, max_block_size


class LZ4FrameHeader(ParsedHeaderBase):
    """Decoder/encoder of a LZ4 frame header.

    The header is 15 bytes: the magic number, a flags byte, a block
    descriptor byte, the 8-byte content size and a one-byte header
    checksum, which is the second byte of the XXH32 hash of the flags,
    descriptor and content size.

    Parameters
    ----------
    words : tuple of int, or None
        Five header words (magic, flags, descriptor, content size, header
        checksum).  If `None`, set to a list of zeros for later
        initialisation.
    hasher : `~lzframe.codecs.Hasher`, optional
        Used to calculate the header checksum.  Default: XXH32.
    verify : bool, optional
        Whether to do basic verification of integrity.  Default: `True`.

    Returns
    -------
    header : `LZ4FrameHeader`
    """

    _struct = struct.Struct('<IBBQB')

    _header_parser = HeaderParser(
        (('magic', (0, 0, 32, MAGIC)),
         ('version', (1, 6, 2, 1)),
         ('block_independence', (1, 5, 1, False)),
         ('block_checksum', (1, 4, 1, False)),
         ('content_size_flag', (1, 3, 1, True)),
         ('content_checksum_flag', (1, 2, 1, True)),
         ('reserved_flag', (1, 1, 1, False)),
         ('dict_id_flag', (1, 0, 1, False)),
         ('reserved_bd_high', (2, 7, 1, False)),
         ('block_size_class', (2, 4, 3, 4)),
         ('reserved_bd_low', (2, 0, 4, 0)),
         ('content_size', (3, 0, 64)),
         ('header_checksum', (4, 0, 8))))

    _properties = ('payload_nbytes', 'max_block_size')
    """Properties accessible/usable in initialisation."""

    _hasher = XXH32Hasher()

    def __init__(self, words, hasher=None, verify=True):
        if hasher is not None:
            self._hasher = hasher
        super().__init__(words, verify=verify)

    def verify(self):
        """Verify header integrity.

        The magic number is checked first, then whether the header checksum
        is consistent, and finally whether the flags describe a frame that
        can be decoded.
        """
        super().verify()
        if self['magic'] != MAGIC:
            raise MagicMismatch("magic number {0:#010x} is not {1:#010x}."
                                .format(self['magic'], MAGIC))
        checksum = self.calculate_checksum()
        if self['header_checksum'] != checksum:
            raise HeaderChecksumMismatch(
                "header checksum {0:#04x} does not match calculated {1:#04x}."
                .format(self['header_checksum'], checksum))
        if self['version'] != 1:
            raise UnsupportedFrame("frame version {0} is not supported."
                                   .format(self['version']))
        if (self['reserved_flag'] or self['reserved_bd_high']
                or self['reserved_bd_low']):
            raise UnsupportedFrame("reserved bits are set.")
        if self['block_size_class'] not in BLOCK_SIZE_CLASSES:
            raise UnsupportedFrame("block-size class {0} is not supported."
                                   .format(self['block_size_class']))
        for flag in ('block_checksum', 'dict_id_flag'):
            if self[flag]:
                raise UnsupportedFrame(f"frames with {flag} set are not "
                                       f"supported.")
        if not self['content_size_flag']:
            raise UnsupportedFrame("frames without content size are not "
                                   "supported.")

    def copy(self, **kwargs):
        return super().copy(hasher=self._hasher, **kwargs)

    @classmethod
    def check_magic(cls, data):
        """Check the first four bytes of ``data`` hold the magic number.

        Raises
        ------
        TruncatedInput
            If fewer than four bytes are given.
        MagicMismatch
            If the four bytes are not the magic number.
        """
        if len(data) < 4:
            raise TruncatedInput("need 4 bytes for the magic number, got {0}."
                                 .format(len(data)))
        magic = int.from_bytes(data[:4], 'little')
        if magic != MAGIC:
            raise MagicMismatch("magic number {0:#010x} is not {1:#010x}."
                                .format(magic, MAGIC))

    @classmethod
    def frombytes(cls, data, *args, offset=0, **kwargs):
        """Unpack a header from a bytes-like buffer, starting at ``offset``.

        The magic number is checked before anything else is looked at.
        """
        cls.check_magic(data[offset:offset+4])
        return super().frombytes(data, *args, offset=offset, **kwargs)

    @classmethod
    def fromvalues(cls, *args, **kwargs):
        """Initialise a header from parsed values.

        Values are given as keyword arguments, named after header keys or
        after the properties ``payload_nbytes`` and ``max_block_size``.  An
        optional ``hasher`` is passed on to the initialiser.

        Given defaults:

        magic : 0x184D2204
        version : 1
        content_size_flag, content_checksum_flag : True
        block_checksum, dict_id_flag, reserved bits : False

        Values set by other keyword arguments (if present):

        block_size_class : from ``payload_nbytes`` or ``max_block_size``
        block_independence : from ``payload_nbytes``
        header_checksum : calculated, unless given explicitly
        """
        hasher = kwargs.pop('hasher', None)
        return super().fromvalues(hasher, *args, **kwargs)

    def update(self, **kwargs):
        """Update the header by setting keywords or properties.

        Here, any keywords matching header keys are applied first, and any
        remaining ones are used to set header properties, in the order set
        by the class (in ``_properties``).

        Parameters
        ----------
        header_checksum : int or None, optional
            If `None` (default), recalculate the checksum after updating.
        verify : bool, optional
            If `True` (default), verify integrity after updating.
        **kwargs
            Arguments used to set keywords and properties.
        """
        calculate_checksum = kwargs.get('header_checksum', None) is None
        if calculate_checksum:
            kwargs.pop('header_checksum', None)
            verify = kwargs.pop('verify', True)
            kwargs['verify'] = False

        super().update(**kwargs)
        if calculate_checksum:
            self['header_checksum'] = self.calculate_checksum()
            if verify:
                self.verify()

    def calculate_checksum(self):
        """Calculate the header checksum from flags, descriptor and size.

        This is the second-lowest byte of the XXH32 hash of those fields,
        i.e., bytes 4 up to 14 of the encoded header.
        """
        return (self._hasher.hash32(self.tobytes()[4:14]) >> 8) & 0xff

    @property
    def max_block_size(self):
        """Maximum block size advertised by the block descriptor.

        This is informational only: actual block sizes are given by each
        block's size field.
        """
        return BLOCK_SIZE_CLASSES.get(self['block_size_class'])

    @max_block_size.setter
    def max_block_size(self, max_block_size):
        for code, size in BLOCK_SIZE_CLASSES.items():
            if size == max_block_size:
                self['block_size_class'] = code
                return
        raise ValueError("max_block_size should be one of {0}."
                         .format(sorted(BLOCK_SIZE_CLASSES.values())))

    def set_payload_nbytes(self, payload_nbytes):
        """Select block-size class and block independence for a payload.

        The payload size itself is not stored in the header; blocks are
        marked as independent if the payload fits in a single block.
        """
        code, max_block_size = choose_block_size_class(payload_nbytes)
        self['block_size_class'] = code
        self['block_independence'] = payload_nbytes < max_block_size

    payload_nbytes = property(None, set_payload_nbytes,
                              doc=set_payload_nbytes.__doc__)

    def check_block(self, nbytes):
        """Warn if a block is larger than the advertised maximum."""
        max_block_size = self.max_block_size
        if max_block_size is not None and nbytes > max_block_size:
            warnings.warn("block of {0} bytes exceeds maximum block size {1} "
                          "advertised in the header."
                          .format(nbytes, max_block_size))

    def _repr_value(self, key, value):
        if key in ('magic', 'header_checksum'):
            return hex(value)
        return super()._repr_value(key, value)
