# Licensed under the GPLv3 - see LICENSE
"""LZ4 frame container encoding and decoding."""

from .lz4f import encode, decode, decode_result, DecodeResult  # noqa
from .errors import (ErrorKind, FrameError, MagicMismatch,  # noqa
                     HeaderChecksumMismatch, ContentChecksumMismatch,
                     DecompressionFailed, TruncatedInput, UnsupportedFrame,
                     BlockFlagMismatch)

from importlib.metadata import version, PackageNotFoundError
try:
    __version__ = version('lzframe')
except PackageNotFoundError:
    __version__ = ''
del version, PackageNotFoundError

# Define minima for the documentation, but do not bother to explicitly check.
__minimum_python_version__ = '3.10'
__minimum_astropy_version__ = '5.1'
__minimum_numpy_version__ = '1.24'
