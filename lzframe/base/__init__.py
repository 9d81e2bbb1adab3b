# Licensed under the GPLv3 - see LICENSE
"""Base implementations shared between formats.

Files are considered as composed of frames, each of which have a header and
payload, which are encoded in various ways.  Headers and other bit-packed
fields are built on the `~lzframe.base.header` module, which provides
named, dict-like access to values stored in parts of binary words.

The `~lzframe.base.base` module defines base methods for file readers and
writers that read or write the frames, as well as helpers to construct
``open`` and ``info`` functions.  Each file reader has an ``info`` property
that provides standardized information on the file.
"""
