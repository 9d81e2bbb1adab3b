# Licensed under the GPLv3 - see LICENSE
from ..base.base import FileBase, FileOpener, FileInfo
from .file_info import LZ4FileReaderInfo
from .header import LZ4FrameHeader
from .frame import LZ4Frame


__all__ = ['LZ4FileReader', 'LZ4FileWriter', 'open', 'info']


class LZ4FileReader(FileBase):
    """Simple reader for files holding a single LZ4 frame.

    Wraps a binary filehandle, providing methods to help interpret the data,
    such as `read_frame`.

    Parameters
    ----------
    fh_raw : filehandle
        Filehandle of the raw binary data file.
    codec : `~lzframe.codecs.RawBlockCodec`, optional
        Used to decompress frames.  Default: LZ4 block codec.
    hasher : `~lzframe.codecs.Hasher`, optional
        Used to verify checksums.  Default: XXH32.
    reporter : callable, optional
        Passed on to frames read, to be called as
        ``reporter(event, **values)`` on progress.
    """
    info = LZ4FileReaderInfo()

    def __init__(self, fh_raw, codec=None, hasher=None, reporter=None):
        super().__init__(fh_raw)
        self.codec = codec
        self.hasher = hasher
        self.reporter = reporter

    def read_header(self, verify=True):
        """Read a single header from the file.

        Returns
        -------
        header : `~lzframe.lz4f.LZ4FrameHeader`
        """
        return LZ4FrameHeader.fromfile(self.fh_raw, hasher=self.hasher,
                                       verify=verify)

    def read_frame(self, verify=True):
        """Read a frame: header, blocks and content checksum.

        Parameters
        ----------
        verify : bool, optional
            Whether to do basic checks of frame integrity.  Default: `True`.

        Returns
        -------
        frame : `~lzframe.lz4f.LZ4Frame`
            With ``.header`` and ``.payload`` properties.  The ``.data``
            property returns the decoded and verified content.
        """
        return LZ4Frame.fromfile(self.fh_raw, codec=self.codec,
                                 hasher=self.hasher, reporter=self.reporter,
                                 verify=verify)


class LZ4FileWriter(FileBase):
    """Simple writer for files holding a single LZ4 frame.

    Adds a `write_frame` method to the binary file wrapper.

    Parameters
    ----------
    fh_raw : filehandle
        Filehandle of the raw binary data file.
    codec, hasher, reporter : optional
        Used to encode frames.  See `~lzframe.lz4f.LZ4Frame`.
    """

    def __init__(self, fh_raw, codec=None, hasher=None, reporter=None):
        super().__init__(fh_raw)
        self.codec = codec
        self.hasher = hasher
        self.reporter = reporter

    def write_frame(self, data):
        """Write a single frame.

        Parameters
        ----------
        data : bytes-like or `~lzframe.lz4f.LZ4Frame`
            If bytes, they are encoded into a frame first.
        """
        if not isinstance(data, LZ4Frame):
            data = LZ4Frame.fromdata(data, codec=self.codec,
                                     hasher=self.hasher,
                                     reporter=self.reporter)
        return data.tofile(self.fh_raw)


open = FileOpener.create(globals(), doc="""
codec : `~lzframe.codecs.RawBlockCodec`, optional
    Used to compress or decompress.  Default: LZ4 block codec.
hasher : `~lzframe.codecs.Hasher`, optional
    Used for checksums.  Default: XXH32.
reporter : callable, optional
    Called as ``reporter(event, **values)`` on progress.

Returns
-------
Filehandle
    :class:`~lzframe.lz4f.base.LZ4FileReader` or
    :class:`~lzframe.lz4f.base.LZ4FileWriter` instance.
""")


info = FileInfo.create(globals())
