# Licensed under the GPLv3 - see LICENSE
"""Wrappers that add frame reading and writing to binary files.

`FileBase` wraps a binary filehandle, to which format modules add methods
such as ``read_frame`` and ``write_frame``.  `FileOpener` and `FileInfo`
build the ``open`` and ``info`` functions each format module exposes.
"""
import io
import functools
import textwrap
from contextlib import contextmanager


__all__ = ['FileBase', 'FileOpener', 'FileInfo', 'NoInfo']


class FileBase:
    """Binary file wrapper, to which frame methods are added.

    Attributes not defined on the wrapper, such as ``seek`` and ``tell``,
    are taken from the wrapped filehandle.

    Parameters
    ----------
    fh_raw : filehandle
        Binary filehandle holding the frame.

    Notes
    -----
    Readers define ``read_header``, ``read_frame`` and an ``info``
    descriptor; writers define ``write_frame``.
    """
    fh_raw = None

    def __init__(self, fh_raw):
        self.fh_raw = fh_raw

    def __getattr__(self, attr):
        if attr.startswith('_') or self.fh_raw is None:
            raise AttributeError("{0!r} object has no attribute {1!r}"
                                 .format(self.__class__.__name__, attr))
        return getattr(self.fh_raw, attr)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        self.fh_raw.close()

    @contextmanager
    def temporary_offset(self, offset=None, whence=0):
        """Seek elsewhere for the duration of a ``with`` block.

        The original position is restored on leaving the block, also if an
        exception occurred.  Arguments are as for :meth:`io.IOBase.seek`;
        if ``offset`` is `None`, the position is not changed on entry.
        """
        position = self.tell()
        try:
            if offset is not None:
                self.seek(offset, whence)
            yield self
        finally:
            self.seek(position)

    def __repr__(self):
        return "{0}(fh_raw={1})".format(self.__class__.__name__, self.fh_raw)


class FileOpener:
    """Open files for reading or writing frames of a given format.

    Instances are called like `open`; use `create` to get a plain
    function with a docstring describing the format's options.

    Parameters
    ----------
    fmt : str
        Name of the format.
    reader, writer : class
        Wrapper classes used for mode 'rb' and 'wb', respectively.
    """

    def __init__(self, fmt, reader, writer):
        self.fmt = fmt
        self.classes = {'rb': reader, 'wb': writer}

    def normalize_mode(self, mode):
        """Interpret 'r', 'w' and 'br', 'bw' as 'rb' and 'wb'."""
        normalized = ''.join(sorted(mode, reverse=True))
        if len(normalized) == 1:
            normalized += 'b'
        if normalized not in self.classes:
            raise ValueError("invalid mode: {0} ({1} supports {2})."
                             .format(mode, self.fmt, set(self.classes)))
        return normalized

    def __call__(self, name, mode='rb', **kwargs):
        """
        Open a frame file for reading or writing.

        Parameters
        ----------
        name : str or filehandle
            File name or binary filehandle.  A filehandle is wrapped as is,
            while a file opened here is closed again if wrapping fails.
        mode : {'rb', 'wb'}, optional
            Whether to open for reading or writing.  Default: 'rb'.
        **kwargs
            Passed on to the reader or writer.
        """
        mode = self.normalize_mode(mode)
        if hasattr(name, 'read') or hasattr(name, 'write'):
            return self.classes[mode](name, **kwargs)

        fh = io.open(name, 'w+b' if mode == 'wb' else mode)
        try:
            return self.classes[mode](fh, **kwargs)
        except Exception:
            fh.close()
            raise

    @classmethod
    def create(cls, ns, doc=None):
        """Create an ``open`` function for a format module.

        Parameters
        ----------
        ns : dict
            Namespace of the module, i.e., ``globals()`` at the call site.
            Should hold ``<fmt>FileReader`` and ``<fmt>FileWriter`` classes.
        doc : str, optional
            Appended to the docstring, e.g., to describe ``**kwargs``.
        """
        readers = [key for key in ns if key.endswith('FileReader')]
        if not readers:
            raise ValueError("namespace does not contain a FileReader.")
        fmt = readers[0][:-len('FileReader')]
        opener = cls(fmt, ns[fmt + 'FileReader'], ns[fmt + 'FileWriter'])

        @functools.wraps(opener.__call__)
        def open(*args, **kwargs):
            return opener(*args, **kwargs)

        open.__doc__ = (textwrap.dedent(opener.__call__.__doc__)
                        .replace('a frame file', f'{fmt} file')
                        + (doc or ''))
        open.__name__ = open.__qualname__ = 'open'
        open.__module__ = ns.get('__name__', open.__module__)
        return open


class FileInfo:
    """Get information on a file, given its name.

    Parameters
    ----------
    opener : callable
        Function used to open the file for reading.
    """

    def __init__(self, opener):
        self.open = opener

    def __call__(self, name, **kwargs):
        """Collect information about a file.

        Parameters
        ----------
        name : str or filehandle
            File to inspect.
        **kwargs
            Passed on to the file reader.

        Returns
        -------
        info : `~lzframe.lz4f.file_info.LZ4FileReaderInfo` or `NoInfo`
            Information on the file.  Will evaluate as `False` if the
            file was not in the right format or could not be opened.
        """
        try:
            with self.open(name, 'rb', **kwargs) as fh:
                return fh.info
        except OSError as exc:
            return NoInfo(f"Could not open {name}: {exc}")

    @classmethod
    def create(cls, ns):
        """Create an ``info`` function using the ``open`` in ``ns``."""
        collector = cls(ns['open'])

        @functools.wraps(collector.__call__)
        def info(*args, **kwargs):
            return collector(*args, **kwargs)

        info.__name__ = info.__qualname__ = 'info'
        info.__module__ = ns.get('__name__', info.__module__)
        return info


class NoInfo:
    """Info for a file that could not be opened.

    Evaluates as `False`, like the ``info`` of a file in the wrong format.

    Parameters
    ----------
    info : str
        Reason, displayed using ``repr``.
    """

    def __init__(self, info=None):
        self.info = info

    def __bool__(self):
        return False

    def __repr__(self):
        return f"No Info: {self.info}"
