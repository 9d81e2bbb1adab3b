# Licensed under the GPLv3 - see LICENSE
"""Information on LZ4 frame files.

The most common use is simply to print the ``info`` of an opened file, which
shows format, content size, block-size class, number of blocks, whether the
content is stored uncompressed, and whether the content could be decoded,
along with any errors or warnings encountered on the way.
"""
import warnings

from ..errors import FrameError


__all__ = ['LZ4FileReaderInfo']


class LZ4FileReaderInfo:
    """Information on an LZ4 frame file.

    Used as a descriptor on `~lzframe.lz4f.base.LZ4FileReader`.  On first
    access of ``fh.info``, the header and first frame are read and the
    content is decoded once; any failure is stored in ``errors`` instead of
    being raised.

    The instance evaluates as `True` if the file starts with a valid frame
    header, even if its content turns out to be corrupt.

    Parameters
    ----------
    parent : `~lzframe.lz4f.base.LZ4FileReader`, optional
        Reader the information is about.  `None` for the class descriptor.
    """
    attr_names = ('format', 'content_size', 'block_size_class',
                  'max_block_size', 'number_of_blocks', 'uncompressed',
                  'payload_nbytes', 'readable',
                  'checks', 'errors', 'warnings')
    """Attributes that the container provides."""

    _dict_docs = {'checks': 'dict of checks for readability.',
                  'errors': 'dict of items that raised errors.',
                  'warnings': 'dict of items that gave warnings.'}

    def __init__(self, parent=None):
        self._parent = parent
        self.header0 = None
        self.frame0 = None
        self.checks = {}
        self.errors = {}
        self.warnings = {}
        if parent is not None and not self.closed:
            self._read()

    def __get__(self, instance, owner_cls):
        if instance is None:
            return self

        # Store on the reader, so that this is not called again.
        info = instance.__dict__['info'] = self.__class__(instance)
        return info

    def _read(self):
        with self._parent.temporary_offset(0) as fh:
            try:
                # Not yet known to be an LZ4 file, so ignore all warnings.
                with warnings.catch_warnings():
                    warnings.simplefilter('ignore')
                    self.header0 = fh.read_header()
            except FrameError as exc:
                self.errors['header0'] = exc
                return

            fh.seek(0)
            with warnings.catch_warnings(record=True) as w:
                warnings.simplefilter('always')
                try:
                    self.frame0 = fh.read_frame()
                except FrameError as exc:
                    self.errors['frame0'] = exc
            if w:
                self.warnings['frame0'] = '; '.join(str(_w.message)
                                                    for _w in w)

        self.checks['decodable'] = self._decode()

    def _decode(self):
        if self.frame0 is None:
            return False
        try:
            self.frame0.data
        except FrameError as exc:
            self.errors['decodable'] = exc
            return False
        return True

    @property
    def closed(self):
        """Whether the reader is closed."""
        return self._parent is None or self._parent.closed

    @property
    def format(self):
        """The file format."""
        return None if self.header0 is None else 'lz4'

    @property
    def content_size(self):
        """Size of the original content in bytes."""
        return None if self.header0 is None else self.header0['content_size']

    @property
    def block_size_class(self):
        """Block-size class code from the block descriptor."""
        return (None if self.header0 is None
                else self.header0['block_size_class'])

    @property
    def max_block_size(self):
        """Maximum block size advertised in the block descriptor."""
        return None if self.header0 is None else self.header0.max_block_size

    @property
    def number_of_blocks(self):
        """Number of blocks in the frame."""
        return None if self.frame0 is None else len(self.frame0.block_sizes)

    @property
    def uncompressed(self):
        """Whether the content is stored without compression."""
        return None if self.frame0 is None else self.frame0.uncompressed

    @property
    def payload_nbytes(self):
        """Total size of the blocks in bytes."""
        return None if self.frame0 is None else self.frame0.payload.nbytes

    @property
    def readable(self):
        """Whether the file is an LZ4 file with decodable content."""
        return bool(self) and all(self.checks.values())

    def __bool__(self):
        return self.format is not None

    def __call__(self):
        """Create a dict with file information.

        Items that are `None` or empty are left out.
        """
        return {attr: value for attr, value in
                ((attr, getattr(self, attr)) for attr in self.attr_names)
                if value is not None and value != {}}

    @classmethod
    def _describe(cls, attr):
        doc = cls._dict_docs.get(attr) or getattr(cls, attr).__doc__
        return "{0}: {1}".format(attr, doc.split('\n')[0])

    def __repr__(self):
        if self._parent is None:
            return '\n'.join(
                ["{0} (unbound) with attributes:"
                 .format(self.__class__.__name__)]
                + ["  " + self._describe(attr) for attr in self.attr_names])

        if self.closed:
            return "File closed. Not parsable."

        lines = [self._parent.__class__.__name__.replace('Reader', '')
                 + ' information:']
        for attr in self.attr_names:
            value = getattr(self, attr)
            if isinstance(value, dict):
                label = "\n" + attr + ":"
                for key, item in value.items():
                    lines.append("{0} {1}: {2}".format(label, key, item))
                    label = ' ' * (len(attr) + 1)
            elif value is not None:
                lines.append("{0} = {1}".format(attr, value))

        if not self:
            lines.append("\nNot parsable. Wrong format?")

        return '\n'.join(lines)
