# Licensed under the GPLv3 - see LICENSE
"""
Base definitions for headers and other bit-packed fields.

A header class holds the words of a fixed-layout binary structure, and gives
dict-like access to the values encoded in those words.  Where values live is
described by a `HeaderParser`, in which each key gives the word a value is
stored in, where in that word it starts, how many bits it uses, and possibly
a default.

The words are whatever a `~struct.Struct` unpacks to, so they can differ in
width (e.g., a one-byte flags word next to an eight-byte size word).
"""
import warnings

from astropy.utils import classproperty, lazyproperty

from ..errors import TruncatedInput


__all__ = ['make_parser', 'make_setter', 'HeaderParser', 'ParsedHeaderBase']


def make_parser(word_index, bit_index, bit_length, default=None):
    """Construct a function that gets a value from specific header bits.

    Single bits are returned as `bool`, longer items as `int`.  Since words
    are python integers, an item can be as wide as its word, e.g., 64 bits.

    Parameters
    ----------
    word_index : int
        Index into the tuple of words passed to the function.
    bit_index : int
        Index to the starting bit of the part to be extracted.
    bit_length : int
        Number of bits to be extracted.

    Returns
    -------
    parser : function
        To be used as ``parser(words)``.
    """
    if bit_length == 1:
        bit = 1 << bit_index

        def parser(words):
            return (words[word_index] & bit) != 0

    else:
        bit_mask = (1 << bit_length) - 1

        def parser(words):
            return (words[word_index] >> bit_index) & bit_mask

    return parser


def make_setter(word_index, bit_index, bit_length, default=None):
    """Construct a function that sets specific header bits to a value.

    Parameters
    ----------
    word_index : int
        Index into the list of words passed to the function.
    bit_index : int
        Index to the starting bit of the part to be set.
    bit_length : int
        Number of bits to be set.
    default : int or bool or None
        Value to use if the function is passed `None`.

    Returns
    -------
    setter : function
        To be used as ``setter(words, value)``.  `True` sets all bits.
    """
    bit_mask = (1 << bit_length) - 1

    def setter(words, value):
        if value is None:
            if default is None:
                raise ValueError("no default value so cannot set to 'None'.")
            value = default
        if value is True:
            value = bit_mask
        elif value is False:
            value = 0
        elif value < 0 or value & bit_mask != value:
            raise ValueError("{0} cannot be represented with {1} bits"
                             .format(value, bit_length))
        cleared = words[word_index] & ~(bit_mask << bit_index)
        words[word_index] = cleared | (value << bit_index)
        return words

    return setter


class HeaderParser(dict):
    """Description of how values are encoded in header words.

    Initialised as a normal dict, with (ordered) key, value pairs, where
    each value is a tuple containing:

    word_index : int
        Index into the header words for this key.
    bit_index : int
        Index to the starting bit of the part used for this key.
    bit_length : int
        Number of bits.
    default : int or bool, optional
        Value used when a header is built from values (e.g., a magic
        number).

    The parser, setter and default for each key are built once, on first
    access of `parsers`, `setters` or `defaults`.  Hence, the description
    should not be changed after use.
    """

    @lazyproperty
    def parsers(self):
        """Functions that get a value from header words, by key."""
        return {key: make_parser(*definition)
                for key, definition in self.items()}

    @lazyproperty
    def setters(self):
        """Functions that set a value in header words, by key."""
        return {key: make_setter(*definition)
                for key, definition in self.items()}

    @lazyproperty
    def defaults(self):
        """Default values by key, `None` for keys without one."""
        return {key: definition[3] if len(definition) > 3 else None
                for key, definition in self.items()}


class ParsedHeaderBase:
    """Base class for fixed-layout binary structures with named values.

    Subclasses should define:

      _struct : `~struct.Struct` instance that packs/unpacks the words.

      _header_parser : `HeaderParser` describing where values are stored.

      _properties : names of properties that can be set on creation.

    Parameters
    ----------
    words : tuple or list of int, or None
        Words as unpacked by ``_struct``.  A tuple makes the header
        read-only.  If `None`, all words are set to zero for later
        initialisation, and verification is skipped.
    verify : bool, optional
        Whether to do basic verification of integrity.  Default: `True`.
    """

    _struct = None
    _header_parser = HeaderParser()
    _properties = ()

    def __init__(self, words, verify=True):
        if words is None:
            words = [0] * self._nwords
            verify = False
        self.words = words
        if verify:
            self.verify()

    @classproperty
    def _nwords(cls):
        return len(cls._struct.unpack(bytes(cls._struct.size)))

    @classproperty
    def nbytes(cls):
        """Size of the encoded structure in bytes."""
        return cls._struct.size

    def verify(self):
        """Check the number of words; subclasses add format checks."""
        assert len(self.words) == self._nwords

    @property
    def mutable(self):
        """Whether values can be set.  Headers read from bytes cannot."""
        return isinstance(self.words, list)

    def copy(self, **kwargs):
        """Create a mutable and independent copy of the header.

        Keyword arguments are passed on to the class initialiser.
        """
        kwargs.setdefault('verify', False)
        return self.__class__(list(self.words), **kwargs)

    @classmethod
    def fromvalues(cls, *args, verify=True, **kwargs):
        """Create a header from values of keys or properties.

        Keys that are not given are set to their default, if there is one,
        so that for any header, ``cls.fromvalues(**header) == header``.

        Parameters
        ----------
        *args
            Passed on to the class initialiser.
        verify : bool, optional
            Whether to verify the result.  Default: `True`.
        **kwargs
            Values of header keys, or of properties in ``_properties``.
        """
        values = {key: default for key, default
                  in cls._header_parser.defaults.items()
                  if default is not None}
        values.update(kwargs)
        self = cls(None, *args, verify=False)
        self.update(verify=verify, **values)
        return self

    def update(self, *, verify=True, **kwargs):
        """Set header keys and properties.

        Keys are set first, then properties, in the order of
        ``_properties``, so that properties can override key values.

        Parameters
        ----------
        verify : bool, optional
            If `True` (default), verify integrity after updating.
        **kwargs
            Values of header keys or properties.  Any others are ignored
            with a warning.
        """
        for key in [key for key in kwargs if key in self]:
            self[key] = kwargs.pop(key)
        for prop in self._properties:
            if prop in kwargs:
                setattr(self, prop, kwargs.pop(prop))
        if kwargs:
            warnings.warn("unused keywords in {0} update: {1}"
                          .format(self.__class__.__name__, kwargs))
        if verify:
            self.verify()

    def __getitem__(self, key):
        parser = self._header_parser.parsers.get(key)
        if parser is None:
            raise KeyError("{0} has no item {1!r}"
                           .format(self.__class__.__name__, key))
        return parser(self.words)

    def __setitem__(self, key, value):
        setter = self._header_parser.setters.get(key)
        if setter is None:
            raise KeyError("{0} has no item {1!r}"
                           .format(self.__class__.__name__, key))
        if not self.mutable:
            raise TypeError("{0} is read-only; use .copy() to get a mutable "
                            "version.".format(self.__class__.__name__))
        setter(self.words, value)

    def keys(self):
        return self._header_parser.keys()

    def __contains__(self, key):
        return key in self._header_parser

    def __eq__(self, other):
        return (type(self) is type(other)
                and tuple(self.words) == tuple(other.words))

    @classmethod
    def frombytes(cls, data, *args, offset=0, **kwargs):
        """Unpack from a bytes-like buffer, starting at ``offset``.

        Arguments are the same as for class initialisation.  The result is
        read-only.

        Raises
        ------
        TruncatedInput
            If the buffer ends before the structure does.
        """
        left = len(data) - offset
        if left < cls._struct.size:
            raise TruncatedInput(
                "need {0} bytes for {1} at offset {2}, but only {3} left."
                .format(cls._struct.size, cls.__name__, offset,
                        max(left, 0)))
        return cls(cls._struct.unpack_from(data, offset), *args, **kwargs)

    @classmethod
    def fromfile(cls, fh, *args, **kwargs):
        """Read from a filehandle; arguments as for `frombytes`."""
        return cls.frombytes(fh.read(cls._struct.size), *args, **kwargs)

    def tobytes(self):
        return self._struct.pack(*self.words)

    def tofile(self, fh):
        """Write to filehandle, returning the number of bytes written."""
        return fh.write(self.tobytes())

    def _repr_value(self, key, value):
        return str(value)

    def __repr__(self):
        items = ', '.join("{0}: {1}".format(key,
                                            self._repr_value(key, self[key]))
                          for key in self.keys())
        return "<{0} {1}>".format(self.__class__.__name__, items)
