# Licensed under the GPLv3 - see LICENSE
import io
import struct

import pytest

from ...errors import TruncatedInput
from ..header import (HeaderParser, ParsedHeaderBase, make_parser,
                      make_setter)


class TestHeaderParser:
    def setup_class(cls):
        cls.definition = (('x0_4_4', (0, 4, 4)),
                          ('x0_7_1', (0, 7, 1, False)),
                          ('x1_0_32', (1, 0, 32)),
                          ('x2_0_64', (2, 0, 64, 1 << 32)))

    def test_header_parser_class(self):
        header_parser = HeaderParser(self.definition)
        words = [0x5a, 0xffff0000, 0x123456789]
        assert list(header_parser.keys()) == ['x0_4_4', 'x0_7_1',
                                              'x1_0_32', 'x2_0_64']
        assert header_parser.parsers['x0_4_4'](words) == 5
        assert header_parser.parsers['x0_7_1'](words) is False
        assert header_parser.parsers['x1_0_32'](words) == 0xffff0000
        assert header_parser.parsers['x2_0_64'](words) == 0x123456789
        header_parser.setters['x0_4_4'](words, 0xc)
        assert words[0] == 0xca
        assert header_parser.defaults == {'x0_4_4': None,
                                          'x0_7_1': False,
                                          'x1_0_32': None,
                                          'x2_0_64': 1 << 32}

    def test_functions_built_once(self):
        header_parser = HeaderParser(self.definition)
        parsers = header_parser.parsers
        assert header_parser.parsers is parsers
        assert set(parsers) == set(header_parser)
        assert header_parser.setters is header_parser.setters


class TestParserFunctions:
    def test_single_bit(self):
        parser = make_parser(0, 5, 1)
        setter = make_setter(0, 5, 1, True)
        words = [0]
        assert parser(words) is False
        setter(words, True)
        assert words == [0x20]
        assert parser(words) is True
        setter(words, False)
        assert words == [0]
        setter(words, None)
        assert words == [0x20]

    def test_wide_fields(self):
        parser = make_parser(0, 0, 64)
        setter = make_setter(0, 0, 64)
        words = [0]
        setter(words, 5 * 2**32 + 1)
        assert parser(words) == 5 * 2**32 + 1
        setter(words, 2**64 - 1)
        assert parser(words) == 2**64 - 1

    def test_setter_keeps_other_bits(self):
        setter = make_setter(0, 4, 3)
        words = [0b1000_1111]
        setter(words, 5)
        assert words == [0b1101_1111]

    def test_setter_errors(self):
        setter = make_setter(0, 4, 3)
        words = [0]
        with pytest.raises(ValueError):
            setter(words, 8)
        with pytest.raises(ValueError):
            setter(words, -1)
        with pytest.raises(ValueError):
            setter(words, None)


class SimpleHeader(ParsedHeaderBase):
    _struct = struct.Struct('<BH')
    _header_parser = HeaderParser(
        (('flag', (0, 7, 1, True)),
         ('code', (0, 0, 4, 3)),
         ('length', (1, 0, 16))))
    _properties = ('double_length',)

    def _set_double_length(self, value):
        self['length'] = value // 2

    double_length = property(None, _set_double_length)


class TestParsedHeader:
    def test_fromvalues(self):
        header = SimpleHeader.fromvalues(length=1000)
        assert header['flag'] is True
        assert header['code'] == 3
        assert header['length'] == 1000
        assert header.mutable
        assert header.tobytes() == b'\x83\xe8\x03'
        assert SimpleHeader.fromvalues(**header) == header

    def test_properties(self):
        header = SimpleHeader.fromvalues(double_length=10)
        assert header['length'] == 5
        # Properties are applied after keys.
        header = SimpleHeader.fromvalues(length=1, double_length=10)
        assert header['length'] == 5
        with pytest.warns(UserWarning, match='unused'):
            header.update(nonsense=1)

    def test_immutable(self):
        header = SimpleHeader.frombytes(b'\x83\xe8\x03')
        assert not header.mutable
        assert header['length'] == 1000
        with pytest.raises(TypeError):
            header['length'] = 10
        header2 = header.copy()
        assert header2.mutable
        header2['length'] = 10
        assert header2['length'] == 10
        assert header['length'] == 1000

    def test_keys_and_repr(self):
        header = SimpleHeader.fromvalues(length=1)
        assert list(header.keys()) == ['flag', 'code', 'length']
        assert 'code' in header
        assert 'other' not in header
        with pytest.raises(KeyError):
            header['other']
        with pytest.raises(KeyError):
            header['other'] = 1
        assert repr(header) == '<SimpleHeader flag: True, code: 3, length: 1>'

    def test_file_io(self):
        header = SimpleHeader.fromvalues(length=7)
        assert SimpleHeader.nbytes == 3
        with io.BytesIO() as s:
            assert header.tofile(s) == 3
            s.seek(0)
            header2 = SimpleHeader.fromfile(s)
        assert header2 == header

    def test_offset_and_truncation(self):
        data = b'\x00\x00\x83\xe8\x03'
        header = SimpleHeader.frombytes(data, offset=2)
        assert header['length'] == 1000
        with pytest.raises(TruncatedInput):
            SimpleHeader.frombytes(data, offset=3)
        with pytest.raises(EOFError):
            SimpleHeader.fromfile(io.BytesIO(b'\x83'))
