# Licensed under the GPLv3 - see LICENSE
import os

import pytest
import numpy as np

from .. import decode
from ..scripts.lzframe import main, default_output


CONTENT = b''.join(b'%d squared is %d\n' % (i, i * i) for i in range(5000))


@pytest.fixture
def source(tmpdir):
    name = str(tmpdir.join('data.txt'))
    with open(name, 'wb') as fw:
        fw.write(CONTENT)
    return name


class TestDefaultOutput:
    @pytest.mark.parametrize(('name', 'command', 'expected'), [
        ('data.txt', 'compress', 'data.txt.lz4'),
        ('data.txt.lz4', 'decompress', 'data.txt'),
        ('data.bin', 'decompress', 'data.bin.out'),
        ('.lz4', 'decompress', '.lz4.out')])
    def test_default_output(self, name, command, expected):
        assert default_output(name, command) == expected


class TestCommands:
    def test_compress(self, source, capsys):
        assert main(['compress', source]) == 0
        with open(source + '.lz4', 'rb') as fh:
            assert decode(fh.read()) == CONTENT
        out = capsys.readouterr().out
        assert f'Content size: {len(CONTENT)} bytes' in out
        assert 'Blocks: 1' in out
        assert 'Wrote ' + source + '.lz4' in out

    def test_compress_verify_quiet(self, source, capsys):
        output = source + '.packed'
        assert main(['compress', source, '-o', output, '--verify',
                     '--quiet']) == 0
        assert os.path.exists(output)
        assert capsys.readouterr().out == ''

    def test_compress_incompressible(self, tmpdir, capsys):
        name = str(tmpdir.join('random.bin'))
        with open(name, 'wb') as fw:
            fw.write(np.random.default_rng(5).bytes(10000))
        assert main(['compress', name, '--verify']) == 0
        out = capsys.readouterr().out
        assert 'stored uncompressed' in out
        assert 'Decoded content matches input.' in out

    def test_decompress(self, source, tmpdir, capsys):
        assert main(['compress', source, '-q']) == 0
        output = str(tmpdir.join('restored.txt'))
        assert main(['decompress', source + '.lz4', '-o', output]) == 0
        with open(output, 'rb') as fh:
            assert fh.read() == CONTENT
        out = capsys.readouterr().out
        assert f'Decoded content size: {len(CONTENT)} bytes' in out

    def test_extension_dispatch(self, source, tmpdir):
        assert main([source, '-q']) == 0
        assert os.path.exists(source + '.lz4')
        os.remove(source)
        assert main([source + '.lz4', '-q']) == 0
        with open(source, 'rb') as fh:
            assert fh.read() == CONTENT

    @pytest.mark.parametrize('options', [
        ['-q', '{input}'],
        ['-o', '{output}', '{input}'],
        ['-v', '{input}', '-q'],
        ['{input}', '-v', '-q', '-o', '{output}']])
    def test_extension_dispatch_options(self, source, tmpdir, options,
                                        capsys):
        output = str(tmpdir.join('packed.lz4'))
        args = [option.format(input=source, output=output)
                for option in options]
        assert main(args) == 0
        expected = output if '-o' in options else source + '.lz4'
        with open(expected, 'rb') as fh:
            assert decode(fh.read()) == CONTENT
        if '-q' in options:
            assert capsys.readouterr().out == ''

    def test_info(self, source, capsys):
        main(['compress', source, '-q'])
        assert main(['info', source + '.lz4']) == 0
        out = capsys.readouterr().out
        assert 'LZ4File information:' in out
        assert f'content_size = {len(CONTENT)}' in out
        assert 'readable = True' in out

    def test_info_wrong_format(self, source, capsys):
        assert main(['info', source]) == 1
        captured = capsys.readouterr()
        assert 'Not parsable' in captured.out
        assert 'not a readable LZ4 frame file' in captured.err

    def test_decompress_corrupt(self, source, tmpdir, capsys):
        main(['compress', source, '-q'])
        with open(source + '.lz4', 'r+b') as fh:
            fh.seek(-1, 2)
            last = fh.read(1)
            fh.seek(-1, 2)
            fh.write(bytes([last[0] ^ 0xff]))
        output = str(tmpdir.join('restored.txt'))
        assert main(['decompress', source + '.lz4', '-o', output]) == 1
        assert 'content checksum' in capsys.readouterr().err
        assert not os.path.exists(output)

    def test_decompress_wrong_format(self, source, capsys):
        assert main(['decompress', source, '-q']) == 1
        assert 'magic number' in capsys.readouterr().err

    def test_missing_input(self, tmpdir, capsys):
        assert main(['compress', str(tmpdir.join('missing'))]) == 1
        assert 'no file found' in capsys.readouterr().err

    def test_no_arguments(self):
        with pytest.raises(SystemExit):
            main([])
