"""
Unit tests for the hash store, history log and source file I/O
"""
import codecs
import json
from datetime import datetime, timezone

import pytest

from vsu.content_hasher import hash_content
from vsu.history_log import HistoryEntry, HistoryLog, parse_timestamp
from vsu.source_file import read_source, write_source
from vsu.version_store import VersionStore


class TestVersionStore:
    """Test VersionStore load/save"""

    def test_missing_file_starts_empty(self, temp_dir):
        store = VersionStore.load(temp_dir / 'hashes.json')
        assert len(store) == 0

    def test_save_and_load(self, temp_dir):
        store = VersionStore.load(temp_dir / 'hashes.json')
        store.put('/p/a.cs', 'abc123')
        store.save()

        reloaded = VersionStore.load(temp_dir / 'hashes.json')
        assert reloaded.get('/p/a.cs') == 'abc123'
        assert json.loads((temp_dir / 'hashes.json').read_text(encoding='utf-8')) == {'/p/a.cs': 'abc123'}

    def test_save_overwrites_completely(self, temp_dir):
        (temp_dir / 'hashes.json').write_text(json.dumps({'/old': 'x'}), encoding='utf-8')
        store = VersionStore(temp_dir / 'hashes.json')
        store.put('/new', 'y')
        store.save()

        assert json.loads((temp_dir / 'hashes.json').read_text(encoding='utf-8')) == {'/new': 'y'}
        assert not list(temp_dir.glob('.hashes.json.*.tmp'))

    def test_corrupt_file_backed_up_with_warning(self, temp_dir, caplog):
        hashes_file = temp_dir / 'hashes.json'
        hashes_file.write_text('{"broken": ', encoding='utf-8')

        store = VersionStore.load(hashes_file)

        assert len(store) == 0
        assert (temp_dir / 'hashes.json.corrupt').read_text(encoding='utf-8') == '{"broken": '
        assert any('corrupt' in record.message for record in caplog.records)

    def test_wrong_shape_treated_as_corrupt(self, temp_dir):
        hashes_file = temp_dir / 'hashes.json'
        hashes_file.write_text('["not", "a", "map"]', encoding='utf-8')

        assert len(VersionStore.load(hashes_file)) == 0
        assert (temp_dir / 'hashes.json.corrupt').exists()


class TestHistoryLog:
    """Test HistoryLog persistence"""

    def test_append_and_reload_preserves_order(self, temp_dir):
        log = HistoryLog.load(temp_dir / 'version_history.json')
        log.append('/p/a.cs', None, '1.0.0.0')
        log.append('/p/b.cs', '1.0.0.0', '2.0.0.0', 'manual')
        log.save()

        reloaded = HistoryLog.load(temp_dir / 'version_history.json')
        entries = list(reloaded)
        assert [e.file for e in entries] == ['/p/a.cs', '/p/b.cs']
        assert entries[0].old_version == 'none'
        assert entries[1].type == 'manual'

    def test_prior_entries_kept_across_runs(self, temp_dir):
        path = temp_dir / 'version_history.json'
        first = HistoryLog.load(path)
        first.append('/p/a.cs', None, '1.0.0.0')
        first.save()

        second = HistoryLog.load(path)
        second.append('/p/a.cs', '1.0.0.0', '1.0.0.1')
        second.save()

        assert len(HistoryLog.load(path)) == 2

    def test_serialized_shape(self, temp_dir):
        log = HistoryLog(temp_dir / 'version_history.json')
        log.append('/p/a.cs', '1.0.0.0', '1.0.0.1',
                   date=datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc))
        log.save()

        data = json.loads((temp_dir / 'version_history.json').read_text(encoding='utf-8'))
        assert data == [{
            'file': '/p/a.cs',
            'oldVersion': '1.0.0.0',
            'newVersion': '1.0.0.1',
            'date': '2024-05-01T12:30:00Z',
            'type': 'auto',
        }]

    def test_reads_pascal_case_entries(self):
        entry = HistoryEntry.from_dict({
            'File': 'C:\\src\\A.cs',
            'OldVersion': 'none',
            'NewVersion': '1.0.0.0',
            'Date': '2024-01-02T03:04:05.1234567Z',
            'Type': 'auto',
        })
        assert entry.file == 'C:\\src\\A.cs'
        assert entry.new_version == '1.0.0.0'
        assert entry.date.year == 2024
        assert entry.date.tzinfo is not None

    def test_parse_timestamp_short_fraction(self):
        moment = parse_timestamp('2024-01-02T03:04:05.5Z')
        assert moment.microsecond == 500000

    def test_corrupt_history_backed_up(self, temp_dir):
        path = temp_dir / 'version_history.json'
        path.write_text('not json', encoding='utf-8')

        log = HistoryLog.load(path)

        assert len(log) == 0
        assert (temp_dir / 'version_history.json.corrupt').exists()

    def test_for_file_filter(self, temp_dir):
        log = HistoryLog(temp_dir / 'h.json')
        log.append('/p/Main.cs', None, '1.0.0.0')
        log.append('/p/Utils.cs', None, '1.0.0.0')
        assert [e.file for e in log.for_file('main')] == ['/p/Main.cs']


class TestSourceFile:
    """Test newline and BOM preservation"""

    def test_lf_file(self, temp_dir):
        path = temp_dir / 'a.cs'
        path.write_bytes(b"line1\nline2\n")

        source = read_source(path)

        assert source.lines == ['line1', 'line2']
        assert source.newline == '\n'
        assert source.trailing_newline

    def test_crlf_round_trip_keeps_style(self, temp_dir):
        path = temp_dir / 'a.cs'
        path.write_bytes(b"// Version: 1.0.0.0\r\nclass A {}\r\n")

        source = read_source(path)
        write_source(source, ['// Version: 1.0.0.1', 'class A {}'])

        assert path.read_bytes() == b"// Version: 1.0.0.1\r\nclass A {}\r\n"

    def test_bom_and_missing_trailing_newline_preserved(self, temp_dir):
        path = temp_dir / 'a.cs'
        path.write_bytes(codecs.BOM_UTF8 + b"class A {}")

        source = read_source(path)
        assert source.lines == ['class A {}']
        write_source(source, ['// Version: 1.0.0.0', 'class A {}'])

        assert path.read_bytes() == codecs.BOM_UTF8 + b"// Version: 1.0.0.0\nclass A {}"

    def test_empty_file(self, temp_dir):
        path = temp_dir / 'a.cs'
        path.write_bytes(b"")

        source = read_source(path)
        assert source.lines == []
        write_source(source, ['// Version: 1.0.0.0'])
        assert path.read_bytes() == b"// Version: 1.0.0.0\n"

    def test_hash_independent_of_newline_style(self, temp_dir):
        lf = temp_dir / 'lf.cs'
        crlf = temp_dir / 'crlf.cs'
        lf.write_bytes(b"a\nb\n")
        crlf.write_bytes(b"a\r\nb\r\n")

        assert hash_content(read_source(lf).lines) == hash_content(read_source(crlf).lines)

    def test_invalid_utf8_raises(self, temp_dir):
        path = temp_dir / 'a.cs'
        path.write_bytes(b"\xff\xfe\xfa")
        with pytest.raises(UnicodeDecodeError):
            read_source(path)
