"""Tests for the incremental dataset loader."""

import io
import json
import threading

import pytest

from transit_scheduler.core.exceptions import CorruptDatasetError
from transit_scheduler.core.loader import IncrementalLoader, JSONArrayReader, decode_stop
from transit_scheduler.core.store import TimeTableStore


class ChunkedStream(io.RawIOBase):
    """Byte stream that hands out data in small pieces and can pause."""

    def __init__(self, data: bytes, piece: int = 7, gate: threading.Event | None = None):
        self._data = data
        self._pos = 0
        self._piece = piece
        self._gate = gate

    @property
    def consumed(self):
        return self._pos

    def readable(self):
        return True

    def read(self, size=-1):
        if self._gate is not None and self._pos >= len(self._data) // 2:
            self._gate.wait()
        chunk = self._data[self._pos : self._pos + self._piece]
        self._pos += len(chunk)
        return chunk


def read_all(data: bytes, chunk_size: int = 5) -> list:
    reader = JSONArrayReader(io.BytesIO(data), chunk_size=chunk_size)
    reader.open_array()
    values = []
    while reader.more():
        values.append(reader.decode())
    reader.close_array()
    return values


class TestJSONArrayReader:
    """Test element-wise array decoding."""

    def test_decodes_elements_across_chunks(self, sample_dataset, dataset_bytes):
        assert read_all(dataset_bytes, chunk_size=3) == sample_dataset

    def test_empty_array(self):
        assert read_all(b" [ ] \n") == []

    def test_whitespace_between_elements(self):
        assert read_all(b'[\n  {"a": 1} ,\n\t{"b": 2}\n]') == [{"a": 1}, {"b": 2}]

    def test_multibyte_characters_split_across_chunks(self):
        data = json.dumps([{"stop_name": "Łódź Kaliska"}], ensure_ascii=False)
        assert read_all(data.encode("utf-8"), chunk_size=1) == [
            {"stop_name": "Łódź Kaliska"}
        ]

    @pytest.mark.parametrize(
        "data",
        [
            b"",
            b'{"a": 1}',
            b'[{"a": 1}',
            b'[{"a": 1},',
            b'[{"a": 1},]',
            b'[{"a": 1} {"b": 2}]',
            b'[{"a": 1]',
            b"[1, 2]",
            b'[{"a": 1}] trailing',
            b'[{"a": "\xff"}]',
        ],
    )
    def test_malformed_input(self, data):
        with pytest.raises(CorruptDatasetError):
            read_all(data)

    @pytest.mark.parametrize(
        "data",
        [
            b'[{"name": "Main Street Station", "id": 12345}]',
            b'[{"flag": true, "none": null, "ratio": -1.5e3}]',
            b'[{"name": "\\u0141\\u00f3d\\u017a"}]',
        ],
    )
    def test_tokens_split_across_chunks(self, data):
        expected = json.loads(data)
        for chunk_size in (1, 2, 3, 7):
            assert read_all(data, chunk_size=chunk_size) == expected

    def test_syntax_error_reported_before_end_of_input(self):
        data = b'[{"a": 1]' + b', {"b": 2}' * 100_000 + b"]"
        stream = ChunkedStream(data, piece=64)
        reader = JSONArrayReader(stream, chunk_size=64)
        reader.open_array()
        reader.more()

        with pytest.raises(CorruptDatasetError, match="Malformed element"):
            reader.decode()

        assert stream.consumed <= 256

    def test_counts_elements(self):
        reader = JSONArrayReader(io.BytesIO(b'[{"a": 1}, {"b": 2}]'))
        reader.open_array()
        while reader.more():
            reader.decode()
        assert reader.count == 2


class TestDecodeStop:
    """Test element validation."""

    def test_valid_element(self, sample_dataset):
        assert decode_stop(sample_dataset[0], 0).name == "Main St"

    def test_empty_hours_is_corrupt(self, sample_dataset):
        raw = dict(sample_dataset[0], times={"hour": [], "work": []})
        with pytest.raises(CorruptDatasetError, match="element 4"):
            decode_stop(raw, 4)

    def test_wrong_shape_is_corrupt(self):
        with pytest.raises(CorruptDatasetError):
            decode_stop({"id": "x"}, 0)


class TestIncrementalLoader:
    """Test loading into a store."""

    def test_load_completes_and_normalizes(self, sample_dataset, dataset_bytes):
        store = TimeTableStore()
        IncrementalLoader(store, chunk_size=16).load(io.BytesIO(dataset_bytes))

        snapshot = store.snapshot()
        assert snapshot.complete
        assert len(snapshot) == len(sample_dataset)
        assert [stop.id for stop in snapshot.stops] == [raw["id"] for raw in sample_dataset]
        # Night line rotated past midnight
        assert snapshot.stops[5].times.hours == ["0", "1", "22", "23"]

    def test_corrupt_dataset_never_completes(self, sample_dataset):
        data = json.dumps(sample_dataset).encode("utf-8")[:-20]
        store = TimeTableStore()

        with pytest.raises(CorruptDatasetError):
            IncrementalLoader(store).load(io.BytesIO(data))

        assert not store.is_complete
        assert isinstance(store.error, CorruptDatasetError)

    def test_empty_hours_aborts_load(self, sample_dataset):
        sample_dataset[3]["times"]["hour"] = []
        sample_dataset[3]["times"]["work"] = []
        store = TimeTableStore()

        with pytest.raises(CorruptDatasetError):
            IncrementalLoader(store).load(io.BytesIO(json.dumps(sample_dataset).encode()))

        assert not store.is_complete
        assert len(store) == 3

    def test_background_load_observations(self, sample_dataset, dataset_bytes):
        gate = threading.Event()
        store = TimeTableStore()
        stream = ChunkedStream(dataset_bytes, piece=11, gate=gate)
        thread = IncrementalLoader(store, chunk_size=11).start(stream)

        observations = []
        while True:
            length, complete = store.stats()
            observations.append((length, complete))
            if len(observations) == 5:
                gate.set()
            if complete:
                break
            store.wait_until_complete(timeout=0.01)
        thread.join(timeout=5)

        total = len(sample_dataset)
        lengths = [length for length, _ in observations]
        assert lengths == sorted(lengths)
        assert all(length <= total for length in lengths)
        assert [complete for _, complete in observations].count(True) == 1
        assert observations[-1] == (total, True)
        assert not observations[0][1]
        assert stream.closed

    def test_background_failure_recorded(self):
        store = TimeTableStore()
        thread = IncrementalLoader(store).start(io.BytesIO(b"[{"))
        thread.join(timeout=5)

        with pytest.raises(CorruptDatasetError):
            store.wait_until_complete(timeout=1)
