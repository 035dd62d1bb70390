from __future__ import annotations

import numpy as np
import pytest

from scopeanalyzer.core.waveform import (
    SignalMetadata,
    Waveform,
    add_math_channel,
    next_math_channel_name,
)


@pytest.fixture
def waveform() -> Waveform:
    return Waveform.from_columns([0.0, 0.1, 0.2, 0.3],
                                 {"ch0": [1.0, 2.0, 3.0, 4.0], "ch1": [0.0, -1.0, 0.0, 1.0]})


def test_row_access(waveform) -> None:
    sample = waveform[1]
    assert sample.time == 0.1
    assert sample.values == {"ch0": 2.0, "ch1": -1.0}
    assert sample.get("ch9") == 0.0
    assert [s.time for s in waveform] == [0.0, 0.1, 0.2, 0.3]


def test_mismatched_column_rejected() -> None:
    with pytest.raises(ValueError):
        Waveform.from_columns([0.0, 1.0], {"ch0": [1.0]})


def test_undefined_channel_reads_as_zero(waveform) -> None:
    np.testing.assert_array_equal(waveform.column("nope"), np.zeros(4))


def test_slice_is_a_copy(waveform) -> None:
    part = waveform.slice(1, 3)
    assert len(part) == 2
    assert part.column("ch0").tolist() == [2.0, 3.0]
    assert not np.shares_memory(part.column("ch0"), waveform.column("ch0"))


def test_arrays_are_read_only(waveform) -> None:
    with pytest.raises(ValueError):
        waveform.column("ch0")[0] = 99.0
    with pytest.raises(ValueError):
        waveform.times[0] = 1.0
    assert waveform.column("ch0")[0] == 1.0


def test_source_sequences_stay_writable() -> None:
    values = np.array([1.0, 2.0])
    wf = Waveform.from_columns([0.0, 1.0], {"ch0": values})
    values[0] = 5.0
    assert wf.column("ch0")[0] == 1.0


@pytest.mark.parametrize("start, end, expected", [
    (0.1, 0.2, (1, 2)),
    (0.05, 0.25, (1, 3)),
    (-5.0, 5.0, (0, 3)),
    (0.2, 0.1, None),
    (0.11, 0.19, None),
])
def test_index_range(waveform, start, end, expected) -> None:
    assert waveform.index_range(start, end) == expected


def test_empty_waveform() -> None:
    wf = Waveform.empty(["ch0"])
    assert len(wf) == 0
    assert wf.channels == ["ch0"]
    assert wf.index_range(0.0, 1.0) is None


def test_math_channel_naming() -> None:
    assert next_math_channel_name(["ch0"]) == "Math1"
    assert next_math_channel_name(["ch0", "Math1", "Math2"]) == "Math3"


def test_add_math_channel(waveform) -> None:
    metadata = SignalMetadata(sampling_rate_hz=10.0, y_unit="V",
                              channels=("ch0", "ch1"), points=4)
    wf, meta = add_math_channel(waveform, metadata, "ch1", 2.5, unit=" A ")

    np.testing.assert_array_equal(wf.column("Math1"), [0.0, -2.5, 0.0, 2.5])
    assert meta.channels == ("ch0", "ch1", "Math1")
    assert meta.unit_for("Math1") == "A"
    assert meta.unit_for("ch0") == "V"
    assert waveform.channels == ["ch0", "ch1"]
    assert metadata.channels == ("ch0", "ch1")
