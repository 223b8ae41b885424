import numpy as np
import pytest

from stridex import SliceConfig, SliceEngine


def test_slice_config_normalization():
    cfg = SliceConfig(backend="NumPy", device="GPU:1", zero_copy=0).normalized()
    assert cfg.backend == "numpy"
    assert cfg.device == "cuda:1"
    assert cfg.zero_copy is False


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"backend": "jax"}, "Unsupported backend"),
        ({"device": "tpu"}, "Unsupported device"),
        ({"max_rank": 0}, "max_rank must be positive"),
    ],
)
def test_slice_config_rejects_invalid_values(kwargs, message):
    with pytest.raises(ValueError, match=message):
        SliceConfig(**kwargs).normalized()


def test_explain_text_lists_paths_and_summary():
    engine = SliceEngine()
    x = np.arange(12, dtype=np.float32).reshape(3, 4)
    engine.slice(x, slice(1, 3))
    engine.slice(x, (slice(None), slice(None, None, -1)))
    text = engine.explain()
    lines = text.splitlines()
    assert lines[0].startswith("[slice] path=contiguous_lead in=(3, 4) out=(2, 4)")
    assert "bytes=64.00" in lines[0]
    assert lines[1].startswith("[slice] path=generic")
    assert lines[-1].startswith("[perf] ")
    assert "ops=2" in lines[-1]


def test_explain_json_payload():
    engine = SliceEngine(SliceConfig(explain_timings=False))
    engine.resolve((4, 5, 6), "2, ..., ::-1")
    payload = engine.explain(json=True)
    entry = payload["logs"][0]
    assert entry["kind"] == "resolve"
    assert entry["op"]["final_shape"] == [5, 6]
    assert entry["op"]["duration_ms"] is None
    assert entry["op"]["elements"] == 30
    assert payload["summary"]["ops"] == 1


def test_explain_is_empty_without_operations():
    engine = SliceEngine()
    assert engine.explain() == ""
    assert engine.explain(json=True)["logs"] == []


def test_package_reports_version():
    import stridex

    assert isinstance(stridex.__version__, str)
    assert stridex.__version__
