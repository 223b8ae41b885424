import pytest

from stridex import InvalidArgumentError, RawSpec, resolve_spec
from stridex.core.resolver import ResolvedAxis


def test_negative_begin_positive_step_wraps_to_last_element():
    resolved = resolve_spec((5,), RawSpec(begin=(-1,), end=(5,), strides=(1,)))
    assert resolved.axes[0].start == 4
    assert resolved.processing_shape == (1,)


def test_negative_begin_negative_step_starts_reverse_walk_at_last_element():
    spec = RawSpec(begin=(-1,), end=(0,), strides=(-1,), end_mask=1)
    resolved = resolve_spec((5,), spec)
    assert resolved.axes[0] == ResolvedAxis(4, -1, -1)
    assert resolved.processing_shape == (5,)


def test_ellipsis_spans_remaining_axes():
    spec = RawSpec(
        begin=(1, 0, 2),
        end=(2, 0, 3),
        strides=(1, 1, 1),
        ellipsis_mask=0b010,
        shrink_axis_mask=0b101,
    )
    resolved = resolve_spec((2, 3, 4, 5), spec)
    explicit = resolve_spec((2, 3, 4, 5), (1, slice(None), slice(None), 2))
    assert resolved.axes == explicit.axes
    assert resolved.processing_shape == (1, 3, 4, 1)
    assert resolved.final_shape == (3, 4)
    assert resolved.final_shape == explicit.final_shape


def test_shrink_axis_removed_from_final_shape():
    spec = RawSpec(begin=(2, 0, 0), end=(3, 5, 6), strides=(1, 1, 1), shrink_axis_mask=1)
    resolved = resolve_spec((4, 5, 6), spec)
    assert resolved.processing_shape == (1, 5, 6)
    assert resolved.final_shape == (5, 6)
    assert resolved.shrunk == (True, False, False)


def test_negative_shrink_index_wraps():
    resolved = resolve_spec((4, 5), (-1,))
    assert resolved.axes[0] == ResolvedAxis(3, 4, 1)
    assert resolved.final_shape == (5,)


def test_new_axes_inserted_without_consuming_input():
    resolved = resolve_spec((3, 4), (None, slice(None), None, 1))
    assert resolved.processing_shape == (3, 1)
    assert resolved.final_shape == (1, 3, 1)


def test_new_axis_after_ellipsis():
    resolved = resolve_spec((2, 3, 4), (0, Ellipsis, None, 1))
    assert resolved.final_shape == (3, 1)


def test_bounds_are_clamped_into_axis():
    forward = resolve_spec((5,), slice(-10, 10))
    assert forward.axes[0] == ResolvedAxis(0, 5, 1)
    backward = resolve_spec((5,), slice(10, -10, -1))
    assert backward.axes[0] == ResolvedAxis(4, -1, -1)
    assert backward.processing_shape == (5,)


@pytest.mark.parametrize(
    "key, expected",
    [
        (slice(1, 8, 3), 3),
        (slice(8, 1, -3), 3),
        (slice(5, 2), 0),
        (slice(2, 5, -1), 0),
        (slice(None, None, 4), 3),
    ],
)
def test_processing_size_matches_python_range(key, expected):
    resolved = resolve_spec((10,), key)
    assert resolved.processing_shape == (expected,)
    assert resolved.processing_shape[0] == len(range(10)[key])


def test_layout_flags():
    assert resolve_spec((3, 4), RawSpec()).is_identity
    lead = resolve_spec((3, 4), slice(1, 3))
    assert lead.slice_dim0 and not lead.is_identity and lead.is_simple_slice
    inner = resolve_spec((3, 4), (slice(None), slice(1, 3)))
    assert not inner.slice_dim0 and inner.is_simple_slice
    strided = resolve_spec((3, 4), slice(None, None, 2))
    assert not strided.is_simple_slice


def test_empty_spec_on_scalar_shape():
    resolved = resolve_spec((), RawSpec())
    assert resolved.processing_shape == ()
    assert resolved.final_shape == ()
    assert resolved.is_identity


def test_textual_spec_resolves():
    resolved = resolve_spec((4, 5, 6), "2, ..., ::-1")
    assert resolved.final_shape == (5, 6)
    assert resolved.axes[2] == ResolvedAxis(5, -1, -1)


def test_zero_stride_rejected():
    with pytest.raises(InvalidArgumentError, match=r"strides\[0\] must be non-zero"):
        resolve_spec((4,), RawSpec(begin=(0,), end=(4,), strides=(0,)))


def test_multiple_ellipses_rejected():
    spec = RawSpec(begin=(0, 0), end=(0, 0), strides=(1, 1), ellipsis_mask=0b11)
    with pytest.raises(InvalidArgumentError, match="Multiple ellipses"):
        resolve_spec((2, 3), spec)


def test_length_mismatch_rejected():
    with pytest.raises(InvalidArgumentError, match="equal size"):
        resolve_spec((2, 3), RawSpec(begin=(0, 0), end=(1,), strides=(1, 1)))


def test_too_many_indices_rejected():
    with pytest.raises(InvalidArgumentError, match="Index out of range using input dim 1"):
        resolve_spec((3,), (0, 1))


@pytest.mark.parametrize("index", [3, -4])
def test_shrink_out_of_bounds_rejected(index):
    with pytest.raises(InvalidArgumentError, match="of dimension 0 out of bounds"):
        resolve_spec((3,), index)


def test_negative_shape_rejected():
    with pytest.raises(InvalidArgumentError, match="non-negative"):
        resolve_spec((3, -1), RawSpec())


def test_to_dict_is_plain_data():
    payload = resolve_spec((4, 5), (1, slice(None, None, -2))).to_dict()
    assert payload["final_shape"] == [3]
    assert payload["axes"] == [[1, 2, 1], [4, -1, -2]]


def test_decoded_variants_resolve_like_their_bitmasks():
    spec = RawSpec(
        begin=(1, 0, -1, 0),
        end=(3, 0, 0, 0),
        strides=(1, 1, -2, 1),
        begin_mask=0b0100,
        end_mask=0b0100,
        ellipsis_mask=0b0010,
        new_axis_mask=0b1000,
    )
    rebuilt = RawSpec.from_axes(spec.axes())
    assert resolve_spec((4, 5, 6), rebuilt) == resolve_spec((4, 5, 6), spec)


def test_shrink_ignores_begin_mask_and_stride_sign():
    spec = RawSpec(begin=(2,), end=(0,), strides=(-1,), begin_mask=1, shrink_axis_mask=1)
    resolved = resolve_spec((4, 3), spec)
    assert resolved.axes[0] == ResolvedAxis(2, 3, 1)
    assert resolved.final_shape == (3,)


def test_zero_stride_on_shrink_axis_rejected():
    spec = RawSpec(begin=(1,), end=(2,), strides=(0,), shrink_axis_mask=1)
    with pytest.raises(InvalidArgumentError, match=r"strides\[0\] must be non-zero"):
        resolve_spec((3,), spec)
