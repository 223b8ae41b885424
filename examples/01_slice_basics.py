"""Extract, differentiate and assign through one strided slice."""

import numpy as np

from stridex import RawSpec, SliceEngine

engine = SliceEngine()
x = np.arange(4 * 5 * 6, dtype=np.float32).reshape(4, 5, 6)

# x[1:3, ..., ::-2] written in bitmask form.
spec = RawSpec(
    begin=(1, 0, 0),
    end=(3, 0, 0),
    strides=(1, 1, -2),
    ellipsis_mask=0b010,
    end_mask=0b100,
    begin_mask=0b100,
)
resolved = engine.resolve(x.shape, spec)
print("processing shape:", resolved.processing_shape)
print("final shape:     ", resolved.final_shape)

y = engine.slice(x, spec)
grad = engine.grad(x.shape, spec, np.ones_like(y))
print("gradient mass:", grad.sum(), "==", y.size)

engine.assign(x, "1:3, ..., ::-2", np.zeros_like(y))
print("assigned region cleared:", not engine.slice(x, spec).any())

print(engine.explain())
