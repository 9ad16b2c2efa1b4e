"""Row-major shape and stride helpers.

The last axis moves fastest: ``stride[-1] == 1`` and
``stride[i] == stride[i + 1] * shape[i + 1]``.
"""

from __future__ import annotations

from typing import Sequence, Tuple


def strides(shape: Sequence[int]) -> Tuple[int, ...]:
    if len(shape) == 0:
        return ()
    out = [1] * len(shape)
    for d in range(len(shape) - 2, -1, -1):
        out[d] = out[d + 1] * int(shape[d + 1])
    return tuple(out)


def num_elements(shape: Sequence[int]) -> int:
    if len(shape) == 0:
        return 0
    st = strides(shape)
    return st[0] * int(shape[0])


def flat_index(pos: Sequence[int], stride: Sequence[int]) -> int:
    idx = 0
    for p, s in zip(pos, stride):
        idx += int(p) * s
    return idx


def shape_string(shape: Sequence[int]) -> str:
    return "(" + ",".join(str(int(n)) for n in shape) + ")"
