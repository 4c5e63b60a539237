from dataclasses import dataclass
from typing import List, Tuple

import numpy as np


@dataclass(frozen=True)
class BBox:
    """
    Candidate detection extracted from one matrix row.

    Geometry is center + extent in integer pixels (rounded from the model
    output); `prob` is the best class score and `class_id` its index.
    """

    prob: float
    class_id: int
    cx: int
    cy: int
    w: int
    h: int

    def as_cxcywh(self) -> Tuple[int, int, int, int]:
        return self.cx, self.cy, self.w, self.h

    def as_list(self) -> List[float]:
        # every element narrowed to float32, class index included
        values = (self.cx, self.cy, self.w, self.h, self.prob, self.class_id)
        return [float(np.float32(v)) for v in values]
