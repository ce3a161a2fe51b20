"""
Page segmentation for the conversion pipeline.

A segmenter turns a rendered page bitmap into the image regions that are
handed to OCR. The default treats the whole page as a single region; a
layout model can replace it by providing the same ``segment`` method.
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class ImageRegion:
    """A rectangular area of a page bitmap treated as one OCR unit."""
    image: np.ndarray
    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height

    def to_xywh(self) -> Tuple[int, int, int, int]:
        return (self.x, self.y, self.width, self.height)

    @classmethod
    def crop(cls, bitmap: np.ndarray, x: int, y: int, w: int, h: int) -> 'ImageRegion':
        """Cut a region out of a page bitmap."""
        return cls(image=bitmap[y:y + h, x:x + w], x=x, y=y, width=w, height=h)


class FullPageSegmenter:
    """Returns the entire page as one region."""

    def segment(self, bitmap: np.ndarray) -> List[ImageRegion]:
        if bitmap is None or bitmap.size == 0:
            return []

        h, w = bitmap.shape[:2]
        return [ImageRegion.crop(bitmap, 0, 0, w, h)]
