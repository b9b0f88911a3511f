"""
Shared fixtures for BladeForge tests.
"""

import numpy as np
import pytest

from bladeforge.host import InMemoryDocument, InMemoryHistory, LayerKind


def make_blade_pixels(size: int = 16) -> np.ndarray:
    """Horizontal gradient with a single bright speck in the middle."""
    image = np.zeros((size, size, 3), dtype=np.float32)
    for x in range(size):
        image[:, x, :] = 0.2 + 0.5 * x / size
    image[size // 2, size // 2, :] = 1.0
    return image


@pytest.fixture
def blade_pixels():
    return make_blade_pixels()


@pytest.fixture
def knife_document():
    """Document with a background, a blade (id 12) and a handle (id 7)."""
    doc = InMemoryDocument(document_id=1, name="faca.psd")
    doc.add_layer("Fundo", layer_id=1)
    doc.add_layer("Lâmina", layer_id=12, pixels=make_blade_pixels())
    doc.add_layer("Cabo", layer_id=7)
    return doc


@pytest.fixture
def knife_history(knife_document):
    return InMemoryHistory(knife_document)


@pytest.fixture
def artboard_document():
    """Document whose knife layers live inside an artboard."""
    doc = InMemoryDocument(document_id=2, name="catalogo.psd")
    doc.add_layer("Fundo", layer_id=1)
    doc.add_layer("Artboard 1", kind=LayerKind.GROUP, layer_id=2, is_artboard=True)
    doc.add_layer("Sombra antiga", layer_id=3, parent_id=2, has_bounds=False)
    doc.add_layer("Cabo de madeira", layer_id=4, parent_id=2)
    doc.add_layer("Lamina inox", layer_id=5, parent_id=2)
    doc.add_layer("Curves 1", kind=LayerKind.ADJUSTMENT, layer_id=6, parent_id=2,
                  has_bounds=False, adjustment={'type': 'curves', 'points': [[0, 0], [255, 255]]})
    return doc
