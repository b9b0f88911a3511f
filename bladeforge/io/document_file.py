"""
Document files for BladeForge
Loads and saves in-memory documents as YAML (or JSON) layer descriptions
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union
import logging

import numpy as np
import yaml
from PIL import Image

from ..host.memory import InMemoryDocument, MemoryLayer
from ..host.models import LayerKind

logger = logging.getLogger(__name__)


class DocumentFileError(Exception):
    """Raised when a document file cannot be read or written."""
    pass


def load_image(path: Path) -> np.ndarray:
    """Load an image as a float32 RGB array in [0, 1]"""
    with Image.open(path) as image:
        rgb = image.convert('RGB')
        return np.asarray(rgb, dtype=np.float32) / 255.0


def save_image(pixels: np.ndarray, path: Path) -> None:
    """Save a float RGB array in [0, 1] as an 8-bit image"""
    data = (np.clip(pixels, 0, 1) * 255).round().astype(np.uint8)
    Image.fromarray(data).save(path)


def _parse_layer(data: Dict[str, Any], base_dir: Path) -> MemoryLayer:
    try:
        kind = LayerKind(data.get('kind', 'pixel'))
        layer = MemoryLayer(
            id=int(data['id']),
            name=str(data.get('name', f"Layer {data['id']}")),
            kind=kind,
            has_bounds=bool(data.get('has_bounds', kind != LayerKind.ADJUSTMENT)),
            visible=bool(data.get('visible', True)),
            clipped=bool(data.get('clipped', False)),
            is_artboard=bool(data.get('artboard', False)),
            adjustment=data.get('adjustment'),
            effects=dict(data.get('effects') or {}),
            filters=list(data.get('filters') or []),
            children=[_parse_layer(child, base_dir) for child in data.get('children') or []],
            image_path=data.get('image'),
        )
    except (KeyError, ValueError, TypeError) as e:
        raise DocumentFileError(f"Invalid layer entry {data!r}: {e}") from e

    if layer.image_path:
        image_file = base_dir / layer.image_path
        if not image_file.exists():
            raise DocumentFileError(f"Image for layer {layer.id} not found: {image_file}")
        layer.pixels = load_image(image_file)
        layer.image_path = str(image_file.resolve())

    return layer


def load_document(path: Union[str, Path]) -> InMemoryDocument:
    """
    Load a document description

    Args:
        path: YAML or JSON file describing the document

    Returns:
        InMemoryDocument with its layers, pixels and selection
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix.lower() == '.json':
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise DocumentFileError(f"Could not read document {path}: {e}") from e

    if not isinstance(data, dict) or 'layers' not in data:
        raise DocumentFileError(f"Document {path} has no 'layers' list")

    info = data.get('document') or {}
    document = InMemoryDocument(
        document_id=int(info.get('id', 1)),
        name=str(info.get('name', path.stem)),
    )
    layers = [_parse_layer(entry, path.parent) for entry in data['layers']]
    try:
        document.replace_layers(layers, data.get('selection') or [])
    except ValueError as e:
        raise DocumentFileError(f"Invalid document {path}: {e}") from e

    logger.info(f"Loaded document '{document.name}' with {len(layers)} top-level layers from {path}")
    return document


def _dump_layer(layer: MemoryLayer, image_dir: Path, stem: str,
                save_images: bool) -> Dict[str, Any]:
    entry: Dict[str, Any] = {
        'id': layer.id,
        'name': layer.name,
        'kind': layer.kind.value,
    }
    if not layer.has_bounds and layer.kind not in (LayerKind.ADJUSTMENT, LayerKind.GROUP):
        entry['has_bounds'] = False
    if not layer.visible:
        entry['visible'] = False
    if layer.clipped:
        entry['clipped'] = True
    if layer.is_artboard:
        entry['artboard'] = True
    if layer.adjustment:
        entry['adjustment'] = layer.adjustment
    if layer.effects:
        entry['effects'] = layer.effects
    if layer.filters:
        entry['filters'] = layer.filters

    if layer.pixels is not None and layer.filters and save_images:
        image_name = f"{stem}_layer{layer.id}.png"
        save_image(layer.pixels, image_dir / image_name)
        entry['image'] = image_name
    elif layer.image_path:
        entry['image'] = layer.image_path

    if layer.children:
        entry['children'] = [
            _dump_layer(child, image_dir, stem, save_images) for child in layer.children
        ]
    return entry


def document_to_dict(document: InMemoryDocument, image_dir: Optional[Path] = None,
                     stem: str = "document", save_images: bool = False) -> Dict[str, Any]:
    """Describe a document as plain data"""
    image_dir = image_dir or Path('.')
    return {
        'document': {'id': document.id, 'name': document.name},
        'selection': list(document.selection),
        'layers': [
            _dump_layer(layer, image_dir, stem, save_images) for layer in document.layers
        ],
    }


def save_document(document: InMemoryDocument, path: Union[str, Path],
                  save_images: bool = True) -> Path:
    """
    Save a document description

    Filtered layer pixels are written as PNG files next to the description.

    Args:
        document: Document to save
        path: Output YAML or JSON file
        save_images: Write filtered layer images

    Returns:
        The written path
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = document_to_dict(document, path.parent, path.stem, save_images)

    try:
        with open(path, 'w', encoding='utf-8') as f:
            if path.suffix.lower() == '.json':
                json.dump(data, f, indent=2, ensure_ascii=False)
            else:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False,
                               allow_unicode=True)
    except OSError as e:
        raise DocumentFileError(f"Could not write document {path}: {e}") from e

    logger.info(f"Saved document '{document.name}' to {path}")
    return path
