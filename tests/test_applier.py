"""
Tests for the adjustment applier against the in-memory host.
"""

import pytest

from bladeforge.errors import ConstructCreationFailed, ErrorKind, TargetInvalid
from bladeforge.host import InMemoryDocument, LayerKind, LayerRef
from bladeforge.processing.adjustments import AdjustmentApplier, AdjustmentDescriptor


@pytest.fixture
def applier(knife_document):
    return AdjustmentApplier(knife_document)


@pytest.fixture
def blade(knife_document):
    return knife_document.find(12).to_ref()


class TestAdjustmentLayers:
    """Adjustment kinds become clipped layers above the current top."""

    @pytest.mark.asyncio
    async def test_first_adjustment_clips_to_target(self, applier, knife_document, blade):
        construct = await applier.apply(AdjustmentDescriptor.desaturate(-100), blade)

        assert construct.kind == LayerKind.ADJUSTMENT
        assert [layer.id for layer in knife_document.stack_above(12)] == [construct.id]
        settings = knife_document.find(construct.id).adjustment
        assert settings['type'] == 'hueSaturation'
        assert settings['channel'] == 'master'
        assert settings['saturation'] == -100

    @pytest.mark.asyncio
    async def test_chained_adjustments_stack_in_order(self, applier, knife_document, blade):
        first = await applier.apply(AdjustmentDescriptor.curve_map([(137, 153), (71, 64)]), blade)
        second = await applier.apply(AdjustmentDescriptor.brightness_contrast(8, 2), blade, first)

        stack = knife_document.stack_above(12)
        assert [layer.id for layer in stack] == [first.id, second.id]
        assert stack[1].adjustment == {'type': 'brightnessContrast', 'brightness': 8, 'contrast': 2}

    @pytest.mark.asyncio
    async def test_channel_saturation(self, applier, knife_document):
        handle = knife_document.find(7).to_ref()
        construct = await applier.apply(
            AdjustmentDescriptor.channel_saturation("blues", -100), handle
        )
        settings = knife_document.find(construct.id).adjustment
        assert settings['channel'] == 'blues'
        assert knife_document.clipping_base(construct.id).id == 7

    @pytest.mark.asyncio
    async def test_other_layers_untouched(self, applier, knife_document, blade):
        await applier.apply(AdjustmentDescriptor.desaturate(-100), blade)
        assert knife_document.stack_above(7) == []
        assert knife_document.find(7).filters == []


class TestFilters:
    """Filter kinds run on the target and leave the stack top unchanged."""

    @pytest.mark.asyncio
    async def test_filter_returns_current_top(self, applier, knife_document, blade):
        top = await applier.apply(AdjustmentDescriptor.desaturate(-100), blade)
        result = await applier.apply(AdjustmentDescriptor.noise_reduction(1, 10), blade, top)

        assert result == top
        assert knife_document.find(12).filters == [
            {'name': 'dustAndScratches', 'parameters': {'radius': 1, 'threshold': 10}}
        ]
        assert knife_document.find(top.id).filters == []

    @pytest.mark.asyncio
    async def test_filter_without_constructs_returns_target(self, applier, knife_document, blade):
        result = await applier.apply(AdjustmentDescriptor.sharpen(100, 1.0, 5), blade)
        assert result == blade
        assert knife_document.find(12).filters[0]['parameters'] == {
            'amount': 100, 'radius': 1.0, 'threshold': 5
        }

    @pytest.mark.asyncio
    async def test_filter_failure(self, knife_document):
        knife_document.fail_on.add('apply_filter')
        applier = AdjustmentApplier(knife_document)
        with pytest.raises(ConstructCreationFailed):
            await applier.apply(AdjustmentDescriptor.sharpen(), knife_document.find(12).to_ref())


class TestFailures:

    @pytest.mark.asyncio
    async def test_missing_target(self, applier, knife_document):
        ghost = LayerRef(99, "Fantasma")
        with pytest.raises(TargetInvalid) as exc_info:
            await applier.apply(AdjustmentDescriptor.desaturate(), ghost)
        assert exc_info.value.kind == ErrorKind.TARGET_INVALID
        assert knife_document.mutation_count == 0

    @pytest.mark.asyncio
    async def test_missing_current_top(self, applier, knife_document, blade):
        with pytest.raises(TargetInvalid):
            await applier.apply(AdjustmentDescriptor.desaturate(), blade, LayerRef(99, "Curves 9"))
        assert knife_document.mutation_count == 0

    @pytest.mark.asyncio
    async def test_creation_failure(self):
        doc = InMemoryDocument(fail_on={'create_curves_layer'})
        doc.add_layer("Fundo")
        target = doc.add_layer("Lâmina").to_ref()

        with pytest.raises(ConstructCreationFailed) as exc_info:
            await AdjustmentApplier(doc).apply(
                AdjustmentDescriptor.curve_map([(0, 0), (255, 255)]), target
            )
        assert "Lâmina" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_clip_failure(self):
        doc = InMemoryDocument(fail_on={'set_clipped'})
        doc.add_layer("Fundo")
        target = doc.add_layer("Lâmina").to_ref()

        with pytest.raises(ConstructCreationFailed):
            await AdjustmentApplier(doc).apply(AdjustmentDescriptor.desaturate(), target)
