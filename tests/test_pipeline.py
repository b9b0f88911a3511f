"""
Tests for role bindings and the pipeline runner.
"""

import pytest

from bladeforge.errors import ConstructCreationFailed, InputInvalid
from bladeforge.host import LayerKind, LayerRef
from bladeforge.processing import PipelineRunner, RoleBinding
from bladeforge.processing.adjustments import AdjustmentApplier, AdjustmentKind
from bladeforge.processing.pipeline import ordered_roles
from bladeforge.processing.presets import BLADE, HANDLE, KNIFE_PIPELINES


BLADE_REF = LayerRef(12, "Lâmina")
HANDLE_REF = LayerRef(7, "Cabo")


class RecordingApplier:
    """Applier stand-in that records calls and can fail on a given call."""

    def __init__(self, fail_at=None):
        self.calls = []
        self.fail_at = fail_at
        self._next_id = 100

    async def apply(self, descriptor, target, current_top=None):
        current_top = current_top or target
        self.calls.append((descriptor.kind, target.id, current_top.id))
        if len(self.calls) == self.fail_at:
            raise ConstructCreationFailed(f"could not apply {descriptor.kind.value}")
        if descriptor.is_filter:
            return current_top
        self._next_id += 1
        return LayerRef(self._next_id, f"Adjustment {self._next_id}",
                        LayerKind.ADJUSTMENT, has_bounds=False)


class TestRoleBinding:

    def test_mapping_behaviour(self):
        binding = RoleBinding({BLADE: BLADE_REF, HANDLE: HANDLE_REF})
        assert binding[BLADE] == BLADE_REF
        assert len(binding) == 2
        assert set(binding) == {BLADE, HANDLE}
        assert binding.missing([BLADE, HANDLE, "tip"]) == ["tip"]

    def test_same_layer_for_two_roles(self):
        with pytest.raises(InputInvalid):
            RoleBinding({BLADE: BLADE_REF, HANDLE: LayerRef(12, "Lâmina")})

    def test_ordered_roles(self):
        assert ordered_roles(["zeta", HANDLE, "alpha", BLADE]) == [BLADE, HANDLE, "alpha", "zeta"]


class TestPipelineRunner:
    """Test the per-role loop with a recording applier."""

    @pytest.mark.asyncio
    async def test_threads_stack_top(self):
        applier = RecordingApplier()
        runner = PipelineRunner(applier)
        binding = RoleBinding({HANDLE: HANDLE_REF, BLADE: BLADE_REF})

        created = await runner.run(binding, KNIFE_PIPELINES)

        assert applier.calls == [
            (AdjustmentKind.DESATURATE, 12, 12),
            (AdjustmentKind.CURVE_MAP, 12, 101),
            (AdjustmentKind.BRIGHTNESS_CONTRAST, 12, 102),
            (AdjustmentKind.NOISE_REDUCTION, 12, 103),
            (AdjustmentKind.SHARPEN, 12, 103),
            (AdjustmentKind.CURVE_MAP, 7, 7),
            (AdjustmentKind.CHANNEL_SATURATION, 7, 104),
        ]
        assert [layer.id for layer in created[BLADE]] == [101, 102, 103]
        assert [layer.id for layer in created[HANDLE]] == [104, 105]
        assert list(created) == [BLADE, HANDLE]

    @pytest.mark.asyncio
    async def test_failure_stops_all_further_work(self):
        applier = RecordingApplier(fail_at=3)
        runner = PipelineRunner(applier)
        binding = RoleBinding({BLADE: BLADE_REF, HANDLE: HANDLE_REF})

        with pytest.raises(ConstructCreationFailed):
            await runner.run(binding, KNIFE_PIPELINES)

        assert len(applier.calls) == 3
        assert all(target == 12 for _, target, _ in applier.calls)

    @pytest.mark.asyncio
    async def test_missing_role(self):
        applier = RecordingApplier()
        runner = PipelineRunner(applier)

        with pytest.raises(InputInvalid):
            await runner.run(RoleBinding({BLADE: BLADE_REF}), KNIFE_PIPELINES)
        assert applier.calls == []

    @pytest.mark.asyncio
    async def test_empty_pipeline(self):
        runner = PipelineRunner(RecordingApplier())
        created = await runner.run(RoleBinding({BLADE: BLADE_REF}), {BLADE: ()})
        assert created == {BLADE: []}


class TestPipelineOnDocument:
    """Run the knife pipelines with the real applier."""

    @pytest.mark.asyncio
    async def test_stacks_per_role(self, knife_document):
        runner = PipelineRunner(AdjustmentApplier(knife_document))
        binding = RoleBinding({
            BLADE: knife_document.find(12).to_ref(),
            HANDLE: knife_document.find(7).to_ref(),
        })

        created = await runner.run(binding, KNIFE_PIPELINES)

        blade_stack = knife_document.stack_above(12)
        handle_stack = knife_document.stack_above(7)
        assert [layer.id for layer in blade_stack] == [layer.id for layer in created[BLADE]]
        assert [layer.id for layer in handle_stack] == [layer.id for layer in created[HANDLE]]

        assert [layer.adjustment['type'] for layer in blade_stack] == [
            'hueSaturation', 'curves', 'brightnessContrast'
        ]
        assert blade_stack[1].adjustment['points'] == [[71, 64], [137, 153]]
        assert [layer.adjustment['type'] for layer in handle_stack] == ['curves', 'hueSaturation']
        assert handle_stack[0].adjustment['points'] == [[75, 58], [135, 123]]
        assert handle_stack[1].adjustment['channel'] == 'blues'

        assert [f['name'] for f in knife_document.find(12).filters] == [
            'dustAndScratches', 'unsharpMask'
        ]
        assert knife_document.find(7).filters == []
