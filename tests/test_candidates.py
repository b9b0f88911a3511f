"""
Tests for candidate layer listing and role guessing.
"""

import pytest

from bladeforge.host import LayerKind, LayerRef
from bladeforge.processing.candidates import candidate_layers, guess_role_layer, list_candidates
from bladeforge.processing.presets import DEFAULT_ROLE_KEYWORDS, BLADE, HANDLE


class TestCandidateLayers:

    def test_filters_groups_adjustments_and_empty_layers(self):
        layers = [
            LayerRef(1, "Lâmina"),
            LayerRef(2, "Grupo", LayerKind.GROUP, is_group=True),
            LayerRef(3, "Curves 1", LayerKind.ADJUSTMENT, has_bounds=False),
            LayerRef(4, "Vazia", has_bounds=False),
            LayerRef(5, "Logo", LayerKind.SMART_OBJECT),
        ]
        assert [layer.id for layer in candidate_layers(layers)] == [1, 5]

    @pytest.mark.asyncio
    async def test_top_level_without_selection(self, artboard_document):
        candidates = await list_candidates(artboard_document)
        assert [layer.id for layer in candidates] == [1]

    @pytest.mark.asyncio
    async def test_scoped_to_selected_artboard(self, artboard_document):
        await artboard_document.select_layers([2])
        candidates = await list_candidates(artboard_document)
        assert [layer.id for layer in candidates] == [5, 4]

    @pytest.mark.asyncio
    async def test_multiple_selection_is_not_scoped(self, artboard_document):
        await artboard_document.select_layers([2, 1])
        candidates = await list_candidates(artboard_document)
        assert [layer.id for layer in candidates] == [1]


class TestGuessRoleLayer:

    def test_keyword_match_is_case_insensitive(self):
        candidates = [LayerRef(4, "Cabo de Madeira"), LayerRef(5, "LAMINA inox")]
        assert guess_role_layer(candidates, DEFAULT_ROLE_KEYWORDS[BLADE]).id == 5
        assert guess_role_layer(candidates, DEFAULT_ROLE_KEYWORDS[HANDLE]).id == 4

    def test_first_match_wins(self):
        candidates = [LayerRef(1, "blade top"), LayerRef(2, "blade bottom")]
        assert guess_role_layer(candidates, ["blade"]).id == 1

    def test_no_match(self):
        assert guess_role_layer([LayerRef(1, "Fundo")], ["blade"]) is None
        assert guess_role_layer([], ["blade"]) is None
