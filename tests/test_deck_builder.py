"""Tests for deck builder service."""

import random
from collections import Counter

import pytest

from memorymatch.models.card import CardDefinition, VariantKind
from memorymatch.models.failure import FailureKind, InsufficientCatalogError
from memorymatch.services.deck_builder import (
    build_deck,
    fisher_yates_shuffle,
    select_definitions,
    unique_definitions,
)


class TestFisherYatesShuffle:
    def test_returns_permutation(self) -> None:
        items = list(range(20))
        shuffled = fisher_yates_shuffle(items, random.Random(7))

        assert sorted(shuffled) == items

    def test_does_not_mutate_input(self) -> None:
        items = [1, 2, 3, 4]
        fisher_yates_shuffle(items, random.Random(7))

        assert items == [1, 2, 3, 4]

    def test_handles_empty_and_single(self) -> None:
        assert fisher_yates_shuffle([], random.Random(1)) == []
        assert fisher_yates_shuffle(["a"], random.Random(1)) == ["a"]

    def test_deterministic_for_seed(self) -> None:
        items = list(range(10))
        assert fisher_yates_shuffle(items, random.Random(42)) == fisher_yates_shuffle(
            items, random.Random(42)
        )

    def test_every_permutation_of_three_is_roughly_equally_likely(self) -> None:
        """No ordering is favored (a random-comparator sort fails this)."""
        rng = random.Random(2024)
        trials = 60_000
        counts = Counter(tuple(fisher_yates_shuffle("abc", rng)) for _ in range(trials))

        assert len(counts) == 6
        expected = trials / 6
        for count in counts.values():
            assert abs(count - expected) < expected * 0.05

    def test_first_position_uniform(self) -> None:
        """Each element lands first about equally often."""
        rng = random.Random(99)
        items = list(range(8))
        trials = 40_000
        firsts = Counter(fisher_yates_shuffle(items, rng)[0] for _ in range(trials))

        expected = trials / len(items)
        for item in items:
            assert abs(firsts[item] - expected) < expected * 0.08


class TestSelectDefinitions:
    def test_selects_without_replacement(self, make_catalog) -> None:
        catalog = make_catalog(8)
        selected = select_definitions(catalog, 6, random.Random(3))

        assert len(selected) == 6
        assert len({d.identity for d in selected}) == 6

    def test_does_not_favor_insertion_order(self, make_catalog) -> None:
        """Cards at the end of the catalog are picked as often as the first."""
        catalog = make_catalog(8)
        rng = random.Random(5)
        trials = 8_000
        picks = Counter(
            d.identity for _ in range(trials) for d in select_definitions(catalog, 6, rng)
        )

        expected = trials * 6 / 8
        for definition in catalog:
            assert abs(picks[definition.identity] - expected) < expected * 0.05


class TestUniqueDefinitions:
    def test_keeps_first_occurrence(self) -> None:
        catalog = [
            CardDefinition("Gato", "new.png", 20),
            CardDefinition("Gato", "old.png", 10),
            CardDefinition("Leão", "leao.png"),
        ]

        unique = unique_definitions(catalog)

        assert [d.identity for d in unique] == ["Gato", "Leão"]
        assert unique[0].image_reference == "new.png"


class TestBuildDeck:
    def test_deck_has_twelve_pieces(self, catalog) -> None:
        deck = build_deck(catalog, random.Random(1))
        assert len(deck) == 12

    def test_six_identities_each_with_image_and_text(self, catalog) -> None:
        """Every dealt identity appears exactly once as IMAGE and once as TEXT."""
        for seed in range(50):
            deck = build_deck(catalog, random.Random(seed))
            by_identity: dict[str, list[VariantKind]] = {}
            for piece in deck:
                by_identity.setdefault(piece.identity, []).append(piece.variant)

            assert len(by_identity) == 6
            for variants in by_identity.values():
                assert sorted(variants) == [VariantKind.IMAGE, VariantKind.TEXT]

    def test_instance_ids_match_positions(self, catalog) -> None:
        deck = build_deck(catalog, random.Random(8))
        assert [piece.instance_id for piece in deck] == list(range(12))

    def test_pieces_start_face_down(self, catalog) -> None:
        deck = build_deck(catalog, random.Random(8))
        assert not any(p.is_face_up or p.is_resolved or p.is_highlighted for p in deck)

    def test_pieces_carry_definition_data(self, catalog) -> None:
        by_identity = {d.identity: d for d in catalog}
        deck = build_deck(catalog, random.Random(11))

        for piece in deck:
            definition = by_identity[piece.identity]
            assert piece.point_value == definition.point_value
            assert piece.image_reference == definition.image_reference

    def test_exactly_six_cards_uses_all(self, make_catalog) -> None:
        catalog = make_catalog(6)
        deck = build_deck(catalog, random.Random(0))

        assert {p.identity for p in deck} == {d.identity for d in catalog}

    @pytest.mark.parametrize("size", [0, 1, 5])
    def test_small_catalog_fails(self, make_catalog, size: int) -> None:
        with pytest.raises(InsufficientCatalogError) as exc_info:
            build_deck(make_catalog(size), random.Random(0))

        error = exc_info.value
        assert error.kind == FailureKind.INSUFFICIENT_CATALOG
        assert error.required == 6
        assert error.available == size

    @pytest.mark.parametrize("size", [6, 7, 20])
    def test_large_enough_catalog_succeeds(self, make_catalog, size: int) -> None:
        assert len(build_deck(make_catalog(size), random.Random(0))) == 12

    def test_duplicate_identities_do_not_count(self) -> None:
        """Six records but only five identities is not enough."""
        catalog = [CardDefinition(f"Card {i % 5}", f"{i}.png") for i in range(6)]

        with pytest.raises(InsufficientCatalogError):
            build_deck(catalog, random.Random(0))

    def test_custom_pair_count(self, make_catalog) -> None:
        deck = build_deck(make_catalog(8), random.Random(0), pairs=2)
        assert len(deck) == 4

    def test_deal_varies_between_games(self, catalog) -> None:
        rng = random.Random(17)
        layouts = {
            tuple((p.identity, p.variant) for p in build_deck(catalog, rng)) for _ in range(10)
        }
        assert len(layouts) > 1
