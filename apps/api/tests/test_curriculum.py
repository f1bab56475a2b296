"""
Tests for the brahmavihara curriculum
"""
import random
import pytest
from services import curriculum


class TestNodeNavigation:

    def test_next_object_on_same_track(self):
        assert curriculum.get_next_node("metta-self") == "metta-benefactor"
        assert curriculum.get_next_node("karuna-difficult") == "karuna-all"

    def test_end_of_track_moves_to_next_track(self):
        assert curriculum.get_next_node("metta-all") == "karuna-self"
        assert curriculum.get_next_node("mudita-all") == "upekkha-self"

    def test_end_of_path(self):
        assert curriculum.get_next_node("upekkha-all") is None

    def test_walks_every_node_once(self):
        node, seen = "metta-self", []
        while node is not None:
            seen.append(node)
            node = curriculum.get_next_node(node)
        assert len(seen) == len(curriculum.BRAHMAVIHARAS_ORDER) * len(curriculum.OBJECTS_ORDER)
        assert len(set(seen)) == len(seen)

    def test_next_object_stops_at_all(self):
        assert curriculum.next_object("difficult") == "all"
        assert curriculum.next_object("all") is None

    @pytest.mark.parametrize("node", ["metta", "love-self", "metta-stranger", ""])
    def test_unknown_node(self, node):
        with pytest.raises(ValueError):
            curriculum.split_node(node)


def test_format_node():
    assert curriculum.format_node("metta-friend") == "Metta (Loving-kindness) for Dear Friend"
    assert curriculum.format_node("upekkha-all") == "Upekkha (Equanimity) for All Beings"


class TestPractices:

    def test_ids_are_unique(self):
        ids = [p.id for p in curriculum.PRACTICES]
        assert len(ids) == len(set(ids))

    def test_every_practice_sits_on_a_valid_node(self):
        for practice in curriculum.PRACTICES:
            assert curriculum.split_node(practice.node) == (practice.brahmavihara, practice.object)
            assert practice.type in ("formal", "micro")
            assert practice.tradition in curriculum.TRADITIONS
            assert practice.reflection_prompts

    def test_lookup(self):
        practice = curriculum.get_practice("metta-self-theravada-1")
        assert practice.title == "Classical Metta for Self"
        assert practice.duration == 10
        assert curriculum.get_practice("nope") is None

    def test_practices_for_node(self):
        ids = {p.id for p in curriculum.get_practices_for_node("metta-self")}
        assert ids == {"metta-self-theravada-1", "metta-self-micro-1"}
        assert curriculum.get_practices_for_node("upekkha-difficult") == []

    def test_random_practice_stays_on_node(self):
        rng = random.Random(7)
        for _ in range(10):
            assert curriculum.get_random_practice("metta-self", rng).node == "metta-self"

    def test_random_practice_for_empty_node(self):
        assert curriculum.get_random_practice("karuna-self") is None

    def test_random_reflection_prompt_is_one_of_the_practice_prompts(self):
        practice = curriculum.get_practice("metta-friend-theravada-1")
        assert curriculum.random_reflection_prompt(practice, random.Random(1)) in practice.reflection_prompts


def test_aspirations_and_dedications():
    rng = random.Random(3)
    assert curriculum.random_aspiration(rng) in curriculum.ASPIRATIONS
    assert curriculum.random_dedication(rng) in curriculum.DEDICATIONS
    for item in curriculum.ASPIRATIONS + curriculum.DEDICATIONS:
        assert item["id"] and item["text"] and item["source"]
