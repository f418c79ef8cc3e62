"""Tests for cosine similarity, ranking, and the prompt builder."""

from __future__ import annotations

import pytest

from miyazaki_catalog.prompts import build_prompt
from miyazaki_catalog.search import cosine_similarity, rank_works


@pytest.mark.parametrize(
    "vector",
    [[1.0, 2.0, 3.0], [0.5, -0.25], [7.0], [-1.0, -1.0, 4.0, 0.0]],
)
def test_self_similarity_is_one(vector) -> None:
    assert cosine_similarity(vector, vector) == pytest.approx(1.0)


def test_similarity_is_symmetric() -> None:
    a = [0.2, 0.7, -0.1]
    b = [0.9, -0.3, 0.4]

    assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))


def test_orthogonal_and_opposite_vectors() -> None:
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
    assert cosine_similarity([1.0, 2.0], [-1.0, -2.0]) == pytest.approx(-1.0)


def test_similarity_uses_shared_prefix() -> None:
    assert cosine_similarity([1.0, 0.0, 5.0], [1.0, 0.0]) == pytest.approx(1.0)


@pytest.mark.parametrize(
    ("a", "b"),
    [
        ([], [1.0]),
        ([1.0], []),
        ([0.0, 0.0], [1.0, 1.0]),
        (None, [1.0]),
        ("1,2", [1.0, 2.0]),
        ([1.0, "x"], [1.0, 2.0]),
    ],
)
def test_similarity_undefined_cases(a, b) -> None:
    assert cosine_similarity(a, b) is None


def test_rank_returns_top_three_by_descending_score() -> None:
    query = [1.0, 0.0]
    candidates = [
        ({"id": 1}, [0.0, 1.0]),
        ({"id": 2}, [1.0, 0.1]),
        ({"id": 3}, [1.0, 1.0]),
        ({"id": 4}, [1.0, 0.5]),
    ]

    ranked = rank_works(query, candidates)

    assert [item.work["id"] for item in ranked] == [2, 4, 3]
    scores = [item.score for item in ranked]
    assert scores == sorted(scores, reverse=True)


def test_rank_drops_candidates_without_a_score() -> None:
    query = [1.0, 0.0]
    candidates = [
        ({"id": 1}, None),
        ({"id": 2}, []),
        ({"id": 3}, [0.0, 0.0]),
        ({"id": 4}, [0.5, 0.5]),
    ]

    ranked = rank_works(query, candidates)

    assert [item.work["id"] for item in ranked] == [4]


def test_rank_keeps_input_order_on_ties() -> None:
    ranked = rank_works([1.0], [({"id": 1}, [2.0]), ({"id": 2}, [3.0])], limit=2)

    assert [item.work["id"] for item in ranked] == [1, 2]


def test_scored_work_dict_includes_score() -> None:
    ranked = rank_works([1.0, 0.0], [({"id": 9, "title_ru": "X"}, [1.0, 0.0])])

    assert ranked[0].to_dict() == {"id": 9, "title_ru": "X", "score": pytest.approx(1.0)}


def test_prompt_omits_empty_synopsis() -> None:
    assert build_prompt(title_ru="X", synopsis="") == "X"


def test_prompt_orders_and_labels_fields() -> None:
    prompt = build_prompt(
        title_ru="Мой сосед Тоторо",
        title_en="My Neighbor Totoro",
        synopsis="Two sisters meet forest spirits.",
        work_type="feature",
    )

    assert prompt == (
        "Мой сосед Тоторо\n"
        "My Neighbor Totoro\n"
        "Тип: feature\n"
        "Описание: Two sisters meet forest spirits."
    )


def test_prompt_skips_missing_secondary_title() -> None:
    assert build_prompt(title_ru="Порко Россо", work_type="feature") == (
        "Порко Россо\nТип: feature"
    )


def test_prompt_of_nothing_is_empty() -> None:
    assert build_prompt() == ""
