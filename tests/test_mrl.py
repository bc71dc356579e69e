from __future__ import annotations

import dataclasses

import pytest

from zoorepo.repository.mrl import MRL, Category


def test_mrl_path_and_str() -> None:
    mrl = MRL(Category.DATASET_CV, "ai.test", "toy")
    assert mrl.path == "dataset/cv/ai.test/toy"
    assert str(mrl) == "dataset/cv/ai.test/toy"


def test_mrl_equality_by_fields() -> None:
    a = MRL(Category.DATASET_CV, "ai.test", "toy")
    b = MRL(Category.DATASET_CV, "ai.test", "toy")
    c = MRL(Category.MODEL_CV, "ai.test", "toy")

    assert a == b
    assert hash(a) == hash(b)
    assert a != c
    assert len({a, b, c}) == 2


def test_mrl_accepts_category_value() -> None:
    mrl = MRL("model/nlp", "ai.test", "bert")  # type: ignore[arg-type]
    assert mrl.category is Category.MODEL_NLP


def test_mrl_is_immutable() -> None:
    mrl = MRL(Category.DATASET_CV, "ai.test", "toy")
    with pytest.raises(dataclasses.FrozenInstanceError):
        mrl.group_id = "other"  # type: ignore[misc]


def test_mrl_parse() -> None:
    mrl = MRL.parse("dataset/cv/ai.djl.basicdataset/cifar10")
    assert mrl == MRL(Category.DATASET_CV, "ai.djl.basicdataset", "cifar10")


@pytest.mark.parametrize(
    "text",
    [
        "cifar10",
        "video/raw/ai.test/toy",
        "dataset/cv//toy",
        "dataset/cv/ai.test/",
    ],
)
def test_mrl_parse_rejects_malformed(text: str) -> None:
    with pytest.raises(ValueError):
        _ = MRL.parse(text)


@pytest.mark.parametrize("group,name", [("", "toy"), ("ai.test", "   ")])
def test_mrl_rejects_empty_identifiers(group: str, name: str) -> None:
    with pytest.raises(ValueError):
        _ = MRL(Category.DATASET_CV, group, name)


def test_mrl_path_keeps_identifiers_single_segment() -> None:
    mrl = MRL(Category.DATASET_CV, "a/b", ".hidden")
    assert mrl.path == "dataset/cv/a%2Fb/%2Ehidden"
