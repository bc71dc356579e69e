from __future__ import annotations

import pytest

from repo_fixtures import TOY
from zoorepo.repository.descriptors import Artifact, Item, Metadata
from zoorepo.repository.errors import MetadataError
from zoorepo.repository.mrl import MRL, Category


def test_resource_uri_layout() -> None:
    assert Artifact(TOY, "1.0").resource_uri == "dataset/cv/ai.test/toy/1.0"


def test_resource_uri_appends_properties_in_key_order() -> None:
    a = Artifact(TOY, "1.0", properties={"size": "s", "flavor": "x"})
    assert a.resource_uri == "dataset/cv/ai.test/toy/1.0+flavor=x+size=s"


def test_resource_uri_is_unique_and_never_nested() -> None:
    artifacts = [
        Artifact(TOY, "1.0"),
        Artifact(TOY, "2.0"),
        Artifact(TOY, "1.0", properties={"a": "x"}),
        Artifact(TOY, "1.0", properties={"b": "x"}),
        Artifact(TOY, "1.0+a=x"),
        Artifact(TOY, "1.0", properties={"a": "x=y"}),
        Artifact(TOY, "1.0", properties={"a=x": "y"}),
        Artifact(TOY, "1.0/extra"),
        Artifact(MRL(Category.DATASET_CV, "ai", "test.toy"), "1.0"),
        Artifact(MRL(Category.DATASET_CV, "ai.test", "toy/1.0"), "x"),
        Artifact(MRL(Category.MODEL_CV, "ai.test", "toy"), "1.0"),
    ]
    uris = [a.resource_uri for a in artifacts]

    assert len(set(uris)) == len(uris)
    for a in uris:
        for b in uris:
            if a != b:
                assert not b.startswith(a + "/")


def test_resource_uri_escapes_leading_dot() -> None:
    assert Artifact(TOY, "..").resource_uri == "dataset/cv/ai.test/toy/%2E."


@pytest.mark.parametrize("version", ["", "   "])
def test_artifact_requires_version(version: str) -> None:
    with pytest.raises(MetadataError):
        _ = Artifact(TOY, version)


def test_artifact_defaults_base_uri_to_metadata_location() -> None:
    a = Artifact(TOY, "1.0")
    assert a.base_uri == "dataset/cv/ai.test/toy/"
    assert a.base_uri == Metadata(TOY).base_uri


def test_artifact_matches_filter() -> None:
    a = Artifact(TOY, "1.0", properties={"flavor": "small", "size": "1"})

    assert a.matches(None)
    assert a.matches({})
    assert a.matches({"flavor": "small"})
    assert a.matches({"flavor": "small", "size": "1"})
    assert not a.matches({"flavor": "big"})
    assert not a.matches({"missing": "x"})


def test_artifact_id_lists_properties() -> None:
    a = Artifact(TOY, "1.0", properties={"size": "s", "flavor": "x"})
    assert a.id() == "dataset/cv/ai.test/toy@1.0 [flavor=x,size=s]"
    assert Artifact(TOY, "2.0").id() == "dataset/cv/ai.test/toy@2.0"


@pytest.mark.parametrize(
    "uri,extension,item_type,name",
    [
        ("1.0/data.bin.gz", "gzip", "file", "k"),
        ("https://example.com/y/images.zip", "zip", "dir", ""),
        ("a.tar.gz", "tgz", "dir", ""),
        ("a.TGZ", "tgz", "dir", ""),
        ("raw.bin", "", "file", "k"),
    ],
)
def test_item_infer_from_uri(uri: str, extension: str, item_type: str, name: str) -> None:
    item = Item.infer(uri, key="k")
    assert item.extension == extension
    assert item.type == item_type
    assert item.name == name


def test_item_infer_keeps_explicit_fields() -> None:
    item = Item.infer("a.zip", key="k", type="file", name="first.bin", size=3)
    assert item == Item(uri="a.zip", name="first.bin", type="file", extension="zip", size=3)


def test_item_rejects_unknown_type() -> None:
    with pytest.raises(MetadataError):
        _ = Item(uri="x", type="link")  # type: ignore[arg-type]


@pytest.mark.parametrize("name", ["../x", "/etc/passwd", "a/../../b", "C:/x", "a\\..\\b"])
def test_item_rejects_names_leaving_the_artifact(name: str) -> None:
    with pytest.raises(MetadataError):
        _ = Item(uri="x.bin", name=name)


def test_metadata_rejects_foreign_artifact() -> None:
    other = MRL(Category.DATASET_CV, "ai.test", "other")
    with pytest.raises(MetadataError):
        _ = Metadata(TOY, artifacts=(Artifact(other, "1.0"),))


def test_metadata_versions_in_document_order() -> None:
    m = Metadata(TOY, artifacts=(Artifact(TOY, "2.0"), Artifact(TOY, "1.0")))
    assert m.versions() == ["2.0", "1.0"]
