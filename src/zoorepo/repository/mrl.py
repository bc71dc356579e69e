from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .util import encode_segment


class Category(str, Enum):
    """Kind and application domain of a logical resource."""

    DATASET_CV = "dataset/cv"
    DATASET_NLP = "dataset/nlp"
    MODEL_CV = "model/cv"
    MODEL_NLP = "model/nlp"


@dataclass(frozen=True, slots=True)
class MRL:
    """
    Identifier of a logical, versionless resource.

    Used purely as a lookup key; the repository turns it into Metadata.
    """

    category: Category
    group_id: str
    artifact_id: str

    def __post_init__(self) -> None:
        if not isinstance(self.category, Category):
            object.__setattr__(self, "category", Category(self.category))
        if not self.group_id.strip():
            raise ValueError("MRL group_id must be non-empty")
        if not self.artifact_id.strip():
            raise ValueError("MRL artifact_id must be non-empty")

    @property
    def path(self) -> str:
        """Relative path of the resource: {category}/{group_id}/{artifact_id}."""
        return "/".join(
            (
                self.category.value,
                encode_segment(self.group_id),
                encode_segment(self.artifact_id),
            )
        )

    @classmethod
    def parse(cls, text: str) -> MRL:
        """
        Parse the path form used on the command line.

        Example:
          dataset/cv/ai.djl.basicdataset/cifar10
        """
        parts = text.strip().strip("/").rsplit("/", 2)
        if len(parts) != 3:
            raise ValueError(f"MRL must look like <category>/<group>/<name>: {text!r}")

        category, group_id, artifact_id = parts
        try:
            cat = Category(category)
        except ValueError as e:
            known = ", ".join(c.value for c in Category)
            raise ValueError(f"Unknown MRL category {category!r}. Known: {known}") from e

        return cls(category=cat, group_id=group_id, artifact_id=artifact_id)

    def __str__(self) -> str:
        return f"{self.category.value}/{self.group_id}/{self.artifact_id}"
