"""Course tree extracted from the course page, and the manifest derived from it."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class Chapter(BaseModel):
    """A single video lecture.

    ``download_url`` is ``None`` when the download link could not be resolved.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    download_url: Optional[str] = None


class Section(BaseModel):
    """A named group of chapters, in page order. May have no chapters."""

    model_config = ConfigDict(frozen=True)

    name: str
    chapters: List[Chapter] = []


class Course(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    sections: List[Section] = []

    @property
    def chapter_count(self) -> int:
        return sum(len(section.chapters) for section in self.sections)


class ManifestEntry(BaseModel):
    """One download line pair: absolute URL and relative output path."""

    model_config = ConfigDict(frozen=True)

    download_url: str
    output_path: str
