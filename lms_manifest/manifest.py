'''
Build the aria2c input file from an extracted course.

Each entry takes two lines, the download URL and an indented ``out=`` option:

    https://example.com/video.mp4
     out=./course/01_section/1_chapter.mp4
'''

import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import Iterable, List, Union

from .models import Course, ManifestEntry
from .naming import normalize_chapter_name, normalize_section_name, to_slug

logger = logging.getLogger(__name__)


def build_manifest(course: Course) -> List[ManifestEntry]:
    """One entry per video chapter, in page order.

    Chapters without a download URL are kept with an empty URL.
    """
    entries = []
    course_name = to_slug(course.name)
    for section_idx, section in enumerate(course.sections, 1):
        section_dir = f"{section_idx:02d}_{normalize_section_name(section.name)}"
        for chapter in section.chapters:
            output_path = f"{course_name}/{section_dir}/{normalize_chapter_name(chapter.name)}.mp4"
            entries.append(ManifestEntry(download_url=chapter.download_url or "", output_path=output_path))
    return entries


def render_entry(entry: ManifestEntry) -> str:
    return f"{entry.download_url}\n out=./{entry.output_path}"


def render_manifest(entries: Iterable[ManifestEntry]) -> str:
    return "\n".join(render_entry(entry) for entry in entries)


def _file_mode(path: Path) -> int:
    """Mode for the new manifest: keep an existing file's mode, else 0666 minus umask."""
    if path.exists():
        return stat.S_IMODE(path.stat().st_mode)
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def write_manifest(path: Union[str, Path], text: str) -> Path:
    """Write the manifest as UTF-8, replacing any previous file atomically."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, 'w', encoding='utf-8', newline='') as f:
            f.write(text)
        os.chmod(tmp_name, _file_mode(path))
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.info(f"Manifest written to {path}")
    return path
