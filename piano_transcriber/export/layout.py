"""
Export layout - data handed to the document export collaborator.

Nothing here draws or writes a document. A request describes the page
orientation, where the rendered notation image goes, and the text lines
of the lyric pages; the collaborator does the rendering.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional

from piano_transcriber.config import ExportConfig
from piano_transcriber.core.notation import AbcNotation
from piano_transcriber.core.pitch import to_solfege
from piano_transcriber.core.timeline import LyricEvent, LyricTimeline


class ExportKind(Enum):
    """What is being exported."""
    SHEET = "sheet"  # notation image plus lyric/time/note pages
    LYRICS = "lyrics"  # lyric table with solfège


class Orientation(Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


@dataclass(frozen=True)
class TextLine:
    """A line of text placed on a page, positions in millimetres."""
    text: str
    x_mm: float
    y_mm: float
    font_size: int
    align: str = "left"


@dataclass
class LayoutPage:
    lines: List[TextLine] = field(default_factory=list)


@dataclass(frozen=True)
class LyricRow:
    """One row of the lyric table."""
    time: float
    text: str
    solfege: str
    
    @property
    def time_label(self) -> str:
        return f"{self.time:.2f}s"


@dataclass
class ExportRequest:
    """Everything the export collaborator needs to render a document."""
    kind: ExportKind
    title: str
    filename: str
    orientation: Orientation
    image_x_mm: float
    image_y_mm: float
    image_width_mm: float
    unit: str = "mm"
    header: Optional[TextLine] = None
    notation: Optional[str] = None
    pages: List[LayoutPage] = field(default_factory=list)
    rows: List[LyricRow] = field(default_factory=list)
    
    @property
    def page_count(self) -> int:
        return len(self.pages)
    
    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind.value
        data["orientation"] = self.orientation.value
        return data


def sanitize_filename(title: str) -> str:
    """Replace whitespace runs with underscores."""
    return re.sub(r"\s+", "_", title.strip())


def lyric_line(event: LyricEvent) -> str:
    """Lyric page line such as '1.5s: "La" - C'."""
    return f'{event.start_time:.1f}s: "{event.text}" - {event.pitch.name}'


def lyric_rows(lyrics: LyricTimeline) -> List[LyricRow]:
    """Lyric table rows: time, text and fixed-do solfège."""
    return [
        LyricRow(time=event.start_time, text=event.text, solfege=to_solfege(event.pitch))
        for event in lyrics
    ]


def paginate_lyrics(
    title: str,
    lyrics: LyricTimeline,
    config: Optional[ExportConfig] = None,
) -> List[LayoutPage]:
    """
    Lay out the "Lyrics with Notes" pages.
    
    The first page carries a heading and starts its lines lower; a new
    page begins once a line would pass the break threshold, unless the
    line just placed was the last one.
    
    Args:
        title: Song title
        lyrics: Lyrics in time order
        config: Layout settings
        
    Returns:
        List of pages, empty when there are no lyrics
    """
    config = config or ExportConfig()
    events = list(lyrics)
    if not events:
        return []
    
    page = LayoutPage([TextLine(
        f"{title} - Lyrics with Notes",
        config.margin_mm,
        config.heading_y_mm,
        config.title_font_size,
    )])
    pages = [page]
    y = config.first_line_y_mm
    
    for index, event in enumerate(events):
        page.lines.append(TextLine(lyric_line(event), config.text_indent_mm, y, config.body_font_size))
        y += config.line_spacing_mm
        
        if y > config.page_break_y_mm and index < len(events) - 1:
            page = LayoutPage()
            pages.append(page)
            y = config.continued_line_y_mm
    
    return pages


def build_sheet_request(
    notation: AbcNotation,
    lyrics: Optional[LyricTimeline] = None,
    config: Optional[ExportConfig] = None,
) -> ExportRequest:
    """
    Request for the sheet music document (notation plus lyric pages).
    
    Args:
        notation: Encoded notation to render as the first page
        lyrics: Lyrics for the following pages
        config: Layout settings
    """
    config = config or ExportConfig()
    lyrics = lyrics if lyrics is not None else LyricTimeline.empty()
    return ExportRequest(
        kind=ExportKind.SHEET,
        title=notation.title,
        filename=f"{sanitize_filename(notation.title)}_sheet_music.pdf",
        orientation=Orientation(config.sheet_orientation),
        image_x_mm=config.margin_mm,
        image_y_mm=config.margin_mm,
        image_width_mm=config.sheet_image_width_mm,
        notation=notation.text,
        pages=paginate_lyrics(notation.title, lyrics, config),
    )


def build_lyrics_request(
    title: str,
    lyrics: LyricTimeline,
    config: Optional[ExportConfig] = None,
) -> ExportRequest:
    """
    Request for the lyric table document (portrait, centred image).
    
    Args:
        title: Song title
        lyrics: Lyrics to tabulate
        config: Layout settings
    """
    config = config or ExportConfig()
    page_width = config.portrait_page_width_mm
    return ExportRequest(
        kind=ExportKind.LYRICS,
        title=title,
        filename=f"{sanitize_filename(title)}_lyrics.pdf",
        orientation=Orientation(config.lyrics_orientation),
        image_x_mm=(page_width - config.lyrics_image_width_mm) / 2,
        image_y_mm=config.image_top_mm,
        image_width_mm=config.lyrics_image_width_mm,
        header=TextLine(title, page_width / 2, config.heading_y_mm, config.title_font_size, "center"),
        rows=lyric_rows(lyrics),
    )
