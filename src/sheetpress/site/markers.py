"""Documents with one marker-delimited region owned by the synchronizer."""

from __future__ import annotations

from dataclasses import dataclass

from sheetpress.errors import MarkerMissingError


@dataclass(frozen=True)
class RegionMarkers:
    """Paired sentinel lines, e.g. ``<!-- NAME:START -->`` / ``<!-- NAME:END -->``.

    Indentation is part of the marker so the rewritten region lines up with
    the surrounding markup.
    """

    start: str
    end: str

    @classmethod
    def named(cls, name: str, indent: str = "          ") -> RegionMarkers:
        return cls(start=f"{indent}<!-- {name}:START -->", end=f"{indent}<!-- {name}:END -->")


@dataclass(frozen=True)
class MarkedDocument:
    """A document split around its one labelled hole.

    ``head`` ends with the start marker line; ``tail`` begins with the end
    marker line. Everything outside the hole is reproduced byte for byte.
    """

    head: str
    body: str
    tail: str

    @classmethod
    def parse(cls, text: str, markers: RegionMarkers) -> MarkedDocument:
        """Locate the region.

        Raises:
            MarkerMissingError: A marker is absent or END precedes START.
        """
        start_idx = text.find(markers.start)
        end_idx = text.find(markers.end)
        if start_idx == -1:
            raise MarkerMissingError(markers.start.strip())
        if end_idx == -1:
            raise MarkerMissingError(markers.end.strip())
        if end_idx < start_idx:
            raise MarkerMissingError(
                f"{markers.start.strip()} -> {markers.end.strip()}", reason="Marker order invalid"
            )
        head_end = start_idx + len(markers.start)
        return cls(head=text[:head_end], body=text[head_end:end_idx], tail=text[end_idx:])

    def fill(self, body: str) -> str:
        """Return the full document with the region replaced by ``body``."""
        return f"{self.head}\n{body}\n{self.tail}"
