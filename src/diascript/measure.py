"""Text measurement backed by Pillow fonts."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Tuple

from PIL import ImageFont

LOGGER = logging.getLogger(__name__)

DEFAULT_FONT_FAMILY = "sans-serif"
GENERIC_FONT_FALLBACKS = {
    "sans-serif": ["Helvetica", "Arial", "Liberation Sans", "DejaVu Sans"],
    "serif": ["Times New Roman", "Times", "Liberation Serif", "DejaVu Serif"],
    "monospace": [
        "Courier New",
        "Courier",
        "Liberation Mono",
        "DejaVu Sans Mono",
    ],
}
BOLD_WEIGHTS = {"bold", "bolder", "600", "700", "800", "900"}


class Measurer(Protocol):
    def measure(
        self,
        text: str,
        *,
        font_size: float,
        font_weight: str = "normal",
        font_family: Optional[str] = None,
    ) -> Tuple[float, float]: ...


class TextMeasurer:
    """Caches Pillow fonts and reports (width, line height) for a string."""

    FONT_DIRS = [
        Path("/System/Library/Fonts"),
        Path("/System/Library/Fonts/Supplemental"),
        Path("/Library/Fonts"),
        Path("~/Library/Fonts").expanduser(),
        Path("/usr/share/fonts"),
        Path("/usr/local/share/fonts"),
        Path("C:/Windows/Fonts"),
    ]

    def __init__(self) -> None:
        self._font_cache: Dict[Tuple[str, bool, int], ImageFont.FreeTypeFont] = {}
        self._font_paths: Dict[str, Optional[str]] = {}

    def measure(
        self,
        text: str,
        *,
        font_size: float,
        font_weight: str = "normal",
        font_family: Optional[str] = None,
    ) -> Tuple[float, float]:
        font = self.font(font_size, font_family, str(font_weight).lower() in BOLD_WEIGHTS)
        width = float(font.getlength(text)) if text else 0.0
        return width, self.line_height(font, font_size)

    def font(self, size: float, family: Optional[str], bold: bool) -> ImageFont.FreeTypeFont:
        key_size = max(1, int(round(size)))
        family = family or DEFAULT_FONT_FAMILY
        cache_key = (family.lower(), bold, key_size)
        if cache_key in self._font_cache:
            return self._font_cache[cache_key]

        candidates: List[str] = []
        for fam in GENERIC_FONT_FALLBACKS.get(family.lower(), [family]):
            if bold:
                resolved = self._locate_font(f"{fam} Bold")
                if resolved:
                    candidates.append(resolved)
            resolved = self._locate_font(fam)
            if resolved:
                candidates.append(resolved)
        candidates.append("DejaVuSans-Bold.ttf" if bold else "DejaVuSans.ttf")

        font: Optional[ImageFont.FreeTypeFont] = None
        for candidate in candidates:
            try:
                path, index = self._parse_font_candidate(candidate)
                font = ImageFont.truetype(path, key_size, index=index)
                break
            except OSError:
                continue
        if font is None:
            LOGGER.debug("no TrueType font for %r, using Pillow default font", family)
            font = ImageFont.load_default(size=key_size)

        self._font_cache[cache_key] = font
        return font

    @staticmethod
    def line_height(font: ImageFont.FreeTypeFont, size: float) -> float:
        try:
            ascent, descent = font.getmetrics()
        except AttributeError:
            return 1.2 * size
        return float(ascent + descent)

    def _locate_font(self, family: str) -> Optional[str]:
        key = family.lower()
        if key in self._font_paths:
            return self._font_paths[key]
        normalized = re.sub(r"[^a-z0-9]+", "", family, flags=re.IGNORECASE).lower()
        aliases = {normalized, normalized + "mt", normalized + "psmt"}
        best_match: Optional[Tuple[int, str]] = None
        for directory in self.FONT_DIRS:
            if not normalized or not directory.exists():
                continue
            for glob in ("*.ttf", "*.ttc"):
                try:
                    paths = list(directory.rglob(glob))
                except OSError:
                    continue
                for path in paths:
                    stem = re.sub(r"[^a-z0-9]+", "", path.stem, flags=re.IGNORECASE).lower()
                    if stem in aliases:
                        score = 0
                    elif stem.startswith(normalized):
                        score = 1
                    else:
                        continue
                    candidate = str(path) if glob == "*.ttf" else f"{path};0"
                    if best_match is None or score < best_match[0]:
                        best_match = (score, candidate)
        resolved = best_match[1] if best_match else None
        self._font_paths[key] = resolved
        return resolved

    @staticmethod
    def _parse_font_candidate(candidate: str) -> Tuple[str, int]:
        if ";" in candidate:
            path, idx = candidate.split(";", 1)
            try:
                return path, int(idx)
            except ValueError:
                return path, 0
        return candidate, 0
