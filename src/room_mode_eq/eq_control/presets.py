# src/room_mode_eq/eq_control/presets.py

import logging
import re
from dataclasses import dataclass, replace

from ..models import EQBand, EQSettings

logger = logging.getLogger(__name__)

# Filter 1: ON PK Fc 105.0 Hz Gain -1.3 dB Q 0.70
_FILTER_LINE = re.compile(
    r"^Filter\s+\d+:\s+(?P<state>ON|OFF)\s+(?P<code>\w+)\s+"
    r"Fc\s+(?P<fc>\S+)\s+Hz\s+Gain\s+(?P<gain>\S+)\s+dB\s+Q\s+(?P<q>\S+)",
    re.IGNORECASE,
)
_PREAMP_LINE = re.compile(r"^Preamp:\s*(?P<value>\S+)")


@dataclass(frozen=True)
class PresetFilter:
    """One exported bell filter."""
    band: EQBand
    enabled: bool = True
    code: str = "PK"

    def rew_line(self, number: int) -> str:
        status = "ON" if self.enabled else "OFF"
        return (f"Filter {number}: {status} {self.code} Fc {self.band.frequency:.1f} Hz "
                f"Gain {self.band.gain:.1f} dB Q {self.band.q:.2f}")

    @classmethod
    def parse(cls, line: str):
        match = _FILTER_LINE.match(line)
        if match is None:
            raise ValueError(f"Invalid filter line: '{line}'")
        try:
            band = EQBand(float(match["fc"]), float(match["gain"]), float(match["q"]))
        except ValueError as e:
            raise ValueError(f"Invalid filter line: '{line}'") from e
        return cls(band, match["state"].upper() == "ON", match["code"].upper())


class EQPreset:
    """
    Exportable form of a generated EQ: a preamp in dB and an ordered list
    of PresetFilter entries.

    Three text formats are supported: REW filter lines, the same lines
    preceded by an Equalizer APO "Preamp:" line, and a plain table.

    Example:
        preset = EQPreset.from_settings(settings)
        preset.write_to_file("filters.txt", "apo")
    """

    FORMATS = ("rew", "apo", "text")

    def __init__(self, preamp: float = 0.0, filters=()):
        self.preamp = preamp
        self.filters = list(filters)

    @classmethod
    def from_settings(cls, settings: EQSettings, preamp: float = None):
        """
        Build a preset from ``settings``.

        Without an explicit ``preamp``, the largest boost is compensated
        so the filter chain cannot clip.
        """
        if preamp is None:
            boosts = [band.gain for band in settings.bands if band.gain > 0]
            preamp = -max(boosts) if boosts else 0.0
        ordered = sorted(settings.bands, key=lambda b: b.frequency)
        return cls(preamp, (PresetFilter(band, settings.enabled) for band in ordered))

    def to_settings(self) -> EQSettings:
        bands = tuple(f.band for f in self.filters if f.enabled)
        return EQSettings(bands=bands, enabled=bool(bands))

    def toggle(self, number: int, enabled: bool):
        """Switch filter ``number`` (1-based, as written in the file) on or off."""
        index = self._index(number)
        self.filters[index] = replace(self.filters[index], enabled=enabled)

    def discard(self, number: int) -> PresetFilter:
        """Remove and return filter ``number`` (1-based)."""
        return self.filters.pop(self._index(number))

    def _index(self, number: int) -> int:
        if not 1 <= number <= len(self.filters):
            raise ValueError(f"No filter {number}, the preset has {len(self.filters)}.")
        return number - 1

    def to_rew_string(self) -> str:
        return "\n".join(f.rew_line(i) for i, f in enumerate(self.filters, start=1))

    def to_apo_string(self) -> str:
        lines = [f"Preamp: {self.preamp:.2f} dB"]
        if self.filters:
            lines.append(self.to_rew_string())
        return "\n".join(lines)

    def to_text_table(self) -> str:
        header = f"{'#':>3}  {'Freq (Hz)':>10}  {'Gain (dB)':>10}  {'Q':>6}  {'Type':<5}"
        lines = [header, "-" * len(header)]
        for i, f in enumerate(self.filters, start=1):
            band = f.band
            lines.append(f"{i:>3}  {band.frequency:>10.1f}  {band.gain:>+10.1f}  {band.q:>6.2f}  {f.code:<5}")
        return "\n".join(lines)

    def to_string(self, fmt: str = "rew") -> str:
        writers = {"rew": self.to_rew_string, "apo": self.to_apo_string, "text": self.to_text_table}
        if fmt not in writers:
            raise ValueError(f"Unsupported export format: {fmt}")
        return writers[fmt]()

    def write_to_file(self, path: str, fmt: str = "rew"):
        """
        Write the preset in format ``fmt`` ('rew', 'apo' or 'text') to ``path``.
        """
        content = self.to_string(fmt)
        with open(path, "w") as f:
            f.write(content + "\n")
        logger.info("Wrote %d filters to %s", len(self.filters), path)

    @classmethod
    def load_from_file(cls, file_path: str):
        """
        Load filters from a REW or Equalizer APO file.

        An optional "Preamp:" line sets the preamp; every "Filter N:" line
        becomes a filter. Other lines are ignored.
        """
        with open(file_path, "r") as f:
            lines = [line.strip() for line in f if line.strip()]
        if not lines:
            raise ValueError("Preset file is empty.")

        preset = cls()
        for line in lines:
            preamp = _PREAMP_LINE.match(line)
            if preamp:
                try:
                    preset.preamp = float(preamp["value"])
                except ValueError as e:
                    raise ValueError("Invalid preamp value in preset file.") from e
            elif line.startswith("Filter"):
                preset.filters.append(PresetFilter.parse(line))
        logger.debug("Loaded %d filters from %s", len(preset.filters), file_path)
        return preset
