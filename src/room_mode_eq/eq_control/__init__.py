from .presets import EQPreset, PresetFilter

__all__ = ["EQPreset", "PresetFilter"]
