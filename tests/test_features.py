# tests/test_features.py

from conftest import flat_response, response_with_peak
from room_mode_eq.analysis.features import detect_features, is_deep_null
from room_mode_eq.models import DetectedFeature, EQBand
from room_mode_eq.optimization.filters import apply_bands


class TestDetectFeatures:

    def test_flat_response_has_no_features(self):
        assert detect_features(flat_response()) == []

    def test_short_response_has_no_features(self):
        response = flat_response()
        short = type(response)(response.freqs[:5], response.db[:5])
        assert detect_features(short) == []

    def test_peak_below_schroeder_is_a_mode(self):
        features = detect_features(response_with_peak(100.0, 12.0, 20.0), schroeder_freq=200.0)
        peaks = [f for f in features if f.type != "dip"]
        assert len(peaks) == 1
        assert peaks[0].type == "mode"
        assert peaks[0].frequency == 100.0
        assert peaks[0].amplitude > 85.0
        assert peaks[0].prominence > 1.0

    def test_peak_above_schroeder_is_a_resonance(self):
        features = detect_features(response_with_peak(100.0, 12.0, 20.0), schroeder_freq=80.0)
        assert [f.type for f in features] == ["resonance"]

    def test_dip_detection_and_width(self):
        features = detect_features(response_with_peak(120.0, -12.0, 20.0))
        assert len(features) == 1
        dip = features[0]
        assert dip.type == "dip"
        assert dip.frequency == 120.0
        assert 0.0 < dip.width < 30.0

    def test_sorted_by_prominence(self):
        response = apply_bands(flat_response(), [EQBand(60.0, 10.0, 10.0), EQBand(160.0, 18.0, 20.0)])
        features = detect_features(response)
        assert len(features) >= 2
        prominences = [f.prominence for f in features]
        assert prominences == sorted(prominences, reverse=True)
        assert features[0].frequency == 160.0


class TestDeepNull:

    def _dip(self, freq, prominence, width):
        return DetectedFeature(frequency=freq, amplitude=50.0, prominence=prominence, width=width, type="dip")

    def test_narrow_deep_dip_is_a_null(self):
        features = [self._dip(90.0, 12.0, 6.0)]
        assert is_deep_null(features, 90.0)
        assert is_deep_null(features, 92.0)
        assert not is_deep_null(features, 95.0)

    def test_shallow_or_wide_dip_is_not_a_null(self):
        assert not is_deep_null([self._dip(90.0, 3.0, 6.0)], 90.0)
        assert not is_deep_null([self._dip(90.0, 12.0, 25.0)], 90.0)

    def test_peaks_are_ignored(self):
        peak = DetectedFeature(frequency=90.0, amplitude=90.0, prominence=12.0, width=4.0, type="mode")
        assert not is_deep_null([peak], 90.0)
