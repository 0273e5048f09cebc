# src/room_mode_eq/optimization/optimizer.py

"""
Multi-pass EQ generation.

A single least-squares fit tends to stack boosts into new peaks and to pour
gain into deep interference nulls. Instead, four cumulative passes run from
broad to surgical: each analyses the response already corrected by the
previous passes, uses tighter error thresholds and higher Q, and spends a
shrinking share of the band budget.

The generator is a state machine over the four stages. ``iter_passes``
yields one PassResult per stage so a UI can render intermediate curves;
``generate`` runs all stages back to back.
"""

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .. import config
from ..analysis.error import analyze_error, error_curve
from ..analysis.features import detect_features, is_deep_null
from ..models import EQBand, EQSettings, FrequencyResponse
from ..utils import lookup_db, mask_frequency_range
from . import strategy
from .filters import apply_bands

logger = logging.getLogger(__name__)


@dataclass
class EQGenerationOptions:
    """
    Options of one generation run.

    Args:
        num_bands: Total band budget over all passes (>= 0)
        max_boost: Largest boost in dB before pass scaling (>= 0)
        max_cut: Largest cut in dB before pass scaling (>= 0)
        smoothing: Damping of every correction, 0 (none) .. 1 (no correction)
        min_q: Lowest Q a band may get (> 0)
        max_q: Highest Q a band may get (>= min_q)
        schroeder_freq: Modal / statistical transition frequency in Hz (> 0)
    """

    num_bands: int = config.DEFAULT_NUM_BANDS
    max_boost: float = config.DEFAULT_MAX_BOOST_DB
    max_cut: float = config.DEFAULT_MAX_CUT_DB
    smoothing: float = config.DEFAULT_SMOOTHING
    min_q: float = config.DEFAULT_MIN_Q
    max_q: float = config.DEFAULT_MAX_Q
    schroeder_freq: float = config.DEFAULT_SCHROEDER_FREQ_HZ

    def validate(self):
        if self.num_bands < 0:
            raise ValueError("num_bands must be >= 0")
        if self.max_boost < 0 or self.max_cut < 0:
            raise ValueError("max_boost and max_cut must be >= 0")
        if not 0.0 <= self.smoothing <= 1.0:
            raise ValueError("smoothing must be within [0, 1]")
        if self.min_q <= 0 or self.max_q < self.min_q:
            raise ValueError("Q range must satisfy 0 < min_q <= max_q")
        if self.schroeder_freq <= 0:
            raise ValueError("schroeder_freq must be > 0")
        return self


@dataclass(frozen=True)
class PassResult:
    """Outcome of one refinement stage."""

    number: int
    key: str
    name: str
    budget: int
    new_bands: Tuple[EQBand, ...]
    active_frequencies: Tuple[float, ...]
    bands: Tuple[EQBand, ...]  # all bands so far, sorted by frequency
    corrected_response: FrequencyResponse
    rms_error: float

    @property
    def total_bands(self):
        return len(self.bands)


@dataclass(frozen=True)
class _Artifact:
    freq: float
    severity: float
    q: float
    kind: str


class EQGenerationObserver:
    """Receives progress notifications. All methods are optional no-ops."""

    def on_pass_start(self, pass_number, pass_name):
        pass

    def on_bands_generated(self, pass_number, new_bands, active_frequencies):
        pass

    def on_pass_complete(self, pass_number, total_bands, corrected_response):
        pass

    def on_progress_update(self, message):
        pass


class MultiPassEQGenerator:
    """
    Builds an EQSettings that moves ``room_response`` toward ``target_response``.

    Example:
        generator = MultiPassEQGenerator(EQGenerationOptions(num_bands=25))
        for result in generator.iter_passes(room, target):
            print(result.name, result.rms_error)
        settings = generator.last_settings
    """

    def __init__(self, options=None, observer=None):
        self.options = (options or EQGenerationOptions()).validate()
        self.observer = observer or EQGenerationObserver()
        self.last_settings = None

    # --- Entry points ---

    def generate(self, room_response, target_response):
        """Run every pass and return the merged band set."""
        for _ in self.iter_passes(room_response, target_response):
            pass
        return self.last_settings

    def iter_passes(self, room_response, target_response):
        """Yield a PassResult after each pass; ``last_settings`` holds the final EQ."""
        opts = self.options
        if len(room_response) == 0 or len(target_response) == 0:
            logger.info("Empty room or target response, returning disabled EQ")
            self.last_settings = EQSettings.disabled()
            return

        bands = []
        current = room_response
        current_error = analyze_error(current, target_response)
        current_rms = current_error.rms_error
        logger.info("Starting multi-pass EQ generation: %d bands, initial RMS error %.2f dB",
                    opts.num_bands, current_rms)

        for pass_def in strategy.PASSES:
            if len(bands) >= opts.num_bands:
                logger.info("Band budget exhausted before pass %d", pass_def.number)
                break
            budget = strategy.pass_budget(pass_def, opts.num_bands, len(bands))
            if budget <= 0:
                logger.debug("Pass %d (%s) has no band budget, skipping", pass_def.number, pass_def.name)
                continue

            self.observer.on_pass_start(pass_def.number, pass_def.name)
            self.observer.on_progress_update(
                f"Pass {pass_def.number}: {pass_def.name} ({budget} bands available)")

            new_bands, active = self._run_pass(
                pass_def, budget, current, current_error, room_response, target_response, bands)

            self.observer.on_bands_generated(pass_def.number, new_bands, active)
            bands.extend(new_bands)
            current = apply_bands(room_response, bands)
            current_error = analyze_error(current, target_response)
            current_rms = current_error.rms_error
            self.observer.on_pass_complete(pass_def.number, len(bands), current)

            logger.info("Pass %d (%s): %d new bands, %d total, RMS error %.2f dB",
                        pass_def.number, pass_def.name, len(new_bands), len(bands), current_rms)

            self.last_settings = self._settings(bands)
            yield PassResult(
                number=pass_def.number,
                key=pass_def.key,
                name=pass_def.name,
                budget=budget,
                new_bands=tuple(sorted(new_bands, key=lambda b: b.frequency)),
                active_frequencies=tuple(active),
                bands=self.last_settings.bands,
                corrected_response=current,
                rms_error=current_rms,
            )

        self.last_settings = self._settings(bands)
        self.observer.on_progress_update(
            f"EQ generation complete: {len(bands)} bands, RMS error {current_rms:.2f} dB")

    # --- One pass ---

    def _run_pass(self, pass_def, budget, current, current_error, original, target, prior_bands):
        opts = self.options
        schroeder = opts.schroeder_freq

        candidates = self._candidates(pass_def, current, target)
        placed = [b.frequency for b in prior_bands]
        selected = strategy.select_frequencies(
            candidates, budget, placed, pass_def, opts.num_bands, schroeder)

        bands = []
        for candidate in selected:
            band = self._band_for(candidate.freq, candidate.error, pass_def)
            if band is not None:
                bands.append(band)
        active = [b.frequency for b in bands]

        if pass_def.number == 1 and opts.num_bands <= config.SMALL_BAND_BUDGET and len(bands) < budget:
            balance_band = self._spectral_balance_band(pass_def, original, target, prior_bands + bands)
            if balance_band is not None:
                bands.append(balance_band)

        if len(bands) < budget:
            bands.extend(self._artifact_bands(pass_def, budget - len(bands), original, target,
                                              prior_bands, bands))

        bands = self._guard_regression(bands, original, target, prior_bands, current_error)
        return bands, [f for f in active if any(b.frequency == f for b in bands)]

    def _candidates(self, pass_def, current, target):
        """Frequencies whose error exceeds the pass threshold, sorted by weighted error."""
        schroeder = self.options.schroeder_freq
        freqs, errors = error_curve(current, target)
        features = detect_features(current, schroeder)

        candidates = []
        for freq, error in zip(freqs, errors):
            if freq > config.EQ_MAX_FREQ_HZ:
                continue
            if abs(error) <= pass_def.threshold(freq, schroeder):
                continue
            if error < 0 and is_deep_null(features, freq):
                logger.debug("Skipping boost into deep null at %.1f Hz", freq)
                continue
            weighted = abs(error) * strategy.frequency_weight(freq, schroeder)
            candidates.append(strategy.Candidate(float(freq), float(error), float(weighted)))

        candidates.sort(key=lambda c: c.weighted, reverse=True)
        return candidates

    def _clamp_gain(self, gain, pass_def):
        return float(np.clip(gain, -self.options.max_cut * pass_def.scaling,
                             self.options.max_boost * pass_def.scaling))

    def _clamp_q(self, q):
        return float(min(max(q, self.options.min_q), self.options.max_q))

    def _band_for(self, freq, error, pass_def):
        opts = self.options
        gain = (-error * (1.0 - opts.smoothing) * pass_def.scaling
                * strategy.frequency_scaling(freq, opts.schroeder_freq))
        gain = self._clamp_gain(gain, pass_def)
        if abs(gain) < config.MIN_BAND_GAIN_DB:
            return None
        q = strategy.compute_q(freq, pass_def, abs(error), opts.num_bands, opts.schroeder_freq)
        band = EQBand(frequency=float(freq), gain=gain, q=self._clamp_q(q))
        logger.debug("Pass %d band: fc=%.1f Hz, gain=%.2f dB, Q=%.2f",
                     pass_def.number, band.frequency, band.gain, band.q)
        return band

    def _spectral_balance_band(self, pass_def, original, target, bands):
        """
        One broad cut around 200 Hz when heavy low-frequency cuts leave the
        150-280 Hz region sounding relatively loud.
        """
        low_cuts = [b.gain for b in bands if b.gain < 0 and b.frequency < config.BALANCE_LOW_FREQ_MAX_HZ]
        if not low_cuts or -np.mean(low_cuts) < config.BALANCE_MIN_AVG_LOW_CUT_DB:
            return None

        freqs, errors = error_curve(apply_bands(original, bands), target)
        _, region = mask_frequency_range(freqs, errors, *config.BALANCE_REGION_HZ)
        if len(region) == 0:
            return None
        excess = float(np.mean(region))
        if excess < config.BALANCE_MIN_EXCESS_DB:
            return None

        gain = self._clamp_gain(-excess * config.BALANCE_GAIN_FRACTION, pass_def)
        logger.info("Adding spectral balance cut at %.0f Hz (%.2f dB)", config.BALANCE_BAND_FREQ_HZ, gain)
        return EQBand(config.BALANCE_BAND_FREQ_HZ, gain, self._clamp_q(config.BALANCE_BAND_Q))

    def _find_artifacts(self, corrected, target, all_bands, new_bands):
        def overshoot(freq):
            level = lookup_db(corrected, freq)
            reference = lookup_db(target, freq)
            if level is None or reference is None:
                return None
            return level - reference

        artifacts = []
        boosts = sorted((b for b in all_bands if b.gain > 0), key=lambda b: b.frequency)
        for i, low in enumerate(boosts):
            for high in boosts[i + 1:]:
                if high.frequency - low.frequency > config.INTERACTION_MAX_SPACING_HZ:
                    break
                mid = (low.frequency + high.frequency) / 2.0
                excess = overshoot(mid)
                if excess is not None and excess > config.INTERACTION_OVERSHOOT_DB:
                    artifacts.append(_Artifact(mid, excess, config.INTERACTION_CUT_Q, "interaction"))

        for band in new_bands:
            if band.gain <= 0:
                continue
            excess = overshoot(band.frequency)
            if excess is not None and excess > config.DIRECT_OVERSHOOT_DB:
                artifacts.append(_Artifact(band.frequency, excess, config.DIRECT_OVERSHOOT_CUT_Q, "overshoot"))

        artifacts.sort(key=lambda a: a.severity, reverse=True)
        return artifacts

    def _artifact_bands(self, pass_def, available, original, target, prior_bands, new_bands):
        """Corrective cuts for overshoot created by this pass's boosts."""
        all_bands = prior_bands + new_bands
        corrected = apply_bands(original, all_bands)
        artifacts = self._find_artifacts(corrected, target, all_bands, new_bands)

        cuts = []
        used = [b.frequency for b in all_bands if b.gain < 0]
        for artifact in artifacts:
            if len(cuts) >= available:
                break
            if any(abs(artifact.freq - f) < 1.0 for f in used):
                continue
            gain = self._clamp_gain(-artifact.severity * config.ARTIFACT_CUT_FRACTION, pass_def)
            if abs(gain) < config.MIN_BAND_GAIN_DB:
                continue
            logger.debug("Boost %s artifact at %.1f Hz (%.2f dB over target)",
                         artifact.kind, artifact.freq, artifact.severity)
            cuts.append(EQBand(artifact.freq, gain, self._clamp_q(artifact.q)))
            used.append(artifact.freq)
        return cuts

    @staticmethod
    def _band_at_largest_error(bands, previous):
        """The band correcting the largest error of the pass input, if any."""
        if not bands or not previous.per_frequency:
            return None
        worst = max(previous.per_frequency, key=lambda p: abs(p.error))
        nearest = min(bands, key=lambda b: abs(b.frequency - worst.freq))
        if abs(nearest.frequency - worst.freq) > config.WORST_ERROR_MATCH_HZ:
            return None
        if nearest.gain * worst.error >= 0:
            return None
        return nearest

    def _guard_regression(self, bands, original, target, prior_bands, previous):
        """
        Drop bands until the pass lowers the RMS error.

        Each step removes the band whose removal helps most. The band aimed
        at the largest remaining error goes last, and stays when it lowers
        the maximum error: a cut on a spike a few bins wide raises the RMS
        error of the whole curve while removing the worst deviation.
        """
        def error_with(candidate_bands):
            return analyze_error(apply_bands(original, prior_bands + candidate_bands), target)

        bands = list(bands)
        protected = self._band_at_largest_error(bands, previous)
        error = error_with(bands)
        while bands and error.rms_error >= previous.rms_error:
            removable = [i for i, band in enumerate(bands) if band is not protected]
            if not removable:
                if error.max_error < previous.max_error:
                    logger.debug("Keeping band at %.1f Hz, it lowers the largest error", protected.frequency)
                    break
                removable = [0]
            trials = [(error_with(bands[:i] + bands[i + 1:]), i) for i in removable]
            error, worst = min(trials, key=lambda trial: trial[0].rms_error)
            dropped = bands.pop(worst)
            logger.debug("Dropping band at %.1f Hz, it did not reduce the error", dropped.frequency)
        return bands

    def _settings(self, bands):
        opts = self.options
        return EQSettings(
            bands=tuple(sorted(bands, key=lambda b: b.frequency)),
            enabled=True,
            max_boost=opts.max_boost,
            max_cut=opts.max_cut,
            smoothing=opts.smoothing,
        )


def generate_eq(room_response, target_response, options=None, observer=None):
    """Convenience wrapper: run all passes and return the EQSettings."""
    return MultiPassEQGenerator(options, observer).generate(room_response, target_response)
