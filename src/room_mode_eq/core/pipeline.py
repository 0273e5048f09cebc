# src/room_mode_eq/core/pipeline.py

"""
End-to-end room correction run.

room geometry + positions -> simulated response -> speaker/room adjustments
-> level-aligned target curve -> multi-pass EQ -> corrected response.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .. import config
from ..analysis.error import analyze_error, calculate_optimal_offset
from ..models import ErrorAnalysis, EQSettings, FrequencyResponse, Point, RoomDimensions
from ..optimization.filters import apply_eq
from ..optimization.optimizer import EQGenerationOptions, MultiPassEQGenerator, PassResult
from ..simulation import acoustics
from ..simulation.cache import RoomSimulator
from ..utils import generate_target_curve

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoomScenario:
    """
    Everything needed to simulate one source/listener pair.

    ``base_q_factor`` of None derives the modal Q from ``absorption`` and
    ``furniture_factor``. ``schroeder_freq`` of None derives it from the
    Sabine reverberation time when absorption data is given.
    """

    room: RoomDimensions = RoomDimensions(*config.DEFAULT_ROOM)
    source: Point = Point(*config.DEFAULT_SOURCE)
    listener: Point = Point(*config.DEFAULT_LISTENER)
    max_mode_order: int = config.DEFAULT_MAX_MODE_ORDER
    base_q_factor: Optional[float] = None
    absorption: Optional[acoustics.SurfaceAbsorption] = None
    master_absorption_adjust: float = 0.0
    furniture_factor: float = config.DEFAULT_FURNITURE_FACTOR
    spectral_tilt_db_per_oct: float = config.DEFAULT_SPECTRAL_TILT_DB_PER_OCT
    lf_cutoff_hz: Optional[float] = config.DEFAULT_LF_CUTOFF_HZ
    air_absorption_level: float = config.DEFAULT_AIR_ABSORPTION_LEVEL
    reference_spl_db: float = config.REFERENCE_SPL_DB
    speaker: Optional[acoustics.SpeakerData] = field(default=None, hash=False, compare=False)
    target_rolloff_freq: Optional[float] = None
    target_rolloff_slope_db_per_oct: float = config.DEFAULT_ROLLOFF_SLOPE_DB_PER_OCT
    schroeder_freq: Optional[float] = None

    def resolved_q_factor(self):
        if self.base_q_factor is not None:
            return self.base_q_factor
        return acoustics.estimate_modal_q(self.room, self.absorption,
                                          self.master_absorption_adjust, self.furniture_factor)

    def resolved_schroeder_freq(self):
        if self.schroeder_freq is not None:
            return self.schroeder_freq
        if self.absorption is not None:
            return acoustics.schroeder_frequency(self.room, self.absorption, self.master_absorption_adjust)
        return config.DEFAULT_SCHROEDER_FREQ_HZ


@dataclass(frozen=True)
class RoomEQResult:
    raw_response: FrequencyResponse
    room_response: FrequencyResponse
    target_offset: float
    target_response: FrequencyResponse
    settings: EQSettings
    corrected_response: FrequencyResponse
    passes: Tuple[PassResult, ...]
    initial_error: ErrorAnalysis
    final_error: ErrorAnalysis


class RoomEQSession:
    """
    One correction run for a scenario.

    ``iter_passes`` lets a caller pace the passes (the Qt worker pauses
    between them); ``run`` does everything in one call.
    """

    def __init__(self, scenario=None, options=None, simulator=None, observer=None):
        self.scenario = scenario or RoomScenario()
        self.simulator = simulator or RoomSimulator()
        self.observer = observer
        self.options = options
        self.raw_response = None
        self.room_response = None
        self.target_offset = 0.0
        self.target_response = None
        self.passes = []
        self._generator = None

    def prepare(self):
        """Simulate the room and align the target curve; returns (room_response, target_response)."""
        s = self.scenario
        source = acoustics.clamp_to_room(s.source, s.room)
        listener = acoustics.clamp_to_room(s.listener, s.room)
        q = s.resolved_q_factor()
        logger.info("Simulating %.2f x %.2f x %.2f m room, modal Q %.2f", s.room.L, s.room.W, s.room.H, q)

        self.raw_response = self.simulator.simulate(source, listener, s.room, s.max_mode_order, q)
        self.room_response = self.process_response(self.raw_response, source, listener)

        base_target = generate_target_curve(self.room_response.freqs, 0.0, s.target_rolloff_freq,
                                            s.target_rolloff_slope_db_per_oct)
        self.target_offset = calculate_optimal_offset(self.room_response, base_target)
        self.target_response = base_target.with_db(base_target.db + self.target_offset)
        logger.info("Target curve aligned with offset %.1f dB", self.target_offset)
        return self.room_response, self.target_response

    def process_response(self, raw_response, source, listener):
        """Apply level calibration, tilt, subwoofer roll-off, air absorption and directivity."""
        s = self.scenario
        response = acoustics.calibrate_level(raw_response, s.reference_spl_db)
        response = acoustics.apply_spectral_tilt(response, s.spectral_tilt_db_per_oct)
        # measured speaker data already contains the low-frequency roll-off
        if s.speaker is None:
            response = acoustics.apply_lf_rolloff(response, s.lf_cutoff_hz)
        response = acoustics.apply_air_absorption(response, s.air_absorption_level, source, listener)
        return acoustics.apply_speaker_directivity(response, s.speaker)

    def make_generator(self):
        options = self.options
        if options is None:
            options = EQGenerationOptions(schroeder_freq=self.scenario.resolved_schroeder_freq())
        self._generator = MultiPassEQGenerator(options, self.observer)
        return self._generator

    def iter_passes(self):
        if self.room_response is None:
            self.prepare()
        generator = self.make_generator()
        for result in generator.iter_passes(self.room_response, self.target_response):
            self.passes.append(result)
            yield result

    def result(self):
        settings = self._generator.last_settings if self._generator else EQSettings.disabled()
        corrected = apply_eq(self.room_response, settings)
        return RoomEQResult(
            raw_response=self.raw_response,
            room_response=self.room_response,
            target_offset=self.target_offset,
            target_response=self.target_response,
            settings=settings,
            corrected_response=corrected,
            passes=tuple(self.passes),
            initial_error=analyze_error(self.room_response, self.target_response),
            final_error=analyze_error(corrected, self.target_response),
        )

    def run(self):
        for _ in self.iter_passes():
            pass
        return self.result()


def run_room_eq(scenario=None, options=None, simulator=None, observer=None):
    """Run a complete correction for ``scenario`` and return a RoomEQResult."""
    return RoomEQSession(scenario, options, simulator, observer).run()
