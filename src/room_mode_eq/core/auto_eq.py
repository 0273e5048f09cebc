# src/room_mode_eq/core/auto_eq.py

import logging

import numpy as np
from PyQt5.QtCore import QThread, pyqtSignal

from .. import config
from ..analysis.error import analyze_error
from ..optimization.optimizer import EQGenerationObserver
from .pipeline import RoomEQSession

logger = logging.getLogger(__name__)


class _SignalObserver(EQGenerationObserver):
    """Forwards generator notifications to the worker's Qt signals."""

    def __init__(self, worker):
        self.worker = worker

    def on_pass_start(self, pass_number, pass_name):
        self.worker.pass_started_signal.emit(pass_number, pass_name)

    def on_bands_generated(self, pass_number, new_bands, active_frequencies):
        self.worker.bands_generated_signal.emit(pass_number, list(new_bands), list(active_frequencies))

    def on_pass_complete(self, pass_number, total_bands, corrected_response):
        self.worker.pass_completed_signal.emit(pass_number, total_bands, corrected_response)

    def on_progress_update(self, message):
        self.worker.progress_signal.emit(message)


class AutoRoomEQ(QThread):
    """
    Worker thread for a room correction run.

    Runs the simulation and the four EQ passes off the GUI thread, pausing
    ``pass_delay_ms`` between passes so a plot can render the intermediate
    curves. The pause only paces the UI; results are the same without it.
    """
    pass_started_signal = pyqtSignal(int, str)
    bands_generated_signal = pyqtSignal(int, list, list)
    pass_completed_signal = pyqtSignal(int, int, object)
    progress_signal = pyqtSignal(str)
    # freqs, room response, corrected response, target, bands
    update_freq_signal = pyqtSignal(np.ndarray, np.ndarray, np.ndarray, np.ndarray, list)
    # pass number, current RMS, initial RMS
    update_error_signal = pyqtSignal(int, float, float)
    result_ready_signal = pyqtSignal(object)

    def __init__(self, scenario=None, options=None, simulator=None,
                 pass_delay_ms=config.PASS_DISPLAY_DELAY_MS):
        super(AutoRoomEQ, self).__init__()
        self.session = RoomEQSession(scenario, options, simulator, observer=_SignalObserver(self))
        self.pass_delay_ms = pass_delay_ms
        self.result = None

    def run(self):
        self.progress_signal.emit("Simulating room response...")
        room_response, target = self.session.prepare()
        freqs = np.array(room_response.freqs)
        initial_rms = analyze_error(room_response, target).rms_error

        self.update_freq_signal.emit(freqs, np.array(room_response.db), np.array(room_response.db),
                                     np.array(target.db), [])
        self.update_error_signal.emit(0, initial_rms, initial_rms)

        for pass_result in self.session.iter_passes():
            self.update_freq_signal.emit(
                freqs,
                np.array(room_response.db),
                np.array(pass_result.corrected_response.db),
                np.array(target.db),
                list(pass_result.bands),
            )
            self.update_error_signal.emit(pass_result.number, pass_result.rms_error, initial_rms)
            if self.pass_delay_ms > 0:
                self.msleep(self.pass_delay_ms)

        self.result = self.session.result()
        logger.info("Room EQ finished: %d bands, RMS error %.2f -> %.2f dB",
                    len(self.result.settings.bands), initial_rms, self.result.final_error.rms_error)
        self.result_ready_signal.emit(self.result)
