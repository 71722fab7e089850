# --- Purpose -------------------------------------------------------------------
# Text-to-speech for bot replies.
#
# plyer.tts picks the platform backend (Android TextToSpeech, `say` on macOS,
# espeak on Linux, SAPI on Windows). Its speak() call blocks on desktop, so each
# utterance runs on a daemon thread and completion is reported back on the Kivy
# main thread, the same way the generation client reports its result.

from threading import Lock, Thread

from kivy.clock import Clock
from kivy.logger import Logger


def _schedule_on_main(fn):
    Clock.schedule_once(lambda dt: fn())


class PlyerSpeechEngine:
    """Speech collaborator with a speak / stop / is_busy contract.

    plyer has no way to interrupt an utterance that already started, so stop()
    only detaches it: the completion callback of the stopped utterance is never
    delivered, and the engine keeps reporting busy until the platform call
    returns. Nothing new can start while the old sentence is still audible.
    """

    def __init__(self, tts=None, schedule=_schedule_on_main):
        if tts is None:
            # Imported lazily: plyer resolves the platform backend on first use.
            from plyer import tts
        self._tts = tts
        self._schedule = schedule
        self._lock = Lock()
        self._utterance = 0
        self._busy = False

    def is_busy(self):
        with self._lock:
            return self._busy

    def speak(self, text, on_done=None):
        with self._lock:
            dropped = self._busy
            if not dropped:
                self._utterance += 1
                utterance = self._utterance
                self._busy = True
        if dropped:
            Logger.debug("Speech: engine busy, utterance dropped")
            # Report it finished so the caller's speaking flag does not stick.
            if on_done is not None:
                self._schedule(on_done)
            return
        Thread(target=self._run, args=(utterance, text, on_done), daemon=True).start()

    def stop(self):
        with self._lock:
            # A newer utterance id makes the running one stale.
            self._utterance += 1
        Logger.debug("Speech: playback detached")

    def _run(self, utterance, text, on_done):
        try:
            self._tts.speak(message=text)
        except NotImplementedError:
            Logger.warning("Speech: no text-to-speech backend on this platform")
        except Exception as e:
            # espeak missing, Android engine not ready, etc.
            Logger.error(f"Speech: playback failed: {e}")
        with self._lock:
            # The platform call has returned, so nothing is audible any more.
            self._busy = False
            if utterance != self._utterance:
                return
        if on_done is not None:
            self._schedule(on_done)
