"""Conversation state and the controller that drives the request cycle.

Everything here runs on the Kivy main loop. The HTTP request is the only work
pushed to a background thread; its result comes back through the callback
that ``chat_with_gemini`` schedules with ``Clock``. The controller keeps no
widgets: the chat screen subscribes with :meth:`add_listener` and re-renders
from :class:`ConversationState`.
"""

from dataclasses import dataclass, field
from threading import Thread
from typing import Callable, List, Optional

from kivy.logger import Logger

from maverick_chat.geminiApi import chat_with_gemini

USER = "user"
MODEL = "model"

# Shown under the chat list when a request fails.
REQUEST_ERROR = "Failed to get response from chatbot"


@dataclass(frozen=True)
class Message:
    role: str
    text: str

    def to_content(self) -> dict:
        """Gemini wire shape of this message."""
        return {"role": self.role, "parts": [{"text": self.text}]}


@dataclass
class ConversationState:
    messages: List[Message] = field(default_factory=list)
    pending_input: str = ""
    is_loading: bool = False
    last_error: Optional[str] = None
    is_speaking: bool = False
    # Bumped by every reset; replies for an older generation are dropped.
    generation: int = 0


def _start_thread(target, args):
    # Thread(daemon=True): keep blocking I/O off the UI thread without holding exit.
    Thread(target=target, args=args, daemon=True).start()


class ConversationController:
    """Owns the conversation state and every mutation of it.

    Args:
        config: ChatConfig handed to the request function.
        speech: speech engine with ``speak(text, on_done)``, ``stop()`` and
            ``is_busy()``; ``None`` disables playback.
        request_fn: ``fn(config, contents, callback)`` that eventually calls
            ``callback(result)`` on the main thread.
        spawn: ``fn(target, args)`` that starts ``request_fn`` in the background.
    """

    def __init__(self, config, speech=None, request_fn=chat_with_gemini, spawn=_start_thread):
        self.config = config
        self.speech = speech
        self.state = ConversationState()
        self._request_fn = request_fn
        self._spawn = spawn
        self._listeners: List[Callable[[ConversationState], None]] = []

    # ---- observers -------------------------------------------------------

    def add_listener(self, fn: Callable[[ConversationState], None]) -> None:
        self._listeners.append(fn)

    def _notify(self) -> None:
        for fn in list(self._listeners):
            fn(self.state)

    # ---- input buffer ----------------------------------------------------

    def set_pending_input(self, text: str) -> None:
        # Mirrors the text field; no re-render needed.
        self.state.pending_input = text

    # ---- request cycle ---------------------------------------------------

    def submit(self, text: Optional[str] = None) -> bool:
        """Append a user message and send the whole history.

        Uses ``pending_input`` when ``text`` is omitted. Returns False, without
        touching the state, for blank input or while a request is in flight.
        """
        state = self.state
        raw = state.pending_input if text is None else text
        user_text = (raw or "").strip()
        if not user_text:
            return False
        if state.is_loading:
            Logger.debug("Chat: request already in flight, submit ignored")
            return False

        state.messages.append(Message(USER, user_text))
        state.pending_input = ""
        state.is_loading = True
        state.last_error = None
        contents = [message.to_content() for message in state.messages]
        generation = state.generation
        Logger.info(f"Chat: sending {len(contents)} message(s) to {self.config.model_name}")
        self._notify()

        def on_reply(result):
            self._on_reply(generation, result)

        self._spawn(self._request_fn, (self.config, contents, on_reply))
        return True

    def _on_reply(self, generation: int, result: dict) -> None:
        state = self.state
        # Only one request can be in flight, so this reply always ends it.
        state.is_loading = False
        if generation != state.generation:
            Logger.info("Chat: discarding reply for a conversation that was reset")
            self._notify()
            return
        if result.get("role") == MODEL:
            state.messages.append(Message(MODEL, result["parts"][0]["text"]))
        else:
            state.last_error = REQUEST_ERROR
        self._notify()

    # ---- reset -----------------------------------------------------------

    def reset_conversation(self, confirm: Optional[Callable[[Callable[[], None]], None]] = None) -> None:
        """Start a new chat.

        Nothing happens when the conversation is already empty. With ``confirm``
        the actual reset runs only when the callable invokes the ``proceed``
        function it is given (e.g. from a dialog button).
        """
        if not self.state.messages:
            return
        if confirm is None:
            self._clear()
        else:
            confirm(self._clear)

    def _clear(self) -> None:
        state = self.state
        state.messages.clear()
        state.pending_input = ""
        state.last_error = None
        if state.is_speaking:
            self._stop_speech()
        state.generation += 1
        Logger.info("Chat: conversation reset")
        self._notify()

    # ---- speech ----------------------------------------------------------

    def toggle_speech(self, message_text: str) -> None:
        """Stop playback if something is speaking, else start voicing ``message_text``."""
        if self.speech is None:
            return
        state = self.state
        if state.is_speaking:
            self._stop_speech()
            self._notify()
        elif not self.speech.is_busy():
            state.is_speaking = True
            self.speech.speak(message_text, on_done=self._on_speech_done)
            self._notify()

    def _stop_speech(self) -> None:
        self.speech.stop()
        self.state.is_speaking = False

    def _on_speech_done(self) -> None:
        if self.state.is_speaking:
            self.state.is_speaking = False
            self._notify()
