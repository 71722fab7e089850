# --- Purpose -------------------------------------------------------------------
# This module defines the *Chatbot* screen and the widgets it is built from:
#   • TempSpinWait: a small container holding the spinner shown while a reply
#     is pending (the spinner itself is declared in chatbot_screen.kv).
#   • UserBubble / BotBubble: one rendered chat message each. User bubbles sit on
#     the right; bot bubbles sit on the left and carry speech and copy buttons.
#   • ChatInput: the multiline text field; Enter sends, Shift+Enter adds a line.
#   • ChatbotScreen: header, history list, status area and input row. render()
#     rebuilds the visible state from a ConversationState and a palette, so the
#     screen never keeps conversation data of its own.

from kivy.clock import Clock
from kivy.core.clipboard import Clipboard
from kivy.metrics import dp, sp
from kivy.properties import BooleanProperty, ObjectProperty, StringProperty
from kivy.uix.rst import RstDocument
from kivymd.uix.boxlayout import MDBoxLayout
from kivymd.uix.button import MDIconButton
from kivymd.uix.label import MDLabel
from kivymd.uix.screen import MDScreen
from kivymd.uix.textfield import MDTextField
# m2r2.convert: Markdown → reStructuredText, so model replies keep their formatting.
from m2r2 import convert

from maverick_chat.conversation import USER
from maverick_chat.theme import palette_for

ENTER_KEYS = (13, 271)  # return, numpad enter


class TempSpinWait(MDBoxLayout):
    pass


class UserBubble(MDBoxLayout):
    """Right-aligned bubble holding a plain user message."""

    def __init__(self, text, colors, **kwargs):
        super().__init__(
            orientation="horizontal",
            size_hint_y=None,
            adaptive_height=True,
            padding=[dp(60), dp(4), dp(10), dp(4)],
            **kwargs,
        )
        label = MDLabel(
            text=text,
            size_hint_y=None,
            halign="right",
            valign="top",
            padding=[dp(12), dp(12)],
            font_style="Subtitle1",
            theme_text_color="Custom",
            text_color=colors["user_text"],
            md_bg_color=colors["user_bubble"],
            radius=[dp(15), dp(15), dp(2), dp(15)],
            allow_selection=True,
            allow_copy=True,
        )
        # bind(texture_size=...): grow the label with its rendered text.
        label.bind(texture_size=lambda w, size: setattr(w, "height", size[1]))
        self.add_widget(label)


class BotBubble(MDBoxLayout):
    """Left-aligned model reply rendered from Markdown, with speech and copy buttons."""

    text = StringProperty("")

    def __init__(self, text, colors, is_speaking, on_speech, **kwargs):
        super().__init__(
            orientation="horizontal",
            size_hint_y=None,
            adaptive_height=True,
            padding=[dp(10), dp(4), dp(40), dp(4)],
            spacing=dp(4),
            **kwargs,
        )
        self.text = text
        doc = RstDocument(
            text=convert(text),
            base_font_size=sp(16),
            size_hint_y=None,
            do_scroll_y=False,
            background_color=colors["bot_bubble"],
        )
        doc.colors["paragraph"] = _hex_rgb(colors["text"])
        doc.colors["background"] = _hex_rgb(colors["bot_bubble"])
        # RstDocument is a ScrollView; size it to its content instead.
        doc.content.bind(height=lambda w, h: setattr(doc, "height", h))
        self.add_widget(doc)

        actions = MDBoxLayout(orientation="vertical", adaptive_size=True)
        speech_btn = MDIconButton(
            icon="volume-high" if is_speaking else "volume-medium",
            theme_icon_color="Custom",
            icon_color=colors["text"],
        )
        speech_btn.bind(on_release=lambda btn: on_speech(self.text))
        copy_btn = MDIconButton(
            icon="content-copy",
            theme_icon_color="Custom",
            icon_color=colors["text"],
        )
        copy_btn.bind(on_release=self.copy_text)
        actions.add_widget(speech_btn)
        actions.add_widget(copy_btn)
        self.add_widget(actions)

    def copy_text(self, instance):
        # Copy the original Markdown, not the converted RST.
        Clipboard.copy(self.text)


def _hex_rgb(rgba):
    # RstDocument.colors wants "rrggbb" strings
    return "".join(f"{int(round(c * 255)):02x}" for c in rgba[:3])


class ChatInput(MDTextField):
    """Multiline field that sends on Enter; Shift+Enter inserts a newline."""

    submit_handler = ObjectProperty(None, allownone=True)

    def keyboard_on_key_down(self, window, keycode, text, modifiers):
        if keycode[0] in ENTER_KEYS and "shift" not in modifiers and self.submit_handler:
            self.submit_handler(self)
            return True
        return super().keyboard_on_key_down(window, keycode, text, modifiers)


class ChatbotScreen(MDScreen):
    # bindable flags the KV file reads for the header icon and send button
    is_dark = BooleanProperty(False)
    is_loading = BooleanProperty(False)
    colors = ObjectProperty(palette_for(False))

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # The ScreenManager refers to this page by name.
        self.name = 'chatbot_screen'
        self.on_speech = None
        self._spinner = None

    def render(self, state, colors, is_dark):
        """Redraw everything from the conversation state and the active palette."""
        self.colors = colors
        self.is_dark = is_dark
        self.is_loading = state.is_loading
        history = self.ids.chat_history_id
        history.clear_widgets()
        for message in state.messages:
            if message.role == USER:
                history.add_widget(UserBubble(message.text, colors))
            else:
                history.add_widget(BotBubble(message.text, colors, state.is_speaking, self.on_speech))
        self.ids.empty_chat.opacity = 0 if state.messages else 1
        self._render_status(state, colors)
        chat_input = self.ids.chat_input
        if chat_input.text != state.pending_input:
            chat_input.text = state.pending_input
        # Wait a frame so the new bubbles have their heights.
        Clock.schedule_once(lambda dt: setattr(self.ids.chat_scroll, "scroll_y", 0))

    def _render_status(self, state, colors):
        status = self.ids.status_box
        status.clear_widgets()
        if state.is_loading:
            if self._spinner is None:
                self._spinner = TempSpinWait()
            status.add_widget(self._spinner)
        if state.last_error:
            error_label = MDLabel(
                text=state.last_error,
                halign="center",
                size_hint_y=None,
                height=dp(40),
                theme_text_color="Custom",
                text_color=colors["error"],
            )
            status.add_widget(error_label)
