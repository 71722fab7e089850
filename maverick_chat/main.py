# --- High-level overview -------------------------------------------------------
# This is the Kivy/KivyMD app entry point for the MaVerickAi chat client.
# It wires together:
#   - the chat screen (layout in KV, widgets in screens/chatbot_screen.py)
#   - the ConversationController, which owns all chat state
#   - the Gemini client (via the controller) and the text-to-speech engine
#   - the light/dark palette, derived from the device and toggled from the header
# The app itself keeps no conversation data: every controller change triggers a
# full re-render of the screen from the controller's state.

# python core modules
import os
# KIVY_GL_BACKEND must be chosen before Kivy initializes its windowing system.
os.environ.setdefault('KIVY_GL_BACKEND', 'sdl2')
# sys: frozen-bundle checks and base path logic.
import sys

# kivy & kivymd imports
from kivy.core.window import Window
from kivy.lang import Builder
from kivy.logger import Logger
from kivy.properties import BooleanProperty, ObjectProperty
from kivy.resources import resource_add_path
from kivymd.app import MDApp
from kivymd.uix.button import MDFlatButton
from kivymd.uix.dialog import MDDialog

# Keep the focused input visible above the soft keyboard on mobile.
Window.softinput_mode = "below_target"

from maverick_chat import __version__
from maverick_chat.config import get_chat_config
from maverick_chat.conversation import ConversationController
# Imported for their KV rules: Kivy's Factory registers widget classes on import.
from maverick_chat.screens.chatbot_screen import ChatbotScreen, TempSpinWait  # noqa: F401
from maverick_chat.speech import PlyerSpeechEngine
from maverick_chat.theme import palette_for, resolve_dark_mode, theme_style_for

# Determine the base path for the app's resources
if getattr(sys, 'frozen', False):
    # Running as a PyInstaller bundle
    base_path = sys._MEIPASS
else:
    # Running in a normal Python environment
    base_path = os.path.dirname(os.path.abspath(__file__))
kv_file_path = os.path.join(base_path, 'main_layout.kv')
kv_files_dir = os.path.join(base_path, 'kv_files')
# Register additional search path so `#:include` in main_layout.kv finds the screen KV.
resource_add_path(kv_files_dir)


## The APP definitions
class MaverickApp(MDApp):
    title = "MaVerickAi"
    # ObjectProperty: the controller is None until a valid config was loaded.
    controller = ObjectProperty(None, allownone=True)
    # Palette handed to rendering; KV rules bind to it.
    colors = ObjectProperty(palette_for(False))
    is_dark = BooleanProperty(False)

    def build(self):
        self.theme_cls.primary_palette = "DeepPurple"
        self.theme_cls.accent_palette = "Green"
        self.config_error = None
        self.appearance = "system"
        try:
            chat_config = get_chat_config()
        except ValueError as e:
            # pydantic.ValidationError is a ValueError; so is a bad GEMINI_TIMEOUT.
            # Shown in a dialog once the window is up.
            Logger.error(f"Chat: invalid configuration: {e}")
            self.config_error = str(e)
        else:
            self.appearance = chat_config.appearance
            self.controller = ConversationController(chat_config, speech=PlyerSpeechEngine())
        self.apply_appearance(resolve_dark_mode(self.appearance))
        return Builder.load_file(kv_file_path)

    def on_start(self):
        self.chat_screen = self.root.get_screen('chatbot_screen')
        self.chat_screen.on_speech = self.toggle_speech
        if self.controller is not None:
            self.controller.add_listener(self.render)
        self.render()
        Logger.info(f"Chat: MaVerickAi {__version__} started")
        if self.config_error:
            self.show_text_dialog(
                "Configuration error",
                "Set GEMINI_API_KEY in the environment or a .env file and restart the app.",
                [MDFlatButton(text="OK", on_release=self.txt_dialog_closer)],
            )

    def on_resume(self):
        # Returning from the background is where Android reports a changed appearance.
        self.apply_appearance(resolve_dark_mode(self.appearance))
        self.render()

    # ---- theming ---------------------------------------------------------

    def apply_appearance(self, is_dark):
        self.is_dark = is_dark
        self.colors = palette_for(is_dark)
        self.theme_cls.theme_style = theme_style_for(is_dark)
        Logger.debug(f"Theme: using {theme_style_for(is_dark).lower()} palette")

    def toggle_theme(self):
        self.apply_appearance(not self.is_dark)
        self.render()

    # ---- rendering -------------------------------------------------------

    def render(self, *args):
        # Listener signature is render(state); on_start/toggle call it bare.
        if self.controller is None:
            return
        self.chat_screen.render(self.controller.state, self.colors, self.is_dark)

    # ---- dialogs ---------------------------------------------------------

    def show_text_dialog(self, title, text="", buttons=None):
        # Keep a reference so txt_dialog_closer can dismiss it.
        self.txt_dialog = MDDialog(
            title=title,
            text=text,
            buttons=buttons or [],
        )
        self.txt_dialog.open()

    def txt_dialog_closer(self, instance):
        self.txt_dialog.dismiss()

    # ---- actions wired from KV -------------------------------------------

    def send_message(self, button_instance, chat_input_widget):
        # Blank input and a pending request are both ignored silently.
        if self.controller is None:
            return
        self.controller.submit(chat_input_widget.text)

    def new_chat(self):
        if self.controller is None:
            return
        self.controller.reset_conversation(confirm=self.confirm_new_chat)

    def confirm_new_chat(self, proceed):
        def accept(instance):
            self.txt_dialog.dismiss()
            proceed()

        buttons = [
            MDFlatButton(
                text="Cancel",
                theme_text_color="Custom",
                text_color=self.theme_cls.primary_color,
                on_release=self.txt_dialog_closer,
            ),
            MDFlatButton(
                text="New Chat",
                theme_text_color="Custom",
                text_color=self.colors["error"],
                on_release=accept,
            ),
        ]
        self.show_text_dialog("New Chat", "Are you sure you want to start a new chat?", buttons)

    def toggle_speech(self, message_text):
        if self.controller is None:
            return
        self.controller.toggle_speech(message_text)


def main():
    MaverickApp().run()


# Standard Python entry point: only run the app when this file is executed directly.
if __name__ == '__main__':
    main()
