"""Light and dark palettes and detection of the device appearance."""

from kivy.logger import Logger
from kivy.utils import get_color_from_hex, platform

LIGHT = {
    "background": "#f5f5f5",
    "header": "#ffffff",
    "text": "#000000",
    "input": "#ffffff",
    "input_text": "#000000",
    "placeholder": "#666666",
    "user_bubble": "#6e48aa",
    "bot_bubble": "#e0e0e0",
    "user_text": "#ffffff",
    "send_button": "#6e48aa",
    "border": "#dddddd",
    "error": "#ff4444",
    "empty_text": "#666666",
}

DARK = {
    "background": "#121212",
    "header": "#1f1f1f",
    "text": "#ffffff",
    "input": "#2a2a2a",
    "input_text": "#ffffff",
    "placeholder": "#aaaaaa",
    "user_bubble": "#6e48aa",
    "bot_bubble": "#2a2a2a",
    "user_text": "#ffffff",
    "send_button": "#6e48aa",
    "border": "#333333",
    "error": "#ff6b6b",
    "empty_text": "#aaaaaa",
}


def palette_for(is_dark):
    """Return the palette as RGBA lists, ready for Kivy color properties."""
    source = DARK if is_dark else LIGHT
    return {name: get_color_from_hex(value) for name, value in source.items()}


def theme_style_for(is_dark):
    # KivyMD theme_cls.theme_style values
    return "Dark" if is_dark else "Light"


def system_prefers_dark():
    """Ask the host whether it is in dark mode. Only Android reports it."""
    if platform != "android":
        return False
    try:
        from jnius import autoclass
        PythonActivity = autoclass("org.kivy.android.PythonActivity")
        Configuration = autoclass("android.content.res.Configuration")
        ui_mode = PythonActivity.mActivity.getResources().getConfiguration().uiMode
        return (ui_mode & Configuration.UI_MODE_NIGHT_MASK) == Configuration.UI_MODE_NIGHT_YES
    except Exception as e:
        Logger.warning(f"Theme: could not read the system appearance: {e}")
        return False


def resolve_dark_mode(appearance, detect=system_prefers_dark):
    """Apply the configured override, falling back to the device setting."""
    if appearance == "dark":
        return True
    if appearance == "light":
        return False
    return detect()
