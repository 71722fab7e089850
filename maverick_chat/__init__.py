"""MaVerickAi: a Kivy/KivyMD chat client for the Gemini generateContent API."""

__version__ = "0.3.0"
