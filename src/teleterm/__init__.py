"""teleterm -- Remote terminal control over a Telegram chat.

This package lets a single authorized owner list local terminal sessions,
attach to one, type into it using an emoji-annotated keystroke syntax, and
receive snapshots of its visible output. Terminal access goes through a
pluggable backend (tmux on Linux, Accessibility APIs on macOS).
"""

__version__ = "0.1.0"
