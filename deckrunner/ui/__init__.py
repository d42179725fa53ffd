"""
Toolkit-specific front-end helpers. Importing ``deckrunner.ui.qt_sink``
requires PySide6.
"""
