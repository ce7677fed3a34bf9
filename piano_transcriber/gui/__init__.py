"""
Qt integration for Piano Transcriber.

Provides the QTimer-driven tick driver and the cross-thread dispatcher.
"""

from piano_transcriber.gui.playback_driver import QtDispatcher, QtPlaybackDriver

__all__ = ["QtDispatcher", "QtPlaybackDriver"]
