"""
Main entry point for Piano Transcriber.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from piano_transcriber.config import get_config
from piano_transcriber.core.errors import PianoTranscriberError
from piano_transcriber.core.session import SongSession
from piano_transcriber.core.transcription import (
    MockTranscriber,
    TranscriptionResult,
    load_transcription,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="piano-transcriber",
        description="Render, export and play back transcribed piano songs.",
    )
    parser.add_argument("transcription", nargs="?", help="Transcription JSON file")
    parser.add_argument("--audio", help="Audio file to play (and mock-transcribe if no JSON)")
    parser.add_argument("--abc", action="store_true", help="Print ABC notation")
    parser.add_argument(
        "--export-layout", choices=["sheet", "lyrics"],
        help="Print the export layout request as JSON",
    )
    parser.add_argument("--musicxml", help="Write MusicXML to this path")
    parser.add_argument("--midi", help="Write MIDI to this path")
    parser.add_argument("--play", action="store_true", help="Play the song with note triggering")
    parser.add_argument("--volume", type=float, help="Playback volume 0-100")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _load_song(args) -> TranscriptionResult:
    if args.transcription:
        return load_transcription(args.transcription)
    if args.audio:
        from piano_transcriber.audio.decoder import decode_audio
        buffer = decode_audio(Path(args.audio).read_bytes())
        return MockTranscriber().transcribe(args.audio, buffer.duration)
    raise FileNotFoundError("Provide a transcription JSON file or --audio")


def _play(args, song: TranscriptionResult) -> int:
    """Run playback under a Qt event loop until the piece ends."""
    from PySide6.QtCore import QCoreApplication
    
    from piano_transcriber.audio.sink import PygameAudioSink
    from piano_transcriber.gui.playback_driver import QtDispatcher, QtPlaybackDriver
    
    if not args.audio:
        logger.error("--play requires --audio")
        return 2
    
    config = get_config()
    app = QCoreApplication.instance() or QCoreApplication(sys.argv)
    app.setApplicationName("Piano Transcriber")
    
    sink = PygameAudioSink(config.playback.sample_rate, config.playback.synth_amplitude)
    dispatcher = QtDispatcher()
    session = SongSession(sink, config, dispatch=dispatcher.dispatch)
    driver = QtPlaybackDriver(session.clock, config.playback.tick_interval_ms)
    exit_code = {"value": 0}
    
    def on_loaded(loaded: TranscriptionResult):
        if args.volume is not None:
            session.clock.set_volume(args.volume)
        try:
            session.clock.play()
        except PianoTranscriberError as e:
            logger.error(str(e))
            exit_code["value"] = 1
            app.quit()
    
    def on_failed(error):
        logger.error(str(error))
        exit_code["value"] = 1
        app.quit()
    
    session.set_loaded_callback(on_loaded)
    session.set_load_error_callback(on_failed)
    driver.note_triggered.connect(lambda event: print(f"{event.start_time:6.2f}s  {event.pitch}"))
    driver.position_changed.connect(
        lambda pos: logger.debug(f"{pos.time_str}  {session.active_pitch_names(pos.current_time)}")
    )
    driver.playback_ended.connect(app.quit)
    driver.playback_error.connect(on_failed)
    
    session.request_load(Path(args.audio).read_bytes(), song)
    app.exec()
    driver.shutdown()
    return exit_code["value"]


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    
    try:
        song = _load_song(args)
    except (OSError, ValueError, PianoTranscriberError) as e:
        logger.error(f"Could not load song: {e}")
        return 1
    
    config = get_config()
    if args.transcription:
        config.add_recent_file(str(Path(args.transcription).resolve()))
    
    if args.abc or args.export_layout:
        from piano_transcriber.core.notation import NotationEncoder
        from piano_transcriber.export.layout import build_lyrics_request, build_sheet_request
        
        notation = NotationEncoder(config.notation).encode(song.notes, song.lyrics, song.title)
        if args.abc:
            print(notation.text)
        if args.export_layout == "lyrics":
            request = build_lyrics_request(song.title, song.lyrics, config.export)
            print(json.dumps(request.to_dict(), indent=2, ensure_ascii=False))
        elif args.export_layout == "sheet":
            request = build_sheet_request(notation, song.lyrics, config.export)
            print(json.dumps(request.to_dict(), indent=2, ensure_ascii=False))
    
    if args.musicxml:
        from piano_transcriber.export.musicxml_exporter import MusicXMLExporter
        MusicXMLExporter(notation=config.notation).export(song, args.musicxml)
    
    if args.midi:
        from piano_transcriber.export.midi_exporter import MidiExporter
        MidiExporter(notation=config.notation).export(song, args.midi)
    
    if args.play:
        return _play(args, song)
    
    return 0


if __name__ == "__main__":
    sys.exit(main())
