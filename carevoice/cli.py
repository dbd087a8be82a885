#!/usr/bin/env python3
"""
CareVoice command line.

Usage:
    carevoice run                      # Voice loop: Enter toggles the mic, q quits
    carevoice text "add aspirin 1 pill at 8am"
    carevoice summary                  # Speak today's summary
    carevoice remind-check             # Run one reminder tick and print what fired
    carevoice --config path/to/config.yaml run
"""

import argparse
import os
import sys

from carevoice.config import load_config
from carevoice.logger import FILE_ONLY_ENV, configure_logging


def _cmd_run(config) -> int:
    from carevoice.assistant import CareAssistant
    from carevoice.speech_engine import WhisperSpeechEngine

    assistant = CareAssistant.from_config(config, engine=WhisperSpeechEngine(config))
    assistant.start()
    print("Press Enter to start/stop listening, 'q' + Enter to quit.")
    try:
        for line in sys.stdin:
            if line.strip().lower() in ("q", "quit", "exit"):
                break
            assistant.press_mic()
            state = "listening" if assistant.session.is_listening else "idle"
            print(f"[{state}]")
    except KeyboardInterrupt:
        pass
    finally:
        assistant.shutdown()
    return 0


def _cmd_text(config, command: str) -> int:
    from carevoice.assistant import CareAssistant

    assistant = CareAssistant.from_config(config)
    assistant.process_command(command)
    return 0


def _cmd_summary(config) -> int:
    from carevoice.assistant import CareAssistant
    from carevoice.intents import GetDailySummary

    assistant = CareAssistant.from_config(config)
    assistant.dispatcher.dispatch_one(GetDailySummary())
    return 0


def _cmd_remind_check(config) -> int:
    from carevoice.assistant import CareAssistant

    assistant = CareAssistant.from_config(config)
    fired = assistant.scheduler.tick()
    if not fired:
        print("  (nothing due this minute)")
    for reminder in fired:
        print(f"  {reminder['tag']:45s} | {reminder['body']}")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="carevoice",
                                     description="Voice-driven medication and appointment assistant")
    parser.add_argument("--config", help="Path to config.yaml")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("run", help="Voice loop with reminders")
    text_p = sub.add_parser("text", help="Interpret and apply one typed command")
    text_p.add_argument("words", nargs="+")
    sub.add_parser("summary", help="Speak the daily summary")
    sub.add_parser("remind-check", help="Run one reminder tick")
    args = parser.parse_args(argv)

    if args.command != "run":
        # Keep stdout for announcements only
        os.environ.setdefault(FILE_ONLY_ENV, "1")

    config = load_config(args.config)
    configure_logging(config, force=True)

    if args.command == "run":
        return _cmd_run(config)
    if args.command == "text":
        return _cmd_text(config, " ".join(args.words))
    if args.command == "summary":
        return _cmd_summary(config)
    return _cmd_remind_check(config)


if __name__ == "__main__":
    sys.exit(main())
