"""Console front end for the EN/ES voice chat.

Usage:
  python chat_cli.py                       # talk to the backend at $BACKEND_URL
  python chat_cli.py --backend http://host:5000 --mode literal
  python chat_cli.py --model-path models/model-en --no-speak

Type `help` at the prompt for the command list.
"""
import argparse
import asyncio
import functools
import logging

import config
from history import HistoryStore
from mic import AudioCapture
from session import MODES, InvalidTransition, Session
from STT import make_vosk_recognizer
from translator_client import RemoteTranslator
from TTS import SpeechOutput

HELP = """Commands:
  connect            request the microphone
  mic                start listening
  translate          send what you said
  disconnect         release the microphone
  mode natural|literal
  speak on|off
  history            show the conversation so far
  clear              clear the conversation
  quit"""


class ConsolePresenter:
    """Applies the session's view model to the terminal."""

    def __init__(self, out=print):
        self.out = out
        self.view = None
        self.history = []

    def render(self, view) -> None:
        self.view = view
        enabled = [name for name in ("connect", "mic", "translate", "disconnect", "mode", "speak", "clear")
                   if getattr(view, name)]
        self.out(f"{view.conn_status} | {view.mic_status} | available: {', '.join(enabled)}")

    def show_transcript(self, text: str) -> None:
        if text:
            self.out(f"  you: {text}")

    def show_lines(self, lines) -> None:
        self.out("You")
        self.out(f"  {lines.user_en}")
        self.out(f"  {lines.user_es}")
        self.out("Chatbot")
        self.out(f"  {lines.bot_en}")
        self.out(f"  {lines.bot_es}")

    def show_history(self, turns) -> None:
        self.history = list(turns)

    def print_history(self) -> None:
        if not self.history:
            self.out("(no history)")
        for turn in reversed(self.history):
            self.out(f"You: {turn.you_src} / {turn.you_tgt}")
            self.out(f"Chatbot: {turn.bot_src} / {turn.bot_tgt}")

    def alert(self, message: str) -> None:
        self.out(f"!! {message}")

    def allows(self, control: str) -> bool:
        return self.view is not None and getattr(self.view, control)


async def dispatch(session: Session, presenter: ConsolePresenter, line: str) -> bool:
    """Run one command line. Returns False when the user asked to quit."""
    parts = line.strip().split()
    if not parts:
        return True
    command, args = parts[0].lower(), parts[1:]

    if command in ("quit", "exit", "q"):
        return False
    if command == "help":
        presenter.out(HELP)
        return True
    if command == "history":
        presenter.print_history()
        return True

    controls = {"connect": "connect", "mic": "mic", "translate": "translate", "disconnect": "disconnect",
                "clear": "clear", "mode": "mode", "speak": "speak"}
    control = controls.get(command)
    if control is None:
        presenter.out(f"Unknown command {command!r}; type `help`")
        return True
    if not presenter.allows(control):
        presenter.out(f"`{command}` is not available right now")
        return True

    try:
        if command == "connect":
            await session.connect()
        elif command == "mic":
            await session.start_mic()
        elif command == "translate":
            await session.translate()
        elif command == "disconnect":
            await session.disconnect()
        elif command == "clear":
            session.clear_history()
        elif command == "mode":
            if not args or args[0] not in MODES:
                presenter.out(f"Mode is {session.mode}; choose one of: {', '.join(MODES)}")
            else:
                session.set_mode(args[0])
        elif command == "speak":
            if not args or args[0] not in ("on", "off"):
                presenter.out(f"Speak is {'on' if session.speak_enabled else 'off'}; use `speak on|off`")
            else:
                session.set_speak_enabled(args[0] == "on")
    except InvalidTransition as e:
        presenter.out(str(e))
    return True


def build_session(args, presenter: ConsolePresenter) -> Session:
    return Session(
        capture=AudioCapture(alert=presenter.alert),
        recognizer_factory=functools.partial(make_vosk_recognizer, model_path=args.model_path),
        translator=RemoteTranslator(base_url=args.backend),
        speech=SpeechOutput(),
        history=HistoryStore(args.history),
        presenter=presenter,
        mode=args.mode,
        speak_enabled=not args.no_speak,
    )


async def run(args) -> None:
    presenter = ConsolePresenter()
    session = build_session(args, presenter)
    presenter.out("Type `help` for commands.")
    try:
        while True:
            line = await asyncio.to_thread(input, "> ")
            if not await dispatch(session, presenter, line):
                break
    except (EOFError, KeyboardInterrupt):
        pass
    finally:
        await session.close()


def main(argv=None):
    parser = argparse.ArgumentParser(description="English/Spanish voice chat")
    parser.add_argument("--backend", default=config.BACKEND_URL, help="base URL of the chat backend")
    parser.add_argument("--history", default=str(config.HISTORY_PATH), help="history storage file")
    parser.add_argument("--model-path", default=config.VOSK_MODEL_PATH, help="Vosk model directory")
    parser.add_argument("--mode", choices=MODES, default="natural")
    parser.add_argument("--no-speak", action="store_true", help="do not speak the bot's replies")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    asyncio.run(run(args))


if __name__ == "__main__":
    main()
