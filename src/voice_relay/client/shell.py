#!/usr/bin/env python3
"""Voice Relay CLI - terminal client for the voice relay server.

Type a message to hear the reply spoken, or use slash commands to prepare,
replay and stop audio.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
import sys
from typing import Optional

from rich.console import Console
from rich.prompt import Prompt
from rich.style import Style

from .api import VoiceApiClient
from .controller import VoiceController
from .player import AudioPlayer

ERROR_STYLE = Style(color="red", bold=True)
INFO_STYLE = Style(color="cyan")

HELP_TEXT = """\
[bold]Commands[/bold]
  <text>           Speak: prepare the reply and play it
  /send <text>     Prepare the reply without playing it
  /speak <text>    Same as typing plain text
  /play            Play the prepared reply again
  /stop            Stop playback
  /lang <code>     Set the reply language (currently {language})
  /status          Show the client state
  /help            Show this help
  /quit            Exit
"""


class VoiceShell:
    """Interactive loop around a ``VoiceController``."""

    def __init__(
        self,
        server_url: str,
        language: str = "en",
        player_command: Optional[str] = None,
    ):
        self.console = Console()
        self.language = language
        self.running = True
        self.api = VoiceApiClient(server_url)
        self.controller = VoiceController(
            self.api,
            AudioPlayer(player_command),
            alert=self._alert,
            status=self._status,
        )

    def _alert(self, message: str) -> None:
        self.console.print(message, style=ERROR_STYLE, markup=False)

    def _status(self, message: str) -> None:
        self.console.print(message, style="dim", markup=False)

    async def _check_health(self) -> bool:
        """Check if the relay is reachable."""
        try:
            data = await self.api.health()
        except Exception as e:
            self.console.print(
                f"Cannot connect to server: {e}", style=ERROR_STYLE, markup=False
            )
            return False
        clone = "on" if data.get("voice_clone_configured") else "off"
        self.console.print(
            f"[dim]Connected. Model: {data.get('text_model', 'unknown')}, "
            f"cloned voice: {clone}[/dim]"
        )
        return True

    async def handle_command(self, line: str) -> None:
        command, _, argument = line.partition(" ")
        command = command.lower()
        argument = argument.strip()

        if command in ("/quit", "/exit"):
            self.running = False
        elif command == "/help":
            self.console.print(HELP_TEXT.format(language=self.language))
        elif command == "/send":
            await self.controller.send(argument, self.language)
        elif command == "/speak":
            await self.controller.speak(argument, self.language)
        elif command == "/play":
            self.controller.play()
        elif command == "/stop":
            self.controller.stop()
        elif command == "/lang":
            if argument:
                self.language = argument
            self.console.print(f"Language: {self.language}", style=INFO_STYLE)
        elif command == "/status":
            self.console.print(
                f"State: {self.controller.state.value}", style=INFO_STYLE
            )
        else:
            self._alert(f"Unknown command: {command}. Type /help.")

    async def run(self) -> None:
        """Main input loop."""
        if not await self._check_health():
            return

        self.console.print()
        self.console.print(
            "[bold]Voice Relay[/bold] - Type /help for commands, Ctrl+D to exit",
            style=INFO_STYLE,
        )
        self.console.print()

        try:
            while self.running:
                self.controller.poll()
                try:
                    user_input = Prompt.ask("[bold blue]You[/bold blue]")
                except EOFError:
                    self.console.print("\n[dim]Goodbye![/dim]")
                    break
                except KeyboardInterrupt:
                    self.console.print()
                    continue

                user_input = user_input.strip()
                if not user_input:
                    continue
                if user_input.startswith("/"):
                    await self.handle_command(user_input)
                else:
                    await self.controller.speak(user_input, self.language)
        finally:
            self.controller.close()
            await self.api.aclose()


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Voice Relay - terminal client for the voice relay server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  voice-relay-client                            Connect to localhost:8000
  voice-relay-client --server http://pi:8000    Connect to a remote relay
  voice-relay-client --player "mpv --really-quiet"

Environment Variables:
  VOICE_RELAY_SERVER    Default server URL
""",
    )
    parser.add_argument(
        "--server",
        "-s",
        default=os.environ.get("VOICE_RELAY_SERVER", "http://localhost:8000"),
        help="Relay server URL (default: http://localhost:8000)",
    )
    parser.add_argument(
        "--language",
        "-l",
        default="en",
        help="Reply language code (default: en)",
    )
    parser.add_argument(
        "--player",
        default=None,
        help="Command used to play WAV files (default: afplay/aplay/paplay/ffplay)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log client activity to stderr",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    def signal_handler(sig, frame):
        print("\nExiting...")
        sys.exit(0)

    signal.signal(signal.SIGTERM, signal_handler)

    shell = VoiceShell(args.server, language=args.language, player_command=args.player)
    try:
        asyncio.run(shell.run())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
