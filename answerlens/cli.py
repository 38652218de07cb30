"""
Interactive AnswerLens CLI
==========================

Terminal front end for the capture / crop / analyze workflow.
Stands in for the camera and crop widget: images are loaded from disk and
crop rectangles are typed in display coordinates.
"""

import argparse
import asyncio
import logging
import shlex
import threading
from dataclasses import replace
from pathlib import Path

from answerlens.config import load_settings
from answerlens.pipeline.geometry import display_rect
from answerlens.view import AppController
from answerlens.view.app import HISTORY_TAB


# Color codes for terminal output
class Colors:
    HEADER = '\033[95m'
    OKBLUE = '\033[94m'
    OKCYAN = '\033[96m'
    OKGREEN = '\033[92m'
    WARNING = '\033[93m'
    FAIL = '\033[91m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'


def print_header(text):
    """Print a styled header."""
    print(f"\n{Colors.HEADER}{Colors.BOLD}{'='*60}{Colors.ENDC}")
    print(f"{Colors.HEADER}{Colors.BOLD}{text.center(60)}{Colors.ENDC}")
    print(f"{Colors.HEADER}{Colors.BOLD}{'='*60}{Colors.ENDC}\n")


def print_menu():
    """Print the available commands."""
    print(f"\n{Colors.OKCYAN}{Colors.BOLD}Commands:{Colors.ENDC}")
    print(f"  {Colors.OKBLUE}load <path>{Colors.ENDC}          Load an image (camera / gallery)")
    print(f"  {Colors.OKBLUE}render <w> <h>{Colors.ENDC}       Set the on-screen size of the image")
    print(f"  {Colors.OKBLUE}crop <x> <y> <w> <h>{Colors.ENDC} Select a region in display coordinates")
    print(f"  {Colors.OKBLUE}confirm{Colors.ENDC}              Confirm the crop")
    print(f"  {Colors.OKBLUE}recrop{Colors.ENDC}               Crop the same image again")
    print(f"  {Colors.OKBLUE}submit{Colors.ENDC}               Analyze the cropped image")
    print(f"  {Colors.OKBLUE}new{Colors.ENDC}                  Discard the current capture")
    print(f"  {Colors.OKBLUE}tab <capture|history>{Colors.ENDC} Switch screen")
    print(f"  {Colors.OKBLUE}toggle <n>{Colors.ENDC}           Expand / collapse history entry n")
    print(f"  {Colors.OKBLUE}status{Colors.ENDC}               Show the current screen")
    print(f"  {Colors.FAIL}quit{Colors.ENDC}                 Exit")
    print()


def display_capture(app: AppController):
    screen = app.capture_screen()
    if screen.state == "done":
        state_color = Colors.OKGREEN
    elif screen.state == "submitting":
        state_color = Colors.WARNING
    else:
        state_color = Colors.OKBLUE

    print(f"\n{Colors.BOLD}Capture:{Colors.ENDC}")
    print(f"  State: {state_color}{screen.state}{Colors.ENDC}")
    view = app.capture.view()
    rect = getattr(view, "rect", None)
    if rect is not None:
        print(f"  Crop: ({rect.x:.0f}, {rect.y:.0f}) {rect.width:.0f}x{rect.height:.0f}"
              f" on {rect.bounds.width:.0f}x{rect.bounds.height:.0f}")
    if screen.preview is not None:
        print(f"  Cropped image: {screen.preview.width}x{screen.preview.height}")
    if screen.message:
        print(f"  {screen.message}")


def display_history(app: AppController):
    screen = app.history_screen()
    print(f"\n{Colors.BOLD}History:{Colors.ENDC}")
    if screen.placeholder:
        print(f"  {screen.placeholder}")
        return
    for index, card in enumerate(screen.cards):
        marker = "-" if card.expanded else "+"
        print(f"  {Colors.OKBLUE}{index}{Colors.ENDC} [{marker}] {card.text}")
        if card.expanded:
            print(f"      {Colors.OKCYAN}{card.timestamp}{Colors.ENDC}  (toggle {index} to collapse)")


def display(app: AppController):
    if app.active_tab == HISTORY_TAB:
        display_history(app)
    else:
        display_capture(app)


class CommandLoop:
    """Parses commands and applies them to an AppController."""

    def __init__(self, app: AppController):
        self.app = app
        self.pending = set()

    def _spawn_submit(self):
        task = asyncio.ensure_future(self._submit())
        self.pending.add(task)
        task.add_done_callback(self.pending.discard)

    async def _submit(self):
        await self.app.analyze()
        print(f"\n{Colors.OKGREEN}✓ Analysis finished{Colors.ENDC}")
        display(self.app)

    def handle(self, line: str) -> bool:
        """Apply one command line. Returns False when the user wants to quit."""
        try:
            parts = shlex.split(line)
        except ValueError as e:
            print(f"{Colors.FAIL}✗ {e}{Colors.ENDC}")
            return True
        if not parts:
            return True

        cmd, args = parts[0].lower(), parts[1:]
        app = self.app

        try:
            if cmd in ("quit", "exit"):
                return False
            elif cmd == "help":
                print_menu()
                return True
            elif cmd == "load":
                app.load_image(Path(args[0]).read_bytes())
            elif cmd == "render":
                app.render(float(args[0]), float(args[1]))
            elif cmd == "crop":
                x, y, w, h = (float(a) for a in args[:4])
                display_size = app.capture.session.display
                if display_size is None:
                    print(f"{Colors.FAIL}✗ Render the image first (render <w> <h>){Colors.ENDC}")
                    return True
                rect = display_rect(x, y, w, h, display_size)
                app.adjust_crop(rect)
                app.complete_crop(rect)
            elif cmd == "confirm":
                app.confirm_crop()
            elif cmd == "recrop":
                app.recrop()
            elif cmd == "submit":
                self._spawn_submit()
            elif cmd == "new":
                app.new_capture()
            elif cmd == "tab":
                app.switch_tab(args[0])
            elif cmd == "toggle":
                cards = app.history_screen().cards
                app.toggle_history(cards[int(args[0])].entry.id)
            elif cmd == "status":
                pass
            else:
                print(f"{Colors.FAIL}✗ Unknown command '{cmd}'. Type 'help'.{Colors.ENDC}")
                return True
        except (IndexError, ValueError) as e:
            print(f"{Colors.FAIL}✗ Bad arguments for '{cmd}': {e}{Colors.ENDC}")
            return True
        except OSError as e:
            print(f"{Colors.FAIL}✗ {e}{Colors.ENDC}")
            return True

        display(app)
        return True

    def _start_reader(self, lines: asyncio.Queue, prompt=input):
        """
        Read stdin on a daemon thread so a blocked input() never holds up
        interpreter shutdown. EOF is signalled with None.
        """
        loop = asyncio.get_running_loop()

        def read():
            while True:
                try:
                    line = prompt(f"{Colors.BOLD}answerlens> {Colors.ENDC}")
                except (EOFError, KeyboardInterrupt):
                    line = None
                try:
                    loop.call_soon_threadsafe(lines.put_nowait, line)
                except RuntimeError:
                    return  # loop already closed
                if line is None:
                    return

        thread = threading.Thread(target=read, name="stdin-reader", daemon=True)
        thread.start()
        return thread

    async def run(self, prompt=input):
        lines = asyncio.Queue()
        print_menu()
        self._start_reader(lines, prompt)
        try:
            while True:
                line = await lines.get()
                if line is None or not self.handle(line):
                    break
        finally:
            for task in list(self.pending):
                task.cancel()
            await self.app.capture.client.aclose()


def main(argv=None):
    parser = argparse.ArgumentParser(description="AnswerLens interactive client")
    parser.add_argument("--config", help="Path to a settings YAML file")
    parser.add_argument("--endpoint", help="Analysis endpoint URL (overrides settings)")
    args = parser.parse_args(argv)

    settings = load_settings(args.config)
    if args.endpoint:
        settings = replace(settings, endpoint_url=args.endpoint)

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    print_header("AnswerLens - Interactive Capture")
    app = AppController.from_settings(settings)

    try:
        asyncio.run(CommandLoop(app).run())
    except (KeyboardInterrupt, EOFError):
        print(f"\n\n{Colors.WARNING}Interrupted by user{Colors.ENDC}")
    finally:
        print(f"\n{Colors.OKGREEN}Goodbye!{Colors.ENDC}\n")


if __name__ == '__main__':
    main()
