"""
Colour-coded progress output.

Every line goes through ``print`` so that the batch reads like the other
scripts in this repo; colours are dropped when the stream is not a tty
or ``NO_COLOR`` is set.
"""
import os
import sys

COLORS = {
    "reset": "\x1b[0m",
    "cyan": "\x1b[36m",
    "green": "\x1b[32m",
    "yellow": "\x1b[33m",
    "red": "\x1b[31m",
    "white": "\x1b[37m",
}


class Console:
    def __init__(self, stream=None, color=None):
        self.stream = stream if stream is not None else sys.stdout
        if color is None:
            color = not os.getenv("NO_COLOR") and hasattr(self.stream, "isatty") and self.stream.isatty()
        self.color = color

    def _emit(self, color: str, text: str):
        if self.color:
            text = f"{COLORS[color]}{text}{COLORS['reset']}"
        print(text, file=self.stream, flush=True)

    def info(self, msg: str):
        self._emit("green", f"[✓] {msg}")

    def warn(self, msg: str):
        self._emit("yellow", f"[⚠] {msg}")

    def error(self, msg: str):
        self._emit("red", f"[✗] {msg}")

    def loading(self, msg: str):
        self._emit("cyan", f"[⟳] {msg}")

    def process(self, msg: str):
        self._emit("white", f"\n[➤] {msg}")

    def critical(self, msg: str):
        self._emit("red", f"[❌] {msg}")

    def section(self, msg: str):
        bar = "=" * 50
        self._emit("cyan", f"\n{bar}\n{msg}\n{bar}\n")

    def banner(self):
        self._emit("cyan", "--- 0G Image Uploader ---\n")
