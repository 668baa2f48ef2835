"""
Display - вывод прогресса и результата в терминал
"""

import logging
import sys


logger = logging.getLogger(__name__)


class Colors:
    """ANSI цвета для терминала"""
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"


class Display:
    """Класс для вывода информации в терминал"""

    def __init__(self, use_colors: bool = True, stream=None):
        self.stream = stream or sys.stdout
        self.use_colors = use_colors and hasattr(self.stream, "isatty") and self.stream.isatty()
        self._last_label = None

    def _color(self, text: str, color: str) -> str:
        """Добавить цвет к тексту"""
        if not self.use_colors:
            return text
        return f"{color}{text}{Colors.RESET}"

    def _print(self, text: str = ""):
        print(text, file=self.stream, flush=True)

    def header(self, text: str):
        """Заголовок"""
        line = "=" * 60
        self._print(self._color(line, Colors.CYAN))
        self._print(self._color(f"  {text}", Colors.BOLD + Colors.CYAN))
        self._print(self._color(line, Colors.CYAN))

    def separator(self):
        self._print(self._color("-" * 60, Colors.DIM))

    def info(self, text: str):
        self._print(self._color(f"  {text}", Colors.WHITE))

    def success(self, text: str):
        self._print(self._color(f"  ✓ {text}", Colors.GREEN))

    def warning(self, text: str):
        self._print(self._color(f"  ⚠ {text}", Colors.YELLOW))

    def error(self, text: str):
        self._print(self._color(f"  ✗ {text}", Colors.RED))

    def step_progress(self, label: str, message: str):
        """Прогресс шага: label печатается один раз на шаг"""
        if label != self._last_label:
            self._print(self._color(f"• {label}", Colors.BOLD + Colors.BLUE))
            self._last_label = label
        for line in message.splitlines():
            self._print(self._color(f"    → {line}", Colors.DIM))

    def report(self, text: str, failed: bool = False):
        """Итоговый отчёт по run"""
        self.separator()
        color = Colors.RED if failed else Colors.GREEN
        for i, line in enumerate(text.splitlines()):
            self._print(self._color(f"  {line}", color if i == 0 else Colors.WHITE))
        self.separator()
