from typing import Callable


def color_text(text, color_code):
    return f"\033[{color_code}m{text}\033[0m"

def debug_text(text):
    return f"{color_text('DEBUG', '31')} {text}"

def info_text(text):
    return f"{color_text('INFO', '34')}  {text}"

def sending_text(text):
    return f"{color_text('SENDING  ', '32')} {text}"

def received_text(text):
    return f"{color_text('RECEIVED ', '35')} {text}"

def console_logger(enabled: bool = True) -> Callable[[str], None]:
    """Logger callback printing debug lines, or a no-op when disabled."""
    if not enabled:
        return lambda *_: None

    def log(message: str) -> None:
        for line in message.splitlines():
            print(debug_text(line))

    return log
