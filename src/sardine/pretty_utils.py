"""
Internal utilities for pretty printing build progress.
"""
import rich.console


# Consoles without an explicit file follow sys.stdout/sys.stderr, so
# redirected or captured streams are respected.
_consoles = {
    'stdout': rich.console.Console(highlight=False),
    'stderr': rich.console.Console(stderr=True, highlight=False),
}


def print_with_style(*args, sep=' ', end='\n', file: str = 'stdout', style=None):
    """
    print() replacement writing through a rich console with an optional style.
    """
    _consoles[file].print(*args, sep=sep, end=end, style=style, markup=False, soft_wrap=True)


def format_elapsed(elapsed_ms: int, msg: str, info: str | None = None):
    """
    Format a timing line: the bracketed duration padded to a fixed column,
    followed by the message and an optional annotation.
    """
    time_info = f'[{elapsed_ms} ms]'
    line = f' - {time_info:<10}{msg}'
    if info:
        line += f' -> {info}'
    return line
