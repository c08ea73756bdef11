"""Output formatting for teleterm.

Public API:
    OutputFormatter -- Sends the live terminal view
    format_terminal_chunks -- Tail, escape and chunk captured text
"""

from teleterm.output.formatter import MAX_BODY_LEN, OutputFormatter, format_terminal_chunks

__all__ = ["OutputFormatter", "format_terminal_chunks", "MAX_BODY_LEN"]
