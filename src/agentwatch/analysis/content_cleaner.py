"""Terminal content cleaner - escape sequence removal

Classification works on what a human would see: prompts, spinners and
punctuation are kept, terminal control sequences are not.
"""

import re


class ContentCleaner:
    """Terminal content cleaner

    Removes ANSI/VT escape sequences and stray control characters, trims
    trailing whitespace per line and drops the blank rows tmux pads the
    bottom of a pane with.
    """

    # CSI (colors, cursor moves), OSC (titles, hyperlinks), two-byte ESC sequences
    _ANSI_PATTERN = re.compile(
        r"\x1b\[[0-?]*[ -/]*[@-~]"
        r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"
        r"|\x1b[@-Z\\-_]"
    )
    # C0 controls except tab and newline, plus DEL
    _CONTROL_PATTERN = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]")

    @classmethod
    def strip_ansi(cls, text: str) -> str:
        """Remove escape sequences and control characters"""
        text = cls._ANSI_PATTERN.sub("", text)
        return cls._CONTROL_PATTERN.sub("", text)

    @classmethod
    def clean_lines(cls, content: str) -> list[str]:
        """Split into logical lines

        Args:
            content: Raw terminal content

        Returns:
            Lines without escapes or trailing whitespace; trailing blank
            lines removed, blank lines in between kept
        """
        content = content.replace("\r\n", "\n").replace("\r", "\n")
        lines = [line.rstrip() for line in cls.strip_ansi(content).split("\n")]
        while lines and not lines[-1]:
            lines.pop()
        return lines

    @classmethod
    def clean_capture(cls, content: str) -> str:
        """clean_lines() joined with newlines"""
        return "\n".join(cls.clean_lines(content))
