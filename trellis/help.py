"""
Help rendering: usage line, command and flag lists, hints and footers.

Layout (sections are skipped when they do not apply)

    <long description>

    Usage:  app inner <command> [flags] [arguments]

            Commands:
            simple          say hello
            not-runnable    command containing a help topic

            Flags:
            -name (string)  your name (default "World")
            -help           show help message

    Use "app help inner <command>" for more information about that command.
    <footer>

Columns are aligned with elastic tabstops: the text is written with tab
separated cells and TabWriter pads every column of a block of consecutive
lines to its widest cell plus a fixed padding.
"""
from .capabilities import Capability, nameof, probe, subcommands
from .faults import MissingImplementationError, UnknownCommandError
from .flags import unquote_usage
from .tree import path_tokens
from .utils import quote


class TabWriter:
    """
    Buffer tab-separated text and align it into columns on flush().

    A cell is the text before a tab; the last cell of a line is not part of
    any column. A column block is a run of consecutive lines that all have a
    cell in that column; every cell of the block is padded with spaces to
    the widest cell of the block plus `padding`.
    """

    def __init__(self, output, *, minwidth=0, padding=8):
        self._output = output
        self._minwidth = minwidth
        self._padding = padding
        self._buffer = []

    def write(self, text):
        self._buffer.append(text)
        return len(text)

    def flush(self):
        text = "".join(self._buffer)
        self._buffer.clear()
        if not text:
            return
        lines = text.split("\n")
        terminated = [True] * (len(lines) - 1) + [False]
        if lines[-1] == "":
            lines.pop()
            terminated.pop()
        cells = [line.split("\t") for line in lines]
        rendered = []
        self._format(cells, 0, len(cells), [], rendered)
        self._output.write("".join(
            line + ("\n" if ending else "") for line, ending in zip(rendered, terminated)
        ))

    def _format(self, cells, first, last, widths, rendered):
        column = len(widths)
        start = first
        index = first
        while index < last:
            if column >= len(cells[index]) - 1:
                index += 1
                continue
            # A cell exists in this column: lines before it are printed with
            # the current widths, then the column block is measured.
            self._emit(cells, start, index, widths, rendered)
            start = index
            width = self._minwidth
            while index < last and column < len(cells[index]) - 1:
                width = max(width, len(cells[index][column]) + self._padding)
                index += 1
            self._format(cells, start, index, widths + [width], rendered)
            start = index
        self._emit(cells, start, last, widths, rendered)

    @staticmethod
    def _emit(cells, first, last, widths, rendered):
        for line in cells[first:last]:
            parts = []
            for column, cell in enumerate(line):
                parts.append(cell)
                if column < len(widths) and column < len(line) - 1:
                    parts.append(" " * (widths[column] - len(cell)))
            rendered.append("".join(parts))


class Helper:
    """
    Render the help of one command to an output sink.

    Parameters
    - output: writable text sink (anything with write(str)).
    - binary: name of the root command.
    - command: the command whose help is rendered.
    - breadcrumb: names from below the root down to command.
    - arguments: the invocation arguments, without a leading "help".
    - flags: the FlagSet composed for the invocation.

    render() writes the help, then raises MissingImplementationError when the
    command offers nothing (no run, commands, long or foot), or
    UnknownCommandError when the command cannot run and the arguments name
    more path segments than were matched.
    """

    def __init__(self, output, binary, command, breadcrumb, arguments, flags):
        self.output = output
        self.binary = binary
        self.command = command
        self.breadcrumb = tuple(breadcrumb)
        self.arguments = list(arguments)
        self.flags = flags
        self.commands = subcommands(command)
        self.long = probe(command, Capability.LONGER)
        self.foot = probe(command, Capability.FOOTER)
        self.runnable = probe(command, Capability.RUNNABLE) is not None
        self.usable = self.runnable or probe(command, Capability.PARENT) is not None

    def render(self):
        write = self.output.write
        command = " ".join(self.breadcrumb)
        placeholder = " <command>" if self.commands else ""

        if self.long is not None:
            write(f"{self.long()}\n")
            if self.usable:
                write("\n")
        if self.usable:
            route = " ".join(part for part in (self.binary, command) if part)
            write(f"Usage:  {route}{placeholder} [flags] [arguments]\n\n")

        writer = TabWriter(self.output)
        self._commands(writer)
        if self.usable:
            self._flags(writer)
        if self.commands:
            route = " ".join(part for part in (self.binary, "help", command) if part)
            writer.write(f'Use "{route}{placeholder}" for more information about that command.\n')
        writer.flush()

        if self.foot is not None:
            write(f"{self.foot()}\n")

        if not self.usable and self.long is None and self.foot is None:
            raise MissingImplementationError(self.breadcrumb, prog=self.binary)

        segments = path_tokens(self.arguments)
        if not self.runnable and len(segments) > len(self.breadcrumb):
            raise UnknownCommandError(
                (self.binary, *segments[:len(self.breadcrumb) + 1]),
                prog=self.binary,
                hint=f"run '{self.binary} help' to list the available commands",
            )

    def _commands(self, writer):
        if not self.commands:
            return
        writer.write("\tCommands:\n\t")
        for child in self.commands:
            short = probe(child, Capability.SHORTER)
            writer.write(f"{nameof(child)}\t{short() if short is not None else ''}\n\t")
        writer.write("\t\t\n")

    def _flags(self, writer):
        writer.write("\tFlags:\t\n")  # the trailing tab keeps Flags: in the command column
        if self.flags is not None:
            self.flags.visit_all(lambda flag: writer.write(describe(flag)))
        writer.write("\t-help\tshow help message\n\n")


def describe(flag, /):
    """
    Return the help line of a flag: "\\t-name (type)\\tusage (default value)\\n".

    Boolean flags have no type tag. The default is omitted when it is the
    zero value of the flag's type and quoted when the type is "string".
    """
    typename, usage = unquote_usage(flag)
    if typename:
        line = f"\t-{flag.name} ({typename})\t{usage}"
    else:
        line = f"\t-{flag.name}\t{usage}"
    if flag.is_zero_value():
        return line + "\n"
    if typename == "string":
        return line + f" (default {quote(flag.default)})\n"
    return line + f" (default {flag.default})\n"


__all__ = (
    "Helper",
    "TabWriter",
    "describe",
)
