"""
Eclipt faults (parse errors, help signal, warnings) and rendering.

Scope
- FaultKind: closed set of fault kinds; the string values are stable and are
  what callers compare against ("unknown-opt", "no-action", ...).
- Fault: the tagged value returned by a parse that did not reach an action.
  It knows its headline message and how to render itself (colored message +
  short usage for failures, full help for the help signal).
- ParsingError: exception wrapper for callers who prefer raising over
  inspecting returned values.
- ReservedAliasWarning: declaration-time warning for the reserved 'h' alias.
- show()/trigger(): surface a fault on a rich console (and exit on failure).

Faults are values: the parser returns them up the recursion, it never raises
them. Only trigger(..., shell=False) turns a failure into an exception.
"""
import sys
from enum import StrEnum

from rich.console import Console
from rich.text import Text

from . import helper
from .utils import *

stdout = Console(highlight=False)

ESCAPE = "\x1b[38;5;203m"
RESET = "\x1b[0m"


class FaultKind(StrEnum):
    """
    closed set of fault kinds.

    every kind except HELP is a failure; HELP travels through the same channel
    but carries the rendered help text instead of an error message.
    """
    UNKNOWN_OPT = "unknown-opt"
    NOT_MULTI = "not-multi"
    FLAG_VAL = "flag-val"
    MISSING_VAL = "missing-val"
    UNKNOWN_ALIAS = "unknown-alias"
    BAD_ARGS = "bad-args"
    UNKNOWN_COMMAND = "unknown-command"
    NO_ACTION = "no-action"
    HELP = "help"

    @property
    def failure(self):
        return self is not FaultKind.HELP


MESSAGES = {
    FaultKind.UNKNOWN_OPT: lambda fault: "Option --%s does not exist in this context" % fault.token,
    FaultKind.NOT_MULTI: lambda fault: "Option %s cannot be set more than once" % helper.definition(fault.option),
    FaultKind.FLAG_VAL: lambda fault: "Option %s cannot be assigned a value" % helper.definition(fault.option),
    FaultKind.MISSING_VAL: lambda fault: "Option %s requires a value but none was supplied" % helper.definition(fault.option),
    FaultKind.UNKNOWN_ALIAS: lambda fault: "Option -%s does not exist in this context" % fault.token,
    FaultKind.BAD_ARGS: lambda fault: "Required %d arguments but %d were supplied" % (len(fault.spec.positionals), fault.count),
    FaultKind.UNKNOWN_COMMAND: lambda fault: "Command '%s' does not exist in this context" % fault.token,
    FaultKind.NO_ACTION: lambda fault: "You must choose one of the available commands",
}

# failures that list the available commands under the usage line
LISTING = frozenset({FaultKind.UNKNOWN_COMMAND, FaultKind.NO_ACTION})


class Fault:
    """
    Structured outcome of a parse that did not reach a terminal action.

    Attributes
    - kind: FaultKind
    - scope: Scope where the fault was detected (spec + name + path)
    - token: offending text (option name, alias or command name) or None
    - option: the Opt involved or None
    - count: number of positional arguments supplied (bad-args) or None
    - colorful: whether the headline is wrapped in an ANSI color escape

    Derived
    - spec: the Command at the point of failure
    - error: False only for the help signal
    - message: headline text (None for help)
    - output: the full rendered text
    """

    __slots__ = ("kind", "scope", "token", "option", "count", "colorful")

    def __init__(self, kind, scope, /, *, token=None, option=None, count=None, colorful=True):
        self.kind = FaultKind(kind)
        self.scope = scope
        self.token = token
        self.option = option
        self.count = count
        self.colorful = bool(colorful)

    @property
    def spec(self):
        return self.scope.spec

    @property
    def error(self):
        return self.kind.failure

    @property
    def message(self):
        if not self.error:
            return None
        return MESSAGES[self.kind](self)

    @property
    def output(self):
        if not self.error:
            return helper.full(self.scope)

        headline = ESCAPE + self.message + RESET if self.colorful else self.message
        return "\n" + headline + "\n" + helper.brief(self.scope, listing=self.kind in LISTING)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.kind, self.scope, **{
            "token": self.token,
            "option": self.option,
            "count": self.count,
            "colorful": self.colorful,
        } | overrides)

    def __eq__(self, other):
        if not isinstance(other, Fault):
            return NotImplemented
        return self.kind is other.kind and self.output == other.output

    __hash__ = None

    def __rich__(self):
        return Text.from_ansi(self.output)

    def __rich_repr__(self):
        yield "kind", self.kind.value
        yield "name", self.scope.name
        yield "path", self.scope.path
        if self.token is not None:
            yield "token", self.token
        if self.option is not None:
            yield "option", self.option.name
        if self.count is not None:
            yield "count", self.count

    def __repr__(self):
        return "fault(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


class ParsingError(Exception):
    """
    Exception carrying a failure Fault (see trigger(..., shell=False)).
    """

    def __init__(self, fault, /):
        if not isinstance(fault, Fault):
            raise TypeError("ParsingError() argument must be a fault")
        super().__init__(fault.message)
        self.fault = fault

    @property
    def kind(self):
        return self.fault.kind


class ReservedAliasWarning(UserWarning):
    """
    An option declared the alias 'h', which always resolves to help.
    """


def show(fault, /, *, console=Unset):
    """
    print the rendered fault on a rich console (standard output by default).
    """
    if not isinstance(fault, Fault):
        raise TypeError("show() argument must be a fault")
    coalesce(console, stdout).print(fault, soft_wrap=True)


def trigger(fault, /, *, shell=True, console=Unset):
    """
    surface a fault the way a process entry point should.

    contract
    - shell mode: print the rendered output; exit with status 1 on failure,
      return the fault for the help signal.
    - non-shell mode: raise ParsingError on failure, return the fault for help
      without printing it.
    """
    if not isinstance(fault, Fault):
        raise TypeError("trigger() argument must be a fault")
    if not shell:
        if fault.error:
            raise ParsingError(fault) from None
        return fault
    show(fault, console=console)
    if fault.error:
        sys.exit(1)
    return fault


__all__ = (
    "FaultKind",
    "Fault",
    "ParsingError",
    "ReservedAliasWarning",
    "show",
    "trigger",
)
