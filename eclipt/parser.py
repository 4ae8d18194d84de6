"""
Eclipt parser: route a token stream through a command tree.

What this module provides
- Invocation: the resolved result of one command level (name, options,
  positional args, parent link). Terminal actions receive it.
- Success: wrapper for an action's return value inside the parser.
- eclipt(name, spec, tokens): parse and run; returns the action's result or a Fault.
- invoke(name, spec, tokens): process entry point; prints faults and exits on failure.

Token routing (head of the stream, in this order)
1. '--help'                → help fault (unless help is disabled on the node)
2. '-xyz'                  → expanded in place into '-x', '-y', '-z'
3. '-x'                    → rewritten to '--<name>' of the option aliased 'x'
                             ('-h' → '--help'), or an unknown-alias fault
4. '--name' / '--name=v'   → option resolver
5. '<child>'               → dispatched into the child command
6. anything, on a branch   → unknown-command fault
7. '--'                    → dropped; everything after is positional
8. no action               → no-action fault
9. otherwise               → remaining tokens become positional args and the
                             action runs with the Invocation

Every step hands back None (keep going), a Fault or a Success; the first
Fault/Success travels straight back to eclipt(). Nothing is raised for
malformed input and the declared tree is never modified.

Quick start
    from eclipt import Command, Opt, eclipt

    tool = Command(children={
        "greet": Command(lambda i: "hello " + i.args[0], positionals=("who",), options={
            "loud": Opt(alias="l", flag=True),
        }),
    })

    eclipt("tool", tool, ["greet", "-l", "world"])   # "hello world"
    eclipt("tool", tool, ["greet"]).kind             # "bad-args"
"""
import sys
from collections import deque
from collections.abc import Iterable, Mapping
from typing import final

from .faults import *
from .specs import Command, Scope
from .utils import *


class Invocation:
    """
    Resolved command level handed to terminal actions.

    - name: command name at this level
    - options: dict of canonical option name → True | str | list[str]
    - args: list of positional argument strings
    - parent: enclosing Invocation, None at the top level
    """

    __slots__ = ("name", "options", "args", "parent")

    def __init__(self, name, /, parent=None):
        self.name = name
        self.options = {}
        self.args = []
        self.parent = parent

    @property
    def root(self):
        """
        Return the top-level invocation of the chain.
        """
        invocation = self
        while invocation.parent:
            invocation = invocation.parent
        return invocation

    @property
    def path(self):
        """
        Return the invocations from the top level down to this one.
        """
        path = [invocation := self]
        while invocation.parent:
            path.append(invocation := invocation.parent)
        return tuple(reversed(path))

    def __rich_repr__(self):
        yield "name", self.name
        yield "options", self.options
        yield "args", self.args
        if self.parent:
            yield "parent", self.parent.name

    def __repr__(self):
        return "invocation(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


@final
class Success:
    """
    Value returned by a terminal action, as seen by the parse loop.
    """

    __slots__ = ("value",)
    __match_args__ = ("value",)

    def __init__(self, value, /):
        self.value = value

    def __repr__(self):
        return "success(%r)" % (self.value,)


def _expand_group(tokens):
    """
    '-xyz' → '-x', '-y', '-z' (pushed back at the front, left to right).
    """
    token = tokens.popleft()
    tokens.extendleft(reversed(["-" + char for char in token[1:]]))


def _resolve_alias(tokens, scope):
    """
    Rewrite '-x' into the long form of the option aliased 'x'.
    """
    alias = tokens[0][1:]

    if alias == "h" and scope.spec.helpful:
        tokens[0] = "--help"
        return None

    if option := scope.spec.alias(alias):
        tokens[0] = "--" + option.name
        return None

    return Fault(FaultKind.UNKNOWN_ALIAS, scope, token=alias)


def _resolve_option(tokens, scope, invocation):
    """
    Consume '--name', '--name=value' or '--name value' into invocation.options.

    Checks run in a fixed order: unknown name, repeated non-multi option,
    value given to a flag, missing value.
    """
    name, assigned, value = tokens.popleft()[2:].partition("=")
    if not assigned:
        value = None

    try:
        option = scope.spec.options[name]
    except KeyError:
        return Fault(FaultKind.UNKNOWN_OPT, scope, token=name)

    if not option.multi and name in invocation.options:
        return Fault(FaultKind.NOT_MULTI, scope, token=name, option=option)

    if value is not None and option.flag:
        return Fault(FaultKind.FLAG_VAL, scope, token=name, option=option)

    if option.flag:
        invocation.options[name] = True
        return None

    if value is None:
        if not tokens or not tokens[0] or tokens[0].startswith("-"):
            return Fault(FaultKind.MISSING_VAL, scope, token=name, option=option)
        value = tokens.popleft()

    if option.multi:
        invocation.options.setdefault(name, []).append(value)
    else:
        invocation.options[name] = value
    return None


def _collect_positionals(tokens, scope, invocation):
    """
    Drain the stream into invocation.args and check the declared arity.
    """
    count = 0
    while tokens:
        invocation.args.append(tokens.popleft())
        count += 1

    if scope.spec.positionals is not None and len(scope.spec.positionals) != count:
        return Fault(FaultKind.BAD_ARGS, scope, count=count)
    return None


def _dispatch(tokens, scope, invocation):
    """
    Enter the child command named by the head token.
    """
    name = tokens.popleft()
    return _parse(tokens, scope.enter(name), Invocation(name, invocation))


def _parse(tokens, scope, invocation):
    """
    Parse loop for one command level; returns a Success or a Fault.
    """
    spec = scope.spec

    while True:
        token = tokens[0] if tokens else None

        if token == "--help" and spec.helpful:
            return Fault(FaultKind.HELP, scope)

        if token and token.startswith("-") and not token.startswith("--") and len(token) > 1:
            if len(token) > 2:
                _expand_group(tokens)
            elif fault := _resolve_alias(tokens, scope):
                return fault
            continue

        if token and token != "--" and token.startswith("--"):
            if fault := _resolve_option(tokens, scope, invocation):
                return fault
            continue

        break

    if token and token in spec.children:
        return _dispatch(tokens, scope, invocation)

    if token and spec.children and not spec.action:
        return Fault(FaultKind.UNKNOWN_COMMAND, scope, token=token)

    if token == "--":
        tokens.popleft()

    if not spec.action:
        return Fault(FaultKind.NO_ACTION, scope)

    if fault := _collect_positionals(tokens, scope, invocation):
        return fault

    return Success(spec.action(invocation))


def _tokens(tokens):
    """
    Normalize the explicit token sequence into a deque of strings.
    """
    if isinstance(tokens, str) or not isinstance(tokens, Iterable):
        raise TypeError("eclipt() 'tokens' must be an iterable of strings")
    tokens = deque(tokens)
    if not all(isinstance(token, str) for token in tokens):
        raise TypeError("eclipt() 'tokens' must be an iterable of strings")
    return tokens


def eclipt(name, spec, tokens=Unset, /, *, silent=Unset, colorful=True):
    """
    Parse tokens against a command tree and run the matching action.

    Parameters
    - name: str
      Top-level command name (shown in usage lines).
    - spec: Command | Mapping
      Root of the command tree; a mapping is converted with Command(**spec).
    - tokens: Unset | Iterable[str]
      Arguments to parse. When Unset, sys.argv[1:] is read.
    - silent: Unset | bool (keyword-only)
      Suppress printing of help/failure output. Defaults to False when reading
      sys.argv and to True when tokens are given explicitly.
    - colorful: bool (keyword-only)
      Wrap failure headlines in an ANSI color escape.

    Returns
    - whatever the matched action returns, or
    - a Fault (fault.error is False for the help signal).

    Exceptions raised by actions propagate unchanged.
    """
    if not isinstance(name, str):
        raise TypeError("eclipt() 'name' must be a string")

    if isinstance(spec, Mapping):
        spec = Command(**spec)
    elif not isinstance(spec, Command):
        raise TypeError("eclipt() 'spec' must be a command or a mapping")

    if tokens is Unset:
        tokens = deque(sys.argv[1:])
        silent = coalesce(silent, False)
    else:
        tokens = _tokens(tokens)
        silent = coalesce(silent, True)

    match _parse(tokens, Scope.root(name, spec), Invocation(name)):
        case Success(value):
            return value
        case Fault() as fault:
            if not colorful:
                fault = fault.__replace__(colorful=False)
            if not silent:
                show(fault)
            return fault
        case unexpected:
            raise RuntimeError("unexpected parse outcome %r" % (unexpected,))


def invoke(name, spec, tokens=Unset, /, *, shell=True, colorful=True):
    """
    Process entry point: parse, then surface any fault via trigger().

    - shell=True: faults are printed; failures exit with status 1.
    - shell=False: failures raise ParsingError; help is returned unprinted.
    """
    result = eclipt(name, spec, tokens, silent=True, colorful=colorful)
    if isinstance(result, Fault):
        return trigger(result, shell=shell)
    return result


__all__ = (
    "Invocation",
    "Success",
    "eclipt",
    "invoke",
)
