r"""
Eclipt command tree: option and command declarations.

Overview
- Specs
  • Opt: declaration of one named option accepted by a command node
    (long name, optional one-character alias, flag/multi semantics, help text).
  • Command: a node of the caller-declared tree (terminal action, children,
    positional names, options).
  • Scope: the derived, per-traversal annotation of a node (its name and the
    names of its ancestors). Names and paths never get written back onto the
    caller's Command objects, so one tree can be parsed any number of times.

- Decorator
  • @command(...): build a leaf Command from a handler function.

- Introspection & representation
  • SpecType metaclass provides stable __repr__/__rich_repr__ and exposes selected
    fields via read-only properties declared in __introspectable__/__displayable__.

Validation highlights
- options/children must be mappings; positionals must be an iterable of names.
- Option names cannot start with '-' nor contain '='.
- Aliases are exactly one character and unique within a node.
- Alias 'h' is reserved for help: declaring it warns and is never reachable.

Quick example:
    >>> from eclipt.specs import Command, Opt
    >>> tool = Command(
    ...     children={
    ...         "build": Command(lambda i: i, positionals=("target",), options={
    ...             "jobs": Opt(alias="j", value="count", description="parallel jobs"),
    ...             "verbose": Opt(alias="v", flag=True),
    ...         }),
    ...     },
    ... )
"""
import builtins
import functools
import inspect
import operator
import re
import warnings
from collections.abc import Iterable, Mapping

from .faults import ReservedAliasWarning
from .utils import *


class SpecType(type):
    """
    Metaclass that turns declarations into introspectable, read-only specs.

    Responsibilities
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__.
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics and pretty printing.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in validation messages.
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__;
      otherwise __introspectable__ is used.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - opt(name='verbose', alias='v', flag=True, ...)
            """
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            """
            Yield (name, object) pairs for pretty printers.
            """
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_text(cls, metadata, key, /):
    """
    Internal: validate an optional display string; Unset and blank text become None.
    """
    if not isinstance(text := metadata[key], str | Unset):
        raise TypeError(f"{cls.__typename__} {key!r} must be a string")
    metadata[key] = coalesce(text) and text.strip() or None


def _sanitize_option(cls, metadata, /):
    """
    Internal: validate and normalize Opt metadata.

    Responsibilities
    - name: Unset (not yet bound to a key) or a non-empty string that does not
      start with '-' and does not contain '='.
    - alias: Unset or exactly one character other than '-' and '='. The reserved
      alias 'h' triggers ReservedAliasWarning.
    - value: placeholder shown in help, defaults to "value".
    - description: optional help text.

    Side effects
    - Mutates the provided metadata dict in place.
    """
    if not isinstance(name := metadata["name"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif isinstance(name, str) and (not name or name.startswith("-") or "=" in name or name != name.strip()):
        raise ValueError(f"{cls.__typename__} 'name' must be a non-empty name without leading '-' or '='")
    metadata["name"] = coalesce(name)

    if not isinstance(alias := metadata["alias"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'alias' must be a string")
    elif isinstance(alias, str) and (len(alias) != 1 or alias in "-= \t"):
        raise ValueError(f"{cls.__typename__} 'alias' must be a single character")
    elif alias == "h":
        warnings.warn(ReservedAliasWarning(
            "alias 'h' is reserved for help; -h will never resolve to this option"
        ), stacklevel=3)
    metadata["alias"] = coalesce(alias)

    _sanitize_text(cls, metadata, "value")
    metadata["value"] = metadata["value"] or "value"
    _sanitize_text(cls, metadata, "description")


class Opt(metaclass=SpecType):
    """
    Declaration of one named option accepted by a command node.

    An Opt is immutable. Its canonical name comes from the key it is declared
    under in Command(options=...); the Command re-binds a copy of the Opt to
    that key, leaving the original untouched.

    Highlights
    - flag: presence-only, sets True.
    - multi: may be repeated; values accumulate in order.
    - alias: one-character short form (-x), groupable as -xyz.
    - value: placeholder shown in help (<value> by default).
    """

    __introspectable__ = (
        "name",
        "alias",
        "flag",
        "multi",
        "value",
        "description",
        "disable_help",
    )

    __displayable__ = (
        "name",
        "alias",
        "flag",
        "multi",
        "value",
    )

    def __new__(
            cls,
            *,
            name=Unset,
            alias=Unset,
            flag=False,
            multi=False,
            value=Unset,
            description=Unset,
            disable_help=False,
    ):
        """
        Construct an Opt with the provided metadata.

        Parameters
        - name: Unset | str
          Canonical long name (without dashes). Normally left Unset and
          assigned from the key in Command(options=...).
        - alias: Unset | str
          One-character short form, e.g. "v" for -v.
        - flag: bool
          The option takes no value; its presence stores True.
        - multi: bool
          Repeated occurrences accumulate into a list instead of failing.
        - value: Unset | str
          Placeholder used in help and usage (defaults to "value").
        - description: Unset | str
          Help text.
        - disable_help: bool
          Suppress the automatic --help/-h on the node owning this option.
        """
        metadata = {
            "name": name,
            "alias": alias,
            "flag": bool(flag),
            "multi": bool(multi),
            "value": value,
            "description": description,
            "disable_help": bool(disable_help),
        }
        _sanitize_option(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    def __replace__(self, **overrides):
        """
        Return a copy of this option with some fields replaced.
        """
        return type(self)(**{
            "name": Unset if self.name is None else self.name,
            "alias": Unset if self.alias is None else self.alias,
            "flag": self.flag,
            "multi": self.multi,
            "value": self.value,
            "description": Unset if self.description is None else self.description,
            "disable_help": self.disable_help,
        } | overrides)


def _resolve_option(cls, name, object):
    """
    Internal: turn an options-mapping entry into an Opt bound to its key.
    """
    if isinstance(object, Mapping):
        object = Opt(**({"name": name} | dict(object)))
    if not isinstance(object, Opt):
        raise TypeError(f"{cls.__typename__} 'options' values must be options or mappings")
    if object.name is None:
        with warnings.catch_warnings():
            # a reserved alias was already reported when the option was declared
            warnings.simplefilter("ignore", ReservedAliasWarning)
            object = object.__replace__(name=name)
    if object.name != name:
        raise ValueError(f"{cls.__typename__} option {object.name!r} cannot be declared under key {name!r}")
    return object


def _resolve_child(cls, name, object):
    """
    Internal: turn a children-mapping entry into a Command.
    """
    if isinstance(object, Mapping):
        object = Command(**object)
    if not isinstance(object, Command):
        raise TypeError(f"{cls.__typename__} 'children' values must be commands or mappings")
    return object


def _process_options(cls, metadata):
    """
    Validate the options mapping, bind names and enforce alias uniqueness.
    """
    if not isinstance(options := metadata["options"], Mapping):
        raise TypeError(f"{cls.__typename__} 'options' must be a mapping")

    resolved = {}
    aliases = {}
    for name, object in options.items():
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} 'options' keys must be strings")
        object = resolved[name] = _resolve_option(cls, name, object)
        if object.alias is None:
            continue
        if object.alias in aliases:
            raise ValueError(f"{cls.__typename__} alias {object.alias!r} is already in use by {aliases[object.alias]!r}")
        aliases[object.alias] = name
    metadata["options"] = resolved


def _process_children(cls, metadata):
    """
    Validate the children mapping and its command names.
    """
    if not isinstance(children := metadata["children"], Mapping):
        raise TypeError(f"{cls.__typename__} 'children' must be a mapping")

    resolved = {}
    for name, object in children.items():
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} 'children' keys must be strings")
        elif not name or name.startswith("-") or name != name.strip():
            raise ValueError(f"{cls.__typename__} command name {name!r} must be non-empty and cannot start with '-'")
        resolved[name] = _resolve_child(cls, name, object)
    metadata["children"] = resolved


def _process_positionals(cls, metadata):
    """
    Validate the declared positional names; Unset means "any count".
    """
    if (positionals := metadata["positionals"]) is Unset:
        metadata["positionals"] = None
        return
    if isinstance(positionals, str) or not isinstance(positionals, Iterable):
        raise TypeError(f"{cls.__typename__} 'positionals' must be an iterable of strings")

    sanitized = []
    for name in positionals:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} 'positionals' must be an iterable of strings")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} 'positionals' names cannot be empty")
        sanitized.append(name)
    metadata["positionals"] = tuple(sanitized)


class Command(metaclass=SpecType):
    """
    A node of the caller-declared command tree.

    A node with an action is a leaf command; a node without one is a branch
    command and is expected to have children. A node that is neither fails
    with a no-action fault when parsing reaches it.

    Properties
    - The names listed in __introspectable__ are exposed as read-only attributes
      (mappings as MappingProxyType, sequences as tuples).
    """

    __introspectable__ = (
        "description",
        "action",
        "children",
        "positionals",
        "options",
        "disable_help",
    )

    __displayable__ = (
        "description",
        "action",
        "children",
        "positionals",
        "options",
    )

    def __new__(
            cls,
            action=Unset,
            *,
            description=Unset,
            children=Unset,
            positionals=Unset,
            options=Unset,
            disable_help=False,
    ):
        """
        Construct a command node.

        Parameters
        - action: Unset | Callable[[Invocation], Any]
          Terminal handler; its return value becomes the parse result.
        - description: Unset | str
          Display text for help and for the parent's commands block.
        - children: Mapping[str, Command | Mapping]
          Subcommands by name (plain mappings are converted to Command).
        - positionals: Unset | Iterable[str]
          Names of the positional arguments; when declared, exactly that many
          positional arguments are required.
        - options: Mapping[str, Opt | Mapping]
          Options by canonical name (plain mappings are converted to Opt).
        - disable_help: bool
          Suppress the automatic --help/-h on this node (not on its children).

        Raises
        - TypeError/ValueError on malformed declarations.
        """
        if action is not Unset and not callable(action):
            raise TypeError(f"{cls.__typename__} 'action' must be callable")

        metadata = {
            "description": description,
            "action": coalesce(action),
            "children": coalesce(children, {}),
            "positionals": positionals,
            "options": coalesce(options, {}),
            "disable_help": bool(disable_help),
        }
        _sanitize_text(cls, metadata, "description")
        _process_options(cls, metadata)
        _process_children(cls, metadata)
        _process_positionals(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def helpful(self):
        """
        Whether the automatic --help/-h is active on this node.
        """
        return not self.disable_help and not any(option.disable_help for option in self.options.values())

    def alias(self, alias, /):
        """
        Return the option declared with the given alias, or None.
        """
        for option in self.options.values():
            if option.alias == alias:
                return option
        return None


class Scope(metaclass=SpecType):
    """
    Derived annotation of a command node during one traversal.

    Carries the node together with its resolved command name and the names of
    its ancestors, without touching the node itself.
    """

    __introspectable__ = (
        "spec",
        "name",
        "path",
    )

    __displayable__ = (
        "name",
        "path",
    )

    def __new__(cls, spec, name, path=(), /):
        if not isinstance(spec, Command):
            raise TypeError(f"{cls.__typename__} 'spec' must be a command")
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} 'name' must be a string")
        self = super().__new__(cls)
        self._spec = spec
        self._name = name
        self._path = tuple(path)
        return self

    @classmethod
    def root(cls, name, spec, /):
        """
        Build the scope of the top-level command.
        """
        return cls(spec, name)

    def enter(self, name, /):
        """
        Build the scope of the child command registered under name.
        """
        return type(self)(self.spec.children[name], name, (*self.path, self.name))


def command(action=Unset, /, **kwargs):
    """
    Build a leaf Command from a handler, or return a decorator that does.

    The handler docstring becomes the description unless one is given.

    Usage
        @command(positionals=("file",), options={"force": Opt(alias="f", flag=True)})
        def remove(invocation):
            '''Remove a file.'''
            ...
    """
    @rename("command")
    def wrapper(action, /):
        if not builtins.callable(action):
            raise TypeError("@command() must be applied to a callable")
        if "description" not in kwargs and (doc := inspect.getdoc(action)):
            return Command(action, description=doc.splitlines()[0], **kwargs)
        return Command(action, **kwargs)

    return wrapper(action) if action is not Unset else wrapper


__all__ = (
    "Opt",
    "Command",
    "Scope",
    "command",
)

# Keep the metaclass out of star-imports.
del SpecType
